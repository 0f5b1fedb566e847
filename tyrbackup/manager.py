"""
Backup orchestration: create, restore and verify encrypted configuration containers.

Create:  snapshot -> encode -> derive(password, fresh salt) -> seal -> salt|nonce|ciphertext
Restore: split -> derive(password, salt) -> unseal -> decode -> snapshot

Every call is independent and keeps all salt/nonce/key material local, so a single
BackupManager can be shared between threads. Key derivation is deliberately slow
(100k PBKDF2 rounds); interactive callers should run these calls off the UI thread.
"""
from pathlib import Path
from typing import Optional

from . import codec
from .audit import AuditEvent, AuditLogger
from .config import MIN_PASSWORD_LEN
from .crypto import derive_key, generate_nonce, generate_salt, seal, unseal
from .errors import BackupIOError, TyrBackupError, WeakPasswordError
from .models import BackupStage, ConfigSnapshot
from .store import ConfigStore
from .utils import atomic_write_bytes


class BackupManager:
    """Stateless backup service. The optional audit logger only receives events."""

    def __init__(self, audit: Optional[AuditLogger] = None):
        self._audit = audit

    def _log(self, event: AuditEvent, **kwargs) -> None:
        if self._audit is not None:
            self._audit.log(event, **kwargs)

    def _done(self, event: AuditEvent, **kwargs) -> None:
        self._log(event, state=BackupStage.DONE.value, **kwargs)

    def _failed(self, operation: str, stage: BackupStage, error: Exception) -> None:
        # Only the error class is recorded; messages may describe payload contents
        self._log(
            AuditEvent.BACKUP_FAILED,
            operation=operation,
            state=BackupStage.FAILED.value,
            stage=stage.value,
            error=type(error).__name__,
        )

    def create_backup(self, snapshot: ConfigSnapshot, password: str) -> bytes:
        """
        Encrypt a snapshot into container bytes.

        Raises WeakPasswordError for passwords shorter than 8 characters. Nothing is
        written anywhere; the caller decides where the container goes.
        """
        stage = BackupStage.VALIDATING
        try:
            if len(password) < MIN_PASSWORD_LEN:
                raise WeakPasswordError()

            salt = generate_salt()
            nonce = generate_nonce()

            stage = BackupStage.DERIVING
            key = derive_key(password, salt)

            stage = BackupStage.CODEC
            plaintext = codec.encode(snapshot)

            stage = BackupStage.CIPHERING
            sealed = seal(key, nonce, plaintext)
            container = codec.join_container(salt, nonce, sealed)
        except TyrBackupError as e:
            self._failed("create", stage, e)
            raise

        self._done(
            AuditEvent.BACKUP_CREATED,
            size=len(container),
            includes_database=snapshot.includes_database,
        )
        return container

    def _open(self, operation: str, container: bytes, password: str) -> ConfigSnapshot:
        stage = BackupStage.VALIDATING
        try:
            salt, nonce, ciphertext = codec.split_container(container)

            stage = BackupStage.DERIVING
            key = derive_key(password, salt)

            stage = BackupStage.CIPHERING
            plaintext = unseal(key, nonce, ciphertext)

            stage = BackupStage.CODEC
            return codec.decode(plaintext)
        except TyrBackupError as e:
            self._failed(operation, stage, e)
            raise

    def restore_backup(self, container: bytes, password: str) -> ConfigSnapshot:
        """
        Decrypt and decode container bytes.

        No password policy is applied: the container may predate it. A wrong password
        and a damaged file both raise AuthenticationError.
        """
        snapshot = self._open("restore", container, password)
        self._done(
            AuditEvent.BACKUP_RESTORED,
            version=snapshot.schema_version,
            created_at=snapshot.created_at,
        )
        return snapshot

    def check_backup(self, container: bytes, password: str) -> ConfigSnapshot:
        """Like restore_backup, but audited as a verification. Raises on any failure."""
        snapshot = self._open("verify", container, password)
        self._done(AuditEvent.BACKUP_VERIFIED, version=snapshot.schema_version)
        return snapshot

    def verify_password(self, container: bytes, password: str) -> bool:
        """Return True if the container opens and decodes with this password."""
        try:
            self.check_backup(container, password)
        except TyrBackupError:
            return False
        return True

    def snapshot_from_store(self, store: ConfigStore, include_database: bool = True) -> ConfigSnapshot:
        return store.get_snapshot_fields(include_database=include_database)

    def backup_store(self, store: ConfigStore, password: str, include_database: bool = True) -> bytes:
        """Read the live configuration and encrypt it."""
        if len(password) < MIN_PASSWORD_LEN:
            # Checked up front so the store is not read for a doomed call
            self._failed("create", BackupStage.VALIDATING, WeakPasswordError())
            raise WeakPasswordError()
        snapshot = self.snapshot_from_store(store, include_database=include_database)
        return self.create_backup(snapshot, password)

    def restore_into_store(self, store: ConfigStore, container: bytes, password: str) -> ConfigSnapshot:
        """
        Restore a container and write its fields into the store.
        The container is fully decoded before the first write, so a failed restore
        leaves the store untouched.
        """
        snapshot = self.restore_backup(container, password)
        store.apply_snapshot_fields(snapshot)
        self._done(
            AuditEvent.STORE_RESTORED,
            peers=len(snapshot.custom_peers),
            includes_database=snapshot.includes_database,
        )
        return snapshot

    @staticmethod
    def write_container(path: Path, container: bytes) -> None:
        """Atomically write container bytes to path with owner-only permissions."""
        try:
            atomic_write_bytes(Path(path), container)
        except OSError as e:
            raise BackupIOError(f"Failed to write backup file {path}: {e}") from e

    @staticmethod
    def read_container(path: Path) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise BackupIOError(f"Failed to read backup file {path}: {e}") from e
