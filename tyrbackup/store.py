"""
Configuration store: the live settings a backup is taken from and restored into.

Non-secret settings live in a JSON file in the config directory, the account
password lives in the OS keyring, and the embedded mail database is a plain file
next to the settings.
"""
import json
from pathlib import Path
from typing import List, Optional, Protocol

import keyring
from keyring.errors import KeyringError, PasswordDeleteError
from pydantic import ValidationError

from .config import APP_NAME, apply_secure_permissions, get_database_path, get_settings_path
from .errors import StoreError
from .models import ConfigSnapshot, StoredSettings
from .utils import atomic_write_bytes

PASSWORD_KEYRING_USER = "account_password"

DEFAULT_PEERS = [
    "tcp://bra.zbin.eu:7743",
]


class ConfigStore(Protocol):
    """Synchronous get/set facade over the application's configuration."""

    def get_snapshot_fields(self, include_database: bool = True) -> ConfigSnapshot:
        ...

    def apply_snapshot_fields(self, snapshot: ConfigSnapshot) -> None:
        ...


class FileConfigStore:
    """ConfigStore backed by a settings file, the OS keyring and a database file."""

    def __init__(self, settings_path: Optional[Path] = None, database_path: Optional[Path] = None):
        self.settings_path = Path(settings_path) if settings_path else get_settings_path()
        self.database_path = Path(database_path) if database_path else get_database_path()

    # Settings file

    def _load(self) -> StoredSettings:
        if not self.settings_path.exists():
            return StoredSettings()
        try:
            with self.settings_path.open("r", encoding="utf-8") as f:
                return StoredSettings(**json.load(f))
        except Exception as e:
            raise StoreError(f"Failed to load settings from {self.settings_path}: {e}") from e

    def _update(self, **changes) -> None:
        settings = self._load().model_copy(update=changes)
        # Round-trip through validation so bad values never reach disk
        try:
            settings = StoredSettings(**settings.model_dump())
        except ValidationError as e:
            raise StoreError(f"Refusing to save invalid settings: {e}") from e
        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            with self.settings_path.open("w", encoding="utf-8") as f:
                f.write(settings.model_dump_json(indent=2))
            apply_secure_permissions(self.settings_path)
        except OSError as e:
            raise StoreError(f"Failed to write settings to {self.settings_path}: {e}") from e

    # Password (keyring)

    def save_password(self, password: str) -> None:
        try:
            keyring.set_password(APP_NAME, PASSWORD_KEYRING_USER, password)
        except KeyringError as e:
            raise StoreError(f"Failed to store password in OS keyring: {e}") from e

    def get_password(self) -> Optional[str]:
        try:
            return keyring.get_password(APP_NAME, PASSWORD_KEYRING_USER)
        except KeyringError:
            return None

    # Peers

    def save_peers(self, peers: List[str]) -> None:
        """Save custom peers. Saving custom peers switches off the default set."""
        self._update(custom_peers=list(peers), use_default_peers=False)

    def get_custom_peers(self) -> List[str]:
        return list(self._load().custom_peers)

    def get_peers(self) -> List[str]:
        """Effective peer list: defaults, or the custom ones if selected and present."""
        settings = self._load()
        if settings.use_default_peers or not settings.custom_peers:
            return list(DEFAULT_PEERS)
        return list(settings.custom_peers)

    def is_using_default_peers(self) -> bool:
        return self._load().use_default_peers

    def set_use_default_peers(self, use_default: bool) -> None:
        self._update(use_default_peers=use_default)

    # Flags and identity

    def is_auto_start_enabled(self) -> bool:
        return self._load().auto_start_enabled

    def set_auto_start_enabled(self, enabled: bool) -> None:
        self._update(auto_start_enabled=enabled)

    def is_onboarding_completed(self) -> bool:
        return self._load().onboarding_completed

    def set_onboarding_completed(self, completed: bool) -> None:
        self._update(onboarding_completed=completed)

    def get_mail_address(self) -> Optional[str]:
        return self._load().mail_address

    def save_mail_address(self, address: str) -> None:
        self._update(mail_address=address)

    def get_public_key(self) -> Optional[str]:
        return self._load().public_key

    def save_public_key(self, public_key: str) -> None:
        self._update(public_key=public_key)

    # Database

    def read_database(self) -> Optional[bytes]:
        """Return the database bytes, or None if there is no database yet."""
        if not self.database_path.exists():
            return None
        try:
            return self.database_path.read_bytes()
        except OSError as e:
            raise StoreError(f"Failed to read database {self.database_path}: {e}") from e

    def write_database(self, data: bytes) -> None:
        try:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write_bytes(self.database_path, data)
        except OSError as e:
            raise StoreError(f"Failed to write database {self.database_path}: {e}") from e

    def clear_all(self) -> None:
        """Remove settings, database and the stored password."""
        self.settings_path.unlink(missing_ok=True)
        self.database_path.unlink(missing_ok=True)
        try:
            keyring.delete_password(APP_NAME, PASSWORD_KEYRING_USER)
        except PasswordDeleteError:
            pass  # nothing stored

    # Snapshot facade

    def get_snapshot_fields(self, include_database: bool = True) -> ConfigSnapshot:
        settings = self._load()
        try:
            return ConfigSnapshot(
                auth_secret=self.get_password(),
                custom_peers=settings.custom_peers,
                use_default_peers=settings.use_default_peers,
                auto_start_enabled=settings.auto_start_enabled,
                identity_address=settings.mail_address,
                identity_public_key=settings.public_key,
                onboarding_completed=settings.onboarding_completed,
                embedded_blob=self.read_database() if include_database else None,
            )
        except ValidationError as e:
            raise StoreError(f"Stored settings cannot be backed up: {e}") from e

    def apply_snapshot_fields(self, snapshot: ConfigSnapshot) -> None:
        """Write a restored snapshot back, field by field. Not transactional."""
        if snapshot.auth_secret is not None:
            self.save_password(snapshot.auth_secret)
        if snapshot.custom_peers:
            self.save_peers(snapshot.custom_peers)
        self.set_use_default_peers(snapshot.use_default_peers)
        self.set_auto_start_enabled(snapshot.auto_start_enabled)
        if snapshot.identity_address is not None:
            self.save_mail_address(snapshot.identity_address)
        if snapshot.identity_public_key is not None:
            self.save_public_key(snapshot.identity_public_key)
        self.set_onboarding_completed(snapshot.onboarding_completed)
        if snapshot.embedded_blob is not None:
            self.write_database(snapshot.embedded_blob)
