"""
Snapshot payload codec and container layout.

The plaintext inside a container is a compact, key-sorted UTF-8 JSON object.
The container itself is: salt (32) | nonce (12) | ciphertext + GCM tag (>= 16).
"""
import base64
import binascii
import json
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError

from .crypto import NONCE_LEN, SALT_LEN, TAG_LEN
from .errors import ContainerTooShortError, MalformedPayloadError, UnsupportedVersionError
from .models import SCHEMA_VERSION, ConfigSnapshot

MIN_CONTAINER_LEN = SALT_LEN + NONCE_LEN + TAG_LEN
PEER_SEPARATOR = "\n"


class SnapshotPayload(BaseModel):
    """Wire shape of a serialized snapshot. Absent optional strings travel as ""."""
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    version: int
    timestamp: int
    password: str = ""
    peers: str = ""
    useDefaultPeers: bool
    autoStart: bool
    mailAddress: str = ""
    publicKey: str = ""
    includesDatabase: bool = False
    databaseData: Optional[str] = None
    onboardingCompleted: bool = True


def _split_peers(peers: str) -> List[str]:
    return [p.strip() for p in peers.split(PEER_SEPARATOR) if p.strip()]

def encode(snapshot: ConfigSnapshot) -> bytes:
    """Serialize a snapshot to canonical payload bytes."""
    database_data = None
    if snapshot.embedded_blob is not None:
        database_data = base64.b64encode(snapshot.embedded_blob).decode("ascii")

    payload = SnapshotPayload(
        version=snapshot.schema_version,
        timestamp=snapshot.created_at,
        password=snapshot.auth_secret or "",
        peers=PEER_SEPARATOR.join(snapshot.custom_peers),
        useDefaultPeers=snapshot.use_default_peers,
        autoStart=snapshot.auto_start_enabled,
        mailAddress=snapshot.identity_address or "",
        publicKey=snapshot.identity_public_key or "",
        includesDatabase=snapshot.includes_database,
        databaseData=database_data,
        onboardingCompleted=snapshot.onboarding_completed,
    )
    return json.dumps(
        payload.model_dump(exclude_none=True),
        sort_keys=True,
        separators=(",", ":"),
    ).encode("utf-8")

def decode(data: bytes) -> ConfigSnapshot:
    """
    Parse payload bytes back into a snapshot.

    The version gate runs before the remaining fields are validated, so a payload
    from a newer producer is reported as unsupported rather than malformed.
    Errors never say which field was at fault.
    """
    try:
        raw = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise MalformedPayloadError() from None

    if not isinstance(raw, dict):
        raise MalformedPayloadError()

    version = raw.get("version")
    if not isinstance(version, int) or isinstance(version, bool):
        raise MalformedPayloadError()
    if version > SCHEMA_VERSION:
        raise UnsupportedVersionError(
            f"Backup version {version} is not supported (current version: {SCHEMA_VERSION})."
        )

    try:
        payload = SnapshotPayload.model_validate(raw)
        blob = None
        # A producer with no database file still flags it but sends no data
        if payload.includesDatabase and payload.databaseData is not None:
            blob = base64.b64decode(payload.databaseData, validate=True)
        return ConfigSnapshot(
            schema_version=payload.version,
            created_at=payload.timestamp,
            auth_secret=payload.password or None,
            custom_peers=_split_peers(payload.peers),
            use_default_peers=payload.useDefaultPeers,
            auto_start_enabled=payload.autoStart,
            identity_address=payload.mailAddress or None,
            identity_public_key=payload.publicKey or None,
            onboarding_completed=payload.onboardingCompleted,
            embedded_blob=blob,
        )
    except (ValidationError, binascii.Error, ValueError):
        raise MalformedPayloadError() from None

def split_container(data: bytes) -> Tuple[bytes, bytes, bytes]:
    """Split a container into (salt, nonce, ciphertext_with_tag) without touching crypto."""
    if len(data) < MIN_CONTAINER_LEN:
        raise ContainerTooShortError(
            f"Backup file is too small or corrupted ({len(data)} bytes, minimum {MIN_CONTAINER_LEN})."
        )
    salt = data[:SALT_LEN]
    nonce = data[SALT_LEN:SALT_LEN + NONCE_LEN]
    ciphertext = data[SALT_LEN + NONCE_LEN:]
    return salt, nonce, ciphertext

def join_container(salt: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
    """Inverse of split_container."""
    return salt + nonce + ciphertext
