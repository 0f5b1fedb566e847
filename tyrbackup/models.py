"""
Pydantic v2 data models for Tyr backups.
"""
import time
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SCHEMA_VERSION = 1


def now_millis() -> int:
    return int(time.time() * 1000)

def clean_peers(v: List[str]) -> List[str]:
    peers = []
    for peer in v:
        peer = peer.strip()
        if not peer or any(c.isspace() for c in peer):
            raise ValueError("Peer URIs must be non-empty and contain no whitespace")
        peers.append(peer)
    return peers

class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)

class ConfigSnapshot(FrozenModel):
    """Everything that goes into one backup, encrypted as a whole."""
    schema_version: int = Field(default=SCHEMA_VERSION, ge=1, le=SCHEMA_VERSION)
    created_at: int = Field(default_factory=now_millis, ge=0)  # epoch millis
    auth_secret: Optional[str] = None
    custom_peers: List[str] = Field(default_factory=list)
    use_default_peers: bool = True
    auto_start_enabled: bool = True
    identity_address: Optional[str] = None
    identity_public_key: Optional[str] = None
    onboarding_completed: bool = False
    embedded_blob: Optional[bytes] = None

    @field_validator("auth_secret", "identity_address", "identity_public_key", mode="before")
    @classmethod
    def empty_as_absent(cls, v: Optional[str]) -> Optional[str]:
        # The wire format cannot tell "" from absent
        if v == "":
            return None
        return v

    @field_validator("custom_peers")
    @classmethod
    def validate_peers(cls, v: List[str]) -> List[str]:
        return clean_peers(v)

    @property
    def includes_database(self) -> bool:
        return self.embedded_blob is not None

class BackupStage(str, Enum):
    """
    Per-call progress of a create/restore/verify operation.
    DONE and FAILED are terminal; a failure records the stage it stopped in.
    """
    VALIDATING = "validating"
    DERIVING = "deriving"
    CIPHERING = "ciphering"
    CODEC = "codec"
    DONE = "done"
    FAILED = "failed"

class StoredSettings(FrozenModel):
    """Non-secret settings persisted by the file-backed config store."""
    custom_peers: List[str] = Field(default_factory=list)
    use_default_peers: bool = True
    auto_start_enabled: bool = True
    mail_address: Optional[str] = None
    public_key: Optional[str] = None
    onboarding_completed: bool = False

    @field_validator("custom_peers")
    @classmethod
    def validate_peers(cls, v: List[str]) -> List[str]:
        return clean_peers(v)

class DoctorCheck(FrozenModel):
    name: str
    status: Literal["pass", "warn", "fail"]
    detail: str
