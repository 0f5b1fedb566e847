"""
Core utilities for Tyr backups.
"""
import os
import tempfile
import time
from pathlib import Path

from .config import BACKUP_FILE_EXTENSION, apply_secure_permissions


def mask_secret(secret: str) -> str:
    """Mask a secret, returning only the last 4 characters visible."""
    if not secret or len(secret) < 8:
        return "****"
    return "*" * (len(secret) - 4) + secret[-4:]

def human_size(nbytes: int) -> str:
    """Convert bytes to a human-readable string (e.g. 1.2 MiB)."""
    if nbytes == 0:
        return "0 B"
    suffixes = ["B", "KiB", "MiB", "GiB", "TiB", "PiB"]
    i = 0
    size = float(nbytes)
    while size >= 1024 and i < len(suffixes) - 1:
        size /= 1024.0
        i += 1
    if i == 0:
        return f"{int(size)} {suffixes[i]}"
    return f"{size:.1f} {suffixes[i]}"

def generate_backup_filename() -> str:
    """Return a default backup filename such as tyr_backup_1700000000000.tyrbackup."""
    millis = int(time.time() * 1000)
    return f"tyr_backup_{millis}{BACKUP_FILE_EXTENSION}"

def atomic_write_bytes(path: Path, data: bytes) -> None:
    """
    Write data next to path and move it into place, so readers never see a partial file.
    The temp file is removed if anything fails.
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        apply_secure_permissions(tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
