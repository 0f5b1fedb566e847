"""
Security audit logging with structured JSON-Lines.

Each line is {"timestamp", "event", "details"}. Events come from a fixed set
so the audit command can filter on them; details never carry secrets.
"""
import json
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from .config import AUDIT_FILENAME, get_config_dir

REDACTED_MARKERS = ("password", "token", "secret", "key")
FALLBACK_FILENAME = "audit_fallback.log"


class AuditEvent(str, Enum):
    BACKUP_CREATED = "backup_created"
    BACKUP_RESTORED = "backup_restored"
    BACKUP_VERIFIED = "backup_verified"
    BACKUP_FAILED = "backup_failed"
    STORE_RESTORED = "store_restored"


def redact(details: Dict[str, Any]) -> Dict[str, Any]:
    """Mask any detail whose name looks like it holds a secret."""
    return {
        k: "*****" if any(marker in k.lower() for marker in REDACTED_MARKERS) else v
        for k, v in details.items()
    }


class AuditLogger:
    """Appends audit events to the JSONL log in the config directory."""
    def __init__(self, log_file: Optional[Path] = None):
        self.log_file = Path(log_file) if log_file else get_config_dir() / AUDIT_FILENAME

    def log(self, event: AuditEvent, **details: Any) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": AuditEvent(event).value,
            "details": redact(details),
        }
        line = json.dumps(entry) + "\n"

        try:
            with self.log_file.open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            sys.stderr.write(f"[Tyr Audit Error] Failed to write log: {e}\n")
            try:
                with self.log_file.with_name(FALLBACK_FILENAME).open("a", encoding="utf-8") as f:
                    f.write(line)
            except OSError:
                pass  # stderr already has it

def get_audit_log(last_n: int = 50, event: Optional[AuditEvent] = None) -> list[Dict[str, Any]]:
    """Retrieve the last N events from the audit log, optionally of one kind."""
    log_file = get_config_dir() / AUDIT_FILENAME
    if not log_file.exists():
        return []

    try:
        with log_file.open("r", encoding="utf-8") as f:
            lines = f.readlines()
    except OSError:
        return []

    parsed = []
    for line in lines:
        if not line.strip():
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            continue
        if event is not None and entry.get("event") != AuditEvent(event).value:
            continue
        parsed.append(entry)
    return parsed[-last_n:] if last_n > 0 else []
