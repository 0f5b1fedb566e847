"""
Configuration locations and file permissions for Tyr backups.
"""
import os
import stat
import sys
from pathlib import Path

APP_NAME = "tyr"
CONFIG_DIR_ENV = "TYR_CONFIG_DIR"
PASSWORD_ENV = "TYR_BACKUP_PASSWORD"

BACKUP_FILE_EXTENSION = ".tyrbackup"
SETTINGS_FILENAME = "settings.json"
DATABASE_FILENAME = "yggmail.db"
AUDIT_FILENAME = "audit.jsonl"

MIN_PASSWORD_LEN = 8

def get_config_dir() -> Path:
    """Returns the platform-specific configuration directory."""
    override = os.getenv(CONFIG_DIR_ENV)
    if override:
        config_dir = Path(override)
        config_dir.mkdir(parents=True, exist_ok=True)
        return config_dir

    if sys.platform == "win32":
        appdata = os.getenv("APPDATA")
        if appdata:
            base_dir = Path(appdata)
        else:
            base_dir = Path.home() / "AppData" / "Roaming"
    else:
        # XDG Base Directory specification
        xdg_config = os.getenv("XDG_CONFIG_HOME")
        if xdg_config:
            base_dir = Path(xdg_config)
        else:
            base_dir = Path.home() / ".config"

    config_dir = base_dir / APP_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir

def get_settings_path() -> Path:
    return get_config_dir() / SETTINGS_FILENAME

def get_database_path() -> Path:
    return get_config_dir() / DATABASE_FILENAME

def apply_secure_permissions(path: Path) -> None:
    """Apply chmod 600 equivalent permissions to a file."""
    if sys.platform != "win32":
        # Owner read/write only
        path.chmod(stat.S_IRUSR | stat.S_IWUSR)
