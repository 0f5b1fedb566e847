"""
Doctor diagnostic suite.
"""
import shutil
import ssl
import time
from typing import List

import cryptography
import keyring

from .config import get_config_dir
from .crypto import derive_key, generate_salt
from .errors import StoreError
from .models import DoctorCheck
from .store import FileConfigStore

# Above this the derivation is noticeably slow for interactive use
KDF_WARN_MS = 1000


def run_diagnostics() -> List[DoctorCheck]:
    """Execute the health checks synchronously."""
    checks: List[DoctorCheck] = []

    # 1. Encryption Backend
    checks.append(DoctorCheck(name="1. Cryptography Lib", status="pass", detail=f"v{cryptography.__version__}"))

    # 2. OpenSSL Version
    checks.append(DoctorCheck(name="2. OpenSSL Engine", status="pass", detail=ssl.OPENSSL_VERSION))

    # 3. Keyring Backend
    try:
        kr = keyring.get_keyring()
        checks.append(DoctorCheck(name="3. OS Keyring Backend", status="pass", detail=str(kr.__class__.__name__)))
    except Exception as e:
        checks.append(DoctorCheck(name="3. OS Keyring Backend", status="warn", detail=str(e)))

    # 4. Config Directory
    config_dir = get_config_dir()
    checks.append(DoctorCheck(name="4. Config Directory", status="pass", detail=str(config_dir)))

    # 5. Disk Space
    try:
        total, used, free = shutil.disk_usage(config_dir)
        free_gb = free // (2**30)
        status = "pass" if free_gb > 1 else "warn"
        checks.append(DoctorCheck(name="5. Disk Space (Config)", status=status, detail=f"{free_gb} GB free"))
    except OSError as e:
        checks.append(DoctorCheck(name="5. Disk Space (Config)", status="fail", detail=str(e)))

    # 6. Settings readable
    try:
        store = FileConfigStore()
        peers = store.get_peers()
        checks.append(DoctorCheck(name="6. Settings", status="pass", detail=f"{len(peers)} active peers"))
    except StoreError as e:
        checks.append(DoctorCheck(name="6. Settings", status="fail", detail=str(e)))

    # 7. Key derivation cost
    start = time.perf_counter()
    derive_key("doctor-check", generate_salt())
    ms = int((time.perf_counter() - start) * 1000)
    status = "pass" if ms < KDF_WARN_MS else "warn"
    checks.append(DoctorCheck(name="7. PBKDF2 Cost", status=status, detail=f"{ms}ms per derivation"))

    # 8. Dependencies
    try:
        import pydantic  # noqa: F401
        import rich  # noqa: F401
        import typer  # noqa: F401
        checks.append(DoctorCheck(name="8. Dependencies", status="pass", detail="All core requirements met"))
    except ImportError as e:
        checks.append(DoctorCheck(name="8. Dependencies", status="fail", detail=str(e)))

    return checks
