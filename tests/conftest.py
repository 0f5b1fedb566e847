import keyring
import pytest
from keyring.errors import PasswordDeleteError

from tyrbackup.models import ConfigSnapshot


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config directory at a temp dir so tests never touch the real one."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("TYR_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("TYR_BACKUP_PASSWORD", raising=False)
    return config_dir

@pytest.fixture(autouse=True)
def memory_keyring(monkeypatch):
    """Replace the OS keyring with a dict."""
    secrets = {}

    def set_password(service, username, password):
        secrets[(service, username)] = password

    def get_password(service, username):
        return secrets.get((service, username))

    def delete_password(service, username):
        if (service, username) not in secrets:
            raise PasswordDeleteError("Password not found")
        del secrets[(service, username)]

    monkeypatch.setattr(keyring, "set_password", set_password)
    monkeypatch.setattr(keyring, "get_password", get_password)
    monkeypatch.setattr(keyring, "delete_password", delete_password)
    return secrets

@pytest.fixture
def full_snapshot():
    return ConfigSnapshot(
        created_at=1_700_000_000_000,
        auth_secret="imap-secret",
        custom_peers=[
            "tcp://peer-one.example:7743",
            "tls://peer-two.example:443",
            "quic://peer-three.example:9000",
        ],
        use_default_peers=False,
        auto_start_enabled=False,
        identity_address="abc123@yggmail",
        identity_public_key="abc123def456",
        onboarding_completed=True,
        embedded_blob=bytes(range(256)) * 40,
    )
