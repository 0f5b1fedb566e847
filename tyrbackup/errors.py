"""
Custom exception hierarchy for Tyr backups.
"""

class TyrBackupError(Exception):
    """Base exception for all tyrbackup errors."""
    default_message = "Backup operation failed."

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)

class CryptoError(TyrBackupError):
    pass

class KeyDerivationError(CryptoError):
    default_message = "Failed to derive key."

class EncryptionError(CryptoError):
    default_message = "Encryption failed."

class AuthenticationError(CryptoError):
    """Wrong password and corrupted ciphertext are reported identically."""
    default_message = "Wrong password or corrupted backup file."

class BackupError(TyrBackupError):
    pass

class WeakPasswordError(BackupError):
    default_message = "Backup password is too short, choose one with at least 8 characters."

class ContainerTooShortError(BackupError):
    default_message = "Backup file is too small to be a valid backup."

class MalformedPayloadError(BackupError):
    default_message = "Backup payload is malformed."

class UnsupportedVersionError(BackupError):
    default_message = "Backup file format is not supported by this version."

class BackupIOError(BackupError):
    default_message = "Failed to read or write the backup file."

class ConfigError(TyrBackupError):
    pass

class StoreError(ConfigError):
    default_message = "Failed to update the configuration store."
