"""
Top-level crypto module owning all security-critical operations.
PBKDF2-HMAC-SHA256 KDF and AES-256-GCM sealing/unsealing.
"""
import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import AuthenticationError, EncryptionError, KeyDerivationError

SALT_LEN = 32
NONCE_LEN = 12
KEY_LEN = 32
TAG_LEN = 16
KDF_ITERATIONS = 100_000

def compute_sha256(data: bytes) -> str:
    """Compute the SHA-256 hash of raw bytes."""
    hasher = hashlib.sha256()
    hasher.update(data)
    return hasher.hexdigest()

def generate_salt() -> bytes:
    """Generate 32 bytes of secure random salt."""
    return os.urandom(SALT_LEN)

def generate_nonce() -> bytes:
    """Generate 12 bytes of secure random nonce for AES-GCM."""
    return os.urandom(NONCE_LEN)

def derive_key(password: str, salt: bytes) -> bytes:
    """
    Derive a 32-byte key using PBKDF2-HMAC-SHA256.
    Parameters: 100,000 iterations, fixed. Same password and salt always give the same key.
    """
    if len(salt) != SALT_LEN:
        raise KeyDerivationError(f"Salt must be {SALT_LEN} bytes, got {len(salt)}.")
    try:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LEN,
            salt=salt,
            iterations=KDF_ITERATIONS,
        )
        return kdf.derive(password.encode("utf-8"))
    except Exception as e:
        raise KeyDerivationError(f"Failed to derive key: {e}") from e

def seal(key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
    """
    Encrypt data using AES-256-GCM without associated data.
    Returns: ciphertext + tag (16 bytes appended by AESGCM)
    """
    if len(key) != KEY_LEN:
        raise EncryptionError("Invalid key length for AES-256-GCM.")
    if len(nonce) != NONCE_LEN:
        raise EncryptionError("Invalid nonce length for AES-GCM.")
    try:
        return AESGCM(key).encrypt(nonce, plaintext, None)
    except Exception as e:
        raise EncryptionError(f"Encryption failed: {e}") from e

def unseal(key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
    """
    Decrypt data using AES-256-GCM.
    Any tag mismatch is rejected with AuthenticationError, whatever its cause.
    """
    if len(key) != KEY_LEN:
        raise EncryptionError("Invalid key length for AES-256-GCM.")
    if len(nonce) != NONCE_LEN:
        raise EncryptionError("Invalid nonce length for AES-GCM.")
    if len(ciphertext) < TAG_LEN:
        raise AuthenticationError()
    try:
        return AESGCM(key).decrypt(nonce, ciphertext, None)
    except InvalidTag:
        raise AuthenticationError() from None
