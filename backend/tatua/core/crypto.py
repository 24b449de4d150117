import base64
import binascii
import secrets
from typing import Tuple

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

# --- Parameters ---
ENC_PREFIX = "ENC:"
KDF_ITERS = 100_000
KEY_LEN = 32
SALT_LEN = 32
IV_LEN = 12
TAG_LEN = 16
GENERATED_PASSWORD_BYTES = 32


class CryptoError(Exception):
    pass


class AuthenticationError(CryptoError):
    """Raised when the GCM tag does not verify (wrong password or tampered value)."""


class EnvelopeFormatError(CryptoError):
    """Raised when an encrypted value cannot be parsed."""


class PasswordRequiredError(CryptoError):
    """Raised when an encrypted value is read without a master password."""


class CryptoUnavailableError(CryptoError):
    """Raised when AES-GCM or PBKDF2 is not provided by the runtime."""


def derive_key(password: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=KEY_LEN, salt=salt, iterations=KDF_ITERS)
    return kdf.derive(password.encode("utf-8"))


def is_encrypted_string(value: str) -> bool:
    return value.startswith(ENC_PREFIX)


def encrypt_value(plaintext: str, password: str) -> str:
    """
    Encrypt one value under a password.

    Salt and IV are drawn fresh on every call, so the same plaintext never
    produces the same token twice. Layout: ENC: + base64(salt | iv | ct+tag).
    """
    salt = secrets.token_bytes(SALT_LEN)
    iv = secrets.token_bytes(IV_LEN)
    aes = AESGCM(derive_key(password, salt))
    ct = aes.encrypt(iv, plaintext.encode("utf-8"), None)  # includes tag
    return ENC_PREFIX + base64.b64encode(salt + iv + ct).decode("ascii")


def _parse_encrypted(value: str) -> Tuple[bytes, bytes, bytes]:
    body = value[len(ENC_PREFIX) :] if is_encrypted_string(value) else value
    try:
        blob = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EnvelopeFormatError("encrypted value is not valid base64") from exc
    if len(blob) < SALT_LEN + IV_LEN + TAG_LEN:
        raise EnvelopeFormatError("encrypted value is too short")
    salt = blob[:SALT_LEN]
    iv = blob[SALT_LEN : SALT_LEN + IV_LEN]
    ct = blob[SALT_LEN + IV_LEN :]
    return salt, iv, ct


def decrypt_value(encrypted: str, password: str) -> str:
    salt, iv, ct = _parse_encrypted(encrypted)
    aes = AESGCM(derive_key(password, salt))
    try:
        pt = aes.decrypt(iv, ct, None)
    except InvalidTag as exc:
        # Never echo the token or the password back.
        raise AuthenticationError("decryption failed: wrong master password or corrupted value") from exc
    try:
        return pt.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EnvelopeFormatError("decrypted value is not valid UTF-8") from exc


def generate_password() -> str:
    return base64.b64encode(secrets.token_bytes(GENERATED_PASSWORD_BYTES)).decode("ascii")


def ensure_crypto_available() -> None:
    """
    Probe the primitives once at startup so a missing backend fails before
    any document is touched.
    """
    try:
        AESGCM(AESGCM.generate_key(bit_length=KEY_LEN * 8))
        PBKDF2HMAC(algorithm=hashes.SHA256(), length=KEY_LEN, salt=b"\0" * SALT_LEN, iterations=1).derive(b"probe")
    except UnsupportedAlgorithm as exc:
        raise CryptoUnavailableError("AES-256-GCM / PBKDF2-HMAC-SHA256 not available in this runtime") from exc
