import base64
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from tatua.core.crypto import (
    AuthenticationError,
    ENC_PREFIX,
    EnvelopeFormatError,
    IV_LEN,
    KEY_LEN,
    SALT_LEN,
    TAG_LEN,
    decrypt_value,
    derive_key,
    encrypt_value,
    ensure_crypto_available,
    generate_password,
    is_encrypted_string,
)


def _flip_bit(token: str, index: int) -> str:
    blob = bytearray(base64.b64decode(token[len(ENC_PREFIX) :]))
    blob[index] ^= 0x01
    return ENC_PREFIX + base64.b64encode(bytes(blob)).decode("ascii")


def test_round_trip():
    cipher = encrypt_value("s3cret", "hunter2")
    assert is_encrypted_string(cipher)
    assert decrypt_value(cipher, "hunter2") == "s3cret"


def test_round_trip_unicode_and_empty():
    for plaintext in ["", "pässwörd ✉", "x" * 1000]:
        assert decrypt_value(encrypt_value(plaintext, "pw"), "pw") == plaintext


def test_bare_base64_token_is_accepted():
    cipher = encrypt_value("secret", "pw")
    assert decrypt_value(cipher[len(ENC_PREFIX) :], "pw") == "secret"


def test_envelope_layout():
    cipher = encrypt_value("abc", "pw")
    blob = base64.b64decode(cipher[len(ENC_PREFIX) :])
    assert len(blob) == SALT_LEN + IV_LEN + len("abc") + TAG_LEN


def test_same_plaintext_encrypts_differently():
    first = encrypt_value("s3cret", "pw")
    second = encrypt_value("s3cret", "pw")
    assert first != second
    assert decrypt_value(first, "pw") == decrypt_value(second, "pw") == "s3cret"


def test_wrong_password_rejected():
    cipher = encrypt_value("s3cret", "right")
    with pytest.raises(AuthenticationError) as info:
        decrypt_value(cipher, "wrong")
    assert "s3cret" not in str(info.value)
    assert "right" not in str(info.value)


@pytest.mark.parametrize("offset", [0, 5, 6 + TAG_LEN - 1])
def test_tampered_ciphertext_rejected(offset):
    cipher = encrypt_value("s3cret", "pw")
    tampered = _flip_bit(cipher, SALT_LEN + IV_LEN + offset)
    with pytest.raises(AuthenticationError):
        decrypt_value(tampered, "pw")


def test_tampered_iv_rejected():
    cipher = encrypt_value("s3cret", "pw")
    with pytest.raises(AuthenticationError):
        decrypt_value(_flip_bit(cipher, SALT_LEN), "pw")


def test_short_envelope_is_format_error():
    short = ENC_PREFIX + base64.b64encode(b"\0" * (SALT_LEN + IV_LEN)).decode("ascii")
    with pytest.raises(EnvelopeFormatError):
        decrypt_value(short, "pw")


def test_invalid_base64_is_format_error():
    with pytest.raises(EnvelopeFormatError):
        decrypt_value(ENC_PREFIX + "not*base64!", "pw")


def test_derive_key_is_deterministic():
    salt = b"\x01" * SALT_LEN
    key = derive_key("pw", salt)
    assert len(key) == KEY_LEN
    assert derive_key("pw", salt) == key
    assert derive_key("pw", b"\x02" * SALT_LEN) != key
    assert derive_key("other", salt) != key


def test_generate_password():
    password = generate_password()
    assert len(base64.b64decode(password)) == 32
    assert generate_password() != password


def test_crypto_probe_passes():
    ensure_crypto_available()


def test_crypto_probe_reports_missing_backend(monkeypatch):
    from cryptography.exceptions import UnsupportedAlgorithm

    from tatua.core import crypto
    from tatua.core.crypto import CryptoUnavailableError

    def unsupported(*args, **kwargs):
        raise UnsupportedAlgorithm("no PBKDF2 backend")

    monkeypatch.setattr(crypto, "PBKDF2HMAC", unsupported)
    with pytest.raises(CryptoUnavailableError):
        ensure_crypto_available()
