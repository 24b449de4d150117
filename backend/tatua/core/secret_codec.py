from typing import Any, Optional

from tatua.core.crypto import (
    encrypt_value,
    decrypt_value,
    is_encrypted_string,
    PasswordRequiredError,
)


def is_ciphertext(value: Any) -> bool:
    return isinstance(value, str) and is_encrypted_string(value)


def encrypt_if_secret(value: Any, password: Optional[str]) -> Any:
    if not password:
        return value
    if not isinstance(value, str) or not value:
        return value
    if is_encrypted_string(value):
        # already protected, leave as-is
        return value
    return encrypt_value(value, password)


def decrypt_if_ciphertext(value: Any, password: Optional[str]) -> Any:
    """
    Plain values pass through verbatim. Marked values are decrypted; any
    crypto failure propagates to the caller.
    """
    if not is_ciphertext(value):
        return value
    if password is None:
        raise PasswordRequiredError("master password required to read an encrypted value")
    return decrypt_value(value, password)
