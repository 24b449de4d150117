from typing import Any, Optional

from tatua.core.secret_codec import (
    decrypt_if_ciphertext,
    encrypt_if_secret,
    is_ciphertext,
)

# Fields of smtpSettings that are protected at rest
SENSITIVE_SMTP_FIELDS = ("username", "password")


def transform_smtp_for_encryption(settings: Any, password: Optional[str]) -> Any:
    if not password:
        return settings
    updates = {
        name: encrypt_if_secret(getattr(settings, name), password)
        for name in SENSITIVE_SMTP_FIELDS
    }
    return settings.model_copy(update=updates, deep=True)


def transform_smtp_for_decryption(settings: Any, password: Optional[str]) -> dict:
    # Decrypt ciphertext regardless of mode so a half-migrated file still reads.
    return {
        name: decrypt_if_ciphertext(getattr(settings, name), password)
        for name in SENSITIVE_SMTP_FIELDS
    }


def smtp_contains_plaintext_secrets(settings: Any) -> bool:
    for name in SENSITIVE_SMTP_FIELDS:
        val = getattr(settings, name, None)
        if isinstance(val, str) and val and not is_ciphertext(val):
            return True
    return False


def document_contains_plaintext_secrets(document: Any) -> bool:
    return smtp_contains_plaintext_secrets(document.smtp_settings)
