import logging
from datetime import datetime
from pathlib import Path

from tatua.models import ConfigMode, ConfigurationDocument
from tatua.core.crypto import PasswordRequiredError
from tatua.core.secret_transformers import transform_smtp_for_encryption

logger = logging.getLogger(__name__)

HINT_PREFIX = "Master key configured on: "


class ModeMigrator:
    """
    Two-state machine over the document mode: CLEAR-TEXT -> ENCRYPTED.

    There is no reverse transition and no re-encryption of values that are
    already marked.
    """

    def needs_migration(self, document: ConfigurationDocument) -> bool:
        return document.mode == ConfigMode.CLEAR_TEXT

    def migrate(self, document: ConfigurationDocument, password: str) -> ConfigurationDocument:
        """
        Compute the protected version of a document.

        The input is left untouched; a new document value is returned with
        the sensitive SMTP fields encrypted under ``password`` and the mode
        flipped to ENCRYPTED. A document already in ENCRYPTED mode is returned
        as-is.

        :param document: The loaded document.
        :param password: The master password to encrypt under.
        :return: The document as it should be persisted.
        """
        if not self.needs_migration(document):
            return document
        if not password:
            raise PasswordRequiredError("a non-empty master password is required for migration")

        smtp = transform_smtp_for_encryption(document.smtp_settings, password)
        migrated = document.model_copy(update={"smtp_settings": smtp, "mode": ConfigMode.ENCRYPTED}, deep=True)
        logger.info("Encrypted sensitive SMTP fields; document mode is now %s", migrated.mode.value)
        return migrated


def write_master_key_hint(hint_path: Path, now: datetime | None = None) -> bool:
    """
    Record when the master key was configured. The hint holds a timestamp
    only and cannot be used to recover the password.
    """
    stamp = (now or datetime.now()).isoformat(timespec="seconds")
    try:
        hint_path.parent.mkdir(parents=True, exist_ok=True)
        hint_path.write_text(HINT_PREFIX + stamp + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not write master key hint to %s: %s", hint_path, exc)
        return False
    return True
