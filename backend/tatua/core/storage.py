import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from tatua.models import (
    ConfigMode,
    ConfigurationDocument,
    EmailTemplate,
    Recipient,
    SmtpConfig,
)
from tatua.core.crypto import generate_password
from tatua.core.migration import ModeMigrator, write_master_key_hint
from tatua.core.secret_providers import SecretProvider
from tatua.core.secret_transformers import (
    document_contains_plaintext_secrets,
    transform_smtp_for_decryption,
)

logger = logging.getLogger(__name__)

HINT_FILE_NAME = ".email-master.key"


class StoreError(Exception):
    pass


class ConfigurationMissingError(StoreError):
    """Raised when the configuration document does not exist."""


class ConfigurationInvalidError(StoreError):
    """Raised when the configuration document cannot be parsed or validated."""


class PersistenceError(StoreError):
    """Raised when the rewritten document cannot be written back."""


class StoreNotLoadedError(StoreError):
    """Raised when values are requested before load()."""


class ConfigStore:
    def __init__(
        self,
        config_path: str | Path,
        secret_provider: SecretProvider,
        hint_path: str | Path | None = None,
        migrator: Optional[ModeMigrator] = None,
    ):
        self.config_path = Path(config_path)
        self.hint_path = Path(hint_path) if hint_path else self.config_path.parent / HINT_FILE_NAME
        self.secret_provider = secret_provider
        self.migrator = migrator or ModeMigrator()
        self._document: ConfigurationDocument | None = None
        self._master_password: str | None = None
        self.migrated = False

    def __enter__(self) -> "ConfigStore":
        self.load()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # --- Lifecycle ---
    def load(self) -> ConfigurationDocument:
        """
        Read the document, encrypt it on first run, and obtain the master
        password. Runs once per process; later calls return the held document.
        """
        if self._document is not None:
            return self._document

        document = self._read_document()
        if self.migrator.needs_migration(document):
            logger.warning("Configuration %s is in CLEAR-TEXT mode; encrypting sensitive fields", self.config_path)
            password = self._obtain_new_password()
            migrated = self.migrator.migrate(document, password)
            self.save(migrated)
            write_master_key_hint(self.hint_path)
            self._master_password = password
            self._document = migrated
            self.migrated = True
            logger.info("Configuration encrypted and saved to %s", self.config_path)
        else:
            if document_contains_plaintext_secrets(document):
                logger.warning("Configuration %s is ENCRYPTED but holds unencrypted credential values", self.config_path)
            self._master_password = self.secret_provider.existing_master_password()
            self._document = document
        return self._document

    def close(self):
        # Drop the only reference we hold to the master password.
        self._master_password = None

    def is_locked(self) -> bool:
        return self._master_password is None

    def _obtain_new_password(self) -> str:
        password = self.secret_provider.new_master_password()
        if password:
            return password
        password = generate_password()
        self.secret_provider.announce_generated(password)
        return password

    # --- Persistence ---
    def _read_document(self) -> ConfigurationDocument:
        if not self.config_path.exists():
            raise ConfigurationMissingError(f"Configuration file not found: {self.config_path}")
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigurationInvalidError(f"Configuration file {self.config_path} is not valid JSON: {exc.msg}") from exc
        except UnicodeDecodeError as exc:
            raise ConfigurationInvalidError(f"Configuration file {self.config_path} is not valid UTF-8") from exc
        except OSError as exc:
            raise ConfigurationMissingError(f"Configuration file {self.config_path} cannot be read: {exc.strerror}") from exc
        try:
            return ConfigurationDocument.model_validate(raw)
        except ValidationError as exc:
            # Only report locations; input values may be credentials.
            locations = ", ".join(".".join(str(p) for p in err["loc"]) or "<root>" for err in exc.errors())
            raise ConfigurationInvalidError(
                f"Configuration file {self.config_path} is invalid at: {locations}"
            ) from None

    def _prepare_payload(self, document: ConfigurationDocument) -> str:
        return json.dumps(document.model_dump(mode="json", by_alias=True), indent=2) + "\n"

    def save(self, document: ConfigurationDocument):
        """
        Overwrite the configuration file with ``document``. The write is a
        plain overwrite: a crash mid-write can leave a truncated file.
        """
        payload = self._prepare_payload(document)
        try:
            self.config_path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Could not write configuration to {self.config_path}: {exc.strerror}") from exc

    # --- Accessors ---
    def _require_loaded(self) -> ConfigurationDocument:
        if self._document is None:
            raise StoreNotLoadedError("configuration has not been loaded")
        return self._document

    @property
    def document(self) -> ConfigurationDocument:
        return self._require_loaded()

    @property
    def mode(self) -> ConfigMode:
        return self._require_loaded().mode

    @property
    def is_encrypted(self) -> bool:
        return self.mode == ConfigMode.ENCRYPTED

    def get_smtp_config(self) -> SmtpConfig:
        smtp = self._require_loaded().smtp_settings
        creds = transform_smtp_for_decryption(smtp, self._master_password)
        return SmtpConfig(
            host=smtp.host,
            port=smtp.port,
            identity=creds["username"],
            secret=creds["password"],
            use_ssl=smtp.use_ssl,
            use_tls=smtp.use_tls,
        )

    def get_active_recipients(self) -> List[Recipient]:
        return [
            Recipient(name=r.name, email=r.email, category=r.category, active=r.active)
            for r in self._require_loaded().recipients
            if r.active
        ]

    def get_active_templates(self) -> List[EmailTemplate]:
        return [
            EmailTemplate(name=t.name, path=t.path, subject=t.subject, active=t.active)
            for t in self._require_loaded().templates
            if t.active
        ]

    def summary(self) -> dict[str, Any]:
        document = self._require_loaded()
        return {
            "config": str(self.config_path),
            "mode": document.mode.value,
            "migrated": self.migrated,
            "recipients": len(self.get_active_recipients()),
            "templates": len(self.get_active_templates()),
        }
