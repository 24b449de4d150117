from __future__ import annotations
from enum import Enum
from typing import Any, List, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- Document Models (on-disk layout) ---

class ConfigMode(str, Enum):
    CLEAR_TEXT = "CLEAR-TEXT"
    ENCRYPTED = "ENCRYPTED"

def _parse_flag(value: Any) -> bool:
    # Only a case-insensitive "true" is true; empty, "yes", "1" are false
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() == "true"

class _DocumentModel(BaseModel):
    # Accept both the on-disk keys (useSSL) and python names (use_ssl).
    # Unknown keys are kept so a save writes them back.
    model_config = ConfigDict(populate_by_name=True, extra="allow")

class SmtpSettings(_DocumentModel):
    host: str = ""
    port: Union[int, str] = 25
    username: str = ""  # sensitive
    password: str = ""  # sensitive
    use_ssl: bool = Field(default=False, alias="useSSL")
    use_tls: bool = Field(default=False, alias="useTLS")

    @field_validator("port", mode="before")
    @classmethod
    def _coerce_port(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        return value

    @field_validator("use_ssl", "use_tls", mode="before")
    @classmethod
    def _coerce_flags(cls, value: Any) -> bool:
        return _parse_flag(value)

class RecipientEntry(_DocumentModel):
    name: str = ""
    email: str
    category: str = Field(default="", alias="type")
    active: bool = False

    @field_validator("active", mode="before")
    @classmethod
    def _coerce_active(cls, value: Any) -> bool:
        return _parse_flag(value)

class TemplateEntry(_DocumentModel):
    name: str
    path: str
    subject: str = ""
    active: bool = False

    @field_validator("active", mode="before")
    @classmethod
    def _coerce_active(cls, value: Any) -> bool:
        return _parse_flag(value)

class ConfigurationDocument(_DocumentModel):
    mode: ConfigMode = Field(alias="type")
    smtp_settings: SmtpSettings = Field(default_factory=SmtpSettings, alias="smtpSettings")
    recipients: List[RecipientEntry] = []
    templates: List[TemplateEntry] = []

# --- Value Objects handed to collaborators ---

class _ValueObject(BaseModel):
    model_config = ConfigDict(frozen=True)

class SmtpConfig(_ValueObject):
    host: str
    port: Union[int, str]
    identity: str
    secret: str = Field(repr=False)
    use_ssl: bool = False
    use_tls: bool = False

class Recipient(_ValueObject):
    name: str
    email: str
    category: str = ""
    active: bool = True

class EmailTemplate(_ValueObject):
    name: str
    path: str
    subject: str = ""
    active: bool = True
