"""
Sources for the master password.

The store never talks to a terminal itself; it asks one of these providers.
"""

import getpass
import os
import sys
from abc import ABC, abstractmethod
from typing import Optional

from tatua.core.crypto import PasswordRequiredError


class SecretProvider(ABC):
    @abstractmethod
    def new_master_password(self) -> Optional[str]:
        """
        Password to encrypt a cleartext document with. ``None`` asks the
        caller to generate one.
        """

    @abstractmethod
    def existing_master_password(self) -> str:
        """Password for a document that is already encrypted."""

    @abstractmethod
    def announce_generated(self, password: str) -> None:
        """Show a generated password to the operator; it is unrecoverable otherwise."""


class StaticSecretProvider(SecretProvider):
    def __init__(self, password: Optional[str] = None):
        self._password = password
        self.generated: Optional[str] = None

    def new_master_password(self) -> Optional[str]:
        return self._password or None

    def existing_master_password(self) -> str:
        if not self._password:
            raise PasswordRequiredError("no master password configured")
        return self._password

    def announce_generated(self, password: str) -> None:
        self.generated = password


class EnvironmentSecretProvider(SecretProvider):
    def __init__(self, variable: str):
        self.variable = variable

    def _read(self) -> Optional[str]:
        value = (os.getenv(self.variable) or "").strip()
        return value or None

    def new_master_password(self) -> Optional[str]:
        return self._read()

    def existing_master_password(self) -> str:
        value = self._read()
        if value is None:
            raise PasswordRequiredError(f"environment variable {self.variable} is not set")
        return value

    def announce_generated(self, password: str) -> None:
        # No terminal to show it on; the operator must read it from stderr.
        print(f"Generated master password: {password}", file=sys.stderr)
        print("SAVE THIS PASSWORD - it is required on every later run.", file=sys.stderr)


class InteractiveSecretProvider(SecretProvider):
    def __init__(self, stream=None):
        self.stream = stream or sys.stdout

    def new_master_password(self) -> Optional[str]:
        password = getpass.getpass("🔐 Enter master password for encryption (or press Enter to auto-generate): ")
        return password.strip() or None

    def existing_master_password(self) -> str:
        return getpass.getpass("🔐 Enter master password to decrypt configuration: ").strip()

    def announce_generated(self, password: str) -> None:
        print(f"🔑 Auto-generated master password: {password}", file=self.stream)
        print("⚠️  SAVE THIS PASSWORD SECURELY - YOU'LL NEED IT TO RUN THE APPLICATION!", file=self.stream)
