"""
Credential storage for remote hosts.

SecretStore is the interface used to keep named credentials. Two
backends are provided: an in-memory store and a Fernet-encrypted file.
"""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from ..core.errors import InvalidArgumentError, SecretNotFoundError, SecretStoreError
from ..core.models import Credentials

logger = logging.getLogger(__name__)

SECRET_KEY_ENV = "GPOMGR_SECRET_KEY"


class SecretStore(ABC):
    """Named credential storage."""

    @abstractmethod
    def put(self, name: str, credentials: Credentials) -> None:
        """Store credentials under ``name``, replacing any existing entry."""
        pass

    @abstractmethod
    def get(self, name: str) -> Credentials:
        """Return the credentials stored under ``name``."""
        pass

    @abstractmethod
    def delete(self, name: str) -> None:
        pass

    @abstractmethod
    def list(self) -> list[str]:
        """Return the stored names, sorted."""
        pass

    @staticmethod
    def _check_name(name: str) -> None:
        if name is None or not name.strip():
            raise InvalidArgumentError("Secret name must not be empty")


class MemorySecretStore(SecretStore):

    def __init__(self):
        self._secrets: dict[str, Credentials] = {}

    def put(self, name: str, credentials: Credentials) -> None:
        self._check_name(name)
        self._secrets[name] = credentials

    def get(self, name: str) -> Credentials:
        if name not in self._secrets:
            raise SecretNotFoundError(name)
        return self._secrets[name]

    def delete(self, name: str) -> None:
        if name not in self._secrets:
            raise SecretNotFoundError(name)
        del self._secrets[name]

    def list(self) -> list[str]:
        return sorted(self._secrets)


class FernetSecretStore(SecretStore):
    """
    Secret store kept in a single Fernet-encrypted JSON file.

    The key is taken, in order, from the ``key`` argument, the
    GPOMGR_SECRET_KEY environment variable, or a key file next to the
    store (created on first use).
    """

    def __init__(self, path: str | Path, key: Optional[bytes | str] = None):
        self.path = Path(path).expanduser()
        try:
            self._fernet = Fernet(self._resolve_key(key))
        except ValueError as e:
            raise SecretStoreError(f"Invalid secret store key: {e}") from e

    def _resolve_key(self, key: Optional[bytes | str] = None) -> bytes:
        if key is None:
            key = os.environ.get(SECRET_KEY_ENV)
        if key is None:
            key_path = self.path.with_suffix(".key")
            if key_path.exists():
                key = key_path.read_bytes().strip()
            else:
                key = Fernet.generate_key()
                key_path.parent.mkdir(parents=True, exist_ok=True)
                key_path.write_bytes(key)
                key_path.chmod(0o600)
                logger.info("Created secret store key %s", key_path)
        if isinstance(key, str):
            key = key.encode()
        return key

    def _read(self) -> dict[str, dict[str, str]]:
        if not self.path.exists():
            return {}
        try:
            token = self.path.read_bytes()
            return json.loads(self._fernet.decrypt(token))
        except InvalidToken as e:
            raise SecretStoreError(f"Cannot decrypt secret store {self.path}: wrong key") from e
        except (OSError, ValueError) as e:
            raise SecretStoreError(f"Failed to read secret store {self.path}: {e}") from e

    def _write(self, secrets: dict[str, dict[str, str]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_bytes(self._fernet.encrypt(json.dumps(secrets).encode()))
        except OSError as e:
            raise SecretStoreError(f"Failed to write secret store {self.path}: {e}") from e

    def put(self, name: str, credentials: Credentials) -> None:
        self._check_name(name)
        secrets = self._read()
        secrets[name] = {
            "username": credentials.username,
            "password": credentials.password.get_secret_value(),
        }
        self._write(secrets)

    def get(self, name: str) -> Credentials:
        secrets = self._read()
        if name not in secrets:
            raise SecretNotFoundError(name)
        return Credentials(**secrets[name])

    def delete(self, name: str) -> None:
        secrets = self._read()
        if name not in secrets:
            raise SecretNotFoundError(name)
        del secrets[name]
        self._write(secrets)

    def list(self) -> list[str]:
        return sorted(self._read())
