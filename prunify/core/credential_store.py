"""Opaque persistence of the serialized authorization blob.

The store never interprets or logs the bytes it holds; they contain tokens.
"""
import base64
import binascii
import logging
import os
from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from prunify.config import (
    CREDENTIAL_BACKEND,
    CREDENTIAL_FILE,
    KEYRING_ACCOUNT,
    KEYRING_SERVICE,
)
from prunify.core.errors import DeleteFailed, LoadFailed, SaveFailed

logger = logging.getLogger(__name__)


class KeyringCredentialStore:
    """OS secret store (macOS Keychain, Secret Service, Windows Credential Manager)."""

    def __init__(self, service: str = KEYRING_SERVICE, account: str = KEYRING_ACCOUNT) -> None:
        self.service = service
        self.account = account

    def save(self, blob: bytes) -> None:
        """Overwrite: delete any existing entry, then insert."""
        self.delete()
        encoded = base64.b64encode(blob).decode("ascii")
        try:
            keyring.set_password(self.service, self.account, encoded)
        except KeyringError as e:
            raise SaveFailed(f"Failed to save to keyring ({type(e).__name__})") from e

    def load(self) -> Optional[bytes]:
        """Return the stored blob, or None when nothing is stored."""
        try:
            encoded = keyring.get_password(self.service, self.account)
        except KeyringError as e:
            raise LoadFailed(f"Failed to load from keyring ({type(e).__name__})") from e
        if not encoded:
            return None
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise LoadFailed("Stored keyring entry is not valid base64") from e

    def delete(self) -> None:
        """Idempotent: deleting a missing entry succeeds."""
        try:
            keyring.delete_password(self.service, self.account)
        except PasswordDeleteError:
            pass
        except KeyringError as e:
            raise DeleteFailed(f"Failed to delete from keyring ({type(e).__name__})") from e


class FileCredentialStore:
    """Single owner-only file, for headless hosts without a keyring backend."""

    def __init__(self, path: Path = CREDENTIAL_FILE) -> None:
        self.path = Path(path)

    def save(self, blob: bytes) -> None:
        self.delete()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "wb") as f:
                f.write(blob)
        except OSError as e:
            raise SaveFailed(f"Failed to write {self.path} ({e.strerror})") from e

    def load(self) -> Optional[bytes]:
        if not self.path.exists():
            return None
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise LoadFailed(f"Failed to read {self.path} ({e.strerror})") from e

    def delete(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise DeleteFailed(f"Failed to delete {self.path} ({e.strerror})") from e


def build_credential_store(backend: str = CREDENTIAL_BACKEND):
    """Return the configured credential store."""
    if backend == "file":
        logger.info("Using file credential store at %s", CREDENTIAL_FILE)
        return FileCredentialStore(CREDENTIAL_FILE)
    if backend != "keyring":
        logger.warning("Unknown credential backend %r, using keyring", backend)
    return KeyringCredentialStore()
