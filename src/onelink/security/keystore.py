"""Client-local key storage on top of the OS keystore (``keyring``).

This is the only place private key material is allowed to be persisted.
Entries are base64 strings under one keyring service, one account per user
identifier:

- ``onelink_private_key_<user_id>``: the PKCS8 private key
- ``onelink_content_key_<len(user_id)>_<user_id>_<item_id>``: a retained
  self-only content key

The keyring backend is passed in explicitly; the ``keyring`` module itself is
the default and any object with ``get_password``/``set_password``/
``delete_password`` works, which is how tests run against an in-memory store.
Nothing here ever talks to the network.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Union

import keyring
from keyring.errors import PasswordDeleteError

from onelink.core.encoding import b64decode, b64encode
from onelink.core.exceptions import KeyFormatError, StorageUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_SERVICE = "onelink"
STORE_FAILED_MESSAGE = "Unable to store encryption key. Please enable local storage."


def assess_keyring_backend(backend: Any = None) -> tuple[bool, str]:
    """Return (is_secure, message) describing a keyring backend.

    Heuristics are used because the `keyring` package exposes different backends
    across platforms. With no argument the process-wide keyring backend is checked.
    """
    if backend is None or backend is keyring:
        try:
            backend = keyring.get_keyring()
        except Exception as e:
            return False, f"failed to get keyring backend: {e}"

    name = backend.__class__.__name__
    module = backend.__class__.__module__
    priority = getattr(backend, "priority", None)

    insecure_indicators = ("Plaintext", "Uncrypted", "Simple", "File")
    if any(tok in name for tok in insecure_indicators):
        return False, f"insecure backend detected: {name}"

    if module.startswith(("keyring.backends.fail", "keyring.backends.null")):
        return False, f"no usable keyring backend ({module}.{name})"

    if priority is not None and priority <= 0:
        return False, f"no suitable secure keyring backend available (priority={priority}, backend={name})"

    # treat known platform backends as acceptable
    if "Win" in name or "Keychain" in name or "SecretService" in name or "KWallet" in name:
        return True, f"backend looks acceptable: {name} (priority={priority})"

    return True, f"unknown backend '{name}', treat with caution (priority={priority})"


class KeyStore:
    """Per-user persistence of private keys and retained content keys."""

    def __init__(self, backend: Any = None, service: str = DEFAULT_SERVICE, require_secure_backend: bool = False):
        self.backend = backend if backend is not None else keyring
        self.service = service
        self.require_secure_backend = require_secure_backend

    # ------------------------------------------------------------------
    # Account naming
    # ------------------------------------------------------------------

    @staticmethod
    def _require_id(value: str, what: str) -> str:
        if not isinstance(value, str) or not value:
            raise ValueError(f"{what} must be a non-empty string")
        return value

    def private_key_account(self, user_id: str) -> str:
        return f"onelink_private_key_{self._require_id(user_id, 'user_id')}"

    def content_key_account(self, user_id: str, item_id: str) -> str:
        # length prefix keeps the (user_id, item_id) split unambiguous
        user_id = self._require_id(user_id, "user_id")
        item_id = self._require_id(item_id, "item_id")
        return f"onelink_content_key_{len(user_id)}_{user_id}_{item_id}"

    # ------------------------------------------------------------------
    # Raw entry operations
    # ------------------------------------------------------------------

    def _write(self, account: str, key_material: Union[bytes, str]) -> None:
        if isinstance(key_material, str):
            # already base64 text (the transport form of keys); validate it
            try:
                b64decode(key_material)
            except ValueError as exc:
                raise KeyFormatError("key material text is not valid base64") from exc
            secret = key_material
        else:
            secret = b64encode(bytes(key_material))

        if self.require_secure_backend:
            secure, msg = assess_keyring_backend(self.backend)
            if not secure:
                logger.error("refusing to persist key %s: %s", account, msg)
                raise StorageUnavailableError(f"{STORE_FAILED_MESSAGE} ({msg})")

        try:
            self.backend.set_password(self.service, account, secret)
        except Exception as exc:
            logger.error("failed to store key %s: %s", account, exc)
            raise StorageUnavailableError(STORE_FAILED_MESSAGE) from exc

    def _read(self, account: str) -> Optional[bytes]:
        try:
            secret = self.backend.get_password(self.service, account)
        except Exception as exc:
            logger.error("failed to read key %s: %s", account, exc)
            raise StorageUnavailableError("Unable to read encryption key from local storage.") from exc
        if secret is None:
            return None
        try:
            return b64decode(secret)
        except ValueError as exc:
            logger.warning("stored key %s is corrupt", account)
            raise KeyFormatError(f"stored key {account} is not valid base64") from exc

    def _remove(self, account: str) -> None:
        try:
            self.backend.delete_password(self.service, account)
        except PasswordDeleteError:
            # nothing stored under this account
            logger.debug("no key to delete for %s", account)
        except Exception as exc:
            logger.warning("failed to delete key %s: %s", account, exc)

    # ------------------------------------------------------------------
    # Private keys
    # ------------------------------------------------------------------

    def store(self, user_id: str, key_material: Union[bytes, str]) -> None:
        """Persist a private key for ``user_id``; raises StorageUnavailableError."""
        self._write(self.private_key_account(user_id), key_material)

    def retrieve(self, user_id: str) -> Optional[bytes]:
        """Return the stored private key bytes, or None when nothing is stored."""
        return self._read(self.private_key_account(user_id))

    def delete(self, user_id: str) -> None:
        """Remove the private key. Best-effort: failures are logged, not raised."""
        self._remove(self.private_key_account(user_id))

    # ------------------------------------------------------------------
    # Retained self-only content keys
    # ------------------------------------------------------------------

    def store_content_key(self, user_id: str, item_id: str, key_material: Union[bytes, str]) -> None:
        self._write(self.content_key_account(user_id, item_id), key_material)

    def retrieve_content_key(self, user_id: str, item_id: str) -> Optional[bytes]:
        return self._read(self.content_key_account(user_id, item_id))

    def delete_content_key(self, user_id: str, item_id: str) -> None:
        self._remove(self.content_key_account(user_id, item_id))
