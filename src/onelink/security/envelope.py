"""
Hybrid envelope encryption for protected content.

Two protocols are implemented on top of :class:`SymmetricCipher` and
:class:`KeyPairManager`:

- self-only: content is sealed under a fresh AES-256-GCM key. The envelope
  carries only ``ciphertext`` and ``iv``; the key is handed back to the caller,
  who must retain it locally (KeyStore) or lose the content for good.
- friend-shared: content is sealed the same way and the raw content key is
  RSA-OAEP encrypted under one recipient's public key (``wrapped_key``). Only
  the holder of the matching private key can open it.

Content is never RSA-encrypted directly; RSA only ever sees a 32-byte key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from onelink.core.encoding import to_bytes
from onelink.core.exceptions import KeyFormatError, MissingKeyError
from onelink.core.models import (
    Envelope,
    FriendSharedEnvelope,
    SelfOnlyEnvelope,
    VisibilityMode,
)

from .keypair import KeyInput, KeyPairManager
from .provider import CryptoProvider, default_provider
from .symmetric import SymmetricCipher, SymmetricKey


@dataclass(frozen=True)
class ProtectedContent:
    """Result of :meth:`HybridEnvelope.protect`.

    ``content_key`` is set only for self-only envelopes and is the caller's
    to retain; it is ``None`` for friend-shared envelopes.
    """

    envelope: Envelope
    content_key: Optional[SymmetricKey] = None

    def __repr__(self):
        return f"ProtectedContent(mode={self.envelope.mode.value!r})"


class HybridEnvelope:
    def __init__(
        self,
        cipher: Optional[SymmetricCipher] = None,
        keypairs: Optional[KeyPairManager] = None,
        provider: Optional[CryptoProvider] = None,
    ):
        provider = provider or default_provider()
        self.cipher = cipher or SymmetricCipher(provider)
        self.keypairs = keypairs or KeyPairManager(provider)

    # ------------------------------------------------------------------
    # Key wrapping
    # ------------------------------------------------------------------

    def wrap_key(self, key: SymmetricKey, recipient_public_key: Any) -> bytes:
        """RSA-OAEP encrypt the raw content key under a public key (DER, base64 or handle)."""
        if isinstance(recipient_public_key, (bytes, bytearray, memoryview, str)):
            recipient_public_key = self.keypairs.import_public_key(recipient_public_key)
        return self.keypairs.provider.rsa_wrap(recipient_public_key, key.export())

    def unwrap_key(self, wrapped_key: bytes, private_key: Any) -> SymmetricKey:
        if isinstance(private_key, (bytes, bytearray, memoryview, str)):
            private_key = self.keypairs.import_private_key(private_key)
        raw = self.keypairs.provider.rsa_unwrap(private_key, wrapped_key)
        return SymmetricKey(raw)

    # ------------------------------------------------------------------
    # Self-only
    # ------------------------------------------------------------------

    def encrypt_private(self, content: Union[bytes, str]) -> ProtectedContent:
        key = self.cipher.generate_key()
        ciphertext, iv = self.cipher.encrypt(to_bytes(content), key)
        return ProtectedContent(SelfOnlyEnvelope(ciphertext=ciphertext, iv=iv), key)

    def decrypt_private(self, envelope: Envelope, key: Union[SymmetricKey, bytes, str]) -> bytes:
        if key is None:
            raise MissingKeyError("self-only content needs its retained content key")
        key = self.cipher.import_key(key)
        return self.cipher.decrypt(envelope.ciphertext, envelope.iv, key)

    # ------------------------------------------------------------------
    # Friend-shared
    # ------------------------------------------------------------------

    def encrypt_for_friend(self, content: Union[bytes, str], recipient_public_key: Any) -> FriendSharedEnvelope:
        # import before encrypting so a bad key fails without doing any work
        if isinstance(recipient_public_key, (bytes, bytearray, memoryview, str)):
            recipient_public_key = self.keypairs.import_public_key(recipient_public_key)
        key = self.cipher.generate_key()
        ciphertext, iv = self.cipher.encrypt(to_bytes(content), key)
        wrapped = self.wrap_key(key, recipient_public_key)
        return FriendSharedEnvelope(ciphertext=ciphertext, iv=iv, wrapped_key=wrapped)

    def decrypt_from_friend(self, envelope: Envelope, private_key: KeyInput) -> bytes:
        wrapped = getattr(envelope, "wrapped_key", None)
        if not wrapped:
            raise MissingKeyError("missing encrypted key for friend content")
        if private_key is None:
            raise MissingKeyError("friend content needs the recipient's private key")
        key = self.unwrap_key(wrapped, private_key)
        return self.cipher.decrypt(envelope.ciphertext, envelope.iv, key)

    # ------------------------------------------------------------------
    # Boundary used by the UI layer
    # ------------------------------------------------------------------

    def protect(
        self,
        content: Union[bytes, str],
        mode: Union[VisibilityMode, str],
        recipient_public_key: Optional[KeyInput] = None,
    ) -> ProtectedContent:
        mode = VisibilityMode.parse(mode)
        if mode is VisibilityMode.SELF_ONLY:
            return self.encrypt_private(content)
        if mode is VisibilityMode.FRIEND_SHARED:
            if recipient_public_key is None:
                raise KeyFormatError("friend-shared content needs the recipient's public key")
            return ProtectedContent(self.encrypt_for_friend(content, recipient_public_key))
        raise ValueError("public content is stored as plaintext and is not protected")

    def unprotect(self, envelope: Envelope, mode: Union[VisibilityMode, str], local_key_material: Any) -> bytes:
        """
        Reverse :meth:`protect`. ``local_key_material`` is the retained content
        key for self-only mode, or the reader's private key for friend-shared.
        """
        mode = VisibilityMode.parse(mode)
        if mode is VisibilityMode.SELF_ONLY:
            return self.decrypt_private(envelope, local_key_material)
        if mode is VisibilityMode.FRIEND_SHARED:
            return self.decrypt_from_friend(envelope, local_key_material)
        raise ValueError("public content is stored as plaintext and is not protected")
