"""
Per-user orchestration of content protection.

:class:`ContentVault` ties :class:`HybridEnvelope` to :class:`KeyStore` the way
the profile UI uses them: it owns the user's identity key pair lifecycle and
retains self-only content keys per item, so callers only deal in user ids,
item ids, envelopes and public keys.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from onelink.core.encoding import b64encode
from onelink.core.exceptions import MissingKeyError
from onelink.core.models import Envelope, VisibilityMode

from .envelope import HybridEnvelope
from .keypair import KeyInput, KeyPairManager
from .keystore import KeyStore

logger = logging.getLogger(__name__)


class ContentVault:
    def __init__(self, envelope: HybridEnvelope, keystore: KeyStore, keypairs: Optional[KeyPairManager] = None):
        self.envelope = envelope
        self.keystore = keystore
        self.keypairs = keypairs or envelope.keypairs

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def ensure_identity(self, user_id: str) -> str:
        """
        Return the user's base64 SPKI public key, creating the identity if needed.

        On first use a key pair is generated and its private half stored in
        the KeyStore; the returned public key is what the profile publishes.
        If storing fails, StorageUnavailableError propagates and no public
        key is returned, so nothing can be encrypted to an unrecoverable key.
        """
        existing = self.keystore.retrieve(user_id)
        if existing is not None:
            return b64encode(self.keypairs.public_key_for(existing))

        pair = self.keypairs.generate_key_pair()
        self.keystore.store(user_id, pair.private_key)
        logger.info("generated identity key pair for user %s", user_id)
        return pair.public_key_b64

    def has_identity(self, user_id: str) -> bool:
        return self.keystore.retrieve(user_id) is not None

    def reset_identity(self, user_id: str) -> None:
        # friend-shared content addressed to the old key becomes unreadable
        self.keystore.delete(user_id)
        logger.info("removed identity key for user %s", user_id)

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def protect(
        self,
        user_id: str,
        item_id: str,
        content: Union[bytes, str],
        mode: Union[VisibilityMode, str],
        recipient_public_key: Optional[KeyInput] = None,
    ) -> Envelope:
        result = self.envelope.protect(content, mode, recipient_public_key)
        if result.content_key is not None:
            self.keystore.store_content_key(user_id, item_id, result.content_key.export())
        return result.envelope

    def unprotect(
        self,
        user_id: str,
        item_id: str,
        envelope: Envelope,
        mode: Union[VisibilityMode, str],
    ) -> bytes:
        mode = VisibilityMode.parse(mode)
        if mode is VisibilityMode.SELF_ONLY:
            key = self.keystore.retrieve_content_key(user_id, item_id)
            if key is None:
                raise MissingKeyError(f"no retained content key for item {item_id}")
            return self.envelope.unprotect(envelope, mode, key)

        if mode is VisibilityMode.FRIEND_SHARED:
            private_key = self.keystore.retrieve(user_id)
            if private_key is None:
                raise MissingKeyError(f"no private key stored for user {user_id}")
            return self.envelope.unprotect(envelope, mode, private_key)

        raise ValueError("public content is stored as plaintext and is not protected")

    def forget(self, user_id: str, item_id: str) -> None:
        self.keystore.delete_content_key(user_id, item_id)
