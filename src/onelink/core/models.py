"""
Data models for protected content: identities, visibility modes and envelopes
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
from typing import Any, Dict, Optional, Union

from .encoding import b64decode, b64encode
from .exceptions import EnvelopeFormatError


IV_LENGTH = 12  # bytes, 96-bit AES-GCM nonce


class VisibilityMode(Enum):
    # Stored visibility of a content item; only the last two are encrypted
    PUBLIC = "public"
    SELF_ONLY = "private"
    FRIEND_SHARED = "friends"

    @classmethod
    def parse(cls, value: Union[str, "VisibilityMode"]) -> "VisibilityMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"unknown visibility: {value!r}") from None

    @property
    def is_protected(self) -> bool:
        return self is not VisibilityMode.PUBLIC


@dataclass(frozen=True)
class KeyPair:
    """
    Asymmetric identity of one user.

    ``public_key`` is SPKI DER and safe to publish. ``private_key`` is PKCS8
    DER and must only ever be handed to the local KeyStore.
    """

    public_key: bytes
    private_key: bytes

    @property
    def public_key_b64(self) -> str:
        return b64encode(self.public_key)

    @property
    def private_key_b64(self) -> str:
        return b64encode(self.private_key)

    def to_dict(self) -> Dict[str, str]:
        return {"publicKey": self.public_key_b64, "privateKey": self.private_key_b64}

    def __repr__(self):
        # never render private key material
        return f"KeyPair(public_key=<{len(self.public_key)} bytes>, private_key=<redacted>)"


@dataclass(frozen=True)
class SelfOnlyEnvelope:
    """Ciphertext readable only with a symmetric key retained on the owner's device."""

    ciphertext: bytes
    iv: bytes

    mode = VisibilityMode.SELF_ONLY

    def to_dict(self) -> Dict[str, str]:
        return {"content": b64encode(self.ciphertext), "iv": b64encode(self.iv)}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class FriendSharedEnvelope:
    """Ciphertext plus the content key wrapped under one recipient's public key."""

    ciphertext: bytes
    iv: bytes
    wrapped_key: bytes

    mode = VisibilityMode.FRIEND_SHARED

    def to_dict(self) -> Dict[str, str]:
        return {
            "encryptedContent": b64encode(self.ciphertext),
            "iv": b64encode(self.iv),
            "encryptedKey": b64encode(self.wrapped_key),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


Envelope = Union[SelfOnlyEnvelope, FriendSharedEnvelope]


def _field(data: Dict[str, Any], *names: str) -> Optional[bytes]:
    for name in names:
        value = data.get(name)
        if value is None:
            continue
        if not isinstance(value, str):
            raise EnvelopeFormatError(f"envelope field {name!r} must be a base64 string")
        try:
            return b64decode(value)
        except ValueError as exc:
            raise EnvelopeFormatError(f"envelope field {name!r} is not valid base64") from exc
    return None


def create_envelope_from_dict(data: Dict[str, Any]) -> Envelope:
    """
    Rebuild an envelope from its stored dict form.

    The presence of ``encryptedKey`` selects the friend-shared variant.
    Self-only blobs store the ciphertext as ``content``; friend-shared ones
    use ``encryptedContent``. Either spelling is accepted for either variant.
    """
    if not isinstance(data, dict):
        raise EnvelopeFormatError("envelope must be a JSON object")

    ciphertext = _field(data, "encryptedContent", "content")
    iv = _field(data, "iv")
    if not ciphertext or iv is None:
        raise EnvelopeFormatError("envelope is missing ciphertext or iv")
    if len(iv) != IV_LENGTH:
        raise EnvelopeFormatError(f"iv must be {IV_LENGTH} bytes, got {len(iv)}")

    wrapped_key = _field(data, "encryptedKey")
    if wrapped_key is not None:
        return FriendSharedEnvelope(ciphertext=ciphertext, iv=iv, wrapped_key=wrapped_key)
    return SelfOnlyEnvelope(ciphertext=ciphertext, iv=iv)


def create_envelope_from_json(blob: Union[str, bytes]) -> Envelope:
    try:
        data = json.loads(blob)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise EnvelopeFormatError("envelope blob is not valid JSON") from exc
    return create_envelope_from_dict(data)
