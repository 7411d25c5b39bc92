"""AES-256-GCM content keys and authenticated encryption.

Every call to :meth:`SymmetricCipher.encrypt` draws a fresh 96-bit IV from the
provider; callers never choose IVs. The 128-bit tag is appended to the
ciphertext, so ``len(ciphertext) == len(plaintext) + 16``.
"""
from __future__ import annotations

from typing import Optional, Tuple, Union

from onelink.core.encoding import b64decode, b64encode, to_bytes
from onelink.core.exceptions import IntegrityError, KeyFormatError
from onelink.core.models import IV_LENGTH

from .provider import CryptoProvider, default_provider

KEY_LENGTH = 32  # bytes, AES-256
TAG_LENGTH = 16  # bytes, 128-bit GCM tag


class SymmetricKey:
    __slots__ = ("_raw",)

    def __init__(self, raw: bytes):
        raw = bytes(raw)
        if len(raw) != KEY_LENGTH:
            raise KeyFormatError(f"symmetric key must be {KEY_LENGTH} bytes, got {len(raw)}")
        self._raw = raw

    @classmethod
    def from_b64(cls, text: Union[str, bytes]) -> "SymmetricKey":
        try:
            return cls(b64decode(text))
        except ValueError as exc:
            raise KeyFormatError("symmetric key is not valid base64") from exc

    def export(self) -> bytes:
        return self._raw

    def to_b64(self) -> str:
        return b64encode(self._raw)

    def __eq__(self, other):
        if not isinstance(other, SymmetricKey):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self):
        return hash(self._raw)

    def __repr__(self):
        return "SymmetricKey(<redacted>)"


class SymmetricCipher:
    def __init__(self, provider: Optional[CryptoProvider] = None):
        self.provider = provider or default_provider()

    def generate_key(self) -> SymmetricKey:
        return SymmetricKey(self.provider.random_bytes(KEY_LENGTH))

    def import_key(self, key: Union[SymmetricKey, bytes, str]) -> SymmetricKey:
        # raw 32 bytes, base64 text, or an existing key
        if isinstance(key, SymmetricKey):
            return key
        if isinstance(key, str):
            return SymmetricKey.from_b64(key)
        return SymmetricKey(key)

    def encrypt(self, plaintext: Union[bytes, str], key: Union[SymmetricKey, bytes, str]) -> Tuple[bytes, bytes]:
        """Encrypt under ``key`` with a fresh random IV; returns ``(ciphertext, iv)``."""
        key = self.import_key(key)
        iv = self.provider.random_bytes(IV_LENGTH)
        ciphertext = self.provider.aead_encrypt(key.export(), iv, to_bytes(plaintext))
        return ciphertext, iv

    def decrypt(self, ciphertext: bytes, iv: bytes, key: Union[SymmetricKey, bytes, str]) -> bytes:
        """
        Verify and decrypt. Raises IntegrityError on a bad tag, wrong IV or
        wrong key; no partial plaintext is ever returned.
        """
        if len(iv) != IV_LENGTH:
            raise IntegrityError(f"iv must be {IV_LENGTH} bytes, got {len(iv)}")
        if len(ciphertext) < TAG_LENGTH:
            raise IntegrityError("ciphertext too short to contain an authentication tag")
        key = self.import_key(key)
        return self.provider.aead_decrypt(key.export(), iv, ciphertext)
