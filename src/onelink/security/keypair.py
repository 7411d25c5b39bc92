"""RSA-OAEP identity key pairs: generation, import and transport encoding.

Keys travel as base64 of their standard DER exports (SPKI for public keys,
PKCS8 for private keys). Every import accepts either the raw DER bytes or
that base64 text.
"""
from __future__ import annotations

from typing import Any, Optional, Union

from onelink.core.encoding import b64decode, b64encode, fingerprint
from onelink.core.exceptions import KeyFormatError, KeyGenerationError
from onelink.core.models import KeyPair

from .provider import CryptoProvider, default_provider

RSA_MODULUS_BITS = 2048
RSA_PUBLIC_EXPONENT = 65537

KeyInput = Union[bytes, str]


def _der(value: KeyInput, what: str) -> bytes:
    # base64 text (or its ASCII bytes) is decoded; anything else is taken as DER
    if isinstance(value, str):
        try:
            return b64decode(value.strip())
        except ValueError as exc:
            raise KeyFormatError(f"{what} is not valid base64") from exc
    if isinstance(value, (bytes, bytearray, memoryview)):
        value = bytes(value)
        if not value:
            raise KeyFormatError(f"{what} is empty")
        # DER structures start with a SEQUENCE tag (0x30). Base64 of SPKI/PKCS8
        # starts with "M", so ASCII base64 beginning with "0" is never a real key.
        if value[0] == 0x30:
            return value
        try:
            return b64decode(value.strip())
        except ValueError as exc:
            raise KeyFormatError(f"{what} is neither DER nor base64") from exc
    raise KeyFormatError(f"{what} must be bytes or str, got {type(value).__name__}")


class KeyPairManager:
    def __init__(self, provider: Optional[CryptoProvider] = None):
        self.provider = provider or default_provider()

    def generate_key_pair(self) -> KeyPair:
        """
        Generate a fresh 2048-bit RSA key pair (e=65537).

        Any library failure surfaces as KeyGenerationError; callers may retry.
        """
        try:
            spki, pkcs8 = self.provider.generate_rsa_keypair(
                key_size=RSA_MODULUS_BITS, public_exponent=RSA_PUBLIC_EXPONENT
            )
        except Exception as exc:
            raise KeyGenerationError(f"key pair generation failed: {exc}") from exc
        return KeyPair(public_key=spki, private_key=pkcs8)

    def import_public_key(self, public_key: KeyInput) -> Any:
        return self.provider.load_public_key(_der(public_key, "public key"))

    def import_private_key(self, private_key: KeyInput) -> Any:
        return self.provider.load_private_key(_der(private_key, "private key"))

    def public_key_for(self, private_key: KeyInput) -> bytes:
        """Return the SPKI DER public key matching a PKCS8 private key."""
        handle = self.import_private_key(private_key)
        return self.provider.export_public_key(handle)

    def fingerprint(self, public_key: KeyInput) -> str:
        # validate first so a fingerprint is only shown for a usable key
        handle = self.import_public_key(public_key)
        return fingerprint(self.provider.export_public_key(handle))

    @staticmethod
    def export_key(key_der: bytes) -> str:
        return b64encode(key_der)
