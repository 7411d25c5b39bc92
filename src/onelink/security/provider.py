"""Cryptographic capability used by every OneLink security component.

Components never reach for a random source or a cipher directly; they receive
a :class:`CryptoProvider`. Production code uses :class:`CryptographyProvider`
(backed by the ``cryptography`` package). Tests can substitute a provider with
a deterministic ``random_bytes`` to pin IVs and keys.
"""
from __future__ import annotations

import abc
import os
from typing import Any, Tuple

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from onelink.core.exceptions import IntegrityError, KeyFormatError

MIN_RSA_MODULUS_BITS = 2048


class CryptoProvider(abc.ABC):
    """Primitive operations the key managers and envelopes are built on."""

    @abc.abstractmethod
    def random_bytes(self, length: int) -> bytes:
        ...

    @abc.abstractmethod
    def aead_encrypt(self, key: bytes, iv: bytes, plaintext: bytes) -> bytes:
        """Return ciphertext with the 128-bit tag appended."""

    @abc.abstractmethod
    def aead_decrypt(self, key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
        """Return plaintext or raise IntegrityError."""

    @abc.abstractmethod
    def generate_rsa_keypair(self, key_size: int, public_exponent: int) -> Tuple[bytes, bytes]:
        """Return ``(spki_der, pkcs8_der)``."""

    @abc.abstractmethod
    def load_public_key(self, spki_der: bytes) -> Any:
        ...

    @abc.abstractmethod
    def load_private_key(self, pkcs8_der: bytes) -> Any:
        ...

    @abc.abstractmethod
    def export_public_key(self, handle: Any) -> bytes:
        """Return SPKI DER for a public or private key handle."""

    @abc.abstractmethod
    def rsa_wrap(self, public_key: Any, data: bytes) -> bytes:
        ...

    @abc.abstractmethod
    def rsa_unwrap(self, private_key: Any, wrapped: bytes) -> bytes:
        ...


def _oaep() -> padding.OAEP:
    # RSA-OAEP with SHA-256 for both the digest and MGF1, no label
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


class CryptographyProvider(CryptoProvider):
    """Provider backed by the ``cryptography`` package and ``os.urandom``."""

    def random_bytes(self, length: int) -> bytes:
        return os.urandom(length)

    def aead_encrypt(self, key: bytes, iv: bytes, plaintext: bytes) -> bytes:
        return AESGCM(key).encrypt(iv, plaintext, None)

    def aead_decrypt(self, key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
        try:
            return AESGCM(key).decrypt(iv, ciphertext, None)
        except InvalidTag as exc:
            raise IntegrityError("authentication tag did not verify") from exc

    def generate_rsa_keypair(self, key_size: int, public_exponent: int) -> Tuple[bytes, bytes]:
        private_key = rsa.generate_private_key(public_exponent=public_exponent, key_size=key_size)
        spki = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        pkcs8 = private_key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return spki, pkcs8

    def load_public_key(self, spki_der: bytes) -> rsa.RSAPublicKey:
        try:
            key = serialization.load_der_public_key(spki_der)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise KeyFormatError("public key is not a valid SPKI structure") from exc
        if not isinstance(key, rsa.RSAPublicKey):
            raise KeyFormatError(f"expected an RSA public key, got {type(key).__name__}")
        if key.key_size < MIN_RSA_MODULUS_BITS:
            raise KeyFormatError(f"RSA modulus too small: {key.key_size} bits")
        return key

    def load_private_key(self, pkcs8_der: bytes) -> rsa.RSAPrivateKey:
        try:
            key = serialization.load_der_private_key(pkcs8_der, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise KeyFormatError("private key is not a valid PKCS8 structure") from exc
        if not isinstance(key, rsa.RSAPrivateKey):
            raise KeyFormatError(f"expected an RSA private key, got {type(key).__name__}")
        if key.key_size < MIN_RSA_MODULUS_BITS:
            raise KeyFormatError(f"RSA modulus too small: {key.key_size} bits")
        return key

    def export_public_key(self, handle: Any) -> bytes:
        if isinstance(handle, rsa.RSAPrivateKey):
            handle = handle.public_key()
        if not isinstance(handle, rsa.RSAPublicKey):
            raise KeyFormatError(f"cannot export {type(handle).__name__} as an RSA public key")
        return handle.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def rsa_wrap(self, public_key: rsa.RSAPublicKey, data: bytes) -> bytes:
        return public_key.encrypt(data, _oaep())

    def rsa_unwrap(self, private_key: rsa.RSAPrivateKey, wrapped: bytes) -> bytes:
        try:
            return private_key.decrypt(wrapped, _oaep())
        except ValueError as exc:
            # wrong private key or tampered wrapped key
            raise IntegrityError("wrapped key could not be decrypted") from exc


def default_provider() -> CryptoProvider:
    return CryptographyProvider()
