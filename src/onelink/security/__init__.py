"""Security helpers: key pairs, content keys and hybrid envelopes for OneLink.

This package provides:
- RSA-OAEP (2048-bit, SHA-256) identity key pairs
- AES-256-GCM content keys and authenticated encryption
- self-only and friend-shared envelopes built from the two
- OS keyring backed local storage for private and retained content keys
"""

from .provider import CryptoProvider, CryptographyProvider, default_provider
from .keypair import KeyPairManager
from .symmetric import SymmetricCipher, SymmetricKey
from .envelope import HybridEnvelope, ProtectedContent
from .keystore import KeyStore, assess_keyring_backend
from .vault import ContentVault
from .aio import AsyncHybridEnvelope, AsyncKeyPairManager

__all__ = [
    "CryptoProvider",
    "CryptographyProvider",
    "default_provider",
    "KeyPairManager",
    "SymmetricCipher",
    "SymmetricKey",
    "HybridEnvelope",
    "ProtectedContent",
    "KeyStore",
    "assess_keyring_backend",
    "ContentVault",
    "AsyncHybridEnvelope",
    "AsyncKeyPairManager",
]
