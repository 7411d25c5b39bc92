"""Small helper to build a OneLink app context for a client session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from onelink.runtime.config import Settings
from onelink.runtime.logging_config import configure_logging
from onelink.security.envelope import HybridEnvelope
from onelink.security.keypair import KeyPairManager
from onelink.security.keystore import KeyStore
from onelink.security.provider import CryptoProvider, default_provider
from onelink.security.symmetric import SymmetricCipher
from onelink.security.vault import ContentVault


@dataclass
class AppContext:
    """Container for runtime objects the UI needs."""

    settings: Settings
    provider: CryptoProvider
    keypairs: KeyPairManager
    cipher: SymmetricCipher
    envelope: HybridEnvelope
    keystore: KeyStore
    vault: ContentVault


def build_context(
    settings: Optional[Settings] = None,
    keyring_backend: Any = None,
    provider: Optional[CryptoProvider] = None,
    setup_logging: bool = False,
) -> AppContext:
    """
    Construct every component once and wire them together.

    Create one context at session start and pass it (or its members) to
    whatever needs them; nothing is cached at module level. ``keyring_backend``
    defaults to the process keyring; tests pass an in-memory object.
    """
    settings = settings or Settings.from_env()
    if setup_logging:
        configure_logging(settings.log_level)

    provider = provider or default_provider()
    keypairs = KeyPairManager(provider)
    cipher = SymmetricCipher(provider)
    envelope = HybridEnvelope(cipher=cipher, keypairs=keypairs)
    keystore = KeyStore(
        backend=keyring_backend,
        service=settings.keyring_service,
        require_secure_backend=settings.require_secure_keyring,
    )
    vault = ContentVault(envelope=envelope, keystore=keystore, keypairs=keypairs)

    return AppContext(
        settings=settings,
        provider=provider,
        keypairs=keypairs,
        cipher=cipher,
        envelope=envelope,
        keystore=keystore,
        vault=vault,
    )
