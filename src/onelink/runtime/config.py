"""Environment driven settings for the OneLink client."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping, Optional

from onelink.security.keystore import DEFAULT_SERVICE

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    keyring_service: str = DEFAULT_SERVICE
    require_secure_keyring: bool = False
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Read settings from the environment:

        - ``ONELINK_KEYRING_SERVICE``: keyring service scoping every stored key
        - ``ONELINK_REQUIRE_SECURE_KEYRING``: refuse plaintext/fail backends
        - ``ONELINK_LOG_LEVEL``: root log level
        """
        env = os.environ if environ is None else environ
        return cls(
            keyring_service=env.get("ONELINK_KEYRING_SERVICE") or DEFAULT_SERVICE,
            require_secure_keyring=env.get("ONELINK_REQUIRE_SECURE_KEYRING", "").strip().lower() in _TRUTHY,
            log_level=(env.get("ONELINK_LOG_LEVEL") or "WARNING").upper(),
        )
