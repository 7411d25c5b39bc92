"""Event-loop friendly wrappers around the blocking primitives.

Each call is handed to the loop's default executor so concurrent coroutines
keep running while RSA or AES work happens. Once started, the underlying
computation runs to completion; a caller that times out only stops waiting.
"""
from __future__ import annotations

import asyncio
import functools
from typing import Any, Callable, Optional, Union

from onelink.core.models import Envelope, FriendSharedEnvelope, KeyPair, VisibilityMode

from .envelope import HybridEnvelope, ProtectedContent
from .keypair import KeyInput, KeyPairManager


async def _run(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))


class AsyncKeyPairManager:
    def __init__(self, keypairs: Optional[KeyPairManager] = None):
        self.keypairs = keypairs or KeyPairManager()

    async def generate_key_pair(self) -> KeyPair:
        return await _run(self.keypairs.generate_key_pair)

    async def import_public_key(self, public_key: KeyInput) -> Any:
        return await _run(self.keypairs.import_public_key, public_key)

    async def import_private_key(self, private_key: KeyInput) -> Any:
        return await _run(self.keypairs.import_private_key, private_key)


class AsyncHybridEnvelope:
    def __init__(self, envelope: Optional[HybridEnvelope] = None):
        self.envelope = envelope or HybridEnvelope()

    async def encrypt_private(self, content: Union[bytes, str]) -> ProtectedContent:
        return await _run(self.envelope.encrypt_private, content)

    async def decrypt_private(self, envelope: Envelope, key: Any) -> bytes:
        return await _run(self.envelope.decrypt_private, envelope, key)

    async def encrypt_for_friend(self, content: Union[bytes, str], recipient_public_key: Any) -> FriendSharedEnvelope:
        return await _run(self.envelope.encrypt_for_friend, content, recipient_public_key)

    async def decrypt_from_friend(self, envelope: Envelope, private_key: KeyInput) -> bytes:
        return await _run(self.envelope.decrypt_from_friend, envelope, private_key)

    async def protect(
        self,
        content: Union[bytes, str],
        mode: Union[VisibilityMode, str],
        recipient_public_key: Optional[KeyInput] = None,
    ) -> ProtectedContent:
        return await _run(self.envelope.protect, content, mode, recipient_public_key)

    async def unprotect(self, envelope: Envelope, mode: Union[VisibilityMode, str], local_key_material: Any) -> bytes:
        return await _run(self.envelope.unprotect, envelope, mode, local_key_material)
