"""Unit tests for the async wrappers."""

import asyncio

import pytest

from onelink.core.exceptions import IntegrityError
from onelink.security.aio import AsyncHybridEnvelope, AsyncKeyPairManager


@pytest.fixture(scope="module")
def bob():
    return asyncio.run(AsyncKeyPairManager().generate_key_pair())


def test_concurrent_self_only():
    aenv = AsyncHybridEnvelope()

    async def main():
        results = await asyncio.gather(*(aenv.encrypt_private(f"item {i}") for i in range(8)))
        plain = await asyncio.gather(
            *(aenv.decrypt_private(r.envelope, r.content_key) for r in results)
        )
        return results, plain

    results, plain = asyncio.run(main())
    assert plain == [f"item {i}".encode() for i in range(8)]
    assert len({r.envelope.iv for r in results}) == 8
    assert len({r.content_key.export() for r in results}) == 8


def test_friend_roundtrip(bob):
    aenv = AsyncHybridEnvelope()

    async def main():
        env = await aenv.encrypt_for_friend(b"hello", bob.public_key)
        return await aenv.decrypt_from_friend(env, bob.private_key)

    assert asyncio.run(main()) == b"hello"


def test_protect_unprotect(bob):
    aenv = AsyncHybridEnvelope()

    async def main():
        protected = await aenv.protect(b"hello", "friends", bob.public_key_b64)
        return await aenv.unprotect(protected.envelope, "friends", bob.private_key_b64)

    assert asyncio.run(main()) == b"hello"


def test_errors_propagate():
    aenv = AsyncHybridEnvelope()

    async def main():
        protected = await aenv.encrypt_private(b"hello")
        other = await aenv.encrypt_private(b"other")
        await aenv.decrypt_private(protected.envelope, other.content_key)

    with pytest.raises(IntegrityError):
        asyncio.run(main())


def test_key_import(bob):
    akeys = AsyncKeyPairManager()

    async def main():
        pub = await akeys.import_public_key(bob.public_key_b64)
        priv = await akeys.import_private_key(bob.private_key)
        return pub, priv

    pub, priv = asyncio.run(main())
    assert pub.key_size == priv.key_size == 2048
