"""
Unit tests for the keystore module.
"""

import base64
import logging
from unittest.mock import MagicMock

import pytest
from keyring.backends import fail, null
from keyring.errors import PasswordDeleteError

from onelink.core.exceptions import KeyFormatError, StorageUnavailableError
from onelink.security import keystore
from onelink.security.keystore import KeyStore, assess_keyring_backend


class MemoryKeyring:
    """Dict-backed stand-in for a keyring backend."""

    priority = 1

    def __init__(self):
        self.entries = {}

    def get_password(self, service, username):
        return self.entries.get((service, username))

    def set_password(self, service, username, password):
        self.entries[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.entries[(service, username)]
        except KeyError:
            raise PasswordDeleteError("not found")


class PlaintextKeyring(MemoryKeyring):
    pass


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def backend():
    return MemoryKeyring()


@pytest.fixture
def store(backend):
    return KeyStore(backend=backend, service="onelink_test")


@pytest.fixture
def broken_backend():
    """A backend whose every call fails like an inaccessible OS keystore."""
    return fail.Keyring()


# ==============================================================================
# Tests: lifecycle
# ==============================================================================

def test_store_then_retrieve_exact_bytes(store):
    material = bytes(range(256))
    store.store("alice", material)
    assert store.retrieve("alice") == material


def test_store_encodes_base64_under_private_key_account(store, backend):
    store.store("alice", b"\x01\x02\x03\x04")
    secret = backend.entries[("onelink_test", "onelink_private_key_alice")]
    assert secret == base64.b64encode(b"\x01\x02\x03\x04").decode("ascii")


def test_store_accepts_base64_text(store):
    store.store("alice", "AQIDBA==")
    assert store.retrieve("alice") == b"\x01\x02\x03\x04"


def test_store_rejects_invalid_text(store):
    with pytest.raises(KeyFormatError):
        store.store("alice", "not base64!!")


def test_retrieve_never_stored_is_none(store):
    assert store.retrieve("nobody") is None


def test_delete_then_retrieve_is_none(store):
    store.store("alice", b"key")
    store.delete("alice")
    assert store.retrieve("alice") is None


def test_delete_missing_is_silent(store):
    store.delete("nobody")


def test_users_are_isolated(store):
    store.store("alice", b"a-key")
    store.store("bob", b"b-key")
    store.delete("alice")
    assert store.retrieve("bob") == b"b-key"


def test_content_keys_are_separate_from_private_key(store, backend):
    store.store("alice", b"private")
    store.store_content_key("alice", "link-1", b"c" * 32)
    assert ("onelink_test", "onelink_content_key_5_alice_link-1") in backend.entries
    assert store.retrieve_content_key("alice", "link-1") == b"c" * 32
    assert store.retrieve_content_key("alice", "link-2") is None

    store.delete_content_key("alice", "link-1")
    assert store.retrieve_content_key("alice", "link-1") is None
    assert store.retrieve("alice") == b"private"


def test_content_key_accounts_do_not_collide(store):
    store.store_content_key("a_b", "c", b"\x01" * 32)
    store.store_content_key("a", "b_c", b"\x02" * 32)

    assert store.content_key_account("a_b", "c") != store.content_key_account("a", "b_c")
    assert store.retrieve_content_key("a_b", "c") == b"\x01" * 32
    assert store.retrieve_content_key("a", "b_c") == b"\x02" * 32

    store.delete_content_key("a", "b_c")
    assert store.retrieve_content_key("a_b", "c") == b"\x01" * 32


@pytest.mark.parametrize("user_id", ["", None, 42])
def test_user_id_required(store, user_id):
    with pytest.raises(ValueError):
        store.store(user_id, b"key")


def test_default_backend_is_keyring_module():
    assert KeyStore().backend is keystore.keyring


# ==============================================================================
# Tests: storage failures
# ==============================================================================

def test_store_unavailable_raises(broken_backend):
    store = KeyStore(backend=broken_backend)
    with pytest.raises(StorageUnavailableError, match="enable local storage"):
        store.store("alice", b"key")


def test_retrieve_unavailable_raises(broken_backend):
    store = KeyStore(backend=broken_backend)
    with pytest.raises(StorageUnavailableError):
        store.retrieve("alice")


def test_delete_failure_is_logged_not_raised(broken_backend, caplog):
    store = KeyStore(backend=broken_backend)
    with caplog.at_level(logging.WARNING, logger="onelink.security.keystore"):
        store.delete("alice")
    assert "failed to delete key onelink_private_key_alice" in caplog.text


def test_retrieve_corrupt_entry(store, backend):
    backend.entries[("onelink_test", "onelink_private_key_alice")] = "NotValidBase64!!!"
    with pytest.raises(KeyFormatError):
        store.retrieve("alice")


def test_secure_backend_required_refuses_plaintext():
    backend = PlaintextKeyring()
    store = KeyStore(backend=backend, require_secure_backend=True)
    with pytest.raises(StorageUnavailableError, match="insecure backend"):
        store.store("alice", b"key")
    assert backend.entries == {}


def test_secure_backend_required_allows_acceptable_backend(backend):
    store = KeyStore(backend=backend, require_secure_backend=True)
    store.store("alice", b"key")
    assert store.retrieve("alice") == b"key"


def test_unexpected_backend_error_is_wrapped():
    backend = MagicMock()
    backend.set_password.side_effect = OSError("disk full")
    store = KeyStore(backend=backend)
    with pytest.raises(StorageUnavailableError) as info:
        store.store("alice", b"key")
    assert isinstance(info.value.__cause__, OSError)


# ==============================================================================
# Tests: Backend Assessment (assess_keyring_backend)
# ==============================================================================

def test_assess_fail_backend():
    is_secure, msg = assess_keyring_backend(fail.Keyring())
    assert is_secure is False


def test_assess_null_backend():
    is_secure, msg = assess_keyring_backend(null.Keyring())
    assert is_secure is False


def test_assess_plaintext_name():
    is_secure, msg = assess_keyring_backend(PlaintextKeyring())
    assert is_secure is False
    assert "insecure backend detected" in msg


def test_assess_unknown_backend(backend):
    is_secure, msg = assess_keyring_backend(backend)
    assert is_secure is True
    assert "unknown backend 'MemoryKeyring'" in msg


def test_assess_known_platform_backend():
    class SecretServiceKeyring(MemoryKeyring):
        priority = 5

    is_secure, msg = assess_keyring_backend(SecretServiceKeyring())
    assert is_secure is True
    assert "looks acceptable" in msg


def test_assess_process_backend_error(monkeypatch):
    def boom():
        raise RuntimeError("DBus error")

    monkeypatch.setattr(keystore.keyring, "get_keyring", boom)
    is_secure, msg = assess_keyring_backend()
    assert is_secure is False
    assert "DBus error" in msg
