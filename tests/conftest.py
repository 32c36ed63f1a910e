"""
Shared pytest fixtures.

Nothing here touches the real OS keyring: secret stores are in-memory and
prompts are scripted. Argon2 runs with minimal costs to keep the suite fast.
"""

import os

import pytest

from coolvs.config import VaultConfig
from coolvs.crypto import CryptoManager
from coolvs.errors import NotFound


class MemorySecretStore:
    """In-memory stand-in for the keyring-backed SecretStore."""

    def __init__(self, entries=None):
        self.entries = dict(entries or {})
        self.calls = []

    def get(self, account):
        self.calls.append(("get", account))
        try:
            return self.entries[account]
        except KeyError:
            raise NotFound(account) from None

    def set(self, account, secret):
        self.calls.append(("set", account))
        self.entries[account] = secret


class ScriptedPrompt:
    """Returns canned answers in order and records the prompts shown."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {prompt!r}")
        return self.answers.pop(0)


@pytest.fixture
def secret_store():
    return MemorySecretStore()


@pytest.fixture
def store_path(tmp_path):
    return str(tmp_path / "store.db")


@pytest.fixture
def vault_config(store_path):
    return VaultConfig(
        store_path=store_path,
        argon2_time_cost=1,
        argon2_memory_cost=8,
        argon2_parallelism=1,
    )


@pytest.fixture
def crypto(vault_config):
    return CryptoManager(vault_config)


@pytest.fixture
def cipher(crypto):
    return crypto.create_cipher(os.urandom(CryptoManager.KEY_SIZE))


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep COOLVS_* variables from the developer's shell out of the tests."""
    monkeypatch.delenv("COOLVS_STORE", raising=False)
    monkeypatch.delenv("COOLVS_KEYRING_SERVICE", raising=False)
