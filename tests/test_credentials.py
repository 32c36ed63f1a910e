"""Tests for the master password bootstrap."""

import pytest
from keyring.errors import KeyringError

from coolvs import credentials
from coolvs.credentials import SecretStore, obtain_password, read_password
from coolvs.errors import InvalidPassword, NotFound, PasswordEmpty, PasswordMismatch

from .conftest import MemorySecretStore, ScriptedPrompt

ACCOUNT = "/tmp/some/store.db"


class TestReadPassword:

    def test_matching_entries(self):
        prompt = ScriptedPrompt("correct-horse", "correct-horse")
        assert read_password(prompt) == "correct-horse"
        assert prompt.prompts == ["Password: ", "Again: "]

    def test_empty(self):
        prompt = ScriptedPrompt("")
        with pytest.raises(PasswordEmpty):
            read_password(prompt)
        # no confirmation is asked for an empty password
        assert len(prompt.prompts) == 1

    def test_mismatch(self):
        with pytest.raises(PasswordMismatch, match="do not match"):
            read_password(ScriptedPrompt("abc", "xyz"))


class TestObtainPassword:

    def test_first_run_creates_and_stores_hash(self, secret_store, crypto):
        prompt = ScriptedPrompt("correct-horse", "correct-horse")
        password_hash, key = obtain_password(secret_store, ACCOUNT, crypto, prompt=prompt)

        assert secret_store.entries[ACCOUNT] == password_hash
        assert password_hash.startswith("$argon2id$")
        assert crypto.ph.verify(password_hash, "correct-horse")
        assert key == crypto.derive_key(password_hash)

    def test_stored_hash_is_reused_without_prompting(self, crypto):
        stored = crypto.hash_password("correct-horse")
        secret_store = MemorySecretStore({ACCOUNT: stored})
        password_hash, key = obtain_password(secret_store, ACCOUNT, crypto, prompt=ScriptedPrompt())

        assert password_hash == stored
        assert key == crypto.derive_key(stored)
        assert ("set", ACCOUNT) not in secret_store.calls

    def test_same_key_on_every_run(self, secret_store, crypto):
        _, first = obtain_password(
            secret_store, ACCOUNT, crypto, prompt=ScriptedPrompt("correct-horse", "correct-horse")
        )
        _, second = obtain_password(secret_store, ACCOUNT, crypto, prompt=ScriptedPrompt())
        assert first == second

    def test_accounts_are_separate(self, secret_store, crypto):
        obtain_password(secret_store, "/a", crypto, prompt=ScriptedPrompt("one", "one"))
        obtain_password(secret_store, "/b", crypto, prompt=ScriptedPrompt("two", "two"))
        assert set(secret_store.entries) == {"/a", "/b"}

    def test_mismatch_persists_nothing(self, secret_store, crypto):
        with pytest.raises(PasswordMismatch):
            obtain_password(secret_store, ACCOUNT, crypto, prompt=ScriptedPrompt("abc", "xyz"))
        assert secret_store.entries == {}

    def test_empty_persists_nothing(self, secret_store, crypto):
        with pytest.raises(PasswordEmpty):
            obtain_password(secret_store, ACCOUNT, crypto, prompt=ScriptedPrompt(""))
        assert secret_store.entries == {}

    def test_retries_when_interactive(self, secret_store, crypto):
        prompt = ScriptedPrompt("", "abc", "xyz", "correct-horse", "correct-horse")
        password_hash, _ = obtain_password(secret_store, ACCOUNT, crypto, prompt=prompt, attempts=3)
        assert crypto.ph.verify(password_hash, "correct-horse")
        assert secret_store.entries[ACCOUNT] == password_hash

    def test_last_failure_propagates_after_retries(self, secret_store, crypto):
        prompt = ScriptedPrompt("", "abc", "xyz")
        with pytest.raises(PasswordMismatch):
            obtain_password(secret_store, ACCOUNT, crypto, prompt=prompt, attempts=2)
        assert secret_store.entries == {}

    def test_secret_store_failure_propagates(self, crypto):
        class BrokenStore:
            def get(self, account):
                raise KeyringError("backend unavailable")

        with pytest.raises(KeyringError):
            obtain_password(BrokenStore(), ACCOUNT, crypto, prompt=ScriptedPrompt())

    def test_unusable_stored_hash(self, crypto):
        secret_store = MemorySecretStore({ACCOUNT: "garbage"})
        with pytest.raises(InvalidPassword):
            obtain_password(secret_store, ACCOUNT, crypto, prompt=ScriptedPrompt())


class TestSecretStore:
    """keyring-backed store."""

    def test_missing_entry_raises_not_found(self, monkeypatch):
        monkeypatch.setattr(credentials.keyring, "get_password", lambda service, account: None)
        with pytest.raises(NotFound):
            SecretStore("coolvs-test").get(ACCOUNT)

    def test_get_and_set_use_service_and_account(self, monkeypatch):
        saved = {}
        monkeypatch.setattr(
            credentials.keyring, "set_password",
            lambda service, account, secret: saved.__setitem__((service, account), secret)
        )
        monkeypatch.setattr(
            credentials.keyring, "get_password",
            lambda service, account: saved.get((service, account))
        )
        store = SecretStore("coolvs-test")
        store.set(ACCOUNT, "$argon2id$...")
        assert saved == {("coolvs-test", ACCOUNT): "$argon2id$..."}
        assert store.get(ACCOUNT) == "$argon2id$..."
