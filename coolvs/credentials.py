"""
Master password bootstrap.

The master password is asked for only once per store. Its Argon2id hash is kept
in the OS keyring under (service, absolute store path) and reused on every later
invocation without asking again.
"""

import getpass
import logging
from typing import Callable, Tuple

import keyring

from . import config
from .crypto import CryptoManager
from .errors import NotFound, PasswordEmpty, PasswordMismatch

logger = logging.getLogger(__name__)


class SecretStore:
    """OS credential store for a single service, backed by keyring."""

    def __init__(self, service: str = config.KEYRING_SERVICE):
        self.service = service

    def get(self, account: str) -> str:
        """
        Retrieve a stored secret.
        Raises:
            NotFound: If there is no entry for this account
            keyring.errors.KeyringError: If the backend fails
        """
        secret = keyring.get_password(self.service, account)
        if secret is None:
            raise NotFound(f"No keyring entry for {self.service}/{account}")
        return secret

    def set(self, account: str, secret: str) -> None:
        keyring.set_password(self.service, account, secret)
        logger.info(f"Secret stored in keyring: {self.service}/{account}")


def read_password(prompt: Callable[[str], str] = getpass.getpass) -> str:
    """
    Ask for a new master password twice.
    Raises:
        PasswordEmpty: If the first entry is empty
        PasswordMismatch: If the confirmation differs
    """
    password = prompt(config.PASSWORD_PROMPT)
    if not password:
        raise PasswordEmpty()
    if password != prompt(config.PASSWORD_CONFIRM_PROMPT):
        raise PasswordMismatch()
    return password


def obtain_password(
    secret_store: SecretStore,
    account: str,
    crypto: CryptoManager,
    prompt: Callable[[str], str] = getpass.getpass,
    attempts: int = 1
) -> Tuple[str, bytes]:
    """
    Get the stored password hash for a store, creating it on first use.

    Args:
        secret_store: Keyring-like object with get(account) and set(account, secret)
        account: Keyring account, the absolute store path
        crypto: Hashes new passwords and derives the key
        prompt: Hidden-input prompt function
        attempts: How many times to ask before giving up on an empty or
            mismatched password

    Returns:
        Tuple of (password_hash, derived_key)

    Raises:
        PasswordEmpty, PasswordMismatch: When the last attempt fails
        InvalidPassword: If the stored hash cannot be used as a key
    """
    try:
        password_hash = secret_store.get(account)
        logger.debug(f"Using stored password hash for {account}")
    except NotFound:
        logger.info(f"No password stored for {account}, creating one")
        password_hash = _create_password(secret_store, account, crypto, prompt, attempts)
    return password_hash, crypto.derive_key(password_hash)


def _create_password(secret_store, account, crypto, prompt, attempts) -> str:
    attempts = max(attempts, 1)
    for attempt in range(1, attempts + 1):
        try:
            password = read_password(prompt)
            break
        except (PasswordEmpty, PasswordMismatch) as e:
            if attempt == attempts:
                raise
            logger.warning(f"{e}, try again ({attempt}/{attempts})")

    password_hash = crypto.hash_password(password)
    secret_store.set(account, password_hash)
    return password_hash
