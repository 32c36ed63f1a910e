"""
Cryptographic operations for the vault.

SECURITY NOTE:
The symmetric key is taken directly from the Argon2id hash payload stored in
the OS keyring instead of running a separate KDF over it. Stores written so far
depend on this, so the behavior is kept as is and confined to derive_key().
"""

import base64
import binascii
import hashlib
import logging
from typing import Optional

from argon2 import PasswordHasher, Type, extract_parameters
from argon2.exceptions import InvalidHashError
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from . import config
from .errors import InvalidPassword

logger = logging.getLogger(__name__)


def index_of(logical_key: str) -> str:
    """
    Map a logical key to its storage index.
    Unsalted SHA-512, hex encoded, so lookups need no scan.
    """
    return hashlib.sha512(logical_key.encode('utf-8')).hexdigest()


class CryptoManager:
    """Handles all cryptographic operations for the vault."""

    # Constants
    KEY_SIZE = config.KEY_SIZE      # 256 bits for AES-256
    SALT_SIZE = config.SALT_SIZE

    def __init__(self, vault_config: Optional[config.VaultConfig] = None):
        """
        Initialize the crypto manager.
        Args:
            vault_config: Supplies the Argon2 cost parameters; defaults otherwise
        """
        time_cost = config.ARGON2_TIME_COST
        memory_cost = config.ARGON2_MEMORY_COST
        parallelism = config.ARGON2_PARALLELISM
        if vault_config is not None:
            time_cost = vault_config.argon2_time_cost
            memory_cost = vault_config.argon2_memory_cost
            parallelism = vault_config.argon2_parallelism
        self.ph = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=self.KEY_SIZE,
            salt_len=self.SALT_SIZE,
            type=Type.ID
        )

    def hash_password(self, password: str) -> str:
        """
        Hash a master password with Argon2id and a fresh random salt.
        Returns:
            The encoded hash string ($argon2id$v=19$m=...,t=...,p=...$salt$hash)
        """
        return self.ph.hash(password)

    def derive_key(self, password_hash: str) -> bytes:
        """
        Derive the encryption key from an encoded Argon2 hash.

        The raw hash payload is decoded and its first KEY_SIZE bytes are used
        as the key.

        Args:
            password_hash: Encoded hash as stored in the keyring

        Returns:
            32-byte encryption key

        Raises:
            InvalidPassword: If the encoding is malformed, has no hash payload,
                or the payload is shorter than KEY_SIZE
        """
        try:
            params = extract_parameters(password_hash)
        except InvalidHashError as e:
            raise InvalidPassword("Stored password hash is malformed") from e

        payload_b64 = password_hash.rsplit('$', 1)[-1]
        if not payload_b64:
            raise InvalidPassword("Stored password hash has no hash payload")
        try:
            payload = base64.b64decode(payload_b64 + '=' * (-len(payload_b64) % 4), validate=True)
        except binascii.Error as e:
            raise InvalidPassword("Stored password hash payload is not valid base64") from e

        if len(payload) < self.KEY_SIZE:
            raise InvalidPassword(
                f"Stored password hash is too short: {len(payload)} bytes, need {self.KEY_SIZE}"
            )
        logger.debug(
            f"Derived key from {params.type.name} hash (m={params.memory_cost}, "
            f"t={params.time_cost}, p={params.parallelism})"
        )
        return payload[:self.KEY_SIZE]

    def create_cipher(self, key: bytes) -> AESGCM:
        """Create the AEAD cipher for a derived key."""
        if len(key) != self.KEY_SIZE:
            raise ValueError(f"Key must be {self.KEY_SIZE} bytes, got {len(key)}")
        return AESGCM(key)
