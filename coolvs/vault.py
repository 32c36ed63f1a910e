"""
The vault: store, fetch and list encrypted records.

Opening a vault runs, in order: version check on the meta tree, master password
bootstrap, key derivation, and only then opens the data tree. Every record is
addressed by the SHA-512 of its logical key and persisted as a sealed envelope.
"""

import getpass
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from . import __version__, config
from .credentials import SecretStore, obtain_password
from .crypto import CryptoManager, index_of
from .envelope import Envelope, open_envelope
from .errors import EnvelopeError, NotFound
from .storage import Database, Tree, check_version

logger = logging.getLogger(__name__)


@dataclass
class Record:
    """A decrypted record."""
    key: str
    value: bytes


@dataclass
class RecordResult:
    """One item of a listing: either a record or the reason it was skipped."""
    index: str
    record: Optional[Record] = None
    error: Optional[EnvelopeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Vault:
    """
    Encrypted key-value vault for one store path.

    Owns the derived cipher and the open database handle for its lifetime.
    Use as a context manager, or call open() and close() explicitly.
    """

    def __init__(
        self,
        vault_config: config.VaultConfig,
        secret_store: Optional[SecretStore] = None,
        prompt: Callable[[str], str] = getpass.getpass,
        version: str = __version__
    ):
        self.config = vault_config
        if secret_store is None:
            secret_store = SecretStore(vault_config.keyring_service)
        self.secret_store = secret_store
        self.prompt = prompt
        self.version = version
        self.crypto = CryptoManager(vault_config)
        self._db: Optional[Database] = None
        self._data: Optional[Tree] = None
        self._cipher: Optional[AESGCM] = None

    def open(self) -> 'Vault':
        """
        Open the store and unlock it.
        Raises:
            VersionMismatch: Before any password handling or data access
            PasswordEmpty, PasswordMismatch, InvalidPassword: From the bootstrap
        """
        if self.is_open():
            return self
        db = Database(self.config.store_path)
        try:
            check_version(db.open_tree(config.META_TREE), self.version)
            _, key = obtain_password(
                self.secret_store,
                self.config.account,
                self.crypto,
                prompt=self.prompt,
                attempts=self.config.prompt_attempts
            )
            self._cipher = self.crypto.create_cipher(key)
            self._data = db.open_tree(config.DATA_TREE)
        except BaseException:
            db.close()
            raise
        self._db = db
        logger.debug(f"Opened vault at {self.config.store_path}")
        return self

    def close(self) -> None:
        """Flush and close the store, dropping the cipher."""
        if self._db is not None:
            self._db.close()
        self._db = None
        self._data = None
        self._cipher = None

    def is_open(self) -> bool:
        return self._cipher is not None

    def __enter__(self) -> 'Vault':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_open(self) -> Tuple[Tree, AESGCM]:
        if not self.is_open():
            raise RuntimeError("Vault is not open")
        return self._data, self._cipher

    def store(self, logical_key: str, value: bytes) -> None:
        """Encrypt and persist a record, overwriting any previous value."""
        data, cipher = self._require_open()
        index = index_of(logical_key)
        data.insert(index.encode('ascii'), Envelope.seal(cipher, logical_key, value).to_bytes())
        data.flush()
        logger.debug(f"Stored record {index[:16]}")

    def fetch_record(self, logical_key: str) -> Record:
        """
        Look up and decrypt a record.
        Raises:
            NotFound: If no record exists for logical_key
            EnvelopeError: If the stored envelope cannot be opened
        """
        data, cipher = self._require_open()
        index = index_of(logical_key)
        raw = data.get(index.encode('ascii'))
        if raw is None:
            raise NotFound(f"No record for key: {logical_key}")
        key, value = open_envelope(cipher, raw)
        if key != logical_key:
            logger.warning(f"Record {index[:16]} holds a different key than its index implies")
        return Record(key, value)

    def fetch(self, logical_key: str) -> bytes:
        return self.fetch_record(logical_key).value

    def exists(self, logical_key: str) -> bool:
        data, _ = self._require_open()
        return index_of(logical_key).encode('ascii') in data

    def count(self) -> int:
        """Number of stored envelopes, readable or not."""
        data, _ = self._require_open()
        return len(data)

    def list(self) -> Iterator[RecordResult]:
        """
        Yield every stored record in storage order.

        Entries that cannot be parsed or decrypted are yielded with their
        error instead of stopping the listing.
        """
        data, cipher = self._require_open()
        for raw_index, raw in data.iterate():
            index = raw_index.decode('ascii', errors='replace')
            try:
                key, value = open_envelope(cipher, raw)
            except EnvelopeError as e:
                logger.warning(f"Skipping record {index[:16]}: {e}")
                yield RecordResult(index, error=e)
                continue
            yield RecordResult(index, record=Record(key, value))
