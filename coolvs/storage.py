"""
Persistent ordered storage for the vault.

A single SQLite file holds named collections ("trees"), each a table of
(key, value) pairs iterated in key order. Only opaque storage indices and
sealed envelopes are written to the data tree.
"""

import os
import stat
import sqlite3
import logging
import platform
from typing import Iterator, Optional, Tuple

from . import config
from .errors import VersionMismatch

logger = logging.getLogger(__name__)


class Tree:
    """One named collection inside a Database."""

    def __init__(self, conn: sqlite3.Connection, name: str):
        self._conn = conn
        self.name = name
        self._conn.execute(
            f'CREATE TABLE IF NOT EXISTS "{name}" (key BLOB PRIMARY KEY, value BLOB NOT NULL)'
        )

    def get(self, key: bytes) -> Optional[bytes]:
        row = self._conn.execute(
            f'SELECT value FROM "{self.name}" WHERE key = ?', (key,)
        ).fetchone()
        return bytes(row[0]) if row else None

    def insert(self, key: bytes, value: bytes) -> None:
        """Insert or overwrite the value at key."""
        self._conn.execute(
            f'INSERT OR REPLACE INTO "{self.name}" (key, value) VALUES (?, ?)',
            (key, value)
        )

    def __contains__(self, key: bytes) -> bool:
        return self._conn.execute(
            f'SELECT 1 FROM "{self.name}" WHERE key = ?', (key,)
        ).fetchone() is not None

    def __len__(self) -> int:
        return self._conn.execute(f'SELECT COUNT(*) FROM "{self.name}"').fetchone()[0]

    def iterate(self) -> Iterator[Tuple[bytes, bytes]]:
        """Yield every (key, value) pair in key order."""
        cursor = self._conn.execute(f'SELECT key, value FROM "{self.name}" ORDER BY key')
        for key, value in cursor:
            yield bytes(key), bytes(value)

    def flush(self) -> None:
        self._conn.commit()


class Database:
    """Embedded store opened at a filesystem path."""

    def __init__(self, filepath: str):
        """
        Open (or create) the store.
        Args:
            filepath: Path to the SQLite file
        """
        self.filepath = filepath
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        created = not os.path.exists(filepath)
        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(filepath)
        if created:
            logger.info(f"Created new store at {filepath}")
            if not self._set_file_permissions(filepath):
                logger.warning(f"Failed to set secure file permissions for store: {filepath}")

    def open_tree(self, name: str) -> Tree:
        if not name.isidentifier():
            raise ValueError(f"Invalid tree name: {name!r}")
        if self._conn is None:
            raise RuntimeError("Store is closed")
        return Tree(self._conn, name)

    def flush(self) -> None:
        if self._conn is not None:
            self._conn.commit()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.commit()
            self._conn.close()
            self._conn = None

    def __enter__(self) -> 'Database':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _set_file_permissions(self, filepath: str) -> bool:
        """
        Set file to be readable/writable by owner only."""
        if platform.system() == 'Windows':
            logger.debug(f"Leaving default ACLs on {filepath}")
            return True
        try:
            os.chmod(filepath, stat.S_IRUSR | stat.S_IWUSR)  # 600
        except OSError as e:
            logger.error(f"Error setting permissions on {filepath}: {e}")
            return False
        return True


def check_version(meta: Tree, running_version: str) -> None:
    """
    Compare the store's format version with the running version.

    A store without a marker is stamped with the running version. An existing
    marker is never overwritten.

    Raises:
        VersionMismatch: If the stored marker differs from running_version
    """
    key = config.VERSION_KEY.encode('utf-8')
    stored = meta.get(key)
    if stored is None:
        meta.insert(key, running_version.encode('utf-8'))
        meta.flush()
        logger.info(f"Stamped store with version {running_version}")
        return
    if stored != running_version.encode('utf-8'):
        raise VersionMismatch(stored.decode('utf-8', errors='replace'), running_version)
    logger.debug(f"Store version {running_version} matches")
