"""
Commands dispatched by the CLI.

Each command is one variant with the same contract: run(context) writes its
output and raises on failure.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Optional, TextIO

from . import config
from .vault import Vault

logger = logging.getLogger(__name__)


@dataclass
class Context:
    """What a command runs against."""
    vault: Vault
    stdin: BinaryIO
    stdout: BinaryIO
    stderr: TextIO


class Command(ABC):
    """Base class for CLI commands."""

    @abstractmethod
    def run(self, context: Context) -> None:
        """Execute against an open vault; raise on failure."""


@dataclass
class StoreCommand(Command):
    """Store a value, read from stdin when not given."""
    key: str
    value: Optional[bytes] = None

    def run(self, context: Context) -> None:
        value = self.value
        if value is None:
            value = context.stdin.read()
        replaced = context.vault.exists(self.key)
        context.vault.store(self.key, value)
        logger.info(f"Stored {len(value)} byte(s){', replacing the previous value' if replaced else ''}")


@dataclass
class FetchCommand(Command):
    """Print a stored value, optionally preceded by its recovered key."""
    key: str
    show_key: bool = False

    def run(self, context: Context) -> None:
        record = context.vault.fetch_record(self.key)
        if self.show_key:
            context.stdout.write(record.key.encode('utf-8') + b": ")
        context.stdout.write(record.value + b"\n")
        context.stdout.flush()


@dataclass
class ListCommand(Command):
    """Print every readable record; report the unreadable ones on stderr."""

    def run(self, context: Context) -> None:
        listed = skipped = 0
        for result in context.vault.list():
            if result.ok:
                record = result.record
                context.stdout.write(record.key.encode('utf-8') + b": " + record.value + b"\n")
                listed += 1
            else:
                context.stderr.write(
                    f"{config.ERROR_MARKER}Skipped record {result.index[:16]}: {result.error}\n"
                )
                skipped += 1
        context.stdout.flush()
        logger.info(f"Listed {listed} of {context.vault.count()} record(s), skipped {skipped}")
