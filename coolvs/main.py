"""
Main entry point for the coolvs command line.
"""

import sys
import getpass
import logging
import argparse
from typing import List, Optional

from . import __version__, config
from .commands import Context, Command, FetchCommand, ListCommand, StoreCommand
from .errors import VaultError
from .vault import Vault

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=config.APP_NAME, description=config.APP_DESCRIPTION)
    parser.add_argument(
        "--store",
        help=f"Path to the store (default: ${config.ENV_STORE_PATH} or ~/{config.CONFIG_DIR_NAME}/{config.DEFAULT_STORE_FILE})"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debugging mode")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--version", action="version", version=f"{config.APP_NAME} {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    store = subparsers.add_parser("store", help="Encrypt and store a value")
    store.add_argument("key", help="Record key")
    store.add_argument("value", nargs="?", help="Value to store (read from stdin when omitted)")

    fetch = subparsers.add_parser("fetch", help="Decrypt and print a value")
    fetch.add_argument("key", help="Record key")
    fetch.add_argument("--show-key", action="store_true", help="Print the recovered key before the value")

    subparsers.add_parser("list", help="Decrypt and print every record")
    return parser


def build_command(args: argparse.Namespace) -> Command:
    if args.command == "store":
        value = args.value.encode('utf-8') if args.value is not None else None
        return StoreCommand(args.key, value)
    if args.command == "fetch":
        return FetchCommand(args.key, show_key=args.show_key)
    return ListCommand()


def setup_logging(debug: bool = False, verbose: bool = False) -> None:
    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if debug:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=config.LOG_FORMAT, stream=sys.stderr)


def run(argv: Optional[List[str]] = None, secret_store=None, prompt=getpass.getpass) -> int:
    """
    Parse arguments, open the vault and run one command.
    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.debug, args.verbose)

    interactive = sys.stdin is not None and sys.stdin.isatty()
    attempts = config.PASSWORD_PROMPT_ATTEMPTS if interactive else 1
    try:
        vault_config = config.VaultConfig.from_env(args.store, prompt_attempts=attempts)
        command = build_command(args)
        with Vault(vault_config, secret_store=secret_store, prompt=prompt) as vault:
            context = Context(
                vault=vault,
                stdin=sys.stdin.buffer,
                stdout=sys.stdout.buffer,
                stderr=sys.stderr,
            )
            command.run(context)
    except KeyboardInterrupt:
        sys.stderr.write("\n")
        return config.EXIT_INTERRUPTED
    except VaultError as e:
        # Messages may name the logical key; only the type is logged.
        logger.debug(f"Command failed with {type(e).__name__}")
        sys.stderr.write(f"{config.ERROR_MARKER}{e}\n")
        return config.EXIT_FAILURE
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        sys.stderr.write(f"{config.ERROR_MARKER}{e}\n")
        return config.EXIT_FAILURE
    return config.EXIT_OK


def main() -> int:
    """Main entry point."""
    return run()


if __name__ == "__main__":
    sys.exit(main())
