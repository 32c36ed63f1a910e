"""
Configuration constants for the coolvs vault.
"""

import os
from dataclasses import dataclass

# Application Metadata
APP_NAME = "coolvs"  # Use: Short name of the application, used in CLI help and as the default keyring service. Type: str. Range: Any valid string.
APP_DESCRIPTION = "Password-protected local key-value vault"  # Use: One-line description shown by the CLI. Type: str. Range: Any valid string.

# Security Settings
KEY_SIZE = 32  # Use: Size of the symmetric encryption key in bytes. Corresponds to AES-256. Type: int. Range: 32 bytes; the Argon2 hash payload must be at least this long.
NONCE_SIZE = 12  # Use: Size of the Nonce (Number used once) in bytes for AES-GCM. Type: int. Range: 12 bytes (96 bits) is the recommended size for GCM.
SALT_SIZE = 16  # Use: Size of the random Argon2 salt in bytes. Type: int. Range: Recommended to be at least 16 bytes (128 bits).
ARGON2_TIME_COST = 2  # Use: Argon2id time cost parameter. Controls the number of iterations. Type: int. Range: Typically 1 to 10.
ARGON2_MEMORY_COST = 65536  # Use: Argon2id memory cost parameter in KiB. Type: int. Range: Recommended to be at least 65536 (64 MB).
ARGON2_PARALLELISM = 4  # Use: Argon2id parallelism parameter (number of lanes). Type: int. Range: Typically 1 to 8.
PASSWORD_PROMPT_ATTEMPTS = 3  # Use: Number of times an interactive terminal re-prompts after an empty or mismatched new password. Type: int. Range: Positive integer; 1 means no retry.

# Secret Store Settings
KEYRING_SERVICE = APP_NAME  # Use: Service name under which the master password hash is stored in the OS keyring. The account is the absolute store path. Type: str. Range: Any non-empty string.
PASSWORD_PROMPT = "Password: "  # Use: Prompt for the new master password. Type: str. Range: Any string.
PASSWORD_CONFIRM_PROMPT = "Again: "  # Use: Prompt for the confirmation copy of the new master password. Type: str. Range: Any string.

# Storage Settings
CONFIG_DIR_NAME = ".coolvs"  # Use: Name of the hidden directory within the user's home directory holding the default store. Type: str. Range: Any valid directory name.
DEFAULT_STORE_FILE = "store.db"  # Use: Default filename for the encrypted store. Type: str. Range: Any valid filename.
DATA_TREE = "data"  # Use: Name of the collection mapping storage indices to envelopes. Type: str. Range: Valid SQL identifier.
META_TREE = "meta"  # Use: Name of the collection holding store metadata. Type: str. Range: Valid SQL identifier.
VERSION_KEY = "version"  # Use: Key of the format version marker inside the meta collection. Type: str. Range: Any string.

# Environment Overrides
ENV_STORE_PATH = "COOLVS_STORE"  # Use: Environment variable overriding the store path. Type: str. Range: Environment variable name.
ENV_KEYRING_SERVICE = "COOLVS_KEYRING_SERVICE"  # Use: Environment variable overriding the keyring service name. Type: str. Range: Environment variable name.

# CLI Settings
ERROR_MARKER = "* * * "  # Use: Prefix written before every error message on stderr. Type: str. Range: Any visually distinct string.
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'  # Use: Format for log records written to stderr. Type: str. Range: Valid logging format string.
EXIT_OK = 0  # Use: Process exit code on success. Type: int.
EXIT_FAILURE = 1  # Use: Process exit code on any handled failure. Type: int.
EXIT_INTERRUPTED = 130  # Use: Process exit code when interrupted with Ctrl+C. Type: int.


def default_store_path() -> str:
    """Get the default path for the encrypted store."""
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME, DEFAULT_STORE_FILE)


@dataclass
class VaultConfig:
    """Explicit configuration for one vault invocation."""
    store_path: str
    keyring_service: str = KEYRING_SERVICE
    argon2_time_cost: int = ARGON2_TIME_COST
    argon2_memory_cost: int = ARGON2_MEMORY_COST
    argon2_parallelism: int = ARGON2_PARALLELISM
    prompt_attempts: int = 1

    def __post_init__(self):
        self.store_path = os.path.abspath(os.path.expanduser(self.store_path))
        if not self.keyring_service:
            raise ValueError("Keyring service name cannot be empty")
        if self.prompt_attempts < 1:
            raise ValueError("prompt_attempts must be at least 1")

    @property
    def account(self) -> str:
        """Keyring account for this store: its absolute path."""
        return self.store_path

    @classmethod
    def from_env(cls, store_path: str = None, **overrides) -> 'VaultConfig':
        """
        Build a configuration from defaults and environment variables.
        Args:
            store_path: Explicit store path; takes precedence over the environment
            overrides: Any other field of VaultConfig
        """
        path = store_path or os.environ.get(ENV_STORE_PATH) or default_store_path()
        overrides.setdefault(
            "keyring_service", os.environ.get(ENV_KEYRING_SERVICE, KEYRING_SERVICE)
        )
        return cls(store_path=path, **overrides)
