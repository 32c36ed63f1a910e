"""
Exceptions raised by the vault.

I/O failures (sqlite3.Error, OSError, keyring.errors.KeyringError) are not
wrapped; they propagate as raised by the library.
"""


class VaultError(Exception):
    """Base class for all vault errors."""


class PasswordEmpty(VaultError):
    def __init__(self):
        super().__init__("Password is empty")


class PasswordMismatch(VaultError):
    def __init__(self):
        super().__init__("Passwords do not match")


class InvalidPassword(VaultError):
    """The stored password hash cannot be used as key material."""


class VersionMismatch(VaultError):
    def __init__(self, stored: str, running: str):
        self.stored = stored
        self.running = running
        super().__init__(
            f"Store was written by version {stored}, this is version {running}"
        )


class NotFound(VaultError):
    """No secret-store entry, or no record for a logical key."""


class EnvelopeError(VaultError):
    """A single persisted record could not be opened."""


class EnvelopeDecodeError(EnvelopeError):
    """The envelope document or one of its base64 fields is malformed."""


class EnvelopeEncodingError(EnvelopeError):
    """The decrypted logical key is not valid UTF-8."""


class AuthenticationError(EnvelopeError):
    """Tag verification failed: wrong key or tampered envelope."""
