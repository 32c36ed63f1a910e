"""
coolvs - a local, password-protected key-value vault.

THREAT MODEL:
Every record is encrypted at rest under a key derived from the master password.
Logical key names never reach the storage engine in the clear; only their
SHA-512 digests do, which reveals when the same name is written twice but
nothing about its contents. The master password itself is never stored, only
its Argon2id hash, and only in the operating system's credential store.
"""

__version__ = "0.1.0"
