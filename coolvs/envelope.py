"""
Authenticated envelopes: the unit persisted for every record.

Wire format (UTF-8 JSON, standard padded base64 fields):
    {"nonce": "...", "key": "...", "val": "..."}

The logical key and the value are encrypted separately under the same nonce.
A nonce is drawn fresh for every seal and never reused for another write.
"""

import os
import json
import base64
import binascii
from dataclasses import dataclass
from typing import Dict, Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from . import config
from .errors import AuthenticationError, EnvelopeDecodeError, EnvelopeEncodingError

FIELDS = ('nonce', 'key', 'val')
LEGACY_FIELDS = ('nonce', 'data')


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def _b64decode(field: str, text: str) -> bytes:
    try:
        raw = base64.b64decode(text.encode('ascii'), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise EnvelopeDecodeError(f"Envelope field '{field}' is not valid base64") from e
    # Only the canonical encoding is accepted: unused trailing bits must be zero.
    if _b64encode(raw) != text:
        raise EnvelopeDecodeError(f"Envelope field '{field}' is not canonical base64")
    return raw


@dataclass
class Envelope:
    """One sealed record: a nonce and the two ciphertexts it protects."""
    nonce: bytes
    encrypted_key: bytes
    encrypted_value: bytes

    @classmethod
    def seal(cls, cipher: AESGCM, logical_key: str, value: bytes) -> 'Envelope':
        """
        Encrypt a logical key and its value under one fresh random nonce.
        Args:
            cipher: AEAD cipher built from the derived key
            logical_key: Record name
            value: Raw value bytes
        """
        nonce = os.urandom(config.NONCE_SIZE)
        return cls(
            nonce=nonce,
            encrypted_key=cipher.encrypt(nonce, logical_key.encode('utf-8'), None),
            encrypted_value=cipher.encrypt(nonce, bytes(value), None),
        )

    def open(self, cipher: AESGCM) -> Tuple[str, bytes]:
        """
        Decrypt both fields.
        Returns:
            (logical_key, value)
        Raises:
            AuthenticationError: If either ciphertext fails tag verification
            EnvelopeEncodingError: If the decrypted key is not valid UTF-8
        """
        try:
            key_bytes = cipher.decrypt(self.nonce, self.encrypted_key, None)
            value = cipher.decrypt(self.nonce, self.encrypted_value, None)
        except InvalidTag as e:
            raise AuthenticationError("Record failed authentication (wrong password or tampered data)") from e
        try:
            logical_key = key_bytes.decode('utf-8')
        except UnicodeDecodeError as e:
            raise EnvelopeEncodingError("Decrypted record key is not valid UTF-8") from e
        return logical_key, value

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for serialization."""
        return {
            'nonce': _b64encode(self.nonce),
            'key': _b64encode(self.encrypted_key),
            'val': _b64encode(self.encrypted_value),
        }

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict()).encode('utf-8')

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> 'Envelope':
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise EnvelopeDecodeError("Envelope is not a JSON object")
        if set(LEGACY_FIELDS) <= set(data) and 'val' not in data:
            raise EnvelopeDecodeError("Unsupported envelope variant: single 'data' field")
        missing = [f for f in FIELDS if f not in data]
        if missing:
            raise EnvelopeDecodeError(f"Envelope is missing field(s): {', '.join(missing)}")
        for field in FIELDS:
            if not isinstance(data[field], str):
                raise EnvelopeDecodeError(f"Envelope field '{field}' is not a string")

        nonce = _b64decode('nonce', data['nonce'])
        if len(nonce) != config.NONCE_SIZE:
            raise EnvelopeDecodeError(
                f"Envelope nonce must be {config.NONCE_SIZE} bytes, got {len(nonce)}"
            )
        return cls(
            nonce=nonce,
            encrypted_key=_b64decode('key', data['key']),
            encrypted_value=_b64decode('val', data['val']),
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> 'Envelope':
        try:
            data = json.loads(raw)
        except (ValueError, TypeError, RecursionError) as e:
            raise EnvelopeDecodeError("Envelope is not valid JSON") from e
        return cls.from_dict(data)


def seal(cipher: AESGCM, logical_key: str, value: bytes) -> bytes:
    """Seal a record and serialize it."""
    return Envelope.seal(cipher, logical_key, value).to_bytes()


def open_envelope(cipher: AESGCM, raw: bytes) -> Tuple[str, bytes]:
    """Parse a serialized envelope and decrypt it."""
    return Envelope.from_bytes(raw).open(cipher)
