"""Authenticated encryption envelope for persisted token material.

Blobs are AES-256-GCM sealed with a fresh 96-bit nonce per call. The on-disk
layout is ``MAGIC | version | nonce | ciphertext | tag`` and the 5-byte header is
bound to the ciphertext as associated data, so a version byte cannot be swapped
without breaking the tag.
"""

from __future__ import annotations

import base64
import binascii
import os
import secrets
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import CryptoError

MAGIC = b"OMCP"
BLOB_VERSION = 1
KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16
HEADER_SIZE = len(MAGIC) + 1


class BlobFormatError(ValueError):
    """The bytes are not a token blob this version of the server understands."""


@dataclass(frozen=True)
class EncryptedBlob:
    """Ciphertext, authentication tag and nonce for one sealed payload."""

    nonce: bytes
    ciphertext: bytes
    tag: bytes
    version: int = BLOB_VERSION

    @property
    def header(self) -> bytes:
        return MAGIC + bytes([self.version])

    def to_bytes(self) -> bytes:
        return self.header + self.nonce + self.ciphertext + self.tag

    @classmethod
    def from_bytes(cls, data: bytes) -> EncryptedBlob:
        """Parse a serialized blob, rejecting unknown magic, versions and truncation."""
        if len(data) < HEADER_SIZE + NONCE_SIZE + TAG_SIZE:
            raise BlobFormatError("Token blob is truncated")
        if data[: len(MAGIC)] != MAGIC:
            raise BlobFormatError("Token blob has an unrecognised header")
        version = data[len(MAGIC)]
        if version != BLOB_VERSION:
            raise BlobFormatError(f"Unsupported token blob version: {version}")

        body = data[HEADER_SIZE:]
        return cls(
            nonce=body[:NONCE_SIZE],
            ciphertext=body[NONCE_SIZE:-TAG_SIZE],
            tag=body[-TAG_SIZE:],
            version=version,
        )


def _check_key(key: bytes) -> None:
    if len(key) != KEY_SIZE:
        raise ValueError(f"Encryption key must be {KEY_SIZE} bytes, got {len(key)}")


def seal(plaintext: bytes, key: bytes) -> EncryptedBlob:
    """Encrypt and authenticate ``plaintext`` under ``key``."""
    _check_key(key)
    nonce = os.urandom(NONCE_SIZE)
    header = MAGIC + bytes([BLOB_VERSION])
    sealed = AESGCM(key).encrypt(nonce, plaintext, header)
    return EncryptedBlob(
        nonce=nonce,
        ciphertext=sealed[:-TAG_SIZE],
        tag=sealed[-TAG_SIZE:],
    )


def open_blob(blob: EncryptedBlob, key: bytes) -> bytes:
    """Verify and decrypt ``blob``.

    Raises:
        CryptoError: If the tag does not verify (tampered data or wrong key).
    """
    _check_key(key)
    try:
        return AESGCM(key).decrypt(blob.nonce, blob.ciphertext + blob.tag, blob.header)
    except InvalidTag as exc:
        raise CryptoError() from exc


def decode_key(value: str) -> bytes:
    """Decode an operator-supplied key given as 64 hex chars or URL-safe base64."""
    value = value.strip()
    if len(value) == KEY_SIZE * 2:
        try:
            return bytes.fromhex(value)
        except ValueError:
            pass
    try:
        key = base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Encryption key must be 64 hex characters or base64") from exc
    _check_key(key)
    return key


def generate_key() -> str:
    """Return a new random key encoded as hex."""
    return secrets.token_hex(KEY_SIZE)
