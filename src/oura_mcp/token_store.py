"""Encrypted single-file storage for the operator's Oura token record."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from .crypto import BlobFormatError, EncryptedBlob, open_blob, seal
from .errors import CryptoError

logger = logging.getLogger(__name__)


class TokenRecord(BaseModel):
    """Oura OAuth tokens. The only copy lives in the TokenStore."""

    access_token: str
    refresh_token: str
    scope: str = ""
    expires_at: datetime
    token_type: str = "Bearer"

    def __repr__(self) -> str:
        return f"TokenRecord(scope={self.scope!r}, expires_at={self.expires_at.isoformat()!r})"

    __str__ = __repr__

    @property
    def scopes(self) -> list[str]:
        return self.scope.split()

    def seconds_until_expiry(self, now: datetime | None = None) -> float:
        now = now or datetime.now(UTC)
        return (self.expires_at - now).total_seconds()

    def as_public_dict(self) -> dict[str, Any]:
        """Return a redacted view suitable for logging or status endpoints."""
        return {
            "connected": True,
            "expires_at": self.expires_at.isoformat(),
            "scope": self.scope,
        }


class TokenStore:
    """Load/save one sealed TokenRecord with an in-memory mirror.

    Any failure to read the file (missing, corrupt, unknown version, wrong key)
    yields ``None`` so the server behaves as unauthenticated. Writes go to a
    temporary file in the same directory and are renamed into place.
    """

    def __init__(self, path: Path | str, key: bytes) -> None:
        self.path = Path(path)
        self._key = key
        self._lock = asyncio.Lock()
        self._record: TokenRecord | None = None
        self._loaded = False

    async def load(self) -> TokenRecord | None:
        if self._loaded:
            return self._record
        async with self._lock:
            # a save or clear may have finished while we waited
            if not self._loaded:
                self._record = await asyncio.to_thread(self._read)
                self._loaded = True
            return self._record

    async def save(self, record: TokenRecord) -> None:
        payload = record.model_dump_json().encode("utf-8")
        blob = seal(payload, self._key)
        async with self._lock:
            await asyncio.to_thread(self._write_atomic, blob.to_bytes())
            self._record = record
            self._loaded = True
        logger.info("Saved Oura token record (expires_at=%s)", record.expires_at.isoformat())

    async def clear(self) -> None:
        async with self._lock:
            await asyncio.to_thread(self.path.unlink, missing_ok=True)
            self._record = None
            self._loaded = True
        logger.info("Cleared Oura token record")

    def _read(self) -> TokenRecord | None:
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Could not read token file %s: %s", self.path, exc.strerror)
            return None

        try:
            blob = EncryptedBlob.from_bytes(data)
            plaintext = open_blob(blob, self._key)
        except BlobFormatError as exc:
            logger.warning("Ignoring token file %s: %s", self.path, exc)
            return None
        except CryptoError:
            logger.warning(
                "Token file %s failed decryption (crypto_failure: tampered or wrong key); "
                "treating as not authenticated",
                self.path,
            )
            return None

        try:
            return TokenRecord.model_validate_json(plaintext)
        except ValidationError:
            logger.warning("Token file %s decrypted but contains an invalid record", self.path)
            return None

    def _write_atomic(self, data: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
