"""OAuth2 authorization code flow with PKCE (RFC 7636, S256) against Oura."""

from __future__ import annotations

import asyncio
import base64
import contextlib
import hashlib
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from .errors import AuthError
from .lifecycle import TokenLifecycleManager
from .oauth_service import OuraOAuthService
from .token_store import TokenRecord

logger = logging.getLogger(__name__)

ATTEMPT_TTL = timedelta(minutes=10)
PURGE_INTERVAL_SECONDS = 60.0


def generate_code_verifier() -> str:
    """High-entropy verifier: 64 random bytes, 86 URL-safe characters."""
    return secrets.token_urlsafe(64)


def derive_code_challenge(code_verifier: str) -> str:
    """BASE64URL(SHA256(verifier)) without padding."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


@dataclass
class AuthorizationAttempt:
    """One pending authorization, keyed by its state value and consumed once."""

    state: str
    code_verifier: str
    code_challenge: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PKCEAuthorizationFlow:
    """Issue authorization attempts and complete them exactly once."""

    def __init__(
        self,
        oauth_service: OuraOAuthService,
        lifecycle: TokenLifecycleManager,
        *,
        ttl: timedelta = ATTEMPT_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.oauth_service = oauth_service
        self.lifecycle = lifecycle
        self.ttl = ttl
        self._clock = clock
        self._lock = asyncio.Lock()
        self._attempts: dict[str, AuthorizationAttempt] = {}
        self._purger: asyncio.Task[None] | None = None

    async def begin(self) -> tuple[str, str]:
        """Create an attempt and return ``(state, authorization_url)``."""
        verifier = generate_code_verifier()
        now = self._clock()
        attempt = AuthorizationAttempt(
            state=secrets.token_urlsafe(32),
            code_verifier=verifier,
            code_challenge=derive_code_challenge(verifier),
            created_at=now,
            expires_at=now + self.ttl,
        )
        async with self._lock:
            self._attempts[attempt.state] = attempt
        logger.info("Started Oura authorization attempt (expires_at=%s)", attempt.expires_at)
        url = self.oauth_service.build_authorization_url(attempt.state, attempt.code_challenge)
        return attempt.state, url

    async def complete(self, state: str, code: str) -> TokenRecord:
        """Verify ``state`` and exchange ``code`` with the attempt's verifier.

        The attempt is removed before the exchange, so a replayed state or a
        second try with the same code fails with ``invalid_state``.
        """
        attempt = await self._consume(state)
        if attempt is None:
            logger.warning("Rejected authorization callback with unknown or expired state")
            raise AuthError(
                "invalid_state",
                "Authorization request is unknown, expired or already used. Start again.",
            )
        record = await self.lifecycle.record_exchange(code, attempt.code_verifier)
        logger.info("Completed Oura authorization (scope=%r)", record.scope)
        return record

    async def abandon(self, state: str) -> bool:
        """Consume an attempt without exchanging, e.g. after the user denied access."""
        return await self._consume(state) is not None

    async def purge_expired(self) -> int:
        now = self._clock()
        async with self._lock:
            expired = [s for s, a in self._attempts.items() if a.is_expired(now)]
            for state in expired:
                del self._attempts[state]
        if expired:
            logger.debug("Purged %d expired authorization attempts", len(expired))
        return len(expired)

    @property
    def pending_count(self) -> int:
        return len(self._attempts)

    def start(self, interval: float = PURGE_INTERVAL_SECONDS) -> None:
        if self._purger is None:
            self._purger = asyncio.create_task(self._purge_loop(interval))

    async def stop(self) -> None:
        if self._purger is not None:
            self._purger.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._purger
            self._purger = None
        async with self._lock:
            self._attempts.clear()

    async def _consume(self, state: str) -> AuthorizationAttempt | None:
        async with self._lock:
            attempt = self._attempts.pop(state, None)
        if attempt is None or attempt.is_expired(self._clock()):
            return None
        return attempt

    async def _purge_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            await self.purge_expired()
