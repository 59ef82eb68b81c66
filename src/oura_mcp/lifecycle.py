"""Token lifecycle: expose a valid Oura access token, refreshing when close to expiry."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from .errors import AuthError, not_authenticated
from .oauth_service import OAuthExchangeError
from .token_store import TokenRecord, TokenStore

logger = logging.getLogger(__name__)

REFRESH_BUFFER = timedelta(minutes=5)


class TokenGrantService(Protocol):
    """Upstream token endpoint operations used by the lifecycle manager."""

    async def exchange_code(self, code: str, code_verifier: str) -> TokenRecord: ...

    async def refresh(self, record: TokenRecord) -> TokenRecord: ...


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenLifecycleManager:
    """Decide when the stored token needs a refresh and perform it.

    Concurrent callers that find the token close to expiry share one refresh:
    the first caller starts a task in the ``_refresh_task`` slot, later callers
    await the same task through ``asyncio.shield`` so a cancelled caller (for
    example a closed session) never cancels the refresh other callers wait on.
    """

    def __init__(
        self,
        store: TokenStore,
        oauth_service: TokenGrantService,
        *,
        refresh_buffer: timedelta = REFRESH_BUFFER,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.oauth_service = oauth_service
        self.refresh_buffer = refresh_buffer
        self._clock = clock
        self._refresh_task: asyncio.Task[TokenRecord] | None = None

    async def get_valid_token(self) -> str:
        """Return a usable access token or raise ``AuthError('not_authenticated')``."""
        record = await self.store.load()
        if record is None:
            raise not_authenticated()
        if record.expires_at - self._clock() >= self.refresh_buffer:
            return record.access_token
        refreshed = await self._refresh_coalesced(record)
        return refreshed.access_token

    async def force_refresh(self, stale_access_token: str) -> str:
        """Refresh after the data API rejected ``stale_access_token``.

        If another caller already replaced that token, the current one is returned
        without contacting the token endpoint again.
        """
        record = await self.store.load()
        if record is None:
            raise not_authenticated()
        if record.access_token != stale_access_token:
            return record.access_token
        refreshed = await self._refresh_coalesced(record)
        return refreshed.access_token

    async def record_exchange(self, code: str, code_verifier: str) -> TokenRecord:
        """Exchange an authorization code for tokens and persist them."""
        try:
            record = await self.oauth_service.exchange_code(code, code_verifier)
        except OAuthExchangeError as exc:
            logger.warning("Authorization code exchange failed: %s", exc.message)
            raise AuthError(
                "exchange_failed", "Oura did not accept the authorization code."
            ) from exc
        await self.store.save(record)
        return record

    async def status(self) -> dict[str, Any]:
        """Connection status derived from the store, without token material."""
        record = await self.store.load()
        if record is None:
            return {"connected": False, "expires_at": None, "scope": None}
        return record.as_public_dict()

    @property
    def refresh_in_flight(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    async def _refresh_coalesced(self, record: TokenRecord) -> TokenRecord:
        task = self._refresh_task
        if task is None:
            task = asyncio.create_task(self._perform_refresh(record))
            task.add_done_callback(self._release_refresh_slot)
            self._refresh_task = task
        return await asyncio.shield(task)

    def _release_refresh_slot(self, task: asyncio.Task[TokenRecord]) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        if not task.cancelled():
            # Mark the outcome retrieved even if every waiter was cancelled.
            task.exception()

    async def _perform_refresh(self, record: TokenRecord) -> TokenRecord:
        logger.info("Refreshing Oura access token (expires_at=%s)", record.expires_at.isoformat())
        try:
            refreshed = await self.oauth_service.refresh(record)
        except OAuthExchangeError as exc:
            logger.warning(
                "Token refresh failed (%s), clearing stored tokens: %s",
                "upstream unavailable" if exc.transient else "rejected",
                exc.message,
            )
            await self.store.clear()
            raise not_authenticated(
                "Oura authorization has expired or could not be refreshed. "
                "Visit /oauth/authorize to reconnect."
            ) from exc

        await self.store.save(refreshed)
        logger.info("Refreshed Oura access token (expires_at=%s)", refreshed.expires_at.isoformat())
        return refreshed
