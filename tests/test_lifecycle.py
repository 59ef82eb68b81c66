"""Tests for token lifecycle management and refresh coalescing."""

import asyncio
from datetime import timedelta

import pytest
from httpx import Response

from oura_mcp.errors import AuthError
from oura_mcp.lifecycle import TokenLifecycleManager
from oura_mcp.oauth_service import OAuthExchangeError, OuraOAuthService
from tests.helpers import make_record
from tests.stubs.fake_oauth import FakeGrantService


class TestGetValidToken:
    """Test get_valid_token."""

    async def test_not_authenticated_without_record(self, lifecycle, grant_service):
        with pytest.raises(AuthError) as exc_info:
            await lifecycle.get_valid_token()

        assert exc_info.value.kind == "not_authenticated"
        assert "/oauth/authorize" in exc_info.value.message
        assert grant_service.refresh_calls == 0

    async def test_fresh_token_returned_without_refresh(self, store, lifecycle, grant_service):
        await store.save(make_record(expires_in=timedelta(hours=1)))

        assert await lifecycle.get_valid_token() == "stored-access-token"
        assert grant_service.refresh_calls == 0

    async def test_token_inside_buffer_is_refreshed(self, store, lifecycle, grant_service):
        await store.save(make_record(expires_in=timedelta(minutes=2)))

        token = await lifecycle.get_valid_token()

        assert token == "refreshed-1"
        assert grant_service.refresh_calls == 1
        saved = await store.load()
        assert saved.access_token == "refreshed-1"
        assert saved.refresh_token == "stored-refresh-token"

    async def test_expired_token_is_refreshed(self, store, lifecycle, grant_service):
        await store.save(make_record(expires_in=timedelta(minutes=-30)))
        assert await lifecycle.get_valid_token() == "refreshed-1"


class TestRefreshCoalescing:
    """Test that concurrent callers share one refresh."""

    async def test_concurrent_callers_share_one_refresh(self, store):
        gate = asyncio.Event()
        service = FakeGrantService(gate=gate)
        lifecycle = TokenLifecycleManager(store, service)
        await store.save(make_record(expires_in=timedelta(seconds=10)))

        callers = [asyncio.create_task(lifecycle.get_valid_token()) for _ in range(10)]
        await asyncio.sleep(0)
        assert lifecycle.refresh_in_flight

        gate.set()
        tokens = await asyncio.gather(*callers)

        assert service.refresh_calls == 1
        assert set(tokens) == {"refreshed-1"}
        assert not lifecycle.refresh_in_flight

    async def test_cancelled_caller_does_not_cancel_refresh(self, store):
        gate = asyncio.Event()
        service = FakeGrantService(gate=gate)
        lifecycle = TokenLifecycleManager(store, service)
        await store.save(make_record(expires_in=timedelta(seconds=10)))

        first = asyncio.create_task(lifecycle.get_valid_token())
        second = asyncio.create_task(lifecycle.get_valid_token())
        await asyncio.sleep(0)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        gate.set()
        assert await second == "refreshed-1"
        assert service.refresh_calls == 1

    async def test_slot_released_after_failure(self, store):
        service = FakeGrantService(error=OAuthExchangeError("down", 503, transient=True))
        lifecycle = TokenLifecycleManager(store, service)
        await store.save(make_record(expires_in=timedelta(seconds=10)))

        with pytest.raises(AuthError):
            await lifecycle.get_valid_token()
        assert not lifecycle.refresh_in_flight

        service.error = None
        await store.save(make_record(expires_in=timedelta(seconds=10)))
        assert await lifecycle.get_valid_token() == "refreshed-2"
        assert service.refresh_calls == 2


class TestRefreshFailures:
    """Test refresh failure handling."""

    async def test_rejected_refresh_clears_store(self, store, token_path):
        service = FakeGrantService(error=OAuthExchangeError("invalid_grant", 400))
        lifecycle = TokenLifecycleManager(store, service)
        await store.save(make_record(expires_in=timedelta(seconds=10)))

        with pytest.raises(AuthError) as exc_info:
            await lifecycle.get_valid_token()

        assert exc_info.value.kind == "not_authenticated"
        assert await store.load() is None
        assert not token_path.exists()

    @pytest.mark.parametrize(
        "error",
        [
            OAuthExchangeError("unavailable", 503, transient=True),
            OAuthExchangeError("timeout", transient=True),
        ],
    )
    async def test_unavailable_token_endpoint_clears_store(self, store, token_path, error):
        lifecycle = TokenLifecycleManager(store, FakeGrantService(error=error))
        await store.save(make_record(expires_in=timedelta(seconds=10)))

        with pytest.raises(AuthError) as exc_info:
            await lifecycle.get_valid_token()

        assert exc_info.value.kind == "not_authenticated"
        assert await store.load() is None
        assert not token_path.exists()

    async def test_server_error_from_token_endpoint_clears_store(self, store, token_endpoint):
        token_endpoint.mock(return_value=Response(503, text="maintenance"))
        lifecycle = TokenLifecycleManager(
            store,
            OuraOAuthService(
                client_id="test_client_id",
                client_secret="test_client_secret",
                redirect_uri="http://localhost:8000/oauth/callback",
                scopes=["daily"],
            ),
        )
        await store.save(make_record(expires_in=timedelta(minutes=2)))

        with pytest.raises(AuthError) as exc_info:
            await lifecycle.get_valid_token()

        assert exc_info.value.kind == "not_authenticated"
        assert token_endpoint.call_count == 1
        assert await store.load() is None

    async def test_error_messages_never_contain_tokens(self, store):
        service = FakeGrantService(error=OAuthExchangeError("rejected", 401))
        lifecycle = TokenLifecycleManager(store, service)
        await store.save(make_record(expires_in=timedelta(seconds=10)))

        with pytest.raises(AuthError) as exc_info:
            await lifecycle.get_valid_token()

        assert "stored-access-token" not in exc_info.value.message
        assert "stored-refresh-token" not in exc_info.value.message


class TestForceRefresh:
    """Test refresh after a 401 from the data API."""

    async def test_force_refresh_of_current_token(self, store, lifecycle, grant_service):
        await store.save(make_record())

        assert await lifecycle.force_refresh("stored-access-token") == "refreshed-1"
        assert grant_service.refresh_calls == 1

    async def test_already_replaced_token_is_not_refreshed_again(
        self, store, lifecycle, grant_service
    ):
        await store.save(make_record(access_token="newer-token"))

        assert await lifecycle.force_refresh("stale-token") == "newer-token"
        assert grant_service.refresh_calls == 0

    async def test_force_refresh_without_record(self, lifecycle):
        with pytest.raises(AuthError) as exc_info:
            await lifecycle.force_refresh("anything")
        assert exc_info.value.kind == "not_authenticated"


class TestRecordExchange:
    """Test code exchange persistence and status reporting."""

    async def test_exchange_saves_record(self, store, lifecycle):
        record = await lifecycle.record_exchange("code-1", "verifier-1")

        assert record.access_token == "access-for-code-1"
        assert (await store.load()).access_token == "access-for-code-1"

    async def test_exchange_failure_maps_to_exchange_failed(self, store):
        service = FakeGrantService(error=OAuthExchangeError("bad code", 400))
        lifecycle = TokenLifecycleManager(store, service)

        with pytest.raises(AuthError) as exc_info:
            await lifecycle.record_exchange("code-1", "verifier-1")

        assert exc_info.value.kind == "exchange_failed"
        assert await store.load() is None

    async def test_status_disconnected(self, lifecycle):
        assert await lifecycle.status() == {
            "connected": False,
            "expires_at": None,
            "scope": None,
        }

    async def test_status_connected_has_no_tokens(self, store, lifecycle):
        await store.save(make_record())
        status = await lifecycle.status()

        assert status["connected"] is True
        assert status["scope"].startswith("email")
        assert "stored-access-token" not in str(status)
