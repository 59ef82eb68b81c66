"""Tests for the Oura token endpoint client."""

from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs

import httpx
import pytest
from httpx import Response

from oura_mcp.oauth_service import OAuthExchangeError, OuraOAuthService
from tests.fixtures.oura_fixtures import TOKEN_RESPONSE
from tests.helpers import make_record


@pytest.fixture
def oauth_service():
    return OuraOAuthService(
        client_id="test_client_id",
        client_secret="test_client_secret",
        redirect_uri="http://localhost:8000/oauth/callback",
        scopes=["email", "personal", "daily"],
    )


def form_of(route) -> dict[str, str]:
    body = route.calls.last.request.content.decode()
    return {k: v[0] for k, v in parse_qs(body).items()}


class TestExchangeCode:
    """Test authorization code exchange."""

    async def test_successful_exchange(self, oauth_service, token_endpoint):
        token_endpoint.mock(return_value=Response(200, json=TOKEN_RESPONSE))

        record = await oauth_service.exchange_code("auth-code", "the-verifier")

        assert record.access_token == "oura-access-token"
        assert record.refresh_token == "oura-refresh-token"
        assert record.scope == TOKEN_RESPONSE["scope"]
        remaining = record.expires_at - datetime.now(UTC)
        assert timedelta(hours=23) < remaining <= timedelta(hours=24)

    async def test_request_form(self, oauth_service, token_endpoint):
        token_endpoint.mock(return_value=Response(200, json=TOKEN_RESPONSE))

        await oauth_service.exchange_code("auth-code", "the-verifier")

        form = form_of(token_endpoint)
        assert form["grant_type"] == "authorization_code"
        assert form["code"] == "auth-code"
        assert form["code_verifier"] == "the-verifier"
        assert form["redirect_uri"] == "http://localhost:8000/oauth/callback"
        assert form["client_id"] == "test_client_id"

    async def test_rejection_is_not_transient(self, oauth_service, token_endpoint):
        token_endpoint.mock(
            return_value=Response(
                400, json={"error": "invalid_grant", "detail": "test_client_secret leaked"}
            )
        )

        with pytest.raises(OAuthExchangeError) as exc_info:
            await oauth_service.exchange_code("auth-code", "the-verifier")

        assert exc_info.value.transient is False
        assert exc_info.value.status_code == 400
        assert "leaked" not in exc_info.value.message

    async def test_server_error_is_transient(self, oauth_service, token_endpoint):
        token_endpoint.mock(return_value=Response(503))

        with pytest.raises(OAuthExchangeError) as exc_info:
            await oauth_service.exchange_code("auth-code", "the-verifier")
        assert exc_info.value.transient is True

    async def test_network_error_is_transient(self, oauth_service, token_endpoint):
        token_endpoint.mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(OAuthExchangeError) as exc_info:
            await oauth_service.exchange_code("auth-code", "the-verifier")
        assert exc_info.value.transient is True

    async def test_unreadable_response(self, oauth_service, token_endpoint):
        token_endpoint.mock(return_value=Response(200, text="<html>oops</html>"))

        with pytest.raises(OAuthExchangeError) as exc_info:
            await oauth_service.exchange_code("auth-code", "the-verifier")
        assert exc_info.value.transient is False


class TestRefresh:
    """Test refresh grants."""

    async def test_refresh_request(self, oauth_service, token_endpoint):
        token_endpoint.mock(return_value=Response(200, json=TOKEN_RESPONSE))

        await oauth_service.refresh(make_record())

        form = form_of(token_endpoint)
        assert form["grant_type"] == "refresh_token"
        assert form["refresh_token"] == "stored-refresh-token"

    async def test_missing_refresh_token_keeps_previous(self, oauth_service, token_endpoint):
        body = {k: v for k, v in TOKEN_RESPONSE.items() if k not in ("refresh_token", "scope")}
        token_endpoint.mock(return_value=Response(200, json=body))

        previous = make_record(scope="email daily")
        record = await oauth_service.refresh(previous)

        assert record.access_token == "oura-access-token"
        assert record.refresh_token == "stored-refresh-token"
        assert record.scope == "email daily"

    async def test_rotated_refresh_token_is_used(self, oauth_service, token_endpoint):
        token_endpoint.mock(return_value=Response(200, json=TOKEN_RESPONSE))
        record = await oauth_service.refresh(make_record())
        assert record.refresh_token == "oura-refresh-token"


class TestAuthorizationUrl:
    """Test authorization URL construction."""

    def test_requires_redirect_uri(self):
        with pytest.raises(ValueError):
            OuraOAuthService("id", "secret", "", ["email"])

    def test_from_config(self, app_config):
        service = OuraOAuthService.from_config(app_config)
        assert service.client_id == "test_client_id"
        assert service.scopes == app_config.scopes
