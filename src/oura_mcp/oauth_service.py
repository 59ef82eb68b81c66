"""Upstream Oura OAuth2 endpoints: authorization URL and token grants."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from urllib.parse import urlencode

import httpx
from mcp.shared.auth import OAuthToken
from pydantic import ValidationError

from .config import OuraAppConfig
from .token_store import TokenRecord

logger = logging.getLogger(__name__)

# Oura issues 24h access tokens; used only when expires_in is missing.
DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)


class OAuthExchangeError(Exception):
    """Token endpoint rejected a grant or could not be reached.

    ``transient`` is True for network failures and 5xx responses.
    """

    def __init__(self, message: str, status_code: int | None = None, transient: bool = False):
        self.message = message
        self.status_code = status_code
        self.transient = transient
        super().__init__(self.message)


class OuraOAuthService:
    """Handle Oura OAuth authorization URLs, code exchanges and token refreshes."""

    AUTH_URL = "https://cloud.ouraring.com/oauth/authorize"
    TOKEN_URL = "https://api.ouraring.com/oauth/token"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: Sequence[str],
        timeout: float = 30.0,
    ) -> None:
        if not redirect_uri:
            raise ValueError("A redirect URI is required for OAuth callbacks.")
        self.client_id = client_id
        self._client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = list(scopes)
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: OuraAppConfig) -> OuraOAuthService:
        return cls(
            client_id=config.oura_client_id,
            client_secret=config.oura_client_secret,
            redirect_uri=config.oura_redirect_uri,
            scopes=config.scopes,
        )

    def build_authorization_url(self, state: str, code_challenge: str) -> str:
        """Generate the Oura authorization URL for the given state and PKCE challenge."""
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(self.scopes),
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        return f"{self.AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str, code_verifier: str) -> TokenRecord:
        """Exchange an authorization code plus its PKCE verifier for tokens."""
        return await self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "code_verifier": code_verifier,
                "redirect_uri": self.redirect_uri,
            },
            previous=None,
        )

    async def refresh(self, record: TokenRecord) -> TokenRecord:
        """Use the stored refresh token to obtain a new access token."""
        return await self._token_request(
            {
                "grant_type": "refresh_token",
                "refresh_token": record.refresh_token,
            },
            previous=record,
        )

    async def _token_request(
        self, data: dict[str, str], previous: TokenRecord | None
    ) -> TokenRecord:
        grant_type = data["grant_type"]
        form = {
            **data,
            "client_id": self.client_id,
            "client_secret": self._client_secret,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self.TOKEN_URL,
                    data=form,
                    headers={"Accept": "application/json"},
                )
        except httpx.RequestError as exc:
            raise OAuthExchangeError(
                f"Network error contacting Oura token endpoint: {type(exc).__name__}",
                transient=True,
            ) from exc

        if response.status_code >= 500:
            raise OAuthExchangeError(
                f"Oura token endpoint unavailable (HTTP {response.status_code})",
                status_code=response.status_code,
                transient=True,
            )
        if response.status_code != 200:
            # The upstream body may echo credentials; only the status is kept.
            raise OAuthExchangeError(
                f"Oura rejected the {grant_type} grant (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            token = OAuthToken.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise OAuthExchangeError(
                f"Oura returned an unreadable {grant_type} response",
                status_code=response.status_code,
            ) from exc

        refresh_token = token.refresh_token or (previous.refresh_token if previous else None)
        if not refresh_token:
            raise OAuthExchangeError(
                f"Oura {grant_type} response did not include a refresh token",
                status_code=response.status_code,
            )

        lifetime = (
            timedelta(seconds=token.expires_in) if token.expires_in else DEFAULT_TOKEN_LIFETIME
        )
        scope = token.scope if token.scope is not None else (previous.scope if previous else "")
        record = TokenRecord(
            access_token=token.access_token,
            refresh_token=refresh_token,
            scope=scope,
            expires_at=datetime.now(UTC) + lifetime,
            token_type=token.token_type,
        )
        logger.info(
            "Completed %s grant (scope=%r, expires_at=%s)",
            grant_type,
            record.scope,
            record.expires_at.isoformat(),
        )
        return record
