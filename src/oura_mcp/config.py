"""Process configuration loaded from environment variables and ``.env``."""

from __future__ import annotations

from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .crypto import decode_key

DEFAULT_OURA_SCOPES = [
    "email",
    "personal",
    "daily",
    "heartrate",
    "workout",
    "tag",
    "session",
    "spo2",
]

_PLACEHOLDERS = {"", "your_client_id_here", "your_client_secret_here", "change_me"}


class OuraAppConfig(BaseSettings):
    """Oura API and MCP server configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    oura_client_id: str = ""
    oura_client_secret: str = ""
    oura_redirect_uri: str = ""
    oura_oauth_scopes: str | None = None
    mcp_bearer_token: str = ""
    token_encryption_key: str = ""
    token_file_path: Path = Path("./data/oura_tokens.enc")
    oura_mcp_host: str = "127.0.0.1"
    oura_mcp_port: int = 8000
    session_idle_timeout_seconds: float = 1800.0
    session_heartbeat_seconds: float = 15.0
    cors_allowed_origins: str | None = None
    log_level: str = "INFO"

    @model_validator(mode="after")
    def validate_required(self) -> OuraAppConfig:
        """Fail fast when a required value is absent or left as a placeholder."""
        required = {
            "OURA_CLIENT_ID": self.oura_client_id,
            "OURA_CLIENT_SECRET": self.oura_client_secret,
            "OURA_REDIRECT_URI": self.oura_redirect_uri,
            "MCP_BEARER_TOKEN": self.mcp_bearer_token,
            "TOKEN_ENCRYPTION_KEY": self.token_encryption_key,
        }
        for name, value in required.items():
            if value.strip() in _PLACEHOLDERS:
                raise ValueError(
                    f"{name} is not configured. Set it in your environment or run 'oura-mcp-setup'."
                )
        try:
            decode_key(self.token_encryption_key)
        except ValueError as exc:
            raise ValueError(f"TOKEN_ENCRYPTION_KEY is invalid: {exc}") from exc
        return self

    @property
    def encryption_key(self) -> bytes:
        return decode_key(self.token_encryption_key)

    @property
    def scopes(self) -> list[str]:
        """Scopes requested from Oura, space or comma separated in the environment."""
        if self.oura_oauth_scopes:
            raw = self.oura_oauth_scopes.replace(",", " ")
            scopes = [scope.strip() for scope in raw.split() if scope.strip()]
            return scopes or DEFAULT_OURA_SCOPES
        return DEFAULT_OURA_SCOPES

    @property
    def cors_origins(self) -> list[str]:
        if not self.cors_allowed_origins:
            return []
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]
