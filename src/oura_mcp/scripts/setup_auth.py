"""Local configuration wizard for the Oura MCP server."""

from __future__ import annotations

import secrets
import shutil
from collections.abc import Iterable
from getpass import getpass
from pathlib import Path

from dotenv import dotenv_values, set_key

from ..config import DEFAULT_OURA_SCOPES
from ..crypto import decode_key, generate_key

DEFAULT_REDIRECT_URI = "http://localhost:8000/oauth/callback"


def main() -> None:
    """Run the interactive setup wizard for local Oura MCP configuration."""
    print("=" * 60)
    print("Oura MCP - Local Setup Wizard")
    print("=" * 60)
    print()
    print("This wizard writes the server's settings to .env.")
    print("It will copy .env.example to .env (if needed) and update the relevant settings.")
    print()

    env_path = _ensure_env_file()
    existing = dotenv_values(str(env_path)) if env_path.exists() else {}

    print("Step 1: Oura API application")
    print("-" * 60)
    print("Visit https://cloud.ouraring.com/oauth/applications and create an application.")
    print("Add the redirect URI below to the application's allowed redirect URIs.")
    print()

    client_id = _prompt_required("Oura Client ID", existing.get("OURA_CLIENT_ID"))
    client_secret = _prompt_secret("Oura Client Secret", existing.get("OURA_CLIENT_SECRET"))
    redirect_uri = _prompt_required(
        "Redirect URI (OURA_REDIRECT_URI)",
        existing.get("OURA_REDIRECT_URI") or DEFAULT_REDIRECT_URI,
    )
    scopes = _prompt_optional(
        "OAuth scopes (OURA_OAUTH_SCOPES)",
        existing.get("OURA_OAUTH_SCOPES") or " ".join(DEFAULT_OURA_SCOPES),
    )

    print()
    print("Step 2: Server settings")
    print("-" * 60)

    host = _prompt_optional(
        "Server host (OURA_MCP_HOST)", existing.get("OURA_MCP_HOST") or "127.0.0.1"
    )
    port = _prompt_optional("Server port (OURA_MCP_PORT)", existing.get("OURA_MCP_PORT") or "8000")
    token_path = _prompt_optional(
        "Encrypted token file (TOKEN_FILE_PATH)",
        existing.get("TOKEN_FILE_PATH") or "./data/oura_tokens.enc",
    )

    bearer_token = existing.get("MCP_BEARER_TOKEN") or secrets.token_urlsafe(32)
    encryption_key = _existing_key(existing.get("TOKEN_ENCRYPTION_KEY")) or generate_key()

    _set_keys(
        env_path,
        (
            ("OURA_CLIENT_ID", client_id),
            ("OURA_CLIENT_SECRET", client_secret),
            ("OURA_REDIRECT_URI", redirect_uri),
            ("OURA_OAUTH_SCOPES", scopes),
            ("OURA_MCP_HOST", host),
            ("OURA_MCP_PORT", port),
            ("TOKEN_FILE_PATH", token_path),
            ("MCP_BEARER_TOKEN", bearer_token),
            ("TOKEN_ENCRYPTION_KEY", encryption_key),
        ),
    )

    print()
    print("=" * 60)
    print("Configuration complete!")
    print("=" * 60)
    print("MCP clients must send this header:")
    print(f"  Authorization: Bearer {bearer_token}")
    print()
    print("Keep TOKEN_ENCRYPTION_KEY safe: changing it makes the stored token unreadable.")
    print("Start the server with 'oura-mcp', then open /oauth/authorize in your browser.")


def _existing_key(value: str | None) -> str | None:
    """Keep a previously configured encryption key only if it is valid."""
    if not value:
        return None
    try:
        decode_key(value)
    except ValueError:
        print("Existing TOKEN_ENCRYPTION_KEY is invalid; generating a new one.")
        return None
    return value


def _prompt_required(prompt_text: str, default: str | None = None) -> str:
    """Prompt for a required value, offering a default if provided."""
    while True:
        prompt = f"{prompt_text}"
        if default:
            prompt += f" [{default}]"
        prompt += ": "
        value = input(prompt).strip()
        if value:
            return value
        if default:
            return default
        print("This value is required.")


def _prompt_secret(prompt_text: str, default: str | None = None) -> str:
    """Prompt for sensitive input (client secret)."""
    while True:
        prompt = f"{prompt_text}"
        if default:
            prompt += " [press Enter to keep existing]"
        prompt += ": "
        value = getpass(prompt).strip()
        if value:
            return value
        if default:
            return default
        print("This value is required.")


def _prompt_optional(prompt_text: str, default: str | None = None) -> str | None:
    """Prompt for an optional value, returning None if left blank with no default."""
    prompt = f"{prompt_text}"
    if default:
        prompt += f" [{default}]"
    prompt += ": "
    value = input(prompt).strip()
    if value:
        return value
    return default


def _ensure_env_file() -> Path:
    """Ensure .env exists, copying from .env.example if available."""
    env_path = Path.cwd() / ".env"
    example_path = Path.cwd() / ".env.example"
    if env_path.exists():
        return env_path

    if example_path.exists():
        shutil.copy(example_path, env_path)
        print(f"Created {env_path.name} from {example_path.name}")
    else:
        env_path.touch()
        print(f"Created empty {env_path.name} (no .env.example found)")
    return env_path


def _set_keys(env_path: Path, pairs: Iterable[tuple[str, str | None]]) -> None:
    """Persist non-empty key/value pairs to the .env file."""
    for key, value in pairs:
        if value is None:
            continue
        set_key(str(env_path), key, value)


if __name__ == "__main__":
    main()
