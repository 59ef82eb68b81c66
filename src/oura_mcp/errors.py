"""Structured error kinds shared by the OAuth, token and transport layers."""

from __future__ import annotations

from typing import Literal

ErrorKind = Literal[
    "invalid_state",
    "exchange_failed",
    "not_authenticated",
    "crypto_failure",
    "unknown_session",
    "malformed_request",
    "unauthorized",
]


class OuraMCPError(Exception):
    """Base exception carrying a machine-readable kind and a human-readable message.

    Messages must never contain token material; they are surfaced to remote callers.
    """

    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class AuthError(OuraMCPError):
    """OAuth, token lifecycle and caller authentication failures."""


class CryptoError(OuraMCPError):
    """Authenticated decryption failed: tampered data or wrong key."""

    def __init__(self, message: str = "Token data failed integrity check (tampered or wrong key)"):
        super().__init__("crypto_failure", message)


class SessionError(OuraMCPError):
    """Submission to a streaming session that does not exist or is closed."""

    def __init__(self, message: str = "Unknown or closed session"):
        super().__init__("unknown_session", message)


class RequestError(OuraMCPError):
    """Malformed protocol envelope or invalid tool arguments."""

    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__("malformed_request", message)
        self.details = details or []

    def to_dict(self) -> dict[str, str]:
        data = super().to_dict()
        if self.details:
            data["details"] = "; ".join(self.details)
        return data


def not_authenticated(message: str | None = None) -> AuthError:
    """Build the error raised when no usable Oura token is available."""
    return AuthError(
        "not_authenticated",
        message
        or "Oura is not connected. Visit /oauth/authorize to authorize access to your Oura data.",
    )
