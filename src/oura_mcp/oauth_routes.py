"""Operator-facing OAuth endpoints: start authorization, handle the callback, report status."""

from __future__ import annotations

import html
import logging
from collections.abc import Callable

from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from starlette.routing import Route

from .errors import AuthError, OuraMCPError
from .lifecycle import TokenLifecycleManager
from .pkce import PKCEAuthorizationFlow

logger = logging.getLogger(__name__)

CALLBACK_MESSAGES = {
    "invalid_state": "This authorization link is unknown, expired or was already used.",
    "exchange_failed": "Oura did not complete the authorization.",
    "malformed_request": "The callback was missing required parameters.",
}

CALLBACK_STATUS = {
    "invalid_state": 400,
    "exchange_failed": 502,
    "malformed_request": 400,
}

_PAGE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Oura MCP Authorization</title>
    <style>
      body {{
        font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
        margin: 2rem auto;
        max-width: 720px;
        line-height: 1.6;
      }}
      code {{
        background: #f5f5f5;
        border-radius: 6px;
        padding: 0.2rem 0.4rem;
      }}
    </style>
  </head>
  <body>
    <h1>{title}</h1>
    {body}
  </body>
</html>
"""


def render_page(title: str, body: str) -> str:
    return _PAGE.format(title=html.escape(title), body=body)


def failure_page(kind: str, status_code: int | None = None) -> HTMLResponse:
    message = CALLBACK_MESSAGES.get(kind, "Authorization failed.")
    body = (
        f"<p>{html.escape(message)}</p>"
        f"<p>Error: <code>{html.escape(kind)}</code></p>"
        '<p><a href="/oauth/authorize">Start again</a></p>'
    )
    return HTMLResponse(
        render_page("Oura authorization failed", body),
        status_code=status_code or CALLBACK_STATUS.get(kind, 400),
    )


class OAuthEndpoints:
    """Starlette handlers over the PKCE flow and the token lifecycle."""

    def __init__(
        self,
        flow: PKCEAuthorizationFlow,
        lifecycle: TokenLifecycleManager,
        authenticate: Callable[[str | None], None],
    ) -> None:
        self.flow = flow
        self.lifecycle = lifecycle
        self._authenticate = authenticate

    def routes(self) -> list[Route]:
        return [
            Route("/oauth/authorize", self.authorize, methods=["GET"]),
            Route("/oauth/callback", self.callback, methods=["GET"]),
            Route("/oauth/status", self.status, methods=["GET"]),
        ]

    async def authorize(self, request: Request) -> Response:
        """Redirect the operator's browser to Oura's consent page."""
        _, url = await self.flow.begin()
        return RedirectResponse(url, status_code=302)

    async def callback(self, request: Request) -> Response:
        """Handle Oura's redirect and exchange the authorization code."""
        query = request.query_params
        state = query.get("state")
        code = query.get("code")
        error = query.get("error")

        if error:
            # Oura sends error=access_denied when the user declines
            logger.info("Oura authorization returned error=%r", error)
            if state:
                await self.flow.abandon(state)
            return failure_page("exchange_failed", status_code=400)

        if not state or not code:
            return failure_page("malformed_request")

        try:
            record = await self.flow.complete(state, code)
        except OuraMCPError as e:
            return failure_page(e.kind)

        body = (
            "<p>Your Oura account is connected. You can close this window.</p>"
            f"<p>Granted scope: <code>{html.escape(record.scope or 'unknown')}</code></p>"
            f"<p>Access expires at: <code>{html.escape(record.expires_at.isoformat())}</code></p>"
        )
        return HTMLResponse(render_page("Oura connected", body))

    async def status(self, request: Request) -> Response:
        try:
            self._authenticate(request.headers.get("authorization"))
        except AuthError as e:
            return JSONResponse(
                e.to_dict(), status_code=401, headers={"WWW-Authenticate": "Bearer"}
            )
        return JSONResponse(await self.lifecycle.status())
