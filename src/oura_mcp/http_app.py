"""Starlette application exposing the OAuth endpoints and both MCP transports."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator

import anyio
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse
from starlette.routing import Route

from .context import AppContext
from .errors import AuthError, RequestError, SessionError
from .sessions import QueueSink

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/messages"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _unauthorized(error: AuthError) -> JSONResponse:
    return JSONResponse(error.to_dict(), status_code=401, headers={"WWW-Authenticate": "Bearer"})


def create_app(context: AppContext) -> Starlette:
    """Build the ASGI app; the context is initialised and torn down by the lifespan."""
    dispatcher = context.dispatcher

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        await context.init()
        try:
            yield
        finally:
            await context.teardown()

    async def health(request: Request) -> Response:
        return JSONResponse({"status": "ok"})

    async def sse(request: Request) -> Response:
        try:
            dispatcher.authenticate(request.headers.get("authorization"))
        except AuthError as e:
            return _unauthorized(e)

        sink = QueueSink()
        session = await dispatcher.open_stream(sink, MESSAGES_PATH)

        async def stream() -> AsyncIterator[str]:
            try:
                async for frame in sink.events():
                    yield frame
            finally:
                # the response scope is already cancelled on disconnect
                with anyio.CancelScope(shield=True):
                    await context.sessions.close(session.session_id, "disconnect")

        return StreamingResponse(stream(), media_type="text/event-stream", headers=SSE_HEADERS)

    async def messages(request: Request) -> Response:
        try:
            dispatcher.authenticate(request.headers.get("authorization"))
        except AuthError as e:
            return _unauthorized(e)

        session_id = request.query_params.get("sessionId")
        if not session_id:
            return JSONResponse(
                RequestError("Missing sessionId query parameter").to_dict(), status_code=400
            )

        body = await request.body()
        try:
            await dispatcher.submit(session_id, body)
        except SessionError as e:
            return JSONResponse(e.to_dict(), status_code=404)
        except RequestError as e:
            return JSONResponse(e.to_dict(), status_code=400)
        return JSONResponse({"status": "accepted"}, status_code=202)

    async def mcp(request: Request) -> Response:
        try:
            dispatcher.authenticate(request.headers.get("authorization"))
        except AuthError as e:
            return _unauthorized(e)

        response = await dispatcher.handle_stateless(await request.body())
        if response is None:
            return Response(status_code=202)
        return JSONResponse(response)

    routes = [
        Route("/health", health, methods=["GET"]),
        *context.oauth.routes(),
        Route("/sse", sse, methods=["GET"]),
        Route(MESSAGES_PATH, messages, methods=["POST"]),
        Route("/mcp", mcp, methods=["POST"]),
    ]

    middleware = []
    if context.config.cors_origins:
        middleware.append(
            Middleware(
                CORSMiddleware,
                allow_origins=context.config.cors_origins,
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["Authorization", "Content-Type"],
            )
        )

    app = Starlette(routes=routes, middleware=middleware, lifespan=lifespan)
    app.state.context = context
    return app
