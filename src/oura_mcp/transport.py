"""JSON-RPC dispatch for the streaming and stateless MCP transports.

Both transports decode messages with the MCP SDK types and route requests
through the handlers registered on a low-level ``mcp`` protocol server,
which wraps the shared ``ToolExecutor``. The streaming transport answers on
the session's event stream; the stateless transport answers in the HTTP reply.
"""

from __future__ import annotations

import json
import logging
import secrets
from typing import Any, get_args

from mcp import types
from mcp.server.lowlevel import Server
from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS
from pydantic import BaseModel, ValidationError

from . import __version__
from .errors import AuthError, OuraMCPError, RequestError
from .sessions import EventSink, ProtocolSession, SessionManager
from .tools import ToolExecutor

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = -32001
EXCHANGE_FAILED = -32002
AUTHORIZE_PATH = "/oauth/authorize"

SERVER_INSTRUCTIONS = (
    "Read-only access to the connected Oura Ring account. "
    "If a tool reports not_authenticated, ask the operator to visit /oauth/authorize."
)


class EnvelopeError(RequestError):
    """The message is not a valid single JSON-RPC 2.0 message."""

    code = types.INVALID_REQUEST


class ParseError(EnvelopeError):
    code = types.PARSE_ERROR

    def __init__(self) -> None:
        super().__init__("Request body is not valid JSON")


class MethodNotFoundError(Exception):
    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Method not found: {method}")


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json", exclude_none=True)


def _details(exc: ValidationError) -> list[str]:
    return [f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()]


def error_response(request_id: types.RequestId | None, exc: Exception) -> dict[str, Any]:
    """Map an exception to a JSON-RPC error response."""
    if isinstance(exc, EnvelopeError):
        error = types.ErrorData(code=exc.code, message=exc.message, data=exc.to_dict())
    elif isinstance(exc, RequestError):
        error = types.ErrorData(code=types.INVALID_PARAMS, message=exc.message, data=exc.to_dict())
    elif isinstance(exc, MethodNotFoundError):
        error = types.ErrorData(code=types.METHOD_NOT_FOUND, message=str(exc))
    elif isinstance(exc, AuthError) and exc.kind == "not_authenticated":
        error = types.ErrorData(
            code=NOT_AUTHENTICATED,
            message=exc.message,
            data={**exc.to_dict(), "authorize_path": AUTHORIZE_PATH},
        )
    elif isinstance(exc, AuthError) and exc.kind == "exchange_failed":
        error = types.ErrorData(code=EXCHANGE_FAILED, message=exc.message, data=exc.to_dict())
    elif isinstance(exc, OuraMCPError):
        error = types.ErrorData(code=types.INTERNAL_ERROR, message=exc.message, data=exc.to_dict())
    else:
        error = types.ErrorData(code=types.INTERNAL_ERROR, message="Internal error")
    return {"jsonrpc": "2.0", "id": request_id, "error": _dump(error)}


def _method_name(request_type: type[BaseModel]) -> str:
    return get_args(request_type.model_fields["method"].annotation)[0]


def build_protocol_server(
    executor: ToolExecutor, server_name: str = "oura-mcp", version: str = __version__
) -> Server:
    """Register the tool catalogue and tool calls on an MCP protocol server.

    ``tools/call`` is registered on ``request_handlers`` directly rather than
    through ``@server.call_tool()``, so authorization and argument errors reach
    the caller as exceptions instead of ``isError`` results.
    """
    server = Server(server_name, version=version, instructions=SERVER_INSTRUCTIONS)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return executor.list_tools()

    async def call_tool(request: types.CallToolRequest) -> types.ServerResult:
        result = await executor.execute(request.params.name, request.params.arguments)
        return types.ServerResult(result)

    server.request_handlers[types.CallToolRequest] = call_tool
    return server


class TransportDispatcher:
    """Bearer check, message decoding and method routing."""

    def __init__(
        self,
        sessions: SessionManager,
        executor: ToolExecutor,
        bearer_token: str,
        server_name: str = "oura-mcp",
        version: str = __version__,
    ):
        self.sessions = sessions
        self.executor = executor
        self._bearer_token = bearer_token
        self.server = build_protocol_server(executor, server_name, version)
        self.init_options = self.server.create_initialization_options()
        self._methods = {"initialize", *map(_method_name, self.server.request_handlers)}

    def authenticate(self, authorization: str | None) -> None:
        """Check an ``Authorization`` header against the operator secret.

        Raises:
            AuthError: Header missing, malformed or wrong (kind ``unauthorized``).
        """
        scheme, _, credentials = (authorization or "").partition(" ")
        if scheme.lower() != "bearer" or not credentials:
            raise AuthError("unauthorized", "Missing bearer token")
        if not secrets.compare_digest(credentials.strip().encode(), self._bearer_token.encode()):
            raise AuthError("unauthorized", "Invalid bearer token")

    async def open_stream(
        self, sink: EventSink, endpoint_path: str = "/messages"
    ) -> ProtocolSession:
        """Open a session and announce where the client should POST messages."""
        session = await self.sessions.open(sink)
        await sink.send("endpoint", f"{endpoint_path}?sessionId={session.session_id}")
        return session

    async def submit(self, session_id: str, payload: bytes | str) -> None:
        """Accept one client message for a streaming session.

        Raises:
            SessionError: Unknown or closed session.
            RequestError: Malformed message or duplicate in-flight id.
        """
        self.sessions.get(session_id)
        message = self.decode(payload)

        if not isinstance(message, types.JSONRPCRequest):
            self.sessions.touch(session_id)
            if message is not None:
                logger.debug("Notification on session %s: %s", session_id, message.method)
            return

        if message.method == "tools/call":
            await self.sessions.dispatch(
                session_id, message.id, lambda: self.handle_request(message)
            )
        else:
            await self.sessions.send(session_id, await self.handle_request(message))

    async def handle_stateless(self, payload: bytes | str) -> dict[str, Any] | None:
        """Handle a stateless request; notifications and responses yield ``None``."""
        try:
            message = self.decode(payload)
        except EnvelopeError as e:
            return error_response(None, e)
        if isinstance(message, types.JSONRPCRequest):
            return await self.handle_request(message)
        return None

    def decode(
        self, payload: bytes | str
    ) -> types.JSONRPCRequest | types.JSONRPCNotification | None:
        """Parse a JSON-RPC message; client responses decode to ``None``."""
        try:
            data = json.loads(payload)
        except ValueError as exc:
            raise ParseError() from exc

        if isinstance(data, list):
            raise EnvelopeError("Batch requests are not supported")

        try:
            message = types.JSONRPCMessage.model_validate(data).root
        except ValidationError as exc:
            raise EnvelopeError("Invalid JSON-RPC message", _details(exc)) from exc

        if isinstance(message, types.JSONRPCRequest | types.JSONRPCNotification):
            return message
        return None

    async def handle_request(self, request: types.JSONRPCRequest) -> dict[str, Any]:
        """Execute a request and build its JSON-RPC response; never raises."""
        try:
            result = await self._dispatch(request)
        except (OuraMCPError, MethodNotFoundError) as e:
            logger.info("Request %s (%s) failed: %s", request.id, request.method, e)
            return error_response(request.id, e)
        except Exception as e:
            logger.exception("Unexpected error handling %s", request.method)
            return error_response(request.id, e)
        return {"jsonrpc": "2.0", "id": request.id, "result": _dump(result)}

    async def _dispatch(self, request: types.JSONRPCRequest) -> BaseModel:
        if request.method not in self._methods:
            raise MethodNotFoundError(request.method)
        try:
            client_request = types.ClientRequest.model_validate(_dump(request)).root
        except ValidationError as exc:
            raise RequestError(f"Invalid {request.method} parameters", _details(exc)) from exc

        if isinstance(client_request, types.InitializeRequest):
            return self._initialize(client_request.params)
        handler = self.server.request_handlers[type(client_request)]
        return await handler(client_request)

    def _initialize(self, params: types.InitializeRequestParams) -> types.InitializeResult:
        requested = params.protocolVersion
        if requested in SUPPORTED_PROTOCOL_VERSIONS:
            protocol_version = requested
        else:
            protocol_version = types.LATEST_PROTOCOL_VERSION
        logger.info("Initialize from %s (protocol %s)", params.clientInfo.name, protocol_version)
        options = self.init_options
        return types.InitializeResult(
            protocolVersion=protocol_version,
            capabilities=options.capabilities,
            serverInfo=types.Implementation(
                name=options.server_name, version=options.server_version
            ),
            instructions=options.instructions,
        )
