"""Tool catalogue and the shared tool-execution boundary.

Both the streaming and the stateless transports call ``ToolExecutor.execute``.
Arguments are validated before any token lookup or network call; tools that
read Oura data get a valid token from the lifecycle manager first, so an
unauthenticated server fails with ``not_authenticated`` rather than a generic
upstream error.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from mcp import types
from pydantic import BaseModel, ValidationError

from ..cache import TTLCache
from ..client import OuraAPIError, OuraClient, RateLimitError, TokenSource
from ..errors import RequestError
from ..lifecycle import TokenLifecycleManager
from ..response_builder import ResponseBuilder

logger = logging.getLogger(__name__)

ToolHandler = Callable[["ToolContext", Any], Awaitable[str]]
ClientFactory = Callable[[TokenSource], OuraClient]


@dataclass
class ToolSpec:
    """One MCP tool: name, description, argument model and handler."""

    name: str
    description: str
    arguments: type[BaseModel]
    handler: ToolHandler
    requires_auth: bool = True
    annotations: dict[str, bool] = field(
        default_factory=lambda: {"readOnlyHint": True, "openWorldHint": False}
    )

    def to_mcp_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.arguments.model_json_schema(),
            annotations=types.ToolAnnotations(**self.annotations),
        )


@dataclass
class ToolContext:
    """Per-call dependencies handed to tool handlers."""

    client: OuraClient | None
    cache: TTLCache
    lifecycle: TokenLifecycleManager

    @property
    def oura(self) -> OuraClient:
        if self.client is None:
            raise RuntimeError("This tool was registered without Oura API access.")
        return self.client

    async def cached(
        self, key: str, produce: Callable[[], Awaitable[str]], ttl: float | None = None
    ) -> str:
        """Return the cached response for ``key`` or produce and cache it."""
        hit = self.cache.get(key)
        if hit is not None:
            return hit
        value = await produce()
        self.cache.set(key, value, ttl)
        return value


class ToolExecutor:
    """Validate, authorize and run tool calls."""

    def __init__(
        self,
        tools: Sequence[ToolSpec],
        lifecycle: TokenLifecycleManager,
        cache: TTLCache | None = None,
        client_factory: ClientFactory = OuraClient,
    ) -> None:
        self._tools = {tool.name: tool for tool in tools}
        self.lifecycle = lifecycle
        self.cache = cache or TTLCache()
        self._client_factory = client_factory

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def list_tools(self) -> list[types.Tool]:
        return [tool.to_mcp_tool() for tool in self._tools.values()]

    def validate(self, name: str, arguments: dict[str, Any] | None) -> tuple[ToolSpec, BaseModel]:
        """Resolve the tool and parse its arguments.

        Raises:
            RequestError: Unknown tool or invalid arguments.
        """
        spec = self._tools.get(name)
        if spec is None:
            raise RequestError(f"Unknown tool: {name}")
        try:
            args = spec.arguments.model_validate(arguments or {})
        except ValidationError as exc:
            details = [
                f"{'.'.join(str(part) for part in error['loc']) or 'arguments'}: {error['msg']}"
                for error in exc.errors()
            ]
            raise RequestError(f"Invalid arguments for tool '{name}'", details) from exc
        return spec, args

    async def execute(self, name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        """Run a tool call and return its MCP result.

        ``AuthError`` and ``RequestError`` propagate so transports can report
        them as protocol errors; Oura API failures become error results.
        """
        spec, args = self.validate(name, arguments)
        logger.info("Tool: %s", name)
        logger.debug("Tool args: %s", args.model_dump(mode="json"))

        try:
            if spec.requires_auth:
                await self.lifecycle.get_valid_token()
                async with self._client_factory(self.lifecycle) as client:
                    text = await spec.handler(ToolContext(client, self.cache, self.lifecycle), args)
            else:
                text = await spec.handler(ToolContext(None, self.cache, self.lifecycle), args)
        except RateLimitError as e:
            suggestions = ["Wait before retrying; Oura limits requests per 5 minutes."]
            if e.retry_after:
                suggestions.insert(0, f"Retry after {e.retry_after} seconds.")
            return _error_result(
                ResponseBuilder.build_error_response(e.message, "rate_limit", suggestions)
            )
        except OuraAPIError as e:
            logger.warning("Tool %s failed: %s (status=%s)", name, e.message, e.status_code)
            return _error_result(ResponseBuilder.build_error_response(e.message, "api_error"))

        return types.CallToolResult(content=[types.TextContent(type="text", text=text)])


def _error_result(text: str) -> types.CallToolResult:
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)], isError=True)
