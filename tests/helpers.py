"""Helper functions for tests."""

import asyncio
import json
from datetime import UTC, datetime, timedelta

from mcp.types import CallToolResult, TextContent

from oura_mcp.sessions import QueueSink
from oura_mcp.token_store import TokenRecord


def get_text_content(result: CallToolResult) -> str:
    """Extract text content from a CallToolResult.

    Raises:
        AssertionError: If content is not TextContent
    """
    assert len(result.content) > 0, "Result has no content"
    content = result.content[0]
    assert isinstance(content, TextContent), f"Expected TextContent, got {type(content)}"
    return content.text


def get_json_content(result: CallToolResult) -> dict:
    return json.loads(get_text_content(result))


def make_record(expires_in: timedelta = timedelta(hours=12), **overrides) -> TokenRecord:
    """Build a token record expiring ``expires_in`` from now."""
    values = {
        "access_token": "stored-access-token",
        "refresh_token": "stored-refresh-token",
        "scope": "email personal daily heartrate workout tag session spo2",
        "expires_at": datetime.now(UTC) + expires_in,
    }
    values.update(overrides)
    return TokenRecord(**values)


class FakeClock:
    """Settable clock returning aware datetimes."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime.now(UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeMonotonic:
    """Settable monotonic clock for session idle checks."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


async def next_frame(sink: QueueSink, events=None, timeout: float = 1.0) -> str:
    """Read the next SSE frame from a sink's event stream."""
    stream = events if events is not None else sink.events()
    return await asyncio.wait_for(stream.__anext__(), timeout)


def parse_frame(frame: str) -> tuple[str, str]:
    """Split an SSE frame into ``(event, data)``."""
    event = ""
    data_lines = []
    for line in frame.strip().splitlines():
        if line.startswith("event: "):
            event = line[len("event: ") :]
        elif line.startswith("data: "):
            data_lines.append(line[len("data: ") :])
    return event, "\n".join(data_lines)


async def wait_until(predicate, timeout: float = 1.0, interval: float = 0.005) -> None:
    """Poll ``predicate`` until it returns True or fail after ``timeout`` seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(interval)
