"""Streaming protocol sessions.

A session owns an event sink (the SSE stream), the tool calls still running
for it, and a heartbeat task that keeps the stream alive and closes it once
the client has gone quiet. Sessions are routing state only; they never hold
Oura credentials.
"""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from .errors import RequestError, SessionError

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_SECONDS = 15.0
DEFAULT_IDLE_TIMEOUT_SECONDS = 30 * 60.0
DEFAULT_SINK_BACKLOG = 1000

InvocationId = str | int


class SessionState(str, Enum):
    OPEN = "open"
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


class SinkClosedError(Exception):
    """The stream behind a sink can no longer accept events."""


class EventSink(Protocol):
    """Destination for server-to-client events of one session."""

    async def send(self, event: str, data: str) -> None: ...

    async def comment(self, text: str) -> None: ...

    async def close(self) -> None: ...


def format_sse(event: str, data: str) -> str:
    """Render one server-sent event frame."""
    lines = [f"event: {event}"]
    lines.extend(f"data: {line}" for line in data.splitlines() or [""])
    return "\n".join(lines) + "\n\n"


class QueueSink:
    """Sink backed by an ``asyncio.Queue`` that an SSE response drains."""

    def __init__(self, maxsize: int = DEFAULT_SINK_BACKLOG):
        self._queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _put(self, frame: str) -> None:
        if self._closed:
            raise SinkClosedError("Stream is closed")
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull as exc:
            raise SinkClosedError("Stream backlog exceeded; client is not reading") from exc

    async def send(self, event: str, data: str) -> None:
        self._put(format_sse(event, data))

    async def comment(self, text: str) -> None:
        self._put(f": {text}\n\n")

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    async def events(self) -> AsyncIterator[str]:
        """Yield SSE frames until the sink is closed."""
        while True:
            frame = await self._queue.get()
            if frame is None:
                return
            yield frame


@dataclass
class ProtocolSession:
    session_id: str
    sink: EventSink
    created_at: float
    last_activity: float
    state: SessionState = SessionState.OPEN
    transport: str = "streaming"
    pending: dict[InvocationId, asyncio.Task[None]] = field(default_factory=dict)
    heartbeat: asyncio.Task[None] | None = None


class SessionManager:
    """Table of live streaming sessions.

    Closing a session cancels its pending tool calls and heartbeat; results
    that arrive for a session that is no longer active are discarded.
    """

    def __init__(
        self,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_SECONDS,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.heartbeat_interval = heartbeat_interval
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._sessions: dict[str, ProtocolSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    async def open(self, sink: EventSink) -> ProtocolSession:
        now = self._clock()
        session = ProtocolSession(
            session_id=secrets.token_urlsafe(32),
            sink=sink,
            created_at=now,
            last_activity=now,
        )
        self._sessions[session.session_id] = session
        session.state = SessionState.ACTIVE
        session.heartbeat = asyncio.create_task(self._heartbeat_loop(session))
        logger.info("Session opened: %s", session.session_id)
        return session

    def get(self, session_id: str) -> ProtocolSession:
        """Return an active session.

        Raises:
            SessionError: The id is unknown or the session is closing.
        """
        session = self._sessions.get(session_id)
        if session is None or session.state is not SessionState.ACTIVE:
            raise SessionError()
        return session

    def touch(self, session_id: str) -> ProtocolSession:
        session = self.get(session_id)
        session.last_activity = self._clock()
        return session

    async def dispatch(
        self,
        session_id: str,
        invocation_id: InvocationId,
        work: Callable[[], Awaitable[dict[str, Any]]],
    ) -> None:
        """Run ``work`` in the background and push its message to the session stream."""
        session = self.touch(session_id)
        if invocation_id in session.pending:
            raise RequestError(f"Request id {invocation_id!r} is already in flight")
        session.pending[invocation_id] = asyncio.create_task(
            self._run_pending(session, invocation_id, work)
        )

    async def send(self, session_id: str, message: dict[str, Any]) -> None:
        session = self.touch(session_id)
        await self._write(session, message)

    async def close(self, session_id: str, reason: str = "closed") -> bool:
        """Close a session; returns False if it was already closed or unknown.

        The session leaves the table and its sink is closed before the first
        suspension point.
        """
        session = self._sessions.get(session_id)
        if session is None or session.state in (SessionState.CLOSING, SessionState.CLOSED):
            return False

        session.state = SessionState.CLOSING
        self._sessions.pop(session_id, None)
        current = asyncio.current_task()
        tasks = [
            task
            for task in [*session.pending.values(), session.heartbeat]
            if task is not None and task is not current and not task.done()
        ]
        session.pending.clear()
        for task in tasks:
            task.cancel()
        await session.sink.close()

        try:
            # cancelled calls have no one to report to
            await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            session.state = SessionState.CLOSED
            logger.info("Session closed: %s (%s)", session_id, reason)
        return True

    async def teardown(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id, "shutdown")

    async def _run_pending(
        self,
        session: ProtocolSession,
        invocation_id: InvocationId,
        work: Callable[[], Awaitable[dict[str, Any]]],
    ) -> None:
        try:
            message = await work()
        finally:
            session.pending.pop(invocation_id, None)

        if session.state is not SessionState.ACTIVE:
            logger.debug(
                "Discarding result of %r for closed session %s", invocation_id, session.session_id
            )
            return
        await self._write(session, message)

    async def _write(self, session: ProtocolSession, message: dict[str, Any]) -> None:
        try:
            await session.sink.send("message", json.dumps(message))
        except SinkClosedError as e:
            logger.info("Session %s stream write failed: %s", session.session_id, e)
            await self.close(session.session_id, "disconnect")

    async def _heartbeat_loop(self, session: ProtocolSession) -> None:
        while session.state is SessionState.ACTIVE:
            await asyncio.sleep(self.heartbeat_interval)
            if session.state is not SessionState.ACTIVE:
                return

            idle_for = self._clock() - session.last_activity
            if not session.pending and idle_for >= self.idle_timeout:
                await self.close(session.session_id, "idle")
                return

            try:
                await session.sink.comment("ping")
            except SinkClosedError:
                await self.close(session.session_id, "disconnect")
                return
