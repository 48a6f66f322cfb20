"""
Server-Sent Events transport for Relay MCP Server
Owns the open event streams and the process-wide broadcast sequence
"""

import asyncio
import json
import logging
import time
import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from sse_starlette.sse import EventSourceResponse

from .protocol import replace_non_finite
from .transport import Transport

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_INTERVAL = 10.0


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-01T00:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def encode_data(payload: Any) -> str:
    """JSON for an event's data field; non-finite floats become null"""
    return json.dumps(replace_non_finite(payload), allow_nan=False)


def parse_last_event_id(value: str | None) -> int:
    """Read the resume marker a reconnecting client sends; anything unusable is 0"""
    if not value:
        return 0
    try:
        return int(value.strip())
    except ValueError:
        logger.warning(f"Ignoring non-numeric Last-Event-ID: {value!r}")
        return 0


@dataclass
class Connection:
    """One open SSE stream

    resume_from keeps the Last-Event-ID the client connected with;
    last_event_id tracks the newest event queued for it.
    """

    id: str
    created_at: float
    last_event_id: int = 0
    resume_from: int = 0
    queue: asyncio.Queue = field(default_factory=asyncio.Queue, repr=False)

    def push(self, seq: int, event: str, data: str) -> None:
        self.queue.put_nowait({"id": str(seq), "event": event, "data": data})
        self.last_event_id = seq


class SseTransport(Transport):
    """
    Transport pushing named, sequence-numbered events to every open stream.

    The sequence counter is shared by all connections and advances exactly
    once per event sent, however many connections receive it. broadcast()
    never suspends, so the counter and the connection table only change
    between awaits on the event loop.

    A client's Last-Event-ID is recorded on its connection but missed events
    are not replayed.
    """

    def __init__(self, heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL):
        self.heartbeat_interval = heartbeat_interval
        self.clients: dict[str, Connection] = {}
        self.closed = False
        self._sequence = 0
        self._heartbeat_task: asyncio.Task | None = None
        logger.info("SseTransport initialized")

    @property
    def sequence(self) -> int:
        """Id of the most recent event (0 before the first one)"""
        return self._sequence

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def accept(self, last_event_id: int = 0) -> Connection:
        """Register a new stream and queue its welcome event"""
        connection = Connection(
            id=str(uuid.uuid4()),
            created_at=time.time(),
            last_event_id=last_event_id,
            resume_from=last_event_id,
        )
        self.clients[connection.id] = connection
        logger.info(
            f"[SSE] client connected: {connection.id} "
            f"(Last-Event-ID: {last_event_id}, total: {len(self.clients)})"
        )

        payload = {"clientId": connection.id, "serverTime": utc_timestamp()}
        connection.push(self._next_sequence(), "welcome", encode_data(payload))
        return connection

    def disconnect(self, connection_id: str) -> None:
        """Forget a stream; it receives nothing more"""
        if self.clients.pop(connection_id, None) is not None:
            logger.info(
                f"[SSE] client disconnected: {connection_id} (remaining: {len(self.clients)})"
            )

    def broadcast(self, event: str, payload: Any) -> int:
        """
        Send one event to every open stream.

        Returns:
            The sequence number assigned to the event.
        """
        seq = self._next_sequence()
        data = encode_data(payload)
        for connection in list(self.clients.values()):
            connection.push(seq, event, data)
        logger.debug(f"[SSE] broadcast '{event}' id={seq} to {len(self.clients)} clients")
        return seq

    async def send(self, message: dict[str, Any]) -> None:
        """Mirror a JSON-RPC response to all streams as an rpc event"""
        self.broadcast("rpc", message)

    async def events(self, last_event_id: int = 0) -> AsyncIterator[dict[str, str]]:
        """
        Open a stream and yield its queued events until it closes.

        The connection is registered on the first iteration, not when the
        generator is created, so a response that is never streamed leaves
        nothing behind in the connection table.
        """
        connection = None
        try:
            connection = self.accept(last_event_id)
            while True:
                event = await connection.queue.get()
                if event is None:
                    break
                yield event
        finally:
            if connection is not None:
                self.disconnect(connection.id)

    async def _heartbeat(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            self.broadcast("tick", {"ts": int(time.time() * 1000)})

    async def connect(self):
        """Start the periodic tick event"""
        if self._heartbeat_task is not None and not self._heartbeat_task.done():
            logger.warning("SseTransport: Heartbeat already running")
            return
        self.closed = False
        self._heartbeat_task = asyncio.create_task(self._heartbeat(), name="SseHeartbeat")
        logger.info(f"SseTransport: Heartbeat every {self.heartbeat_interval}s")

    def mount(self, app: FastAPI, path: str = "/mcp/sse") -> None:
        """Add the event stream route to an application"""
        app.get(path)(self._handle_sse)

    async def _handle_sse(self, request: Request):
        """Open an event stream for one client"""
        last_event_id = parse_last_event_id(request.headers.get("last-event-id"))
        return EventSourceResponse(
            self.events(last_event_id),
            headers={"Cache-Control": "no-cache"},
            sep="\n",
        )

    async def close(self) -> None:
        """Stop the heartbeat and end every open stream"""
        if self.closed:
            return

        logger.info("SseTransport: Closing")
        self.closed = True

        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            try:
                await self._heartbeat_task
            except asyncio.CancelledError:
                pass
            self._heartbeat_task = None

        for connection in list(self.clients.values()):
            connection.queue.put_nowait(None)
        self.clients.clear()
        logger.info("SseTransport: Closed")
