"""
Transport layer implementations for Relay MCP Server
Base transport interface and the newline-delimited stdio transport
"""

import asyncio
import json
import logging
import sys
from abc import ABC, abstractmethod
from typing import Any, TextIO

from .errors import ParseError
from .protocol import JSONRPC_VERSION, RpcDispatcher, format_error, replace_non_finite

logger = logging.getLogger(__name__)


def encode_message(message: dict[str, Any]) -> str:
    """Compact single-line JSON encoding used on the wire"""
    return json.dumps(
        replace_non_finite(message), separators=(",", ":"), ensure_ascii=False, allow_nan=False
    )


class Transport(ABC):
    """Abstract base class for MCP transport implementations"""

    @abstractmethod
    async def connect(self):
        """Establish connection"""
        pass

    @abstractmethod
    async def send(self, message: dict[str, Any]) -> None:
        """Send a message"""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection"""
        pass


class StdioTransport(Transport):
    """
    Transport using standard input/output for communication.

    Input is an arbitrarily chunked byte stream of newline-delimited JSON
    requests. Each request is dispatched as its own task, and every response
    is written as one line as soon as it is ready, so responses may leave in
    a different order than their requests arrived.
    """

    def __init__(
        self,
        dispatcher: RpcDispatcher,
        output: TextIO | None = None,
        chunk_size: int = 1024,
    ):
        self.dispatcher = dispatcher
        self.chunk_size = chunk_size
        self.closed = False
        self._output = output
        self._buffer = b""
        self._pending: set[asyncio.Task] = set()
        self._stdin_reader: asyncio.StreamReader | None = None
        self._serve_task: asyncio.Task | None = None
        self._failure: BaseException | None = None
        logger.info("StdioTransport initialized")

    async def connect(self):
        """Attach an asyncio reader to stdin"""
        if self._stdin_reader is not None:
            logger.warning("StdioTransport: Already connected")
            return

        loop = asyncio.get_running_loop()
        self._stdin_reader = asyncio.StreamReader(loop=loop)
        protocol = asyncio.StreamReaderProtocol(self._stdin_reader, loop=loop)
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)
        logger.info("StdioTransport: Connected to stdin successfully")

    async def serve(self, reader: asyncio.StreamReader | None = None) -> None:
        """
        Announce readiness, then read and dispatch until end of input.

        Args:
            reader: Stream to read from. Defaults to stdin.

        Raises:
            Whatever exception made the output stream unwritable.
        """
        if reader is None:
            await self.connect()
            reader = self._stdin_reader

        self._serve_task = asyncio.current_task()
        try:
            await self.announce_ready()
            while not self.closed:
                chunk = await reader.read(self.chunk_size)
                if not chunk:
                    logger.info("StdioTransport: EOF received, closing")
                    break
                await self.feed(chunk)
            await self.drain()
        except asyncio.CancelledError:
            if self._failure is not None:
                raise self._failure from None
            raise
        finally:
            self._serve_task = None
            await self.close()

    async def announce_ready(self) -> None:
        """Write the unsolicited readiness line listing the tool names"""
        await self.send(
            {
                "jsonrpc": JSONRPC_VERSION,
                "id": None,
                "result": {"ready": True, "tools": self.dispatcher.registry.names()},
            }
        )

    async def feed(self, chunk: bytes) -> None:
        """Consume one chunk of input, scheduling a dispatch for each complete line"""
        self._buffer += chunk

        while b"\n" in self._buffer:
            line_bytes, self._buffer = self._buffer.split(b"\n", 1)
            try:
                line = line_bytes.decode("utf-8").strip()
                if not line:
                    continue
                message = json.loads(line)
            except ValueError as e:
                # Covers both JSONDecodeError and UnicodeDecodeError
                logger.warning(f"StdioTransport: Invalid JSON: {e}")
                await self.send(format_error(None, ParseError("Parse error", data=str(e))))
                continue

            self._schedule(message)

    def _schedule(self, message: Any) -> None:
        task = asyncio.create_task(self._dispatch_and_send(message))
        self._pending.add(task)
        task.add_done_callback(self._on_dispatch_done)

    async def _dispatch_and_send(self, message: Any) -> None:
        response = await self.dispatcher.dispatch(message)
        await self.send(response)

    def _on_dispatch_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled() or task.exception() is None:
            return

        # dispatch() never raises, so this is a write failure: stop serving
        self._failure = task.exception()
        logger.critical(f"StdioTransport: Output failed: {self._failure}")
        self.closed = True
        if self._serve_task is not None and not self._serve_task.done():
            self._serve_task.cancel()

    async def drain(self) -> None:
        """Wait until every in-flight dispatch has written its response"""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def send(self, message: dict[str, Any]) -> None:
        """Write a message to stdout as a single line"""
        output = self._output if self._output is not None else sys.stdout
        print(encode_message(message), file=output, flush=True)
        logger.debug(
            f"StdioTransport: Sent {self._get_message_type(message)} (ID: {message.get('id')})"
        )

    def _get_message_type(self, message: dict[str, Any]) -> str:
        """Determine message type for logging"""
        if "result" in message:
            return "response"
        elif "error" in message:
            return "error"
        else:
            return "unknown"

    @property
    def pending(self) -> int:
        """Number of dispatches still in flight"""
        return len(self._pending)

    async def close(self) -> None:
        """Close the transport"""
        if self.closed and not self._pending:
            return

        logger.info("StdioTransport: Closing")
        self.closed = True
        for task in list(self._pending):
            task.cancel()
        logger.info("StdioTransport: Closed")
