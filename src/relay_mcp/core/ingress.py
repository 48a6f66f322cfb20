"""
HTTP command endpoint for Relay MCP Server
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .protocol import RpcDispatcher
from .sse import SseTransport

logger = logging.getLogger(__name__)


class CommandIngress:
    """
    Accepts a JSON-RPC request or batch over HTTP.

    Batch entries run one after another in array order, and every response
    is also broadcast to the SSE streams as an ``rpc`` event.
    """

    def __init__(self, dispatcher: RpcDispatcher, sse: SseTransport):
        self.dispatcher = dispatcher
        self.sse = sse

    async def handle(self, body: Any) -> dict[str, Any] | list[dict[str, Any]]:
        """Dispatch a request body and build the reply body"""
        requests = body if isinstance(body, list) else [body]
        responses = []
        for entry in requests:
            response = await self.dispatcher.dispatch(entry)
            responses.append(response)
            await self.sse.send(response)

        return responses if isinstance(body, list) else responses[0]

    def mount(self, app: FastAPI, path: str = "/mcp/command") -> None:
        """Add the command route to an application"""
        app.post(path)(self._handle_command)

    async def _handle_command(self, request: Request):
        try:
            body = await request.json()
        except ValueError as e:
            logger.warning(f"Rejected command body: {e}")
            return JSONResponse(status_code=400, content={"error": f"Invalid JSON: {e}"})

        count = len(body) if isinstance(body, list) else 1
        logger.info(f"HTTP command received ({count} request{'s' if count != 1 else ''})")
        return JSONResponse(content=await self.handle(body))
