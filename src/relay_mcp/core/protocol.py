"""
JSON-RPC dispatch for Relay MCP Server
Routes ping, listTools and callTool requests and formats every outcome as a response
"""

import json
import logging
import math
import traceback
from collections.abc import Callable, Coroutine
from typing import Any, NamedTuple

from .errors import (
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    SERVER_ERROR,
    MCPError,
    ToolNotFoundError,
)
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"


def replace_non_finite(value: Any) -> Any:
    """Copy of value with NaN and infinite floats replaced by None (JSON null)"""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {key: replace_non_finite(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [replace_non_finite(item) for item in value]
    return value


RequestHandler = Callable[
    [dict[str, Any], "RequestHandlerExtra"], Coroutine[Any, Any, Any]
]


class RequestHandlerExtra(NamedTuple):
    """Extra information passed to request handlers"""

    id: str | int | None  # Request ID


class RpcDispatcher:
    """Maps JSON-RPC method names to handlers and never lets an error escape"""

    def __init__(self, registry: ToolRegistry, include_traceback: bool | None = None):
        self.registry = registry
        # None follows the logger: tracebacks are reported when DEBUG is on
        self.include_traceback = include_traceback
        self._request_handlers: dict[str, RequestHandler] = {}
        self._register_default_handlers()
        logger.debug("RpcDispatcher initialized")

    def _register_default_handlers(self):
        handlers = {
            "ping": self._handle_ping,
            "listTools": self._handle_list_tools,
            "callTool": self._handle_call_tool,
        }
        for method, handler in handlers.items():
            self.set_request_handler(method, handler)

    def set_request_handler(self, method: str, handler: RequestHandler):
        """Register a handler for a specific request method"""
        self._request_handlers[method] = handler
        logger.debug(f"Registered request handler for method: {method}")

    async def dispatch(self, message: Any) -> dict[str, Any]:
        """
        Process one decoded request and build its response.

        Args:
            message: The parsed JSON value received from a transport

        Returns:
            A JSON-RPC response dictionary. Every failure, including errors
            raised by tools, is reported as an error response.
        """
        if not isinstance(message, dict):
            logger.warning(f"Request is not a JSON object: {str(message)[:150]}")
            return self._format_error(None, INVALID_REQUEST, "Invalid JSON-RPC version")

        request_id = message.get("id")
        method = message.get("method")
        params = message.get("params")

        if message.get("jsonrpc") != JSONRPC_VERSION:
            logger.warning(
                f"Invalid JSON-RPC version in message: {str(message)[:150]}"
            )
            return self._format_error(
                request_id, INVALID_REQUEST, "Invalid JSON-RPC version"
            )

        handler = self._request_handlers.get(method) if isinstance(method, str) else None
        if handler is None:
            logger.warning(f"No handler found for method '{method}' (ID: {request_id})")
            return self._format_error(
                request_id, METHOD_NOT_FOUND, f"Method not found: {method}"
            )

        extra = RequestHandlerExtra(id=request_id)
        try:
            logger.debug(f"Calling handler for method '{method}' (ID: {request_id})")
            result = await handler(params if isinstance(params, dict) else {}, extra)
        except MCPError as e:
            logger.info(f"Request '{method}' (ID: {request_id}) failed: {e.message}")
            return self._format_error(request_id, e.code, e.message, e.data)
        except Exception as e:
            logger.error(
                f"Exception during handler execution for '{method}' (ID: {request_id}): "
                f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            error_data = traceback.format_exc() if self._traceback_enabled() else None
            return self._format_error(
                request_id, SERVER_ERROR, str(e) or "Internal error", error_data
            )

        return self._format_result(request_id, result)

    def _traceback_enabled(self) -> bool:
        if self.include_traceback is None:
            return logger.isEnabledFor(logging.DEBUG)
        return self.include_traceback

    # Default handlers
    async def _handle_ping(self, params: dict[str, Any], extra: RequestHandlerExtra) -> dict[str, Any]:
        return {"pong": True}

    async def _handle_list_tools(self, params: dict[str, Any], extra: RequestHandlerExtra) -> list[dict[str, Any]]:
        tools = self.registry.list_public()
        logger.debug(f"Returning {len(tools)} tools (ID: {extra.id})")
        return tools

    async def _handle_call_tool(self, params: dict[str, Any], extra: RequestHandlerExtra) -> Any:
        name = params.get("name")
        descriptor = self.registry.lookup(name) if isinstance(name, str) else None
        if descriptor is None:
            raise ToolNotFoundError(name)

        logger.info(f"Tool call: {name} (ID: {extra.id})")
        result = await descriptor.invoke(params.get("input"))
        logger.info(f"Tool '{name}' executed successfully")
        return result

    def _format_result(self, req_id: str | int | None, result: Any) -> dict[str, Any]:
        """Format a successful JSON-RPC response"""
        try:
            final_result = replace_non_finite(result)
            json.dumps(final_result, allow_nan=False)
        except (TypeError, ValueError, RecursionError) as e:
            logger.error(f"Result for request ID {req_id} is not JSON serializable: {e}")
            final_result = f"[Non-Serializable Result: {type(result).__name__}] {str(result)[:500]}"

        return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "result": final_result}

    def _format_error(
        self, req_id: str | int | None, code: int, message: str, data: Any | None = None
    ) -> dict[str, Any]:
        """Format a JSON-RPC error response"""
        error_obj: dict[str, Any] = {"code": code, "message": message}

        if data is not None:
            if isinstance(data, (str, int, float, bool, list, dict)):
                error_obj["data"] = replace_non_finite(data)
            else:
                error_obj["data"] = (
                    f"Non-serializable data of type {type(data).__name__}: {str(data)[:100]}"
                )
                logger.warning(f"Error data contains non-standard type {type(data).__name__}")

        return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "error": error_obj}


def format_error(req_id: str | int | None, error: MCPError) -> dict[str, Any]:
    """Build an error response outside of dispatch (e.g. transport framing errors)"""
    error_obj: dict[str, Any] = {"code": error.code, "message": error.message}
    if error.data is not None:
        error_obj["data"] = error.data
    return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "error": error_obj}
