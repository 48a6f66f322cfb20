"""
Exception taxonomy for Relay MCP Server

Every error that can reach a client carries the JSON-RPC code it maps to.
"""

from typing import Any

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
PARSE_ERROR = -32700
SERVER_ERROR = -32000


class MCPError(Exception):
    """Base exception for errors reported as JSON-RPC failures"""

    code = SERVER_ERROR

    def __init__(self, message: str, data: Any | None = None):
        super().__init__(message)
        self.message = message
        self.data = data


class InvalidRequestError(MCPError):
    """Raised when a request is not a well-formed JSON-RPC 2.0 object"""

    code = INVALID_REQUEST


class MethodNotFoundError(MCPError):
    """Raised when no handler exists for the requested method"""

    code = METHOD_NOT_FOUND


class ParseError(MCPError):
    """Raised when an incoming line cannot be decoded as JSON"""

    code = PARSE_ERROR


class ToolNotFoundError(MCPError):
    """Raised when callTool names a tool that is not registered"""

    def __init__(self, name: Any):
        super().__init__(f"Tool not found: {name}")
        self.name = name


class ToolExecutionError(MCPError):
    """Raised by tool implementations for validation and upstream failures"""


class RegistryError(Exception):
    """Base exception for tool registration mistakes made at startup"""
    pass


class DuplicateToolError(RegistryError):
    """Raised when a tool name is registered twice"""
    pass


class RegistrySealedError(RegistryError):
    """Raised when registering into a registry that is already serving"""
    pass
