"""
Relay MCP Server - minimal JSON-RPC tool server
Serves registered tools over newline-delimited stdio or HTTP with Server-Sent Events
"""

__version__ = "0.1.0"

from .core.ingress import CommandIngress
from .core.protocol import RpcDispatcher
from .core.registry import ToolDescriptor, ToolRegistry
from .core.server import MCPServer
from .core.sse import SseTransport
from .core.transport import StdioTransport, Transport
from .tools.decorators import tool

__all__ = [
    "MCPServer",
    "ToolRegistry",
    "ToolDescriptor",
    "RpcDispatcher",
    "Transport",
    "StdioTransport",
    "SseTransport",
    "CommandIngress",
    "tool",
]
