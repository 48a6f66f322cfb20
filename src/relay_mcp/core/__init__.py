"""Core components for Relay MCP Server"""

from .ingress import CommandIngress
from .protocol import RequestHandlerExtra, RpcDispatcher
from .registry import ToolDescriptor, ToolRegistry
from .server import MCPServer
from .sse import SseTransport
from .transport import StdioTransport, Transport

__all__ = [
    "MCPServer",
    "ToolRegistry",
    "ToolDescriptor",
    "RpcDispatcher",
    "RequestHandlerExtra",
    "Transport",
    "StdioTransport",
    "SseTransport",
    "CommandIngress",
]
