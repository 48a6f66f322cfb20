"""
MCP Server implementation for Relay MCP Server
"""

import logging
from collections.abc import Iterable
from typing import Any

from .protocol import RpcDispatcher
from .registry import ToolRegistry
from .transport import StdioTransport

logger = logging.getLogger(__name__)


class MCPServer:
    """
    Owns the tool registry and the dispatcher shared by every transport.
    """

    def __init__(
        self,
        name: str = "relay-mcp-server",
        version: str = "0.1.0",
        include_traceback: bool | None = None,
    ):
        self.name = name
        self.version = version
        self.tool_registry = ToolRegistry()
        self.dispatcher = RpcDispatcher(self.tool_registry, include_traceback=include_traceback)
        logger.info(f"MCPServer '{name}' v{version} initialized")

    def tool(self):
        """Get tool decorator from registry"""
        return self.tool_registry.tool()

    def load_tools(self, modules: Iterable[Any] | None = None) -> None:
        """
        Register tools and seal the registry.

        Args:
            modules: Modules, packages or dotted names to scan. The built-in
                tools package is always loaded first.
        """
        from .. import tools

        self.tool_registry.auto_discover_tools(tools)
        for module in modules or ():
            self.tool_registry.auto_discover_tools(module)

        self.tool_registry.seal()
        logger.info(
            f"Loaded {len(self.tool_registry)} tools: {', '.join(self.tool_registry.names())}"
        )

    async def run(self, transport: StdioTransport | None = None) -> None:
        """Serve requests over stdio until input ends"""
        if transport is None:
            transport = StdioTransport(self.dispatcher)
        logger.info(f"Running on transport: {type(transport).__name__}")
        await transport.serve()
