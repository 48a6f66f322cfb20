"""
Main entry point for Relay MCP Server
"""

import argparse
import asyncio
import importlib
import sys
from dataclasses import replace
from typing import Any

from .config import Settings, load_settings
from .core.server import MCPServer
from .core.transport import StdioTransport
from .utils.logging import setup_logging


async def run_stdio_server(tool_modules: Any = None, log_level: str = "INFO") -> None:
    """Run MCP server with stdio transport"""
    # stdout carries the protocol, so logs go to stderr
    setup_logging(level=log_level, stream=sys.stderr)

    server = MCPServer()
    server.load_tools(tool_modules)

    transport = StdioTransport(server.dispatcher)
    await server.run(transport)


async def run_http_server(settings: Settings, tool_modules: Any = None) -> None:
    """Run MCP server with HTTP/SSE transport"""
    import uvicorn

    from .app import create_app

    setup_logging(level=settings.log_level)

    server = MCPServer()
    server.load_tools(tool_modules)
    app = create_app(server, settings)

    config = uvicorn.Config(
        app, host=settings.host, port=settings.port, log_level=settings.log_level.lower()
    )
    await uvicorn.Server(config).serve()


def _import_tool_modules(tools_path: str | None) -> list[Any] | None:
    if not tools_path:
        return None

    modules = []
    for path in tools_path.split(","):
        path = path.strip()
        if not path:
            continue
        try:
            modules.append(importlib.import_module(path))
        except ImportError as e:
            print(f"Warning: Could not import tool module '{path}': {e}", file=sys.stderr)
    return modules


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Relay MCP Server - JSON-RPC tool server over stdio or HTTP/SSE",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  MCP_TRANSPORT            Default transport (stdio or http)
  MCP_SSE_HOST             Host for HTTP transport
  MCP_SSE_PORT             Port for HTTP transport
  MCP_LOG_LEVEL            Logging level (DEBUG, INFO, WARNING, ERROR)
  MCP_HEARTBEAT_INTERVAL   Seconds between SSE tick events
  TAVILY_API_KEY           API key for the tavily_search tool
  TAVILY_MAX_RESULTS       Default number of search results

Examples:
  # Run with stdio
  relay-mcp

  # Run HTTP server
  relay-mcp --transport http --port 3333
""",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default=settings.transport,
        help="Transport method (default: stdio, env: MCP_TRANSPORT)",
    )
    parser.add_argument(
        "--host",
        default=settings.host,
        help="Host for HTTP transport (default: 0.0.0.0, env: MCP_SSE_HOST)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help="Port for HTTP transport (default: 3333, env: MCP_SSE_PORT)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.log_level,
        help="Logging level (default: INFO, env: MCP_LOG_LEVEL)",
    )
    parser.add_argument(
        "--tools-path",
        default=None,
        help="Comma-separated extra tool modules to load",
    )
    return parser


def cli_main(argv: list[str] | None = None) -> None:
    """CLI entry point"""
    settings = load_settings()
    args = build_parser(settings).parse_args(argv)
    tool_modules = _import_tool_modules(args.tools_path)

    try:
        if args.transport == "stdio":
            asyncio.run(run_stdio_server(tool_modules=tool_modules, log_level=args.log_level))
        else:
            settings = replace(settings, host=args.host, port=args.port, log_level=args.log_level)
            asyncio.run(run_http_server(settings, tool_modules=tool_modules))
    except KeyboardInterrupt:
        print("Server stopped by user", file=sys.stderr)
        sys.exit(0)
    except Exception as e:
        print(f"Server error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    cli_main()
