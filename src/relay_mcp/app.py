"""
HTTP application for Relay MCP Server
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .core.ingress import CommandIngress
from .core.server import MCPServer
from .core.sse import SseTransport

logger = logging.getLogger(__name__)


def create_app(server: MCPServer, settings: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI application serving the SSE stream and the command endpoint.

    The SSE transport lives on ``app.state.sse``; its heartbeat runs for the
    lifetime of the application.
    """
    settings = settings or Settings.from_env()
    sse = SseTransport(heartbeat_interval=settings.heartbeat_interval)
    ingress = CommandIngress(server.dispatcher, sse)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await sse.connect()
        logger.info(f"SSE endpoint: GET http://{settings.host}:{settings.port}/mcp/sse")
        logger.info(f"Command endpoint: POST http://{settings.host}:{settings.port}/mcp/command")
        try:
            yield
        finally:
            await sse.close()

    app = FastAPI(title="Relay MCP Server", version=server.version, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.sse = sse
    app.state.ingress = ingress

    @app.get("/healthz")
    async def healthz() -> dict[str, bool]:
        return {"ok": True}

    sse.mount(app)
    ingress.mount(app)
    return app
