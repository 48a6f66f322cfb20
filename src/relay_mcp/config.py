"""
Environment configuration for Relay MCP Server
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from the environment"""

    host: str = "0.0.0.0"
    port: int = 3333
    log_level: str = "INFO"
    transport: str = "stdio"
    heartbeat_interval: float = 10.0
    tavily_api_key: str | None = None
    tavily_max_results: int = 5

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("MCP_SSE_HOST", cls.host),
            port=int(env.get("MCP_SSE_PORT", cls.port)),
            log_level=env.get("MCP_LOG_LEVEL", cls.log_level).upper(),
            transport=env.get("MCP_TRANSPORT", cls.transport),
            heartbeat_interval=float(env.get("MCP_HEARTBEAT_INTERVAL", cls.heartbeat_interval)),
            tavily_api_key=env.get("TAVILY_API_KEY") or None,
            tavily_max_results=int(env.get("TAVILY_MAX_RESULTS", cls.tavily_max_results)),
        )


def load_settings() -> Settings:
    """Load a .env file if present, then read settings from the environment"""
    if load_dotenv():
        logger.debug("Loaded environment from .env")
    return Settings.from_env()
