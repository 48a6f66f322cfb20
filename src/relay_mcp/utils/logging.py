"""
Logging utilities for Relay MCP Server
"""

import logging
import sys
from typing import Optional, TextIO


def setup_logging(
    level: str = "INFO",
    format_string: Optional[str] = None,
    include_timestamp: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Set up logging configuration for the MCP server.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: Custom format string for log messages
        include_timestamp: Whether to include timestamp in log messages
        stream: Where log records go. Defaults to stdout; the stdio
            transport passes stderr because stdout carries the protocol.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if format_string is None:
        if include_timestamp:
            format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_string = "%(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=format_string,
        stream=stream if stream is not None else sys.stdout,
        force=True,  # Override any existing configuration
    )

    logger = logging.getLogger("relay_mcp")
    logger.setLevel(log_level)

    logger.info(f"Logging configured at {level} level")
