"""
Web search tool backed by the Tavily API
"""

import logging
from typing import Any

import httpx

from ..config import Settings
from ..core.errors import ToolExecutionError
from .decorators import tool

logger = logging.getLogger(__name__)

TAVILY_SEARCH_URL = "https://api.tavily.com/search"
MAX_RESULTS_LIMIT = 10
CONTENT_PREVIEW_CHARS = 500

TAVILY_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "query": {"type": "string", "description": "Search query"},
        "max_results": {
            "type": "number",
            "description": "Max results (1-10)",
            "minimum": 1,
            "maximum": MAX_RESULTS_LIMIT,
        },
        "depth": {
            "type": "string",
            "enum": ["basic", "advanced"],
            "description": "Search depth",
        },
    },
    "required": ["query"],
}


def _result_limit(requested: Any, default: int) -> int:
    if requested in (None, "", 0):
        requested = default
    try:
        limit = int(requested)
    except (TypeError, ValueError):
        raise ToolExecutionError(f"max_results must be a number, got {requested!r}") from None
    return max(1, min(limit, MAX_RESULTS_LIMIT))


@tool(
    name="tavily_search",
    description="Perform a web search using Tavily API. Takes a natural language query and returns a summary of current web results.",
    input_schema=TAVILY_INPUT_SCHEMA,
)
async def tavily_search(input: dict[str, Any] | None) -> dict[str, Any]:
    settings = Settings.from_env()
    if not settings.tavily_api_key:
        raise ToolExecutionError("Tavily API key missing. Set TAVILY_API_KEY in the environment")

    params = input or {}
    if not isinstance(params, dict):
        raise ToolExecutionError("Input must be an object")

    query = params.get("query")
    if not isinstance(query, str) or not query.strip():
        raise ToolExecutionError("Missing required field: query")

    max_results = _result_limit(params.get("max_results"), settings.tavily_max_results)
    body = {
        "api_key": settings.tavily_api_key,
        "query": query,
        "max_results": max_results,
        "search_depth": "advanced" if params.get("depth") == "advanced" else "basic",
    }

    logger.info(f"Tavily search: {query!r} (max_results={max_results}, depth={body['search_depth']})")
    async with httpx.AsyncClient() as client:
        response = await client.post(TAVILY_SEARCH_URL, json=body)

    if response.is_error:
        raise ToolExecutionError(f"Tavily API error: {response.status_code} {response.text}")

    data = response.json()
    return {
        "query": data.get("query", query),
        "results": [
            {
                "title": item.get("title"),
                "url": item.get("url"),
                "content": (item.get("content") or "")[:CONTENT_PREVIEW_CHARS],
            }
            for item in data.get("results", [])[:max_results]
        ],
    }
