"""
General purpose demo tools
"""

from typing import Any

from ..core.errors import ToolExecutionError
from ..core.sse import utc_timestamp
from .decorators import tool


@tool(description="Return the provided input.")
async def echo(input: Any) -> dict[str, Any]:
    return {"echo": input}


@tool(description="Return current ISO timestamp.")
async def now(input=None) -> dict[str, str]:
    return {"now": utc_timestamp()}


@tool(name="sum", description="Sum numbers in an array.")
async def sum_numbers(input: list) -> dict[str, float]:
    """Missing or empty entries count as zero; numeric strings are converted."""
    if not isinstance(input, list):
        raise ToolExecutionError("Input must be array of numbers")

    total = 0
    for value in input:
        if not value:
            continue
        if isinstance(value, (int, float)):
            total += value
            continue
        try:
            total += float(value)
        except (TypeError, ValueError):
            raise ToolExecutionError(f"Not a number: {value!r}") from None
    return {"total": total}
