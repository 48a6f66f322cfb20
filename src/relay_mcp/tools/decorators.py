"""
Tool registration decorators for Relay MCP Server
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any, get_type_hints

logger = logging.getLogger(__name__)


def tool(
    name: str | None = None,
    description: str | None = None,
    input_schema: dict[str, Any] | None = None,
) -> Callable[[Callable], Callable]:
    """
    Decorator to mark a function as an MCP tool.

    A tool takes a single ``input`` argument, the value sent as
    ``params.input`` of a callTool request, and may be sync or async.
    When no schema is given, one is derived from the annotation of that
    argument.

    Args:
        name: Optional custom name for the tool. Defaults to function name.
        description: Optional description for the tool. Defaults to function docstring.
        input_schema: Optional JSON schema describing the input.

    Example:
        @tool(name="sum", description="Sum numbers in an array")
        def sum_numbers(input: list) -> dict:
            return {"total": sum(input)}
    """

    def decorator(func: Callable) -> Callable:
        tool_name = name or func.__name__
        tool_description = description or (func.__doc__ or "").strip()
        schema = input_schema if input_schema is not None else _input_schema_from_signature(func)

        func._mcp_tool_metadata = {
            "name": tool_name,
            "description": tool_description,
            "input_schema": schema,
            "async": inspect.iscoroutinefunction(func),
        }

        logger.debug(
            f"Tool decorated: {tool_name} ({'async' if inspect.iscoroutinefunction(func) else 'sync'})"
        )

        return func

    return decorator


def _input_schema_from_signature(func: Callable) -> dict[str, Any] | None:
    """Schema for the first parameter's annotation, if it has a useful one"""
    params = [p for p in inspect.signature(func).parameters.values() if p.name != "self"]
    if not params:
        return None

    hint = get_type_hints(func).get(params[0].name)
    if hint is None or hint is Any:
        return None
    return _type_to_json_schema(hint)


def _type_to_json_schema(python_type: Any) -> dict[str, Any] | None:
    """Convert Python type to JSON schema"""
    if python_type == str:
        return {"type": "string"}
    elif python_type == bool:
        return {"type": "boolean"}
    elif python_type == int:
        return {"type": "integer"}
    elif python_type == float:
        return {"type": "number"}
    elif python_type == list:
        return {"type": "array"}
    elif python_type == dict:
        return {"type": "object"}
    elif hasattr(python_type, "__origin__"):
        # Generic aliases like list[float] or dict[str, Any]
        origin = python_type.__origin__
        if origin == list:
            return {"type": "array"}
        elif origin == dict:
            return {"type": "object"}

    # Unions and unknown types stay undescribed
    return None
