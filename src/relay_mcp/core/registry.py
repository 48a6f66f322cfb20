"""
Tool registry for managing MCP tools
"""

import importlib
import inspect
import logging
import pkgutil
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .errors import DuplicateToolError, RegistrySealedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDescriptor:
    """A named tool and the coroutine that runs it"""

    name: str
    description: str
    invoke: Callable[[Any], Awaitable[Any]]
    input_schema: dict[str, Any] | None = None

    def public(self) -> dict[str, Any]:
        """Protocol-visible view of the tool (no invoke capability)"""
        info: dict[str, Any] = {"name": self.name, "description": self.description}
        if self.input_schema is not None:
            info["inputSchema"] = self.input_schema
        return info


def _as_coroutine(func: Callable[[Any], Any]) -> Callable[[Any], Awaitable[Any]]:
    """Wrap a tool function so it can always be awaited"""
    if inspect.iscoroutinefunction(func):
        return func

    async def invoke(value: Any) -> Any:
        return func(value)

    invoke.__name__ = getattr(func, "__name__", "invoke")
    return invoke


class ToolRegistry:
    """
    Registry for managing MCP tools.

    Tools are registered at startup, then the registry is sealed and only
    read from while serving. Iteration order is registration order.
    """

    def __init__(self):
        self._tools: dict[str, ToolDescriptor] = {}
        self._sealed = False

    def register(self, descriptor: ToolDescriptor) -> ToolDescriptor:
        """Add a tool descriptor; names must be unique"""
        if self._sealed:
            raise RegistrySealedError(
                f"Cannot register '{descriptor.name}': registry is sealed"
            )
        if descriptor.name in self._tools:
            raise DuplicateToolError(f"Tool already registered: {descriptor.name}")

        self._tools[descriptor.name] = descriptor
        logger.info(f"Registered tool: {descriptor.name}")
        return descriptor

    def register_function(
        self,
        func: Callable[[Any], Any],
        name: str | None = None,
        description: str | None = None,
        input_schema: dict[str, Any] | None = None,
    ) -> ToolDescriptor:
        """
        Register a plain or async function taking a single input value

        Args:
            func: The function to register
            name: Optional name for the tool (defaults to function name)
            description: Optional description (defaults to function docstring)
            input_schema: Optional JSON schema describing the input
        """
        descriptor = ToolDescriptor(
            name=name or func.__name__,
            description=description or (func.__doc__ or "").strip(),
            invoke=_as_coroutine(func),
            input_schema=input_schema,
        )
        return self.register(descriptor)

    def tool(self) -> Callable[[Callable], Callable]:
        """
        Decorator registering a function already marked with @tool
        from tools.decorators.
        """

        def decorator(func: Callable) -> Callable:
            metadata = getattr(func, "_mcp_tool_metadata", None)
            if metadata is None:
                logger.warning(
                    f"Function {func.__name__} does not have MCP tool metadata. Use @tool decorator first."
                )
                return func

            self.register_function(
                func,
                name=metadata["name"],
                description=metadata["description"],
                input_schema=metadata["input_schema"],
            )
            return func

        return decorator

    def lookup(self, name: str) -> ToolDescriptor | None:
        """Get a registered tool by name"""
        return self._tools.get(name)

    def names(self) -> list[str]:
        """List all registered tool names"""
        return list(self._tools.keys())

    def list_public(self) -> list[dict[str, Any]]:
        """Descriptors as published by listTools"""
        return [descriptor.public() for descriptor in self._tools.values()]

    def seal(self) -> None:
        """Freeze the registry; further registration raises"""
        self._sealed = True
        logger.debug(f"Tool registry sealed with {len(self._tools)} tools")

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def auto_discover_tools(self, module_or_package: Any) -> None:
        """
        Register every function decorated with @tool found in a module,
        or in each module of a package.

        Args:
            module_or_package: Module object, package object or dotted name
        """
        if isinstance(module_or_package, str):
            module_or_package = importlib.import_module(module_or_package)

        if hasattr(module_or_package, "__path__"):
            for _, modname, _ in pkgutil.iter_modules(
                module_or_package.__path__, module_or_package.__name__ + "."
            ):
                try:
                    submodule = importlib.import_module(modname)
                except ImportError as e:
                    logger.warning(f"Could not import {modname}: {e}")
                    continue
                self._scan_module_for_tools(submodule)
        else:
            self._scan_module_for_tools(module_or_package)

    def _scan_module_for_tools(self, module: Any) -> None:
        """Scan a module for functions decorated with @tool"""
        for attr in dir(module):
            obj = getattr(module, attr)
            if not callable(obj) or not hasattr(obj, "_mcp_tool_metadata"):
                continue
            # Skip tools imported from elsewhere; they belong to their own module
            if getattr(obj, "__module__", None) != module.__name__:
                continue
            self.tool()(obj)
            logger.debug(f"Auto-discovered tool: {obj._mcp_tool_metadata['name']}")
