"""
Tool Registry.

The registry manages the tools an agent may call:
- Registration under a caller-chosen symbolic name, with validation
- Dispatch lookup by the tool's advertised function name
- Schema and prompt export for the LLM

The function-name index is built at registration time, so dispatch is a
dict lookup, not a scan over tools.

Tools are registered at setup and not changed while a batch is running.

Usage:
    registry = ToolRegistry()
    registry.register("research", ResearchTool())

    tool = registry.get("research")            # by symbolic name
    tool = registry.find("web_research")       # by schema function name

    schemas = registry.to_llm_schemas()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from agentcore.errors import ToolRegistryError

if TYPE_CHECKING:
    from .base import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Registry of available tools for an agent.

    Example:
        registry = ToolRegistry()
        registry.register("calc", CalculatorTool())

        "calc" in registry          # True (symbolic name)
        registry.find("calculate")  # CalculatorTool instance
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}
        self._by_function: dict[str, Tool] = {}

    def register(self, name: str, tool: Tool) -> None:
        """
        Register a tool under a symbolic name.

        Args:
            name: Caller-chosen key for this tool
            tool: Tool instance to register

        Raises:
            ToolRegistryError: If the name or the tool's function name is
                already taken, or the tool is invalid
        """
        if name in self._tools:
            raise ToolRegistryError(
                f"Tool '{name}' is already registered. Cannot overwrite existing tool."
            )

        self._validate_tool(tool)

        if tool.name in self._by_function:
            raise ToolRegistryError(
                f"Function '{tool.name}' is already provided by another registered tool."
            )

        self._tools[name] = tool
        self._by_function[tool.name] = tool
        logger.info(f"[tool_registry] Registered tool: {name} -> {tool.name}")

    def unregister(self, name: str) -> bool:
        """
        Unregister a tool by symbolic name.

        Returns:
            True if tool was unregistered, False if not found
        """
        tool = self._tools.pop(name, None)
        if tool is None:
            return False
        self._by_function.pop(tool.name, None)
        logger.info(f"[tool_registry] Unregistered tool: {name}")
        return True

    def get(self, name: str) -> Tool | None:
        """Get a tool by symbolic name."""
        return self._tools.get(name)

    def find(self, function_name: str) -> Tool | None:
        """
        Get the tool advertising this function name.

        This is the dispatch lookup used for model tool calls.
        """
        return self._by_function.get(function_name)

    def list_tools(self) -> list[Tool]:
        """List all registered tools in registration order."""
        return list(self._tools.values())

    def list_names(self) -> list[str]:
        """List all symbolic names."""
        return list(self._tools.keys())

    def list_function_names(self) -> list[str]:
        """List all advertised function names."""
        return list(self._by_function.keys())

    def to_llm_schemas(self) -> list[dict[str, Any]]:
        """Get all tool schemas in chat-completions format."""
        return [tool.to_llm_schema() for tool in self._tools.values()]

    def tool_prompts(self) -> str:
        """Join the optional usage notes of all tools, one per line."""
        return "\n".join(tool.prompt for tool in self._tools.values() if tool.prompt)

    def _validate_tool(self, tool: Tool) -> None:
        """
        Validate tool has required properties.

        Raises:
            ToolRegistryError: If tool is invalid
        """
        if not tool.name or not isinstance(tool.name, str):
            raise ToolRegistryError(f"Tool must have a valid name: {tool!r}")

        if not tool.description or not isinstance(tool.description, str):
            raise ToolRegistryError(f"Tool '{tool.name}' must have a description")

        schema = tool.input_schema
        if not isinstance(schema, dict):
            raise ToolRegistryError(f"Tool '{tool.name}' input_schema must be a dict")

        if schema.get("type") != "object":
            raise ToolRegistryError(f"Tool '{tool.name}' input_schema must have type: 'object'")

        if "properties" not in schema:
            raise ToolRegistryError(f"Tool '{tool.name}' input_schema must have 'properties'")

    def __len__(self) -> int:
        return len(self._tools)

    def __bool__(self) -> bool:
        return bool(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __repr__(self) -> str:
        return f"<ToolRegistry tools={list(self._tools.keys())}>"
