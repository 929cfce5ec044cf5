"""
Tool Base Classes.

This module defines the callable capabilities exposed to the model:
- Tool: Base class for all tools
- FunctionTool: Wraps a plain sync or async function as a Tool
- function_tool: Decorator form of FunctionTool

Contract:
    A tool advertises a schema (name, description, JSON Schema for its
    arguments). The model requests it by that schema name, and the engine
    calls execute() with the decoded arguments spread as keyword
    parameters. execute() returns text for the model.

    Tools may be invoked concurrently by unrelated requests in the same
    batch. The engine does not serialize access to one tool instance, so
    tools holding mutable state must protect it themselves.

Usage:
    class WeatherTool(Tool):
        @property
        def name(self) -> str:
            return "get_weather"

        @property
        def description(self) -> str:
            return "Current weather for a city"

        @property
        def input_schema(self) -> dict:
            return {
                "type": "object",
                "properties": {"city": {"type": "string"}},
                "required": ["city"],
            }

        async def execute(self, city: str) -> str:
            return f"Sunny in {city}"

    @function_tool(description="Add two integers")
    def add(a: int, b: int) -> str:
        return str(a + b)
"""

from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

_JSON_TYPES: dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
}


class Tool(ABC):
    """
    Base class for all tools.

    Contract:
        - name: Function name the model calls (snake_case recommended)
        - description: Clear description for LLM understanding
        - input_schema: JSON Schema for arguments (type "object")
        - execute: Async method receiving arguments as keyword parameters
        - prompt: Optional usage notes appended to the agent's system prompt

    Errors:
        Raise on failure. The engine converts any exception into a
        failed ToolResult the model can read; it never reaches the loop.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Function name advertised to the model.

        Dispatch matches requests against this name, not the key the
        tool was registered under.
        """
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """
        Human-readable description of what the tool does.

        This is used by the LLM to understand when to use the tool.
        """
        ...

    @property
    @abstractmethod
    def input_schema(self) -> dict[str, Any]:
        """
        JSON Schema defining expected input arguments.

        Must be a JSON Schema object with type "object" and "properties".
        """
        ...

    @property
    def prompt(self) -> str | None:
        """Optional usage notes for the agent's system prompt."""
        return None

    @abstractmethod
    async def execute(self, **arguments: Any) -> str:
        """
        Execute the tool.

        Args:
            **arguments: Decoded arguments matching input_schema

        Returns:
            Text output for the model
        """
        ...

    def to_llm_schema(self) -> dict[str, Any]:
        """
        Convert to the chat-completions tool schema.

        Format:
            {"type": "function",
             "function": {"name": ..., "description": ..., "parameters": {...}}}
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }

    def __repr__(self) -> str:
        return f"<Tool {self.name}>"


class FunctionTool(Tool):
    """
    Tool backed by a plain function.

    Async functions are awaited; sync functions run in a worker thread so
    they do not block the event loop. The input schema is derived from the
    signature unless given explicitly.

    Example:
        def lookup(term: str, limit: int = 5) -> str:
            ...

        tool = FunctionTool(lookup, description="Look up a term")
        tool.input_schema
        # {"type": "object",
        #  "properties": {"term": {"type": "string"}, "limit": {"type": "integer"}},
        #  "required": ["term"]}
    """

    def __init__(
        self,
        func: Callable[..., Any],
        *,
        name: str | None = None,
        description: str | None = None,
        input_schema: dict[str, Any] | None = None,
        prompt: str | None = None,
    ) -> None:
        self._func = func
        self._name = name or func.__name__
        self._description = description or inspect.getdoc(func) or ""
        self._input_schema = input_schema or _schema_from_signature(func)
        self._prompt = prompt

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def input_schema(self) -> dict[str, Any]:
        return self._input_schema

    @property
    def prompt(self) -> str | None:
        return self._prompt

    async def execute(self, **arguments: Any) -> str:
        if inspect.iscoroutinefunction(self._func):
            result = await self._func(**arguments)
        else:
            result = await asyncio.to_thread(self._func, **arguments)
        return result if isinstance(result, str) else str(result)


def function_tool(
    func: Callable[..., Any] | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    input_schema: dict[str, Any] | None = None,
    prompt: str | None = None,
) -> Any:
    """
    Decorator turning a function into a FunctionTool.

    Usable bare (@function_tool) or with options (@function_tool(name=...)).
    """

    def wrap(f: Callable[..., Any]) -> FunctionTool:
        return FunctionTool(
            f,
            name=name,
            description=description,
            input_schema=input_schema,
            prompt=prompt,
        )

    if func is not None:
        return wrap(func)
    return wrap


def _schema_from_signature(func: Callable[..., Any]) -> dict[str, Any]:
    """Build a JSON Schema object from a function's keyword parameters."""
    properties: dict[str, Any] = {}
    required: list[str] = []

    try:
        hints = inspect.get_annotations(func, eval_str=True)
    except NameError:
        hints = {}

    for param in inspect.signature(func).parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD, param.POSITIONAL_ONLY):
            continue

        prop: dict[str, Any] = {}
        json_type = _JSON_TYPES.get(hints.get(param.name))
        if json_type:
            prop["type"] = json_type
        properties[param.name] = prop

        if param.default is param.empty:
            required.append(param.name)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema
