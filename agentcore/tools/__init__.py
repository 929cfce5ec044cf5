"""
agentcore Tools.

Tools are the callable capabilities the model may request. The runner
executes a batch of requests and turns every outcome, including failures,
into a ToolResult the model can read.

Usage:
    @function_tool(description="Add two integers")
    def add(a: int, b: int) -> str:
        return str(a + b)

    registry = ToolRegistry()
    registry.register("add", add)

    runner = ToolRunner(config)
    results = await runner.execute_all(message.tool_calls, registry)
"""

from .base import FunctionTool, Tool, function_tool
from .registry import ToolRegistry
from .result import ToolErrorKind, ToolResult
from .runner import TIMEOUT_MESSAGE, TRUNCATION_MARKER, ToolRunner, with_call_identity

__all__ = [
    "Tool",
    "FunctionTool",
    "function_tool",
    "ToolRegistry",
    "ToolErrorKind",
    "ToolResult",
    "ToolRunner",
    "TIMEOUT_MESSAGE",
    "TRUNCATION_MARKER",
    "with_call_identity",
]
