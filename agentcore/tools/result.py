"""
Tool Execution Result.

ToolResult is the outcome of exactly one requested tool invocation:

    success: function_name, tool_call_id, output
    failure: function_name, tool_call_id, kind (ToolErrorKind), message

The shape is validated at construction. An invalid combination is a bug
in the engine, so it raises ValueError instead of producing a result.

Either variant converts to a role=tool Message, so the model always
receives readable text, never a raw exception.

Usage:
    ToolResult.success(function_name="search", tool_call_id="call_1", output="...")

    ToolResult.failure(
        function_name="search",
        tool_call_id="call_1",
        kind=ToolErrorKind.TIMEOUT,
        message="Tool execution timed out",
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from agentcore.messages import Message


class ToolErrorKind(str, Enum):
    """Why a tool invocation failed. Retry logic branches on this."""

    NOT_FOUND = "tool_not_found"
    EXECUTION_ERROR = "execution_error"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class ToolResult:
    """
    Outcome of one tool invocation.

    Use the success()/failure() factories; direct construction is
    validated the same way.
    """

    function_name: str
    tool_call_id: str
    is_error: bool = False
    output: str | None = None
    kind: ToolErrorKind | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.function_name, str) or not self.function_name:
            raise ValueError("function_name cannot be None or empty")
        if not isinstance(self.tool_call_id, str) or not self.tool_call_id:
            raise ValueError("tool_call_id cannot be None or empty")

        if not self.is_error:
            if self.output is None:
                raise ValueError("Success result must have output")
            if self.kind is not None or self.message is not None:
                raise ValueError("Success result cannot have error kind or message")
            return

        if self.kind is None:
            raise ValueError("Error result must have error kind")
        if not self.message:
            raise ValueError("Error result must have message")
        if self.output is not None:
            raise ValueError("Error result cannot have output")
        if not isinstance(self.kind, ToolErrorKind):
            valid = ", ".join(kind.value for kind in ToolErrorKind)
            raise ValueError(f"Invalid error kind: {self.kind!r}. Must be one of: {valid}")

    @classmethod
    def success(cls, *, function_name: str, tool_call_id: str, output: str) -> ToolResult:
        """Create a successful result."""
        return cls(
            function_name=function_name,
            tool_call_id=tool_call_id,
            output=output,
        )

    @classmethod
    def failure(
        cls,
        *,
        function_name: str,
        tool_call_id: str,
        kind: ToolErrorKind,
        message: str,
    ) -> ToolResult:
        """Create a failed result."""
        return cls(
            function_name=function_name,
            tool_call_id=tool_call_id,
            is_error=True,
            kind=kind,
            message=message,
        )

    @property
    def is_success(self) -> bool:
        return not self.is_error

    @property
    def is_not_found(self) -> bool:
        return self.kind is ToolErrorKind.NOT_FOUND

    @property
    def text(self) -> str:
        """Text the model sees: output on success, message on failure."""
        return self.message if self.is_error else self.output  # type: ignore[return-value]

    def to_conversation_message(self) -> Message:
        """Convert to the role=tool message answering the original call."""
        return Message.tool(
            self.text,
            tool_call_id=self.tool_call_id,
            name=self.function_name,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and serialization."""
        result: dict[str, Any] = {
            "function_name": self.function_name,
            "tool_call_id": self.tool_call_id,
            "is_error": self.is_error,
        }
        if self.is_error:
            result["kind"] = self.kind.value  # type: ignore[union-attr]
            result["message"] = self.message
        else:
            result["output"] = self.output
        return result

    def __str__(self) -> str:
        if self.is_error:
            return f"ToolResult(error: {self.function_name} -> {self.kind.value}: {self.message})"  # type: ignore[union-attr]
        return f"ToolResult(success: {self.function_name} -> {len(self.output or '')} chars)"
