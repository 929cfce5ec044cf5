"""
Message Types for agentcore.

Messages are the unit of conversation state. They are immutable and
validate their role/field invariants at construction:

- role=tool carries tool_call_id and name
- a message with tool_calls is role=assistant with content=None

The wire format (to_dict/from_dict) is the OpenAI chat-completions shape,
which every supported backend accepts.

Usage:
    Message.system("You are a research assistant.")
    Message.user("What is the boiling point of water?")
    Message.assistant_tool_calls([ToolCall("call_1", "search", '{"q": "water"}')])
    Message.tool("42", tool_call_id="call_1", name="search")
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .errors import InvalidMessageError

# Text marking the synthetic "current time" assistant message
TIMESTAMP_MARKER = "current date and time"


class Role(str, Enum):
    """Role of a message in the conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True, slots=True)
class ToolCall:
    """
    A tool invocation requested by the model.

    Attributes:
        id: Unique within one model response; joins back to the tool message
        function_name: Schema function name the model asked for
        arguments: JSON-encoded argument map, exactly as the model sent it
    """

    id: str
    function_name: str
    arguments: str = "{}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.function_name, "arguments": self.arguments},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolCall:
        """Create from the OpenAI tool_call shape."""
        function = data.get("function") or {}
        arguments = function.get("arguments", "{}")
        # Some OpenAI-compatible servers send the map itself
        if isinstance(arguments, dict):
            arguments = json.dumps(arguments)
        return cls(
            id=data.get("id") or "",
            function_name=function.get("name") or "",
            arguments=arguments if arguments is not None else "{}",
        )


@dataclass(frozen=True, slots=True)
class Message:
    """
    A single message in a conversation.

    Attributes:
        role: The role of the message sender
        content: Text content (None for assistant tool-call requests)
        tool_calls: Tool invocations requested by the assistant
        tool_call_id: For role=tool, the ToolCall.id this answers
        name: For role=tool, the function name that produced it
    """

    role: Role
    content: str | None = None
    tool_calls: tuple[ToolCall, ...] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.role, Role):
            try:
                object.__setattr__(self, "role", Role(self.role))
            except ValueError:
                raise InvalidMessageError(f"Unknown role: {self.role!r}") from None

        if self.role is Role.TOOL and (not self.tool_call_id or not self.name):
            raise InvalidMessageError("Tool message must carry tool_call_id and name")

        if self.tool_calls is not None:
            if self.role is not Role.ASSISTANT:
                raise InvalidMessageError("Only assistant messages may carry tool_calls")
            if self.content is not None:
                raise InvalidMessageError("Assistant tool-call message must have content=None")
            if not isinstance(self.tool_calls, tuple):
                object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    # Factories

    @classmethod
    def system(cls, content: str) -> Message:
        """Create a system message."""
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        """Create a user message."""
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        """Create an assistant text message."""
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def assistant_tool_calls(cls, tool_calls: list[ToolCall] | tuple[ToolCall, ...]) -> Message:
        """Create the assistant message recording a batch of tool requests."""
        return cls(role=Role.ASSISTANT, content=None, tool_calls=tuple(tool_calls))

    @classmethod
    def tool(cls, content: str, *, tool_call_id: str, name: str) -> Message:
        """Create a tool result message."""
        return cls(role=Role.TOOL, content=content, tool_call_id=tool_call_id, name=name)

    @classmethod
    def timestamp(cls, now: datetime | None = None) -> Message:
        """Create the synthetic assistant message stating the wall-clock time."""
        now = now or datetime.now()
        return cls.assistant(
            f"--- The {TIMESTAMP_MARKER} is {now.strftime('%Y-%m-%d %H:%M:%S')} ---\n\n"
        )

    # Predicates

    @property
    def is_timestamp(self) -> bool:
        """True for the synthetic time message injected each turn."""
        return (
            self.role is Role.ASSISTANT
            and self.content is not None
            and TIMESTAMP_MARKER in self.content
        )

    @property
    def is_final_reply(self) -> bool:
        """
        True for an assistant message that answers the user.

        Has content, no tool_calls, and is not the synthetic time message.
        """
        return (
            self.role is Role.ASSISTANT
            and bool(self.content)
            and not self.tool_calls
            and not self.is_timestamp
        )

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        """Convert to OpenAI chat message format."""
        result: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            result["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        if self.tool_call_id is not None:
            result["tool_call_id"] = self.tool_call_id
        if self.name is not None:
            result["name"] = self.name
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Create Message from OpenAI chat message format."""
        raw_calls = data.get("tool_calls") or None
        tool_calls = tuple(ToolCall.from_dict(c) for c in raw_calls) if raw_calls else None
        return cls(
            role=data["role"],
            content=None if tool_calls else data.get("content"),
            tool_calls=tool_calls,
            tool_call_id=data.get("tool_call_id"),
            name=data.get("name"),
        )
