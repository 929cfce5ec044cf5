"""
Fake tools and backends shared by the agentcore tests.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from agentcore.llm.base import ChatChoice, ChatResponse, TokenUsage
from agentcore.messages import Message, ToolCall
from agentcore.tools import Tool

# =============================================================================
# Tools
# =============================================================================


class EchoTool(Tool):
    """Returns its input; records every call."""

    def __init__(self, name: str = "echo", prompt: str | None = None):
        self._name = name
        self._prompt = prompt
        self.calls: list[dict[str, Any]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return "Echo the given text back"

    @property
    def input_schema(self) -> dict:
        return {
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"],
        }

    @property
    def prompt(self) -> str | None:
        return self._prompt

    async def execute(self, text: str = "") -> str:
        self.calls.append({"text": text})
        return f"echo: {text}"


class SleepTool(Tool):
    """Sleeps for `seconds`, tracking how many instances run at once."""

    def __init__(self, name: str = "sleep"):
        self._name = name
        self.active = 0
        self.peak = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return "Sleep for a while"

    @property
    def input_schema(self) -> dict:
        return {"type": "object", "properties": {"seconds": {"type": "number"}}}

    async def execute(self, seconds: float = 0.0, label: str = "") -> str:
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(seconds)
        finally:
            self.active -= 1
        return f"slept {seconds} {label}".strip()


class FailingTool(Tool):
    """Always raises."""

    def __init__(self, name: str = "failing", error: Exception | None = None):
        self._name = name
        self._error = error or RuntimeError("boom")

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return "A tool that always fails"

    @property
    def input_schema(self) -> dict:
        return {"type": "object", "properties": {}}

    async def execute(self, **arguments: Any) -> str:
        raise self._error


class LongOutputTool(Tool):
    """Returns `size` characters."""

    @property
    def name(self) -> str:
        return "long_output"

    @property
    def description(self) -> str:
        return "Produce a long string"

    @property
    def input_schema(self) -> dict:
        return {"type": "object", "properties": {"size": {"type": "integer"}}}

    async def execute(self, size: int = 0) -> str:
        return "x" * size


# =============================================================================
# Tool calls and responses
# =============================================================================


def call(call_id: str, function_name: str, **arguments: Any) -> ToolCall:
    """Build a ToolCall with JSON-encoded arguments."""
    return ToolCall(id=call_id, function_name=function_name, arguments=json.dumps(arguments))


def text_response(content: str | None, total_tokens: int = 10) -> ChatResponse:
    return ChatResponse(
        choices=(ChatChoice(message=Message(role="assistant", content=content)),),
        usage=TokenUsage(prompt_tokens=total_tokens - 2, completion_tokens=2, total_tokens=total_tokens),
    )


def tool_call_response(*calls: ToolCall, total_tokens: int = 10) -> ChatResponse:
    return ChatResponse(
        choices=(ChatChoice(message=Message.assistant_tool_calls(calls)),),
        usage=TokenUsage(total_tokens=total_tokens),
    )


# =============================================================================
# Backend
# =============================================================================


class ScriptedBackend:
    """
    Backend replaying a fixed script of responses.

    Each entry is a ChatResponse, None (transient failure) or an exception
    to raise. Once the script runs out, every call returns None.
    """

    def __init__(self, *script: ChatResponse | Exception | None):
        self.script = list(script)
        self.requests: list[dict[str, Any]] = []

    async def chat(self, messages, tools, tool_choice, temperature, model):
        self.requests.append(
            {
                "messages": list(messages),
                "tools": tools,
                "tool_choice": tool_choice,
                "temperature": temperature,
                "model": model,
            }
        )
        if not self.script:
            return None
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step

    @property
    def call_count(self) -> int:
        return len(self.requests)
