"""
Backend Client Protocol for agentcore.

Defines the interface the agent loop uses to talk to a chat-completions
backend, and the response types it reads back.

A client returns None to signal a transient failure; the agent retries
those. A response with no choices is treated as malformed and is not
retried.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from agentcore.messages import Message, Role


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token accounting for one backend call."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> TokenUsage:
        data = data or {}
        prompt = int(data.get("prompt_tokens") or 0)
        completion = int(data.get("completion_tokens") or 0)
        total = int(data.get("total_tokens") or prompt + completion)
        return cls(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


@dataclass(frozen=True, slots=True)
class ChatChoice:
    message: Message
    finish_reason: str | None = None


@dataclass(frozen=True, slots=True)
class ChatResponse:
    """
    Response from a chat completion.

    Attributes:
        choices: Candidate replies; the agent reads the first
        usage: Token usage, when the backend reports it
        model: Model that produced the response
    """

    choices: tuple[ChatChoice, ...] = ()
    usage: TokenUsage | None = None
    model: str = ""

    @property
    def message(self) -> Message | None:
        """The first choice's message, or None for an empty response."""
        return self.choices[0].message if self.choices else None

    @property
    def total_tokens(self) -> int:
        return self.usage.total_tokens if self.usage else 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatResponse:
        """
        Build from the chat-completions JSON shape.

        Raises:
            InvalidMessageError: If a choice carries an invalid message
        """
        choices = []
        for raw in data.get("choices") or ():
            message = dict(raw.get("message") or {})
            message.setdefault("role", Role.ASSISTANT.value)
            choices.append(
                ChatChoice(
                    message=Message.from_dict(message),
                    finish_reason=raw.get("finish_reason"),
                )
            )

        usage = data.get("usage")
        return cls(
            choices=tuple(choices),
            usage=TokenUsage.from_dict(usage) if usage else None,
            model=data.get("model") or "",
        )


@runtime_checkable
class BackendClient(Protocol):
    """
    Protocol for chat-completions backends.

    Implementations must:
    - Return a ChatResponse on success
    - Return None (or raise) on transport/API failure; the agent retries
    - Send tools and tool_choice only when tools is non-empty
    """

    async def chat(
        self,
        messages: Sequence[Message],
        tools: list[dict[str, Any]] | None,
        tool_choice: str | None,
        temperature: float,
        model: str,
    ) -> ChatResponse | None:
        """
        Request a completion.

        Args:
            messages: Conversation so far
            tools: Tool schemas in chat-completions format
            tool_choice: "auto" when tools are offered
            temperature: Sampling temperature
            model: Model identifier

        Returns:
            ChatResponse, or None on failure
        """
        ...
