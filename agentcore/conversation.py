"""
Conversation State for agentcore.

A Conversation keeps two views of the dialogue:

- ephemeral: the transcript of the current turn. Rebuilt at the start of
  every turn and discarded at its end.
- persistent: what survives between turns, rewritten at the end of every
  turn by cleanup_history() according to a retention policy.

Retention policies (HistoryBehavior):
    NONE  persistent is always empty (stateless agent)
    LAST  persistent holds the last user message and the last final
          assistant reply
    FULL  persistent is the whole ephemeral transcript

Ephemeral layout at the start of a turn:
    [system?] [retained context...] [timestamp] [user]

Usage:
    conversation = Conversation(history_behavior=HistoryBehavior.LAST)

    context = conversation.build_context_for_turn(prompt, "Hi", HistoryBehavior.LAST)
    conversation.start_turn(context)
    conversation.append(Message.assistant("Hello!"))
    conversation.cleanup_history(HistoryBehavior.LAST)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from .config import HistoryBehavior
from .messages import Message, Role

logger = logging.getLogger(__name__)


def _last(messages: Iterable[Message], predicate: Callable[[Message], bool]) -> Message | None:
    for message in reversed(list(messages)):
        if predicate(message):
            return message
    return None


def _last_exchange(messages: list[Message]) -> list[Message]:
    """
    Last user message and last final assistant reply, user first.

    The two are found independently, so they are not guaranteed to belong
    to the same exchange.
    """
    pair = [
        _last(messages, lambda m: m.role is Role.USER),
        _last(messages, lambda m: m.is_final_reply),
    ]
    return [m for m in pair if m is not None]


class Conversation:
    """
    Ephemeral transcript plus persistent memory for one agent.

    Not thread-safe; the agent runs one turn at a time.
    """

    def __init__(
        self,
        history_behavior: HistoryBehavior | str = HistoryBehavior.NONE,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """
        Initialize the conversation.

        Args:
            history_behavior: Default retention policy for this agent
            clock: Source of the time stated in the timestamp message
        """
        self.history_behavior = HistoryBehavior.parse(history_behavior)
        self._clock = clock
        self._ephemeral: list[Message] = []
        self._persistent: list[Message] = []

    @property
    def ephemeral(self) -> list[Message]:
        """Copy of the current-turn transcript."""
        return list(self._ephemeral)

    @property
    def persistent(self) -> list[Message]:
        """Copy of the cross-turn memory."""
        return list(self._persistent)

    def build_context_for_turn(
        self,
        system_prompt: str | None,
        new_user_message: str,
        policy: HistoryBehavior | str | None = None,
    ) -> list[Message]:
        """
        Build the message list that opens a turn.

        Pure with respect to conversation state.

        Args:
            system_prompt: System message content, or None for no system message
            new_user_message: The user's input for this turn
            policy: Retention policy (defaults to this conversation's)

        Returns:
            [system?] + retained context + [timestamp, user]

        Raises:
            InvalidHistoryBehaviorError: For an unknown policy
        """
        policy = HistoryBehavior.parse(policy or self.history_behavior)
        messages: list[Message] = []

        if system_prompt is not None:
            messages.append(Message.system(system_prompt))

        if policy is HistoryBehavior.LAST:
            messages.extend(_last_exchange(self._persistent))
        elif policy is HistoryBehavior.FULL:
            messages.extend(
                m for m in self._persistent if m.role is not Role.SYSTEM and not m.is_timestamp
            )

        messages.append(Message.timestamp(self._clock()))
        messages.append(Message.user(new_user_message))
        return messages

    def start_turn(self, messages: list[Message]) -> None:
        """Replace the ephemeral transcript with a freshly built context."""
        self._ephemeral = list(messages)

    def append(self, message: Message) -> None:
        """Add a message to the current-turn transcript."""
        self._ephemeral.append(message)

    def cleanup_history(self, policy: HistoryBehavior | str | None = None) -> None:
        """
        Fold the finished turn into persistent memory.

        Args:
            policy: Retention policy (defaults to this conversation's)

        Raises:
            InvalidHistoryBehaviorError: For an unknown policy
        """
        policy = HistoryBehavior.parse(policy or self.history_behavior)

        if policy is HistoryBehavior.NONE:
            self._persistent = []
        elif policy is HistoryBehavior.LAST:
            self._persistent = _last_exchange(self._ephemeral)
        else:
            self._persistent = list(self._ephemeral)

        logger.debug(
            f"[conversation] Cleanup ({policy.value}): "
            f"{len(self._ephemeral)} ephemeral -> {len(self._persistent)} persistent"
        )

    def extract_tool_results_by_name(self) -> dict[str, str]:
        """
        Map tool name to its output for this turn.

        Last write wins when the same tool ran more than once.
        """
        results: dict[str, str] = {}
        for message in self._ephemeral:
            if message.role is Role.TOOL:
                results[message.name or ""] = message.content or ""
        return results

    def last_user_message(self) -> Message | None:
        """Most recent user message of the current turn."""
        return _last(self._ephemeral, lambda m: m.role is Role.USER)

    def clear(self) -> None:
        """Reset both ephemeral and persistent state."""
        self._ephemeral = []
        self._persistent = []

    def __len__(self) -> int:
        return len(self._ephemeral)

    def __repr__(self) -> str:
        return (
            f"<Conversation behavior={self.history_behavior.value} "
            f"ephemeral={len(self._ephemeral)} persistent={len(self._persistent)}>"
        )
