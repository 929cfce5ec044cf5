"""
Agent Iteration Loop.

The Agent runs one conversational turn at a time:

    1. Build context (system prompt + retained history + timestamp + user)
    2. Call the backend (retrying transient failures)
    3. Tool calls  -> record them, execute the batch, append results, loop
       Final reply -> append it and return it
       Neither     -> return "No response generated."
    4. Cap reached -> return whatever useful information was gathered

History cleanup runs exactly once at the end of every turn, whichever way
the turn ends.

Not-found rewind:
    When any tool in a batch is unknown, that iteration does not count
    against the cap; the model sees the "not found" result and gets another
    try. Rewinds per turn are bounded by the cap itself, after which
    not-found iterations count like any other. Without this bound a model
    that keeps asking for an unknown tool would never end the turn.

Usage:
    agent = Agent("Researcher", backend, config=config, system_prompt=PROMPT)
    agent.register_tool("search", SearchTool())

    answer = await agent.process_turn("What changed in the 2024 release?")
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from agentcore.config import AgentConfig, HistoryBehavior
from agentcore.conversation import Conversation
from agentcore.messages import Message, Role
from agentcore.observability import AgentLogger
from agentcore.retry import RetryPolicy, with_retry
from agentcore.tools import ToolRegistry, ToolRunner, with_call_identity

from .result import (
    TurnResult,
    answered_result,
    backend_error_result,
    invalid_response_result,
    max_iterations_result,
    no_response_result,
)
from .stats import AgentStats

if TYPE_CHECKING:
    from collections.abc import Callable

    from agentcore.llm.base import BackendClient, ChatResponse
    from agentcore.tools import Tool

logger = logging.getLogger(__name__)

TOOLS_HEADER = "\n\nTOOLS AVAILABLE:\n"

# Salvage thresholds: shorter fragments are noise, not findings
MIN_TOOL_OUTPUT_CHARS = 10
MIN_ASSISTANT_TEXT_CHARS = 20

GATHERED_TITLE = "**Information gathered before reaching max iterations:**\n"
GATHERED_NOTE = (
    "\n\n*Note: This information was gathered before reaching the maximum "
    "iteration limit. Additional investigation may be needed for complete coverage.*"
)


# =============================================================================
# Salvage
# =============================================================================


def gather_information(
    messages: Iterable[Message],
    failed_call_ids: set[str] | frozenset[str] = frozenset(),
) -> list[tuple[str, str]]:
    """
    Collect substantive findings from a transcript.

    Keeps successful tool output and assistant prose. Skips system and user
    messages, the timestamp message, tool-call requests, failed tool
    results and short fragments.

    Returns:
        (source, content) pairs in transcript order
    """
    gathered: list[tuple[str, str]] = []

    for message in messages:
        content = (message.content or "").strip()

        if message.role is Role.TOOL:
            if message.tool_call_id in failed_call_ids:
                continue
            if len(content) > MIN_TOOL_OUTPUT_CHARS:
                gathered.append((message.name or "tool", content))

        elif message.is_final_reply and len(content) > MIN_ASSISTANT_TEXT_CHARS:
            gathered.append(("assistant", content))

    return gathered


def format_gathered_information(gathered: list[tuple[str, str]]) -> str | None:
    """
    Format findings grouped by source, numbered within each group.

    Returns None when there is nothing to report.
    """
    if not gathered:
        return None

    grouped: dict[str, list[str]] = {}
    for source, content in gathered:
        grouped.setdefault(source, []).append(content)

    parts = [GATHERED_TITLE]
    for source, items in grouped.items():
        parts.append(f"\n**From {source}:**")
        parts.extend(f"\n{i}. {content}" for i, content in enumerate(items, start=1))
    parts.append(GATHERED_NOTE)

    return "".join(parts)


# =============================================================================
# Agent
# =============================================================================


@dataclass
class _TurnState:
    """Per-turn accounting, folded into the TurnResult."""

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    iterations: int = 0
    tools_called: list[str] = field(default_factory=list)
    llm_calls: int = 0
    tokens_used: int = 0
    llm_latency_ms: float = 0.0
    failed_call_ids: set[str] = field(default_factory=set)
    rewinds: int = 0

    def counters(self) -> dict[str, Any]:
        return {
            "iterations": self.iterations,
            "tools_called": tuple(self.tools_called),
            "llm_calls": self.llm_calls,
            "tokens_used": self.tokens_used,
            "llm_latency_ms": self.llm_latency_ms,
            "started_at": self.started_at,
        }


class Agent:
    """
    Conversational agent driving a backend and a set of tools.

    Turns on one instance are serialized; concurrent process_turn() calls
    wait for each other.

    Example:
        agent = Agent("Assistant", create_backend_client(config), config=config)
        agent.register_tool("add", add_tool)

        result = await agent.run_turn("What is 2 + 3?")
        result.answer, result.status, result.tools_called
    """

    def __init__(
        self,
        name: str,
        backend: "BackendClient",
        *,
        config: AgentConfig | None = None,
        system_prompt: str | None = None,
        registry: ToolRegistry | None = None,
        runner: ToolRunner | None = None,
        history_behavior: HistoryBehavior | str | None = None,
        max_iterations: int | None = None,
        model: str | None = None,
        temperature: float | None = None,
        clock: "Callable[[], datetime] | None" = None,
    ):
        """
        Initialize the agent.

        Args:
            name: Agent name, shown in logs and the iteration header
            backend: Chat-completions client
            config: Runtime settings (defaults to AgentConfig())
            system_prompt: Base system prompt; tool prompts are appended
            registry: Tool registry (a new empty one if omitted)
            runner: Tool runner (built from config if omitted)
            history_behavior: Default retention policy (config default if omitted)
            max_iterations: Iteration cap override
            model: Model override
            temperature: Temperature override
            clock: Time source for the timestamp message
        """
        self.name = name
        self._config = config or AgentConfig()
        self._backend = backend
        self._system_prompt = system_prompt

        self.tools = registry if registry is not None else ToolRegistry()
        self._runner = runner or ToolRunner(self._config)

        self.conversation = Conversation(
            history_behavior or self._config.default_history_behavior,
            clock=clock or datetime.now,
        )

        self.max_iterations = max_iterations or self._config.max_iterations
        self.model = model or self._config.model
        self.temperature = self._config.temperature if temperature is None else temperature

        self._stats = AgentStats()
        self._turn_lock = asyncio.Lock()
        self._current_iteration: int | None = None
        self._log = AgentLogger(agent_name=name)

    @classmethod
    def from_config(cls, name: str, config: AgentConfig, **kwargs: Any) -> "Agent":
        """
        Create an agent with the backend client the config describes.

        Raises:
            MissingAPIKeyError: If a hosted provider has no API key
            ConfigurationError: If the provider is not supported
        """
        from agentcore.llm import create_backend_client

        return cls(name, create_backend_client(config), config=config, **kwargs)

    # =========================================================================
    # Public surface
    # =========================================================================

    def register_tool(self, name: str, tool: "Tool") -> None:
        """
        Make a tool available to the model.

        Raises:
            ToolRegistryError: On a duplicate name or an invalid tool
        """
        self.tools.register(name, tool)

    async def process_turn(
        self,
        user_message: str,
        *,
        history_behavior: HistoryBehavior | str | None = None,
        temperature: float | None = None,
    ) -> str:
        """
        Run one turn and return the answer text.

        Always returns a string: the final reply, gathered information, or
        an error message.
        """
        result = await self.run_turn(
            user_message,
            history_behavior=history_behavior,
            temperature=temperature,
        )
        return result.answer

    async def run_turn(
        self,
        user_message: str,
        *,
        history_behavior: HistoryBehavior | str | None = None,
        temperature: float | None = None,
    ) -> TurnResult:
        """
        Run one turn and return the structured result.

        Args:
            user_message: The user's input
            history_behavior: Retention policy for this turn only
            temperature: Temperature for this turn only

        Raises:
            InvalidHistoryBehaviorError: For an unknown policy
        """
        policy = HistoryBehavior.parse(history_behavior or self.conversation.history_behavior)
        async with self._turn_lock:
            return await self._run_turn(
                user_message,
                policy,
                self.temperature if temperature is None else temperature,
            )

    @property
    def total_tool_calls(self) -> int:
        return self._runner.total_tool_calls

    @property
    def total_llm_calls(self) -> int:
        return self._stats.snapshot().llm_calls

    @property
    def total_latency_ms(self) -> float:
        return self._stats.snapshot().latency_ms

    @property
    def total_tokens_used(self) -> int:
        return self._stats.snapshot().tokens_used

    @property
    def current_iteration(self) -> int | None:
        """Iteration in progress, or None between turns."""
        return self._current_iteration

    def reset_stats(self) -> None:
        """Zero the LLM, latency, token and tool-call counters."""
        self._stats.reset()
        self._runner.reset_tool_call_count()

    def clear_conversation(self) -> None:
        """Forget all history and reset counters."""
        self.conversation.clear()
        self.reset_stats()
        logger.debug(f"[agent] {self.name} conversation history cleared")

    # =========================================================================
    # Turn loop
    # =========================================================================

    async def _run_turn(
        self,
        user_message: str,
        policy: HistoryBehavior,
        temperature: float,
    ) -> TurnResult:
        log = self._log.with_turn(uuid4().hex[:12])
        state = _TurnState()

        # No tools means nothing to iterate on
        cap = self.max_iterations if self.tools else 1

        context = self.conversation.build_context_for_turn(
            self._build_system_prompt(), user_message, policy
        )
        self.conversation.start_turn(context)
        log.turn_started(cap, policy.value)

        try:
            result = await self._iterate(cap, temperature, state, log)
        finally:
            self._current_iteration = None
            self.conversation.cleanup_history(policy)

        log.turn_completed(
            result.status.value,
            result.iterations,
            result.duration_ms,
            error=None if result.success else result.answer,
        )
        logger.info(
            f"[agent] {self.name} total latency {self.total_latency_ms / 1000:.1f}s "
            f"({self.total_llm_calls} LLM calls)"
        )
        return result

    async def _iterate(
        self,
        cap: int,
        temperature: float,
        state: _TurnState,
        log: AgentLogger,
    ) -> TurnResult:
        iteration = 0

        while iteration < cap:
            iteration += 1
            self._current_iteration = iteration
            state.iterations = iteration
            logger.info(f"[agent] {self.name} iteration {iteration}/{cap}")

            response = await self._call_backend(iteration, cap, temperature, state, log)

            if response is None:
                logger.error(f"[agent] {self.name} failed to get a response after retries")
                return backend_error_result(**state.counters())

            message = response.message
            if message is None:
                logger.error(f"[agent] {self.name} received a response without a message")
                return invalid_response_result(**state.counters())

            if message.tool_calls:
                not_found = await self._dispatch_tools(message, iteration, state, log)
                if not_found and state.rewinds < cap:
                    state.rewinds += 1
                    iteration -= 1
                    logger.warning(
                        f"[agent] {self.name} retrying iteration due to tool not found errors"
                    )
                continue

            if message.content:
                self.conversation.append(Message.assistant(message.content))
                logger.info(f"[agent] {self.name} completed with response")
                return answered_result(message.content, **state.counters())

            logger.warning(f"[agent] {self.name} received no tool call or content")
            return no_response_result(**state.counters())

        logger.warning(f"[agent] {self.name} reached max iterations ({cap})")
        gathered = gather_information(self.conversation.ephemeral, state.failed_call_ids)
        if gathered:
            logger.info(
                f"[agent] {self.name} returning gathered information "
                f"from {len(gathered)} fragments"
            )
        return max_iterations_result(format_gathered_information(gathered), **state.counters())

    async def _dispatch_tools(
        self,
        message: Message,
        iteration: int,
        state: _TurnState,
        log: AgentLogger,
    ) -> bool:
        """
        Record the tool-call request, run it, and append the results.

        Returns:
            True if any requested tool was not found
        """
        # Request and results must share ids in the transcript
        tool_calls = with_call_identity(message.tool_calls or ())
        self.conversation.append(Message.assistant_tool_calls(tool_calls))
        names = [call.function_name for call in tool_calls]
        state.tools_called.extend(names)

        results = await self._runner.execute_all(tool_calls, self.tools)

        for result in results:
            self.conversation.append(result.to_conversation_message())
            if result.is_error:
                state.failed_call_ids.add(result.tool_call_id)

        log.tool_batch(iteration, names, sum(1 for r in results if r.is_error))
        return any(r.is_not_found for r in results)

    async def _call_backend(
        self,
        iteration: int,
        cap: int,
        temperature: float,
        state: _TurnState,
        log: AgentLogger,
    ) -> "ChatResponse | None":
        """Call the backend under the retry policy; None once retries run out."""
        messages = self._request_messages(iteration, cap, len(state.tools_called))
        tools = self.tools.to_llm_schemas() or None
        tool_choice = "auto" if tools else None

        logger.debug(
            f"[agent] Calling LLM ({len(messages)} messages), tools: "
            f"{', '.join(self.tools.list_function_names()) or 'None'}"
        )

        async def attempt() -> "ChatResponse | None":
            start = time.perf_counter()
            response = await self._backend.chat(messages, tools, tool_choice, temperature, self.model)
            if response is not None:
                latency_ms = round((time.perf_counter() - start) * 1000, 2)
                self._stats.record_llm_call(latency_ms, response.usage)
                state.llm_calls += 1
                state.llm_latency_ms += latency_ms
                state.tokens_used += response.total_tokens
                log.llm_call(iteration, latency_ms, response.total_tokens)
            return response

        outcome = await with_retry(
            attempt,
            RetryPolicy.for_backend(self._config.max_retries, self._config.retry_delay_seconds),
            operation_name=f"{self.name}.chat",
        )
        return outcome.result if outcome.success else None

    # =========================================================================
    # Prompt construction
    # =========================================================================

    def _build_system_prompt(self) -> str | None:
        """Base prompt plus registered tool prompts, or None if both are empty."""
        prompt = self._system_prompt or ""
        tool_prompts = self.tools.tool_prompts()
        if tool_prompts:
            prompt += TOOLS_HEADER + tool_prompts
        return prompt or None

    def _iteration_header(self, iteration: int, cap: int, tool_calls: int) -> str:
        return (
            f"--- [{self.name}] Iteration {iteration:02d}/{cap:02d} "
            f"| Tool Calls: {tool_calls} ---\n\n"
        )

    def _request_messages(self, iteration: int, cap: int, tool_calls: int) -> list[Message]:
        """
        Messages sent for one iteration.

        The system message is prefixed with the iteration header; the
        transcript itself keeps the plain prompt.
        """
        messages = self.conversation.ephemeral
        if messages and messages[0].role is Role.SYSTEM:
            header = self._iteration_header(iteration, cap, tool_calls)
            messages[0] = Message.system(header + (messages[0].content or ""))
        return messages

    def __repr__(self) -> str:
        return f"<Agent {self.name} tools={self.tools.list_names()}>"
