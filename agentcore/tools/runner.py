"""
Tool Execution Engine.

ToolRunner executes one batch of model-requested tool calls and returns
one ToolResult per request, in request order. Nothing raised by a tool
escapes: failures become ToolResult.failure values the model can read.

Strategies:
    sequential        one or zero requests, or max_concurrent_tools <= 1
    bounded-parallel  asyncio tasks gated by a semaphore sized
                      min(max_concurrent_tools, n), each with start jitter
                      and its own timeout

Single invocation:
    1. count the invocation; blank ids become "call_<index>", blank
       function names "unknown"
    2. decode JSON arguments          -> EXECUTION_ERROR on failure
    3. resolve tool by function name  -> NOT_FOUND if absent
    4. call execute(**arguments)      -> EXECUTION_ERROR if it raises
    5. truncate long output

Usage:
    runner = ToolRunner(config)
    results = await runner.execute_all(message.tool_calls, registry)
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
import threading
import time
from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from agentcore.config import AgentConfig

from .result import ToolErrorKind, ToolResult

if TYPE_CHECKING:
    from agentcore.messages import ToolCall

    from .registry import ToolRegistry

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n---\n[TOOL OUTPUT TRUNCATED]\n---\n"
TIMEOUT_MESSAGE = "Tool execution timed out"
UNKNOWN_FUNCTION_NAME = "unknown"


def with_call_identity(tool_calls: Sequence[ToolCall], start: int = 0) -> list[ToolCall]:
    """
    Fill in identities the model left blank.

    A call without an id becomes "call_<index>"; one without a function
    name becomes "unknown" (which then resolves to NOT_FOUND).
    """
    calls = []
    for index, call in enumerate(tool_calls, start=start):
        if not call.id or not call.function_name:
            logger.warning(f"[tool_runner] Tool call {index} is missing its id or function name")
            call = replace(
                call,
                id=call.id or f"call_{index}",
                function_name=call.function_name or UNKNOWN_FUNCTION_NAME,
            )
        calls.append(call)
    return calls


class ToolRunner:
    """
    Executes batches of tool calls against a registry.

    The runner holds no reference to the registry; it is passed per batch
    and must not change while the batch runs.

    Example:
        runner = ToolRunner(AgentConfig(max_concurrent_tools=4))
        results = await runner.execute_all(calls, registry)
        runner.total_tool_calls  # invocations so far
    """

    def __init__(
        self,
        config: AgentConfig | None = None,
        *,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the runner.

        Args:
            config: Concurrency, timeout, jitter and truncation settings
            rng: Random source for start jitter
        """
        self._config = config or AgentConfig()
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._total_tool_calls = 0

    @property
    def total_tool_calls(self) -> int:
        """Invocations attempted since creation or the last reset."""
        with self._lock:
            return self._total_tool_calls

    def reset_tool_call_count(self) -> None:
        with self._lock:
            self._total_tool_calls = 0

    async def execute_all(
        self,
        tool_calls: Sequence[ToolCall] | None,
        registry: ToolRegistry,
    ) -> list[ToolResult]:
        """
        Execute a batch of tool calls.

        Args:
            tool_calls: Requests from one model response (None or empty is a no-op)
            registry: Tools available for dispatch

        Returns:
            One result per request, in request order
        """
        if not tool_calls:
            return []

        calls = with_call_identity(tool_calls)
        if len(calls) <= 1 or self._config.max_concurrent_tools <= 1:
            return await self._execute_sequential(calls, registry)
        return await self._execute_parallel(calls, registry)

    async def execute_one(self, call: ToolCall, registry: ToolRegistry) -> ToolResult:
        """
        Execute a single tool call.

        Never raises for tool-side problems; see module docstring for the
        failure mapping.
        """
        with self._lock:
            self._total_tool_calls += 1

        [call] = with_call_identity([call])
        function_name = call.function_name

        try:
            arguments = json.loads(call.arguments or "{}")
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"[tool_runner] Bad arguments for {function_name}: {e}")
            return self._failure(
                call, ToolErrorKind.EXECUTION_ERROR, f"Failed to parse tool arguments: {e}"
            )

        if not isinstance(arguments, dict):
            return self._failure(
                call,
                ToolErrorKind.EXECUTION_ERROR,
                "Failed to parse tool arguments: expected a JSON object, "
                f"got {type(arguments).__name__}",
            )

        tool = registry.find(function_name)
        if tool is None:
            logger.warning(f"[tool_runner] Unknown tool: {function_name}")
            return self._failure(call, ToolErrorKind.NOT_FOUND, f"Tool '{function_name}' not found")

        start = time.perf_counter()
        try:
            output = await tool.execute(**arguments)
        except Exception as e:
            logger.error(f"[tool_runner] {function_name} raised {type(e).__name__}: {e}")
            return self._failure(
                call, ToolErrorKind.EXECUTION_ERROR, f"Tool execution failed: {e}"
            )

        duration_ms = (time.perf_counter() - start) * 1000
        text = self._truncate("" if output is None else str(output))
        logger.info(
            f"[tool_runner] {function_name} succeeded in {duration_ms:.1f}ms "
            f"({len(text)} chars)"
        )
        return ToolResult.success(
            function_name=function_name,
            tool_call_id=call.id,
            output=text,
        )

    # =========================================================================
    # Strategies
    # =========================================================================

    async def _execute_sequential(
        self,
        calls: list[ToolCall],
        registry: ToolRegistry,
    ) -> list[ToolResult]:
        return [await self.execute_one(call, registry) for call in calls]

    async def _execute_parallel(
        self,
        calls: list[ToolCall],
        registry: ToolRegistry,
    ) -> list[ToolResult]:
        workers = min(self._config.max_concurrent_tools, len(calls))
        semaphore = asyncio.Semaphore(workers)
        timeout = self._config.tool_execution_timeout_seconds

        logger.info(f"[tool_runner] Running {len(calls)} tools with {workers} workers")

        async def run(index: int, call: ToolCall) -> ToolResult:
            async with semaphore:
                delay = self._start_delay(index)
                if delay > 0:
                    await asyncio.sleep(delay)
                try:
                    return await asyncio.wait_for(self.execute_one(call, registry), timeout)
                except asyncio.TimeoutError:
                    logger.warning(
                        f"[tool_runner] {call.function_name} timed out after {timeout}s"
                    )
                    return self._failure(call, ToolErrorKind.TIMEOUT, TIMEOUT_MESSAGE)
                except Exception as e:
                    logger.error(f"[tool_runner] {call.function_name} task failed: {e}")
                    return self._failure(call, ToolErrorKind.EXECUTION_ERROR, str(e))

        tasks = [
            asyncio.create_task(run(i, call), name=f"tool_{i}_{call.function_name}")
            for i, call in enumerate(calls)
        ]

        try:
            return list(await asyncio.gather(*tasks))
        finally:
            await self._shutdown(tasks)

    async def _shutdown(self, tasks: list[asyncio.Task[Any]]) -> None:
        """Cancel whatever is still running and wait a bounded grace period."""
        pending = [task for task in tasks if not task.done()]
        if not pending:
            return

        for task in pending:
            task.cancel()

        _, still_pending = await asyncio.wait(
            pending, timeout=self._config.shutdown_grace_seconds
        )
        if still_pending:
            logger.warning(
                f"[tool_runner] {len(still_pending)} tool tasks did not stop "
                f"within {self._config.shutdown_grace_seconds}s"
            )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _start_delay(self, index: int) -> float:
        """Jitter before a parallel task starts; 0 when jitter is disabled."""
        jitter_max = self._config.tool_start_jitter_max_seconds
        if jitter_max <= 0:
            return 0.0
        return min(jitter_max, index * 0.1 + self._rng.uniform(0, 0.2))

    def _truncate(self, text: str) -> str:
        limit = self._config.max_tool_response_length
        if len(text) <= limit:
            return text
        return text[:limit] + TRUNCATION_MARKER

    @staticmethod
    def _failure(call: ToolCall, kind: ToolErrorKind, message: str) -> ToolResult:
        return ToolResult.failure(
            function_name=call.function_name,
            tool_call_id=call.id,
            kind=kind,
            message=message,
        )
