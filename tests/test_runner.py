"""
Tests for the Tool Execution Engine.

Tests cover:
- Single invocation outcomes (success, bad arguments, not found, exceptions)
- Output truncation
- Sequential vs bounded-parallel strategy
- Timeouts, ordering and the invocation counter
"""

import random
import time

import pytest

from agentcore.config import AgentConfig
from agentcore.messages import ToolCall
from agentcore.tools import (
    TIMEOUT_MESSAGE,
    TRUNCATION_MARKER,
    ToolErrorKind,
    ToolRegistry,
    ToolRunner,
    with_call_identity,
)

from helpers import EchoTool, FailingTool, LongOutputTool, SleepTool, call


def make_config(**overrides):
    settings = {
        "max_concurrent_tools": 3,
        "tool_execution_timeout_seconds": 2.0,
        "tool_start_jitter_max_seconds": 0,
        "shutdown_grace_seconds": 0.5,
    }
    settings.update(overrides)
    return AgentConfig(**settings)


@pytest.fixture
def tools():
    registry = ToolRegistry()
    registry.register("echo", EchoTool())
    registry.register("sleep", SleepTool())
    registry.register("failing", FailingTool())
    registry.register("long", LongOutputTool())
    return registry


@pytest.fixture
def runner():
    return ToolRunner(make_config())


# =============================================================================
# Single Invocation
# =============================================================================


class TestSingleInvocation:
    """Tests for one tool call."""

    @pytest.mark.asyncio
    async def test_success(self, runner, tools):
        [result] = await runner.execute_all([call("call_1", "echo", text="hi")], tools)

        assert result.is_success
        assert result.output == "echo: hi"
        assert result.tool_call_id == "call_1"
        assert result.function_name == "echo"

    @pytest.mark.asyncio
    async def test_arguments_spread_as_keywords(self, runner, tools):
        await runner.execute_all([call("call_1", "echo", text="spread")], tools)

        assert tools.get("echo").calls == [{"text": "spread"}]

    @pytest.mark.asyncio
    async def test_malformed_json(self, runner, tools):
        bad = ToolCall(id="call_1", function_name="echo", arguments="{not json")

        [result] = await runner.execute_all([bad], tools)

        assert result.kind is ToolErrorKind.EXECUTION_ERROR
        assert result.message.startswith("Failed to parse tool arguments")

    @pytest.mark.asyncio
    async def test_non_object_arguments(self, runner, tools):
        bad = ToolCall(id="call_1", function_name="echo", arguments="[1, 2]")

        [result] = await runner.execute_all([bad], tools)

        assert result.kind is ToolErrorKind.EXECUTION_ERROR
        assert "expected a JSON object" in result.message

    @pytest.mark.asyncio
    async def test_empty_arguments_mean_no_arguments(self, runner, tools):
        [result] = await runner.execute_all([ToolCall("call_1", "echo", "")], tools)

        assert result.output == "echo: "

    @pytest.mark.asyncio
    async def test_unknown_tool(self, runner, tools):
        [result] = await runner.execute_all([call("call_1", "teleport")], tools)

        assert result.kind is ToolErrorKind.NOT_FOUND
        assert result.message == "Tool 'teleport' not found"

    @pytest.mark.asyncio
    async def test_lookup_uses_function_name_not_registry_key(self, runner):
        registry = ToolRegistry()
        registry.register("alias", EchoTool(name="echo_text"))

        by_key, by_function = await runner.execute_all(
            [call("call_1", "alias"), call("call_2", "echo_text", text="x")], registry
        )

        assert by_key.is_not_found
        assert by_function.output == "echo: x"

    @pytest.mark.asyncio
    async def test_tool_exception(self, runner, tools):
        [result] = await runner.execute_all([call("call_1", "failing")], tools)

        assert result.kind is ToolErrorKind.EXECUTION_ERROR
        assert result.message == "Tool execution failed: boom"

    @pytest.mark.asyncio
    async def test_wrong_argument_names_are_execution_errors(self, runner, tools):
        [result] = await runner.execute_all([call("call_1", "echo", nope=1)], tools)

        assert result.kind is ToolErrorKind.EXECUTION_ERROR
        assert result.message.startswith("Tool execution failed:")


class TestTruncation:
    """Tests for output truncation."""

    @pytest.mark.asyncio
    async def test_long_output_truncated_with_marker(self, tools):
        runner = ToolRunner(make_config(max_tool_response_length=10))

        [result] = await runner.execute_all([call("call_1", "long_output", size=25)], tools)

        assert result.output == "x" * 10 + TRUNCATION_MARKER
        assert TRUNCATION_MARKER == "\n---\n[TOOL OUTPUT TRUNCATED]\n---\n"

    @pytest.mark.asyncio
    async def test_output_at_limit_untouched(self, tools):
        runner = ToolRunner(make_config(max_tool_response_length=10))

        [result] = await runner.execute_all([call("call_1", "long_output", size=10)], tools)

        assert result.output == "x" * 10


# =============================================================================
# Batches
# =============================================================================


class TestBatchExecution:
    """Tests for sequential and bounded-parallel batches."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("requests", [None, []])
    async def test_empty_batch(self, runner, tools, requests):
        assert await runner.execute_all(requests, tools) == []
        assert runner.total_tool_calls == 0

    @pytest.mark.asyncio
    async def test_parallel_runs_concurrently(self, runner, tools):
        """Two 100ms tools finish in about 100ms, not 200ms."""
        start = time.perf_counter()

        results = await runner.execute_all(
            [call("call_1", "sleep", seconds=0.1), call("call_2", "sleep", seconds=0.1)], tools
        )

        elapsed = time.perf_counter() - start
        assert all(r.is_success for r in results)
        assert elapsed < 0.19

    @pytest.mark.asyncio
    async def test_single_worker_runs_sequentially(self, tools):
        runner = ToolRunner(make_config(max_concurrent_tools=1))

        await runner.execute_all(
            [call(f"call_{i}", "sleep", seconds=0.01) for i in range(3)], tools
        )

        assert tools.get("sleep").peak == 1

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, tools):
        runner = ToolRunner(make_config(max_concurrent_tools=2))

        await runner.execute_all(
            [call(f"call_{i}", "sleep", seconds=0.05) for i in range(5)], tools
        )

        assert tools.get("sleep").peak == 2

    @pytest.mark.asyncio
    async def test_results_keep_request_order(self, runner, tools):
        requests = [
            call("call_1", "sleep", seconds=0.06, label="first"),
            call("call_2", "sleep", seconds=0.0, label="second"),
            call("call_3", "sleep", seconds=0.03, label="third"),
        ]

        results = await runner.execute_all(requests, tools)

        assert [r.tool_call_id for r in results] == ["call_1", "call_2", "call_3"]
        assert [r.output.split()[-1] for r in results] == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_timeout_and_mixed_outcomes(self, tools):
        runner = ToolRunner(make_config(tool_execution_timeout_seconds=0.05))
        requests = [
            call("call_1", "echo", text="ok"),
            call("call_2", "sleep", seconds=1.0),
            call("call_3", "failing"),
            call("call_4", "missing"),
        ]

        start = time.perf_counter()
        results = await runner.execute_all(requests, tools)
        elapsed = time.perf_counter() - start

        assert [r.tool_call_id for r in results] == ["call_1", "call_2", "call_3", "call_4"]
        assert results[0].is_success
        assert results[1].kind is ToolErrorKind.TIMEOUT
        assert results[1].message == TIMEOUT_MESSAGE
        assert results[1].function_name == "sleep"
        assert results[2].kind is ToolErrorKind.EXECUTION_ERROR
        assert results[3].kind is ToolErrorKind.NOT_FOUND
        assert elapsed < 0.5

    @pytest.mark.asyncio
    async def test_sibling_failure_does_not_cancel_others(self, runner, tools):
        results = await runner.execute_all(
            [call("call_1", "failing"), call("call_2", "sleep", seconds=0.05)], tools
        )

        assert results[0].is_error
        assert results[1].output == "slept 0.05"


class TestMissingIdentity:
    """Tests for tool calls sent without an id or function name."""

    def test_blanks_are_filled_by_position(self):
        calls = with_call_identity(
            [ToolCall("call_a", "echo"), ToolCall("", "echo"), ToolCall("call_c", "")]
        )

        assert [(c.id, c.function_name) for c in calls] == [
            ("call_a", "echo"),
            ("call_1", "echo"),
            ("call_c", "unknown"),
        ]

    @pytest.mark.asyncio
    async def test_sequential_call_without_id(self, runner, tools):
        [result] = await runner.execute_all([ToolCall("", "echo", '{"text": "hi"}')], tools)

        assert result.is_success
        assert result.output == "echo: hi"
        assert result.tool_call_id == "call_0"

    @pytest.mark.asyncio
    async def test_parallel_calls_without_identity(self, runner, tools):
        results = await runner.execute_all(
            [ToolCall("", "echo"), ToolCall("", ""), ToolCall("", "failing")], tools
        )

        assert [r.tool_call_id for r in results] == ["call_0", "call_1", "call_2"]
        assert results[0].is_success
        assert results[1].is_not_found
        assert results[1].message == "Tool 'unknown' not found"
        assert results[2].kind is ToolErrorKind.EXECUTION_ERROR
        assert runner.total_tool_calls == 3

    @pytest.mark.asyncio
    async def test_execute_one_without_id(self, runner, tools):
        result = await runner.execute_one(ToolCall("", "failing"), tools)

        assert result.tool_call_id == "call_0"
        assert result.message == "Tool execution failed: boom"


class TestInvocationCounter:
    """Tests for total_tool_calls."""

    @pytest.mark.asyncio
    async def test_counts_every_attempt(self, runner, tools):
        await runner.execute_all(
            [call("call_1", "echo"), call("call_2", "missing"), call("call_3", "failing")], tools
        )
        await runner.execute_all([call("call_4", "echo")], tools)

        assert runner.total_tool_calls == 4

    @pytest.mark.asyncio
    async def test_counts_timed_out_calls(self, tools):
        runner = ToolRunner(make_config(tool_execution_timeout_seconds=0.05))

        results = await runner.execute_all(
            [
                call("call_1", "sleep", seconds=1),
                call("call_2", "echo"),
                call("call_3", "sleep", seconds=1),
            ],
            tools,
        )

        assert [r.kind for r in results] == [ToolErrorKind.TIMEOUT, None, ToolErrorKind.TIMEOUT]
        assert runner.total_tool_calls == 3

    @pytest.mark.asyncio
    async def test_reset(self, runner, tools):
        await runner.execute_all([call("call_1", "echo")], tools)

        runner.reset_tool_call_count()

        assert runner.total_tool_calls == 0


class TestStartJitter:
    """Tests for per-task start jitter."""

    def test_disabled_when_max_is_zero(self):
        runner = ToolRunner(make_config(tool_start_jitter_max_seconds=0))

        assert runner._start_delay(5) == 0.0

    def test_capped_at_max(self):
        runner = ToolRunner(make_config(tool_start_jitter_max_seconds=0.25), rng=random.Random(7))

        delays = [runner._start_delay(i) for i in range(10)]

        assert all(0 <= d <= 0.25 for d in delays)
        assert delays[-1] == 0.25
