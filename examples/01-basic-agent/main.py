"""
Basic Agent Example

This example demonstrates a tool-calling agent:
1. Load configuration from AGENTCORE_* environment variables
2. Register a few function tools
3. Run a couple of turns with LAST retention

Requires AGENTCORE_API_KEY for hosted providers, or
AGENTCORE_LLM_PROVIDER=ollama for a local model.

Run: python examples/01-basic-agent/main.py
"""

import ast
import asyncio
import math
import operator
from datetime import date

from agentcore import Agent, HistoryBehavior, configure_logging, function_tool, load_config

SYSTEM_PROMPT = (
    "You are a careful assistant. Use the tools for arithmetic and dates "
    "instead of guessing, then answer in one or two sentences."
)

# =============================================================================
# Tools
# =============================================================================


@function_tool(
    description="Evaluate an arithmetic expression using + - * / ** and math functions",
    prompt="calculate: use for any arithmetic, e.g. calculate(expression='sqrt(2) * 3')",
)
def calculate(expression: str) -> str:
    return str(_evaluate(ast.parse(expression, mode="eval").body))


_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}


def _evaluate(node: ast.AST) -> float:
    """Walk an arithmetic expression: numbers, operators and math functions only."""
    if isinstance(node, ast.Constant) and type(node.value) in (int, float):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _OPERATORS:
        return _OPERATORS[type(node.op)](_evaluate(node.left), _evaluate(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _OPERATORS:
        return _OPERATORS[type(node.op)](_evaluate(node.operand))
    if isinstance(node, ast.Name) and node.id in ("pi", "e", "tau"):
        return getattr(math, node.id)
    if (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and not node.func.id.startswith("_")
        and callable(getattr(math, node.func.id, None))
        and not node.keywords
    ):
        return getattr(math, node.func.id)(*(_evaluate(arg) for arg in node.args))
    raise ValueError(f"Unsupported expression: {ast.dump(node)}")


@function_tool(description="Number of days from today until the given ISO date (YYYY-MM-DD)")
def days_until(iso_date: str) -> int:
    return (date.fromisoformat(iso_date) - date.today()).days


# =============================================================================
# Main
# =============================================================================


async def main():
    config = load_config()
    configure_logging(config.log_level, config.log_format)

    agent = Agent.from_config(
        "Assistant",
        config,
        system_prompt=SYSTEM_PROMPT,
        history_behavior=HistoryBehavior.LAST,
    )
    agent.register_tool("calculate", calculate)
    agent.register_tool("days_until", days_until)

    print(f"Agent: {agent}")
    print()

    for question in (
        "What is the square root of 1764, times 3?",
        "And how many days are left until 2030-01-01?",
    ):
        result = await agent.run_turn(question)
        print(f"Q: {question}")
        print(f"A: {result.answer}")
        print(f"   status={result.status.value} iterations={result.iterations} "
              f"tools={list(result.tools_called)} tokens={result.tokens_used}")
        print()

    print(f"Total LLM calls: {agent.total_llm_calls}")
    print(f"Total tool calls: {agent.total_tool_calls}")
    print(f"Total latency: {agent.total_latency_ms / 1000:.1f}s")


if __name__ == "__main__":
    asyncio.run(main())
