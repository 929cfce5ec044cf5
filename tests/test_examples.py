"""
Tests for the example tools.

The example directory name is not importable, so the module is loaded
from its path.
"""

import importlib.util
from pathlib import Path

import pytest

EXAMPLE = Path(__file__).resolve().parent.parent / "examples" / "01-basic-agent" / "main.py"


@pytest.fixture(scope="module")
def basic_agent():
    location = importlib.util.spec_from_file_location("basic_agent_example", EXAMPLE)
    module = importlib.util.module_from_spec(location)
    location.loader.exec_module(module)
    return module


class TestCalculate:
    """Tests for the calculate tool's expression evaluator."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("sqrt(1764) * 3", "126.0"),
            ("2 ** 10 - 24", "1000"),
            ("-(7 // 2) + 10 % 4", "-1"),
            ("floor(pi * 100) / 100", "3.14"),
        ],
    )
    async def test_arithmetic(self, basic_agent, expression, expected):
        assert await basic_agent.calculate.execute(expression=expression) == expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "expression",
        [
            "().__class__.__mro__",
            "__import__('os').system('true')",
            "open('/etc/passwd')",
            "'text' * 3",
            "sqrt(x=4)",
        ],
    )
    async def test_rejects_anything_but_arithmetic(self, basic_agent, expression):
        with pytest.raises((ValueError, SyntaxError)):
            await basic_agent.calculate.execute(expression=expression)
