"""
Pytest configuration and fixtures for agentcore tests.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from agentcore.tools import ...` to work without installing
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from agentcore.config import AgentConfig  # noqa: E402
from agentcore.tools import ToolRegistry  # noqa: E402

from helpers import EchoTool  # noqa: E402

FIXED_NOW = datetime(2024, 5, 1, 9, 30, 0)


@pytest.fixture
def fixed_clock():
    """Clock returning a constant time, for exact timestamp messages."""
    return lambda: FIXED_NOW


@pytest.fixture
def fast_config():
    """Config with no retry delay and no start jitter."""
    return AgentConfig(
        max_iterations=3,
        max_retries=2,
        retry_delay_seconds=0,
        max_concurrent_tools=3,
        tool_execution_timeout_seconds=2.0,
        tool_start_jitter_max_seconds=0,
        shutdown_grace_seconds=0.5,
    )


@pytest.fixture
def echo_tool():
    return EchoTool()


@pytest.fixture
def registry(echo_tool):
    """Registry holding a single echo tool."""
    registry = ToolRegistry()
    registry.register("echo", echo_tool)
    return registry
