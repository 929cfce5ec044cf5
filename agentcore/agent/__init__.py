"""
agentcore Agent.

The iteration loop tying conversation state, the backend and the tool
engine together.

Usage:
    agent = Agent("Assistant", backend, config=config, system_prompt=PROMPT)
    agent.register_tool("search", SearchTool())

    answer = await agent.process_turn("Find the latest release notes")
"""

from .agent import Agent, format_gathered_information, gather_information
from .result import (
    BACKEND_ERROR_TEXT,
    INVALID_RESPONSE_TEXT,
    MAX_ITERATIONS_TEXT,
    NO_RESPONSE_TEXT,
    TurnResult,
    TurnStatus,
)
from .stats import AgentStats, StatsSnapshot

__all__ = [
    "Agent",
    "AgentStats",
    "StatsSnapshot",
    "TurnResult",
    "TurnStatus",
    "gather_information",
    "format_gathered_information",
    "NO_RESPONSE_TEXT",
    "BACKEND_ERROR_TEXT",
    "INVALID_RESPONSE_TEXT",
    "MAX_ITERATIONS_TEXT",
]
