"""
agentcore - conversational agent runtime with tool calling.

agentcore coordinates a language-model backend and a set of callable
tools:

- **Conversation**: per-turn transcript plus persistent memory with
  none/last/full retention
- **Tool Execution Engine**: sequential or bounded-parallel tool batches
  with per-call timeouts and truncation
- **ToolResult**: validated success/failure outcome of one tool call
- **Agent**: the iteration loop with backend retry and not-found rewind

Quick Start:
    >>> from agentcore import Agent, load_config, function_tool
    >>>
    >>> @function_tool(description="Add two integers")
    ... def add(a: int, b: int) -> str:
    ...     return str(a + b)
    >>>
    >>> agent = Agent.from_config("Assistant", load_config())
    >>> agent.register_tool("add", add)
    >>> answer = await agent.process_turn("What is 2 + 3?")
"""

__version__ = "0.1.0"

from agentcore.config import AgentConfig, HistoryBehavior, LLMProviderName, load_config
from agentcore.errors import (
    AgentCoreError,
    ConfigurationError,
    InvalidHistoryBehaviorError,
    InvalidMessageError,
    MissingAPIKeyError,
    ToolRegistryError,
)
from agentcore.messages import Message, Role, ToolCall
from agentcore.conversation import Conversation
from agentcore.observability import configure_logging
from agentcore.tools import (
    FunctionTool,
    Tool,
    ToolErrorKind,
    ToolRegistry,
    ToolResult,
    ToolRunner,
    function_tool,
)
from agentcore.llm import BackendClient, ChatResponse, OpenAIChatClient, create_backend_client
from agentcore.agent import Agent, TurnResult, TurnStatus

__all__ = [
    # Config
    "AgentConfig",
    "HistoryBehavior",
    "LLMProviderName",
    "load_config",
    # Errors
    "AgentCoreError",
    "ConfigurationError",
    "InvalidHistoryBehaviorError",
    "InvalidMessageError",
    "MissingAPIKeyError",
    "ToolRegistryError",
    # Conversation
    "Message",
    "Role",
    "ToolCall",
    "Conversation",
    # Tools
    "Tool",
    "FunctionTool",
    "function_tool",
    "ToolErrorKind",
    "ToolRegistry",
    "ToolResult",
    "ToolRunner",
    # Backends
    "BackendClient",
    "ChatResponse",
    "OpenAIChatClient",
    "create_backend_client",
    # Agent
    "Agent",
    "TurnResult",
    "TurnStatus",
    # Logging
    "configure_logging",
]
