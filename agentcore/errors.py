"""
Exceptions for agentcore.

Runtime failures of tools and of the model backend are NOT raised:
they are converted into ToolResult failures or a None backend response
so the agent loop can reason about them. The exceptions below signal
programming or configuration mistakes and are meant to fail fast.
"""

from __future__ import annotations


class AgentCoreError(Exception):
    """Base exception for agentcore errors."""

    pass


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationError(AgentCoreError):
    """Raised when configuration values are missing or invalid."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field

    def __str__(self) -> str:
        if self.field:
            return f"{self.args[0]} (field={self.field})"
        return self.args[0]


class MissingAPIKeyError(ConfigurationError):
    """Raised when a hosted provider is selected without an API key."""

    def __init__(self, provider: str):
        super().__init__(
            f"API key is required for provider '{provider}'. "
            "Set AGENTCORE_API_KEY environment variable.",
            field="api_key",
        )
        self.provider = provider


# =============================================================================
# Tools and Conversation
# =============================================================================


class ToolRegistryError(AgentCoreError):
    """Error in tool registry operations."""

    pass


class InvalidHistoryBehaviorError(AgentCoreError, ValueError):
    """Raised for a retention policy outside none/last/full."""

    def __init__(self, value: object):
        super().__init__(
            f"Invalid history_behavior: {value!r}. Must be 'none', 'last', or 'full'"
        )
        self.value = value


class InvalidMessageError(AgentCoreError, ValueError):
    """Raised when a Message violates its role/field invariants."""

    pass

