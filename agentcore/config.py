"""
Configuration for agentcore.

AgentConfig is an explicit, validated settings object. It is passed into
constructors (Conversation, ToolRunner, Agent); nothing below the entry
point reads the environment.

Security:
    The API key uses SecretStr to prevent accidental logging.
    Access the value with `.get_secret_value()`.

Usage:
    # From environment (AGENTCORE_* variables)
    config = load_config()

    # Explicit
    config = AgentConfig(max_iterations=8, max_concurrent_tools=4)
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from functools import lru_cache

from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

from .errors import ConfigurationError, InvalidHistoryBehaviorError, MissingAPIKeyError

logger = logging.getLogger(__name__)


class HistoryBehavior(str, Enum):
    """Retention policy reconciling per-turn transcript and persistent memory."""

    NONE = "none"  # Stateless: nothing survives a turn
    LAST = "last"  # Last user + assistant pair survives
    FULL = "full"  # Whole transcript survives

    @classmethod
    def parse(cls, value: "HistoryBehavior | str") -> "HistoryBehavior":
        """Coerce a string to a policy, failing fast on unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidHistoryBehaviorError(value) from None


class LLMProviderName(str, Enum):
    """Backends reachable through an OpenAI-compatible chat API."""

    OPENAI = "openai"
    OPENROUTER = "openrouter"
    OLLAMA = "ollama"


DEFAULT_BASE_URLS: dict[LLMProviderName, str] = {
    LLMProviderName.OPENAI: "https://api.openai.com/v1",
    LLMProviderName.OPENROUTER: "https://openrouter.ai/api/v1",
    LLMProviderName.OLLAMA: "http://localhost:11434/v1",
}


class AgentConfig(BaseModel):
    """
    Agent runtime settings.

    Groups:
    - Model: provider, model, temperature, credentials
    - Loop: iteration cap and backend retry
    - Tools: concurrency, timeout, jitter, output truncation
    - Memory: default retention policy
    - Logging: level and format
    """

    # Model
    llm_provider: LLMProviderName = LLMProviderName.OPENROUTER
    model: str = Field("deepseek/deepseek-chat-v3.1", min_length=1)
    temperature: float = Field(0.7, ge=0, le=2)
    api_key: SecretStr | None = None
    api_base_url: str | None = Field(None, description="Override provider endpoint")

    # Loop
    max_iterations: int = Field(5, ge=1)
    max_retries: int = Field(3, ge=0)
    retry_delay_seconds: float = Field(1.0, ge=0)

    # Tools
    max_concurrent_tools: int = Field(3, ge=1)
    tool_execution_timeout_seconds: float = Field(60.0, gt=0)
    tool_start_jitter_max_seconds: float = Field(1.0)
    max_tool_response_length: int = Field(20000, ge=1)
    shutdown_grace_seconds: float = Field(5.0, ge=0)

    # Memory
    default_history_behavior: HistoryBehavior = HistoryBehavior.NONE

    # Logging
    log_level: str = "INFO"
    log_format: str = Field("text", pattern="^(text|json)$")

    model_config = {"frozen": True}

    @field_validator("default_history_behavior", mode="before")
    @classmethod
    def _parse_history_behavior(cls, value: object) -> HistoryBehavior:
        return HistoryBehavior.parse(value)  # type: ignore[arg-type]

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def base_url(self) -> str:
        """Endpoint for the configured provider."""
        return self.api_base_url or DEFAULT_BASE_URLS[self.llm_provider]

    def validate_credentials(self) -> None:
        """
        Check that hosted providers have an API key.

        Raises:
            MissingAPIKeyError: If provider needs a key and none is set
        """
        if self.llm_provider is LLMProviderName.OLLAMA:
            return
        if self.api_key is None or not self.api_key.get_secret_value():
            raise MissingAPIKeyError(self.llm_provider.value)


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(f"AGENTCORE_{name}", default)


@lru_cache()
def load_config() -> AgentConfig:
    """
    Get agent settings from environment.

    Uses lru_cache for singleton pattern. Call `load_config.cache_clear()`
    after changing the environment.

    Raises:
        ConfigurationError: If any value fails validation
    """
    raw = {
        "llm_provider": _env("LLM_PROVIDER", "openrouter"),
        "model": _env("MODEL", "deepseek/deepseek-chat-v3.1"),
        "temperature": _env("TEMPERATURE", "0.7"),
        "api_key": _env("API_KEY"),
        "api_base_url": _env("API_BASE_URL"),
        "max_iterations": _env("MAX_ITERATIONS", "5"),
        "max_retries": _env("MAX_RETRIES", "3"),
        "retry_delay_seconds": _env("RETRY_DELAY", "1"),
        "max_concurrent_tools": _env("MAX_CONCURRENT_TOOLS", "3"),
        "tool_execution_timeout_seconds": _env("TOOL_TIMEOUT", "60"),
        "tool_start_jitter_max_seconds": _env("TOOL_JITTER_MAX", "1.0"),
        "max_tool_response_length": _env("MAX_TOOL_RESPONSE_LENGTH", "20000"),
        "default_history_behavior": _env("HISTORY_BEHAVIOR", "none"),
        "log_level": _env("LOG_LEVEL", "INFO"),
        "log_format": _env("LOG_FORMAT", "text"),
    }

    try:
        return AgentConfig(**{k: v for k, v in raw.items() if v not in (None, "")})
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid configuration: {first.get('msg', str(e))}",
            field=field or None,
        ) from e
