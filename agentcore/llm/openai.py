"""
OpenAI-compatible Backend Client for agentcore.

One client covers every supported provider, since OpenAI, OpenRouter and
Ollama all expose the chat-completions API:

    openai      https://api.openai.com/v1
    openrouter  https://openrouter.ai/api/v1
    ollama      http://localhost:11434/v1 (no key required)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from openai import AsyncOpenAI

from agentcore.config import AgentConfig, LLMProviderName
from agentcore.errors import ConfigurationError

from .base import ChatResponse

if TYPE_CHECKING:
    from agentcore.messages import Message

logger = logging.getLogger(__name__)

# Ollama ignores the key, but the SDK refuses to start without one
_OLLAMA_PLACEHOLDER_KEY = "ollama"


class OpenAIChatClient:
    """
    Chat-completions client built on the OpenAI SDK.

    Any SDK or transport error is logged and reported as None so the agent
    can retry it.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        *,
        provider: str = "openai",
        timeout: float | None = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Provider API key
            base_url: Endpoint override (None uses the SDK default)
            provider: Provider name for logging
            timeout: Per-request timeout in seconds
        """
        self._api_key = api_key
        self._base_url = base_url
        self._provider = provider
        self._timeout = timeout
        self._client: AsyncOpenAI | None = None  # Lazy initialization

    @property
    def name(self) -> str:
        return self._provider

    def _get_client(self) -> AsyncOpenAI:
        """Lazy initialization of the SDK client."""
        if self._client is None:
            kwargs: dict[str, Any] = {"api_key": self._api_key, "base_url": self._base_url}
            if self._timeout is not None:
                kwargs["timeout"] = self._timeout
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def chat(
        self,
        messages: Sequence[Message],
        tools: list[dict[str, Any]] | None,
        tool_choice: str | None,
        temperature: float,
        model: str,
    ) -> ChatResponse | None:
        params: dict[str, Any] = {
            "model": model,
            "messages": [message.to_dict() for message in messages],
            "temperature": temperature,
        }
        if tools:
            params["tools"] = tools
            params["tool_choice"] = tool_choice or "auto"

        try:
            response = await self._get_client().chat.completions.create(**params)
            return ChatResponse.from_dict(response.model_dump())
        except Exception as e:
            logger.error(f"[{self._provider}] Chat completion error: {e}", exc_info=True)
            return None


def create_backend_client(config: AgentConfig) -> OpenAIChatClient:
    """
    Create the backend client for the configured provider.

    Raises:
        MissingAPIKeyError: If a hosted provider has no API key
        ConfigurationError: If the provider is not supported
    """
    try:
        provider = LLMProviderName(config.llm_provider)
    except ValueError:
        supported = ", ".join(p.value for p in LLMProviderName)
        raise ConfigurationError(
            f"Unsupported LLM provider: {config.llm_provider}. Supported providers: {supported}",
            field="llm_provider",
        ) from None

    config.validate_credentials()

    if provider is LLMProviderName.OLLAMA:
        api_key = config.api_key.get_secret_value() if config.api_key else ""
        api_key = api_key or _OLLAMA_PLACEHOLDER_KEY
    else:
        api_key = config.api_key.get_secret_value()  # type: ignore[union-attr]

    logger.info(f"[llm] Using {provider.value} at {config.base_url} (model: {config.model})")
    return OpenAIChatClient(api_key, config.base_url, provider=provider.value)
