"""
agentcore LLM backends.

Usage:
    client = create_backend_client(load_config())
    response = await client.chat(messages, tools, "auto", 0.7, "gpt-4o-mini")
"""

from .base import BackendClient, ChatChoice, ChatResponse, TokenUsage
from .openai import OpenAIChatClient, create_backend_client

__all__ = [
    "BackendClient",
    "ChatChoice",
    "ChatResponse",
    "TokenUsage",
    "OpenAIChatClient",
    "create_backend_client",
]
