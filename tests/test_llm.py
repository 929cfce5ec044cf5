"""
Tests for backend response types and the OpenAI-compatible client.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agentcore.config import AgentConfig
from agentcore.errors import MissingAPIKeyError
from agentcore.llm import BackendClient, ChatResponse, OpenAIChatClient, create_backend_client
from agentcore.messages import Message

RAW_TOOL_CALL_RESPONSE = {
    "model": "gpt-4o-mini",
    "choices": [
        {
            "index": 0,
            "finish_reason": "tool_calls",
            "message": {
                "role": "assistant",
                "content": None,
                "refusal": None,
                "tool_calls": [
                    {
                        "id": "call_1",
                        "type": "function",
                        "function": {"name": "search", "arguments": '{"q": "x"}'},
                    }
                ],
            },
        }
    ],
    "usage": {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17},
}


def sdk_response(data):
    response = MagicMock()
    response.model_dump.return_value = data
    return response


# =============================================================================
# Response Types
# =============================================================================


class TestChatResponse:
    """Tests for ChatResponse parsing."""

    def test_from_dict_with_tool_calls(self):
        response = ChatResponse.from_dict(RAW_TOOL_CALL_RESPONSE)

        assert response.model == "gpt-4o-mini"
        assert response.message.tool_calls[0].function_name == "search"
        assert response.message.content is None
        assert response.choices[0].finish_reason == "tool_calls"
        assert response.total_tokens == 17

    def test_from_dict_text(self):
        response = ChatResponse.from_dict(
            {"choices": [{"message": {"content": "Hello"}}], "usage": None}
        )

        assert response.message.content == "Hello"
        assert response.usage is None
        assert response.total_tokens == 0

    def test_empty_choices(self):
        response = ChatResponse.from_dict({"choices": []})

        assert response.message is None

    def test_total_tokens_derived_when_missing(self):
        response = ChatResponse.from_dict(
            {
                "choices": [{"message": {"role": "assistant", "content": "hi"}}],
                "usage": {"prompt_tokens": 3, "completion_tokens": 4},
            }
        )

        assert response.usage.total_tokens == 7


# =============================================================================
# OpenAI Client
# =============================================================================


@pytest.fixture
def sdk_client():
    """Patch AsyncOpenAI and return the mocked client instance."""
    with patch("agentcore.llm.openai.AsyncOpenAI") as factory:
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=sdk_response(RAW_TOOL_CALL_RESPONSE))
        factory.return_value = client
        client.factory = factory
        yield client


class TestOpenAIChatClient:
    """Tests for OpenAIChatClient."""

    def test_satisfies_protocol(self):
        assert isinstance(OpenAIChatClient("sk-test"), BackendClient)

    @pytest.mark.asyncio
    async def test_sends_tools_when_present(self, sdk_client):
        client = OpenAIChatClient("sk-test", "https://openrouter.ai/api/v1", provider="openrouter")
        tools = [{"type": "function", "function": {"name": "search"}}]

        response = await client.chat([Message.user("Hi")], tools, "auto", 0.2, "some-model")

        params = sdk_client.chat.completions.create.call_args.kwargs
        assert params["model"] == "some-model"
        assert params["temperature"] == 0.2
        assert params["messages"] == [{"role": "user", "content": "Hi"}]
        assert params["tools"] == tools
        assert params["tool_choice"] == "auto"
        assert response.message.tool_calls[0].id == "call_1"

    @pytest.mark.asyncio
    async def test_omits_tools_when_absent(self, sdk_client):
        client = OpenAIChatClient("sk-test")

        await client.chat([Message.user("Hi")], None, None, 0.7, "m")

        params = sdk_client.chat.completions.create.call_args.kwargs
        assert "tools" not in params
        assert "tool_choice" not in params

    @pytest.mark.asyncio
    async def test_client_created_lazily_once(self, sdk_client):
        client = OpenAIChatClient("sk-test", "http://localhost:11434/v1")

        assert sdk_client.factory.call_count == 0
        await client.chat([Message.user("a")], None, None, 0.7, "m")
        await client.chat([Message.user("b")], None, None, 0.7, "m")

        sdk_client.factory.assert_called_once_with(
            api_key="sk-test", base_url="http://localhost:11434/v1"
        )

    @pytest.mark.asyncio
    async def test_api_error_returns_none(self, sdk_client):
        sdk_client.chat.completions.create.side_effect = ConnectionError("reset by peer")
        client = OpenAIChatClient("sk-test")

        assert await client.chat([Message.user("Hi")], None, None, 0.7, "m") is None


class TestCreateBackendClient:
    """Tests for the provider factory."""

    def test_openrouter(self):
        client = create_backend_client(AgentConfig(llm_provider="openrouter", api_key="sk-or"))

        assert isinstance(client, OpenAIChatClient)
        assert client.name == "openrouter"
        assert client._base_url == "https://openrouter.ai/api/v1"
        assert client._api_key == "sk-or"

    def test_ollama_without_key(self):
        client = create_backend_client(AgentConfig(llm_provider="ollama"))

        assert client.name == "ollama"
        assert client._api_key == "ollama"

    def test_hosted_provider_without_key(self):
        with pytest.raises(MissingAPIKeyError):
            create_backend_client(AgentConfig(llm_provider="openai"))
