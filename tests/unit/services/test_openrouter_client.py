"""Tests for the OpenRouter citation generator client."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIConnectionError, APIError, RateLimitError
from openai.types.chat import ChatCompletion, ChatCompletionMessage
from openai.types.chat.chat_completion import Choice
from openai.types.completion_usage import CompletionUsage

from scholarcite.core.config import LLMConfig
from scholarcite.core.exceptions import GenerationError
from scholarcite.services.llm.openrouter_client import OpenRouterClient, extract_grounding_urls


def _create_mock_request():
    return httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")


def _create_rate_limit_error(message: str):
    response = httpx.Response(429, request=_create_mock_request())
    return RateLimitError(message, response=response, body={"error": {"message": message}})


@pytest.fixture
def llm_config() -> LLMConfig:
    return LLMConfig(
        provider="openrouter",
        model="google/gemini-2.5-pro",
        temperature=0.1,
        max_tokens=4096,
        timeout=60,
    )


@pytest.fixture
def mock_openai_client():
    """Mock AsyncOpenAI client for testing."""
    client = MagicMock()
    client.chat = MagicMock()
    client.chat.completions = MagicMock()
    return client


@pytest.fixture
def mock_chat_response() -> ChatCompletion:
    return ChatCompletion(
        id="chatcmpl-test123",
        object="chat.completion",
        created=1234567890,
        model="google/gemini-2.5-pro",
        choices=[
            Choice(
                index=0,
                message=ChatCompletionMessage(
                    role="assistant",
                    content="Cited Text: AI improves outcomes [1].",
                    annotations=[
                        {
                            "type": "url_citation",
                            "url_citation": {
                                "url": "https://doi.org/10.1/abc",
                                "title": "Deep learning in radiology",
                                "start_index": 0,
                                "end_index": 10,
                            },
                        }
                    ],
                ),
                finish_reason="stop",
            )
        ],
        usage=CompletionUsage(prompt_tokens=10, completion_tokens=20, total_tokens=30),
    )


class TestOpenRouterClientInit:
    def test_requires_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from scholarcite.core.config import settings

        monkeypatch.setattr(settings, "OPENROUTER_API_KEY", None)

        with pytest.raises(ValueError, match="API key is required"):
            OpenRouterClient()

    def test_injected_client_needs_no_key(
        self, mock_openai_client: MagicMock, llm_config: LLMConfig
    ) -> None:
        client = OpenRouterClient(client=mock_openai_client, config=llm_config)

        assert client.client is mock_openai_client
        assert client.config.model == "google/gemini-2.5-pro"


class TestGenerate:
    @pytest.mark.asyncio
    async def test_returns_text_usage_and_grounding(
        self,
        mock_openai_client: MagicMock,
        mock_chat_response: ChatCompletion,
        llm_config: LLMConfig,
    ) -> None:
        mock_openai_client.chat.completions.create = AsyncMock(return_value=mock_chat_response)
        client = OpenRouterClient(client=mock_openai_client, config=llm_config, web_search=True)

        response = await client.generate("system", "user")

        assert response.text == "Cited Text: AI improves outcomes [1]."
        assert response.usage.total_tokens == 30
        assert [(u.title, u.uri) for u in response.grounding_urls] == [
            ("Deep learning in radiology", "https://doi.org/10.1/abc")
        ]

        kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "google/gemini-2.5-pro"
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}
        assert kwargs["extra_body"] == {"plugins": [{"id": "web"}]}

    @pytest.mark.asyncio
    async def test_web_search_disabled(
        self,
        mock_openai_client: MagicMock,
        mock_chat_response: ChatCompletion,
        llm_config: LLMConfig,
    ) -> None:
        mock_openai_client.chat.completions.create = AsyncMock(return_value=mock_chat_response)
        client = OpenRouterClient(client=mock_openai_client, config=llm_config, web_search=False)

        await client.generate("system", "user")

        assert mock_openai_client.chat.completions.create.call_args.kwargs["extra_body"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            _create_rate_limit_error("quota exceeded"),
            APIConnectionError(request=_create_mock_request()),
            APIError("server error", request=_create_mock_request(), body=None),
        ],
    )
    async def test_api_errors_become_generation_errors(
        self, mock_openai_client: MagicMock, llm_config: LLMConfig, error: Exception
    ) -> None:
        """Given: the API call fails
        When: generating
        Then: a GenerationError is raised after a single attempt
        """
        mock_openai_client.chat.completions.create = AsyncMock(side_effect=error)
        client = OpenRouterClient(client=mock_openai_client, config=llm_config)

        with pytest.raises(GenerationError):
            await client.generate("system", "user")

        assert mock_openai_client.chat.completions.create.await_count == 1

    @pytest.mark.asyncio
    async def test_no_choices(
        self,
        mock_openai_client: MagicMock,
        mock_chat_response: ChatCompletion,
        llm_config: LLMConfig,
    ) -> None:
        empty = mock_chat_response.model_copy(update={"choices": []})
        mock_openai_client.chat.completions.create = AsyncMock(return_value=empty)
        client = OpenRouterClient(client=mock_openai_client, config=llm_config)

        with pytest.raises(GenerationError, match="no choices"):
            await client.generate("system", "user")


def test_extract_grounding_urls_ignores_other_annotations() -> None:
    message = MagicMock()
    message.annotations = [
        MagicMock(type="file"),
        MagicMock(type="url_citation", url_citation=None),
    ]

    assert extract_grounding_urls(message) == []
