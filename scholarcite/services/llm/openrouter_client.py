"""OpenRouter client for the citation generator.

OpenAI-compatible async client. One request per call: quota and network
failures surface to the caller as ``GenerationError`` and nothing is retried.
"""

from __future__ import annotations

from typing import Any

import structlog
from openai import APIError, APITimeoutError, AsyncOpenAI, RateLimitError

from scholarcite.core.config import LLMConfig, settings
from scholarcite.core.exceptions import GenerationError
from scholarcite.models.reference import GroundingUrl
from scholarcite.services.llm.schemas import GenerationResponse, TokenUsage

logger = structlog.get_logger(__name__)


def extract_grounding_urls(message: Any) -> list[GroundingUrl]:
    """Collect ``url_citation`` annotations attached to a completion message."""
    urls: list[GroundingUrl] = []
    for annotation in getattr(message, "annotations", None) or []:
        if getattr(annotation, "type", None) != "url_citation":
            continue
        citation = getattr(annotation, "url_citation", None)
        uri = getattr(citation, "url", None)
        if uri:
            urls.append(GroundingUrl(title=getattr(citation, "title", "") or "", uri=uri))
    return urls


class OpenRouterClient:
    """Citation generator backed by OpenRouter.

    Example:
        >>> client = OpenRouterClient()
        >>> response = await client.generate(system_prompt, user_prompt)
        >>> response.text.startswith("Cited Text:")
        True
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        config: LLMConfig | None = None,
        web_search: bool | None = None,
        client: AsyncOpenAI | None = None,
    ):
        """Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key (defaults to settings.OPENROUTER_API_KEY)
            base_url: Base URL for OpenRouter API
            config: Model parameters (defaults to settings.llm_config)
            web_search: Ask OpenRouter for web-search grounding
            client: Preconfigured AsyncOpenAI client (tests)

        Raises:
            ValueError: If API key is not provided
        """
        self.api_key = api_key or settings.OPENROUTER_API_KEY
        if not self.api_key and client is None:
            raise ValueError(
                "API key is required. Set OPENROUTER_API_KEY or pass api_key parameter."
            )

        self.base_url = base_url or settings.OPENROUTER_BASE_URL
        self.config = config or settings.llm_config
        self.web_search = settings.CITATION_WEB_SEARCH if web_search is None else web_search
        self.client = client or AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=float(self.config.timeout),
            max_retries=0,
        )

    async def generate(self, system_prompt: str, user_prompt: str) -> GenerationResponse:
        """Request a cited revision.

        Args:
            system_prompt: Instructions including the output format
            user_prompt: Text to cite and filters

        Returns:
            GenerationResponse with the raw text and grounding URLs

        Raises:
            GenerationError: If the request fails or returns no choices
        """
        logger.info(
            "citation_generation_started",
            model=self.config.model,
            temperature=self.config.temperature,
            web_search=self.web_search,
        )
        extra_body = {"plugins": [{"id": "web"}]} if self.web_search else None

        try:
            response = await self.client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                extra_body=extra_body,
            )
        # Subclasses of APIError first
        except RateLimitError as e:
            logger.error("citation_generation_rate_limited", model=self.config.model)
            raise GenerationError(f"Rate limit or quota exceeded: {e}") from e
        except APITimeoutError as e:
            logger.error("citation_generation_timeout", timeout=self.config.timeout)
            raise GenerationError(f"Request timed out after {self.config.timeout}s") from e
        except APIError as e:
            logger.error("citation_generation_failed", error=str(e))
            raise GenerationError(f"LLM request failed: {e}") from e

        if not response.choices:
            raise GenerationError("LLM returned no choices")

        message = response.choices[0].message
        usage = TokenUsage(
            prompt_tokens=response.usage.prompt_tokens if response.usage else 0,
            completion_tokens=response.usage.completion_tokens if response.usage else 0,
            total_tokens=response.usage.total_tokens if response.usage else 0,
        )
        result = GenerationResponse(
            text=message.content or "",
            grounding_urls=extract_grounding_urls(message),
            model=response.model or self.config.model,
            usage=usage,
        )
        logger.info(
            "citation_generation_completed",
            chars=len(result.text),
            grounding_urls=len(result.grounding_urls),
            total_tokens=usage.total_tokens,
        )
        return result
