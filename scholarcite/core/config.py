"""Configuration management for the ScholarCite service."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMConfig(BaseModel):
    """Model parameters for the citation generator (one request per citation).

    Attributes:
        provider: Backend name; only "openrouter" is implemented
        model: OpenRouter model slug, e.g. "google/gemini-2.5-pro"
        temperature: Low values keep reference metadata stable across requests
        max_tokens: Completion budget for the cited text plus the references JSON
        timeout: Seconds before the single request is abandoned
    """

    provider: str = Field(..., description="Generator backend")
    model: str = Field(..., description="OpenRouter model slug")
    temperature: float = Field(..., ge=0.0, le=2.0, description="Generation temperature")
    max_tokens: int = Field(..., ge=100, le=32000, description="Completion token budget")
    timeout: int = Field(..., ge=10, le=600, description="Per-request timeout (seconds)")

    model_config = {"frozen": True}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenRouter (LLM)
    OPENROUTER_API_KEY: str | None = Field(
        default=None, description="OpenRouter API key (required only for generation)"
    )
    OPENROUTER_BASE_URL: str = Field(
        default="https://openrouter.ai/api/v1", description="OpenRouter API base URL"
    )

    # Citation LLM
    CITATION_LLM_PROVIDER: str = Field(default="openrouter", description="Citation LLM provider")
    CITATION_LLM_MODEL: str = Field(
        default="google/gemini-2.5-pro",
        description="Model asked to revise text and propose references",
    )
    CITATION_LLM_TEMPERATURE: float = Field(
        default=0.1, ge=0.0, le=2.0, description="Citation LLM temperature"
    )
    CITATION_LLM_MAX_TOKENS: int = Field(
        default=8192, ge=100, le=32000, description="Citation LLM max tokens"
    )
    CITATION_LLM_TIMEOUT: int = Field(
        default=180, ge=10, le=600, description="Citation LLM timeout (seconds)"
    )
    CITATION_WEB_SEARCH: bool = Field(
        default=True, description="Enable OpenRouter web search grounding for citations"
    )

    # Response parsing / validation
    REFERENCES_SENTINEL: str = Field(
        default="---REFERENCES_START---",
        min_length=1,
        description="Delimiter separating narrative text from the references payload",
    )
    REQUIRE_CITATION_TAG: bool = Field(
        default=False,
        description="Drop references without a citationTag (tag-filtering mode)",
    )
    REQUIRE_REFERENCE_METADATA: bool = Field(
        default=False,
        description="Drop references missing authors, year, journal or url",
    )
    SOURCE_CONTEXT_CHARS: int = Field(
        default=500, ge=0, le=5000, description="Characters of source context sent in prompts"
    )
    UNDO_DEPTH: int = Field(
        default=50, ge=1, le=1000, description="Selection snapshots kept per session for undo"
    )

    # API Configuration
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8002, description="API port")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Log format (json/text)")

    # Development
    DEBUG: bool = Field(default=False, description="Debug mode")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @property
    def llm_config(self) -> LLMConfig:
        """Get citation LLM configuration.

        Returns:
            LLMConfig for the citation generator
        """
        return LLMConfig(
            provider=self.CITATION_LLM_PROVIDER,
            model=self.CITATION_LLM_MODEL,
            temperature=self.CITATION_LLM_TEMPERATURE,
            max_tokens=self.CITATION_LLM_MAX_TOKENS,
            timeout=self.CITATION_LLM_TIMEOUT,
        )


# Global settings instance
settings = Settings()
