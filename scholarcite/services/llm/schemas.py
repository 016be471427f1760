"""Schemas for the citation generator collaborator.

Pydantic models for generator responses, and the protocol any
generator backend implements.
"""

from typing import Protocol

from pydantic import BaseModel, Field

from scholarcite.models.reference import GroundingUrl


class TokenUsage(BaseModel):
    """Token usage statistics."""

    prompt_tokens: int = Field(default=0, description="Number of tokens in prompt")
    completion_tokens: int = Field(default=0, description="Number of tokens in completion")
    total_tokens: int = Field(default=0, description="Total number of tokens")


class GenerationResponse(BaseModel):
    """Completed generator call."""

    text: str = Field(..., description="Raw response text")
    grounding_urls: list[GroundingUrl] = Field(default_factory=list, description="Web sources")
    model: str = Field(default="", description="Model that answered")
    usage: TokenUsage = Field(default_factory=TokenUsage, description="Token usage")


class CitationGenerator(Protocol):
    """Anything that turns prompts into a raw citation response."""

    async def generate(self, system_prompt: str, user_prompt: str) -> GenerationResponse: ...
