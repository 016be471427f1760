"""Citation generator collaborator (OpenRouter client and schemas)."""

from .openrouter_client import OpenRouterClient
from .schemas import CitationGenerator, GenerationResponse, TokenUsage

__all__ = [
    "CitationGenerator",
    "GenerationResponse",
    "OpenRouterClient",
    "TokenUsage",
]
