"""FastAPI dependencies."""

from __future__ import annotations

import structlog

from scholarcite.core.config import settings
from scholarcite.services.citation_service import CitationService
from scholarcite.services.llm.openrouter_client import OpenRouterClient

logger = structlog.get_logger(__name__)

# Process-wide service; its SessionHistory lives in memory only
_citation_service: CitationService | None = None


def get_citation_service() -> CitationService:
    """Get or initialize the citation service.

    Generation is disabled (503 on /citations) when no OpenRouter key is set;
    parsing, toggling, comparison and export still work.
    """
    global _citation_service
    if _citation_service is None:
        generator = OpenRouterClient() if settings.OPENROUTER_API_KEY else None
        _citation_service = CitationService(generator=generator)
        logger.info("citation_service_initialized", generation_enabled=generator is not None)
    return _citation_service
