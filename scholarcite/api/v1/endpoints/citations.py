"""Citation endpoints: generate with the LLM or ingest a raw response."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from scholarcite.api.v1.dependencies import get_citation_service
from scholarcite.api.v1.schemas import ParseRequest, SessionResponse
from scholarcite.core.exceptions import GenerationError
from scholarcite.prompts.citation_prompt import CitationRequest
from scholarcite.services.citation_service import CitationService, RecordedSession

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["citations"])


def _session_response(service: CitationService, recorded: RecordedSession) -> SessionResponse:
    session = recorded.session
    return SessionResponse.from_session(
        session, service.render(session), recorded.outcome.rejections
    )


@router.post("/citations", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_citation(
    request: CitationRequest,
    service: CitationService = Depends(get_citation_service),
) -> SessionResponse:
    """Ask the text generator for citations and store the result as a session.

    Args:
        request: Text to cite with grade, year, style and revision options
        service: Citation service

    Returns:
        The new session with its rendered text

    Raises:
        HTTPException: 503 if generation is not configured, 502 if the generator fails
    """
    if service.generator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "generation_disabled",
                "message": "Set OPENROUTER_API_KEY to enable citation generation",
            },
        )

    try:
        recorded = await service.cite(request)
    except GenerationError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "generation_failed", "message": str(e)},
        ) from e

    logger.info("citation_created", timestamp=recorded.session.timestamp)
    return _session_response(service, recorded)


@router.post(
    "/citations/parse", response_model=SessionResponse, status_code=status.HTTP_201_CREATED
)
async def parse_citation(
    request: ParseRequest,
    service: CitationService = Depends(get_citation_service),
) -> SessionResponse:
    """Store an already generated raw response as a session (no LLM call)."""
    recorded = service.ingest(request.original_text, request.raw_response, request.grounding_urls)
    return _session_response(service, recorded)
