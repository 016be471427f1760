"""Session history endpoints: list, inspect, toggle, undo, export."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response

from scholarcite.api.v1.dependencies import get_citation_service
from scholarcite.api.v1.schemas import (
    CompareResponse,
    SessionListResponse,
    SessionResponse,
    SessionSummary,
)
from scholarcite.core.exceptions import (
    ExportFormatError,
    ReferenceNotFoundError,
    SessionNotFoundError,
)
from scholarcite.exporters import get_export_format
from scholarcite.services.citation_service import CitationService

router = APIRouter(prefix="/v1", tags=["sessions"])


def _not_found(error: SessionNotFoundError | ReferenceNotFoundError) -> HTTPException:
    code = "reference_not_found" if isinstance(error, ReferenceNotFoundError) else "session_not_found"
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": code, "message": str(error)},
    )


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(
    service: CitationService = Depends(get_citation_service),
) -> SessionListResponse:
    """List sessions, most recent first."""
    sessions = service.history.sessions
    return SessionListResponse(
        sessions=[SessionSummary.from_session(s) for s in sessions],
        total=len(sessions),
    )


# Declared before /sessions/{timestamp} so "export" is not parsed as a timestamp
@router.get("/sessions/export")
async def export_sessions(
    format_name: str = Query(
        "markdown", alias="format", description="ris, enw, markdown, doc or draft"
    ),
    scope: Literal["selected", "all"] = Query("selected", description="Active session or all"),
    timestamp: int | None = Query(None, description="Active session (defaults to latest)"),
    service: CitationService = Depends(get_citation_service),
) -> Response:
    """Download selected references and evidence as a file.

    Returns:
        File response with a Content-Disposition attachment header

    Raises:
        HTTPException: 400 for unknown formats, 404 when nothing is selected
    """
    try:
        export_format = get_export_format(format_name)
    except ExportFormatError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "unknown_format", "message": str(e)},
        ) from e

    targets = service.history.export_targets(scope=scope, timestamp=timestamp)
    if not targets:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "nothing_to_export", "message": "No selected references to export"},
        )

    content = export_format.generate(targets)
    filename = f"Evidence_{scope}_{targets[0].timestamp}.{export_format.extension}"
    return Response(
        content=content,
        media_type=export_format.media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/sessions/{timestamp}", response_model=SessionResponse)
async def get_session(
    timestamp: int,
    service: CitationService = Depends(get_citation_service),
) -> SessionResponse:
    """Retrieve a session with its text rendered for the current selection."""
    try:
        session = service.history.get(timestamp)
    except SessionNotFoundError as e:
        raise _not_found(e) from e
    return SessionResponse.from_session(session, service.render(session))


@router.post(
    "/sessions/{timestamp}/references/{reference_id}/toggle", response_model=SessionResponse
)
async def toggle_reference(
    timestamp: int,
    reference_id: int,
    service: CitationService = Depends(get_citation_service),
) -> SessionResponse:
    """Flip one reference's selection; the response carries the new snapshot."""
    try:
        session = service.history.toggle_reference(timestamp, reference_id)
    except (SessionNotFoundError, ReferenceNotFoundError) as e:
        raise _not_found(e) from e
    return SessionResponse.from_session(session, service.render(session))


@router.post("/sessions/{timestamp}/undo", response_model=SessionResponse)
async def undo_session_change(
    timestamp: int,
    service: CitationService = Depends(get_citation_service),
) -> SessionResponse:
    """Restore the previous selection snapshot of a session."""
    try:
        session = service.history.undo(timestamp)
    except SessionNotFoundError as e:
        raise _not_found(e) from e
    return SessionResponse.from_session(session, service.render(session))


@router.get("/sessions/{timestamp}/compare", response_model=CompareResponse)
async def compare_session(
    timestamp: int,
    mode: Literal["membership", "sequence"] = Query("membership"),
    service: CitationService = Depends(get_citation_service),
) -> CompareResponse:
    """Diff the session's original text against its rendered text."""
    try:
        session = service.history.get(timestamp)
    except SessionNotFoundError as e:
        raise _not_found(e) from e
    return CompareResponse.from_tokens(service.compare(session, mode), mode)
