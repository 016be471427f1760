"""Citation services: pipeline orchestration and session history."""

from scholarcite.services.citation_service import CitationService
from scholarcite.services.session_history import SessionHistory

__all__ = [
    "CitationService",
    "SessionHistory",
]
