"""Exception hierarchy for citation processing."""

from __future__ import annotations


class CitationError(Exception):
    """Base exception for citation processing errors."""

    pass


class GenerationError(CitationError):
    """The external text-generation call failed (quota, network, bad response)."""

    pass


class SessionNotFoundError(CitationError):
    """No session with the requested timestamp exists in the history."""

    def __init__(self, timestamp: int):
        super().__init__(f"Session {timestamp} not found")
        self.timestamp = timestamp


class ReferenceNotFoundError(CitationError):
    """The session has no reference with the requested id."""

    def __init__(self, timestamp: int, reference_id: int):
        super().__init__(f"Reference {reference_id} not found in session {timestamp}")
        self.timestamp = timestamp
        self.reference_id = reference_id


class ExportFormatError(CitationError):
    """Unknown export format requested."""

    pass
