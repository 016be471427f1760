"""Shared data models."""

from scholarcite.models.reference import CitationResult, CitationSession, GroundingUrl, Reference

__all__ = [
    "CitationResult",
    "CitationSession",
    "GroundingUrl",
    "Reference",
]
