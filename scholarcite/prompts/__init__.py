"""Prompt templates for the citation generator."""

from scholarcite.prompts.citation_prompt import (
    CitationRequest,
    CitationStyle,
    JournalGrade,
    RevisionMode,
    build_system_prompt,
    build_user_prompt,
)

__all__ = [
    "CitationRequest",
    "CitationStyle",
    "JournalGrade",
    "RevisionMode",
    "build_system_prompt",
    "build_user_prompt",
]
