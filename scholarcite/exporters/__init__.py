"""Export formats for citation sessions."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import NamedTuple

from scholarcite.core.exceptions import ExportFormatError
from scholarcite.exporters.bibliography import generate_enw, generate_ris
from scholarcite.exporters.evidence import (
    generate_draft_markdown,
    generate_evidence_doc,
    generate_evidence_markdown,
)
from scholarcite.models.reference import CitationSession, Reference


class ExportFormat(NamedTuple):
    """Generator plus the download metadata of one format."""

    generate: Callable[[Sequence[CitationSession]], str]
    media_type: str
    extension: str


def _selected(sessions: Sequence[CitationSession]) -> list[Reference]:
    return [ref for session in sessions for ref in session.selected_references]


EXPORT_FORMATS: dict[str, ExportFormat] = {
    "ris": ExportFormat(
        lambda sessions: generate_ris(_selected(sessions)), "application/x-research-info-systems", "ris"
    ),
    "enw": ExportFormat(
        lambda sessions: generate_enw(_selected(sessions)), "application/x-endnote-refer", "enw"
    ),
    "markdown": ExportFormat(generate_evidence_markdown, "text/markdown", "md"),
    "doc": ExportFormat(generate_evidence_doc, "application/msword", "doc"),
    "draft": ExportFormat(
        lambda sessions: "\n\n".join(generate_draft_markdown(s) for s in sessions),
        "text/markdown",
        "md",
    ),
}


def get_export_format(name: str) -> ExportFormat:
    try:
        return EXPORT_FORMATS[name.lower()]
    except KeyError:
        supported = ", ".join(sorted(EXPORT_FORMATS))
        raise ExportFormatError(f"Unknown export format {name!r} (supported: {supported})") from None


def export_sessions(name: str, sessions: Sequence[CitationSession]) -> str:
    """Render ``sessions`` in the named format.

    Raises:
        ExportFormatError: If the format is unknown
    """
    return get_export_format(name).generate(sessions)


__all__ = [
    "EXPORT_FORMATS",
    "ExportFormat",
    "export_sessions",
    "generate_draft_markdown",
    "generate_enw",
    "generate_evidence_doc",
    "generate_evidence_markdown",
    "generate_ris",
    "get_export_format",
]
