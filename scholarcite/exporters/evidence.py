"""Evidence documents: what was cited, where, and the quoted support.

Sessions are passed whole; the text is rendered with the current selection
and only selected references are listed.
"""

from __future__ import annotations

import html
from collections.abc import Iterable
from datetime import datetime, timezone

from scholarcite.models.reference import CitationSession, Reference
from scholarcite.utils.diff_engine import strip_markup
from scholarcite.utils.selective_renderer import render_selected

# (label, attribute) pairs shown for every reference, in order
EVIDENCE_FIELDS: tuple[tuple[str, str], ...] = (
    ("Citation tag", "citation_tag"),
    ("Citation reason", "citation_reason"),
    ("Source sentence", "original_source_sentence"),
    ("Source section", "source_section"),
    ("Source paragraph", "source_paragraph"),
    ("Supported sentence", "related_cited_sentence"),
    ("Snippet", "snippet"),
)


def _session_date(session: CitationSession) -> str:
    moment = datetime.fromtimestamp(session.timestamp / 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M UTC")


def _reference_heading(ref: Reference) -> str:
    details = ", ".join(part for part in (ref.journal, ref.year) if part)
    return f"[{ref.id}] {ref.title}" + (f" ({details})" if details else "")


def generate_evidence_markdown(sessions: Iterable[CitationSession]) -> str:
    """Markdown evidence list for one or more sessions."""
    lines = ["# Citation Evidence", ""]
    for number, session in enumerate(sessions, 1):
        references = session.selected_references
        if not references:
            continue
        lines.extend(
            [
                f"## Session {number}: {_session_date(session)}",
                "",
                "### Original text",
                f"> {strip_markup(session.original_text).strip()}",
                "",
                "### Cited text",
                strip_markup(render_selected(session.cited_text, session.references)).strip(),
                "",
                "### References",
                "",
            ]
        )
        for ref in references:
            lines.append(f"#### {_reference_heading(ref)}")
            lines.append(f"- **Authors**: {ref.authors}")
            if ref.url:
                lines.append(f"- **URL**: {ref.url}")
            if ref.grade:
                lines.append(f"- **Grade**: {ref.grade}")
            for label, attribute in EVIDENCE_FIELDS:
                value = getattr(ref, attribute)
                if value:
                    lines.append(f"- **{label}**: {value}")
            lines.append("")
        lines.extend(["---", ""])
    return "\n".join(lines)


def generate_evidence_doc(sessions: Iterable[CitationSession]) -> str:
    """Word-compatible HTML evidence document (served as application/msword)."""
    body: list[str] = ["<h1>Citation Evidence</h1>"]
    for number, session in enumerate(sessions, 1):
        references = session.selected_references
        if not references:
            continue
        rendered = render_selected(session.cited_text, session.references)
        body.append(f"<h2>Session {number}: {html.escape(_session_date(session))}</h2>")
        body.append("<h3>Original text</h3>")
        body.append(f"<blockquote>{html.escape(strip_markup(session.original_text))}</blockquote>")
        body.append("<h3>Cited text</h3>")
        body.append(f"<p>{html.escape(strip_markup(rendered))}</p>")
        body.append("<h3>References</h3>")
        for ref in references:
            body.append(f"<h4>{html.escape(_reference_heading(ref))}</h4>")
            items = [("Authors", ref.authors)]
            if ref.url:
                items.append(("URL", ref.url))
            items.extend(
                (label, getattr(ref, attribute))
                for label, attribute in EVIDENCE_FIELDS
                if getattr(ref, attribute)
            )
            body.append("<ul>")
            body.extend(
                f"<li><b>{html.escape(label)}</b>: {html.escape(value)}</li>" for label, value in items
            )
            body.append("</ul>")
        body.append("<hr/>")

    return (
        '<html><head><meta charset="utf-8"><title>Citation Evidence</title></head>'
        f"<body>{''.join(body)}</body></html>"
    )


def generate_draft_markdown(session: CitationSession) -> str:
    """Paper draft: original text, cited text and a numbered reference list."""
    lines = [
        "# Paper Draft",
        "",
        "## 1. Original text",
        f"> {strip_markup(session.original_text).strip()}",
        "",
        "## 2. Text with citations",
        strip_markup(render_selected(session.cited_text, session.references)).strip(),
        "",
        "## 3. References",
    ]
    for ref in session.selected_references:
        lines.append(f'[{ref.id}] {ref.authors} ({ref.year}). "{ref.title}". {ref.journal}.')
        if ref.url:
            lines.append(f"    Link: {ref.url}")
        lines.append("")
    return "\n".join(lines)
