"""Prompt construction for the citation generator (pure logic, no LLM).

The generator receives a draft sentence or table and returns the revised
text plus a JSON references payload after the references sentinel. Search
scope is steered by journal grade and year range; the inline tag format by
the citation style.
"""

from __future__ import annotations

import re
from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from scholarcite.utils.response_parser import REFERENCES_SENTINEL


class JournalGrade(str, Enum):
    """Journal index the search should favour."""

    ALL = "ALL"
    SCI = "SCI"
    KCI = "KCI"
    SCOPUS = "SCOPUS"
    Q1 = "Q1"
    Q2 = "Q2"


class CitationStyle(str, Enum):
    APA = "APA"
    IEEE = "IEEE"
    VANCOUVER = "Vancouver"
    CHICAGO = "Chicago"
    MLA = "MLA"


class RevisionMode(str, Enum):
    """REFINE rewrites the text academically; KEEP only inserts citations."""

    REFINE = "REFINE"
    KEEP = "KEEP"


# Inline tag shape requested per style
CITATION_TAG_FORMATS: dict[CitationStyle, str] = {
    CitationStyle.APA: '"(Author, Year)" such as "(Lee, 2023)"',
    CitationStyle.IEEE: 'numbered brackets such as "[1]"',
    CitationStyle.VANCOUVER: 'numbered brackets such as "[1]"',
    CitationStyle.CHICAGO: '"(Author Year)" such as "(Lee 2023)"',
    CitationStyle.MLA: '"(Author page)" such as "(Lee 12)"',
}

_YEAR_RANGE = re.compile(r"^(ALL|5Y|10Y|\d{4})$")

_REFERENCE_SCHEMA = """{
  "id": number,
  "title": string,
  "authors": string,
  "year": string,
  "journal": string,
  "url": string,
  "grade": string,            // KCI, SCI, SCOPUS ... index listing
  "lang": "KOR" | "ENG",
  "snippet": string,          // summary of the supporting passage
  "citationReason": string,   // why this paper supports the sentence
  "citationTag": string,      // exact inline marker used in the revised text
  "originalSourceSentence": string,
  "sourceSection": string,
  "sourceParagraph": string,
  "relatedCitedSentence": string
}"""


class CitationRequest(BaseModel):
    """Parameters of one citation request.

    Attributes:
        text: Draft sentence or HTML table to cite
        grade: Journal grade filter
        year_range: "ALL", "5Y", "10Y" or a 4-digit minimum year
        style: Citation style for inline tags
        revision_mode: Rewrite the text or keep it as-is
        source_context: Optional surrounding text from the source document
    """

    text: str = Field(..., min_length=1, description="Draft text (plain or HTML)")
    grade: JournalGrade = Field(default=JournalGrade.SCI, description="Journal grade filter")
    year_range: str = Field(default="ALL", description="ALL, 5Y, 10Y or a 4-digit year")
    style: CitationStyle = Field(default=CitationStyle.APA, description="Citation style")
    revision_mode: RevisionMode = Field(default=RevisionMode.REFINE, description="Revision mode")
    source_context: str | None = Field(default=None, description="Surrounding source text")

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Text cannot be empty or whitespace-only")
        return v

    @field_validator("year_range")
    @classmethod
    def year_range_format(cls, v: str) -> str:
        value = v.strip().upper()
        if not _YEAR_RANGE.match(value):
            raise ValueError("year_range must be ALL, 5Y, 10Y or a 4-digit year")
        return value


def grade_instruction(grade: JournalGrade) -> str:
    if grade is JournalGrade.KCI:
        return (
            "Search first for Korean papers listed in the Korea Citation Index (KCI, kci.go.kr). "
            "Confirm the listing from KCI portal data and include a Korean full-text link "
            "(kci.go.kr, dbpia.co.kr, riss.kr)."
        )
    if grade is JournalGrade.ALL:
        return "Search broadly across reliable scholarly sources (Google Scholar, PubMed, KCI)."
    return f"Prefer authoritative journals indexed in {grade.value} (SCI, Scopus and similar)."


def year_instruction(year_range: str, current_year: int | None = None) -> str:
    """Describe the publication-year constraint.

    Example:
        >>> year_instruction("5Y", current_year=2026)
        'Prefer recent papers published within the last 5 years (2021-2026).'
    """
    year = current_year or date.today().year
    if year_range.isdigit():
        return f"Cite only papers published in {year_range} or later."
    if year_range == "5Y":
        return f"Prefer recent papers published within the last 5 years ({year - 5}-{year})."
    if year_range == "10Y":
        return f"Search papers published within the last 10 years ({year - 10}-{year})."
    return "Search meaningful research from any year, preferring recent work."


def build_system_prompt(
    request: CitationRequest,
    sentinel: str = REFERENCES_SENTINEL,
    current_year: int | None = None,
    context_chars: int = 500,
) -> str:
    """Build the system instruction for one request.

    Args:
        request: Citation request
        sentinel: Delimiter the generator must place before the JSON payload
        current_year: Override for the year arithmetic (tests)
        context_chars: Maximum characters of source context to include

    Returns:
        System prompt text
    """
    tag_format = CITATION_TAG_FORMATS[request.style]
    if request.revision_mode is RevisionMode.KEEP:
        revision = (
            "Keep the user's wording exactly; only insert inline citation tags where the "
            "claims need support."
        )
    else:
        revision = (
            "Rewrite the text in precise academic prose in the same language as the input, "
            "inserting inline citation tags."
        )

    steps = [
        "Identify the core claims of the selected text.",
    ]
    if request.source_context and context_chars > 0:
        context = request.source_context[:context_chars]
        steps.append(
            f'Consider the surrounding context of the source ("{context}...") so the '
            "citations fit the flow of the research."
        )
    steps.extend(
        [
            grade_instruction(request.grade),
            year_instruction(request.year_range, current_year),
            "Cite only papers that really exist, verified through search, and give a URL "
            "where the original can be checked (DOI, KCI portal, journal page).",
            f"{revision} Use the {request.style.value} style with tags formatted as {tag_format}. "
            "Every tag must be unique and must not be contained in another tag.",
            "If the input contains HTML tables, keep the table markup and cite inside the cells.",
            "For every reference explain how it supports the text and quote the supporting "
            "sentence from the paper.",
        ]
    )
    numbered = "\n".join(f"{i}. {step}" for i, step in enumerate(steps, 1))

    return (
        "You are a senior academic editor who matches draft sentences with supporting "
        "Korean and international papers.\n\n"
        f"Tasks:\n{numbered}\n\n"
        "Output format:\n"
        '- First the revised text, prefixed with "Cited Text:".\n'
        f"- Then a line containing only {sentinel}\n"
        "- Then a ```json fenced array of references, one object per citation tag:\n"
        f"{_REFERENCE_SCHEMA}"
    )


def build_user_prompt(request: CitationRequest) -> str:
    return (
        f'Text to cite: "{request.text}"\n'
        f"Journal grade: {request.grade.value}\n"
        f"Year range: {request.year_range}\n"
        f"Citation style: {request.style.value}"
    )
