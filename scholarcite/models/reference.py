"""Reference, result and session models shared across the pipeline.

Wire names are camelCase (``citationTag``, ``isSelected``) to match the
payload the text generator emits; Python attributes are snake_case. Every
model is frozen: a selection change produces a new snapshot.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Reference(BaseModel):
    """Validated reference record proposed by the text generator."""

    model_config = WIRE_CONFIG

    id: int = Field(..., description="Reference id, unique within its result")
    title: str = Field(default="", description="Paper title")
    authors: str = Field(default="", description="Author list as display text")
    year: str = Field(default="", description="Publication year")
    journal: str = Field(default="", description="Journal or venue")
    url: str = Field(default="", description="Link to the original (DOI, KCI portal, ...)")
    grade: str | None = Field(default=None, description="Index grade: KCI, SCI, SCOPUS, ...")
    lang: str | None = Field(default=None, description="Paper language: KOR or ENG")
    snippet: str | None = Field(default=None, description="Summary of the supporting passage")
    citation_reason: str | None = Field(default=None, description="Why the paper supports the text")
    citation_tag: str | None = Field(
        default=None, description="Literal inline marker, e.g. '[1]' or '(Lee, 2023)'"
    )
    original_source_sentence: str | None = Field(
        default=None, description="Sentence quoted from the cited paper"
    )
    source_paragraph: str | None = Field(default=None, description="Paragraph around the quote")
    source_section: str | None = Field(default=None, description="Section the quote comes from")
    related_cited_sentence: str | None = Field(
        default=None, description="Sentence of the draft this reference supports"
    )
    is_selected: bool = Field(default=True, description="Whether the citation stays in the text")

    @property
    def is_filterable(self) -> bool:
        """True when toggling this reference can change the rendered text."""
        return bool(self.citation_tag and self.citation_tag.strip())

    @property
    def evidence(self) -> str | None:
        """Best available evidence text (quoted sentence first, then snippet)."""
        return self.original_source_sentence or self.snippet

    def to_wire(self) -> dict:
        """Serialize with camelCase keys, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class GroundingUrl(BaseModel):
    """Web source reported by the generator alongside its answer."""

    model_config = WIRE_CONFIG

    title: str = Field(default="", description="Page title")
    uri: str = Field(..., description="Page URL")


class CitationResult(BaseModel):
    """Immutable snapshot produced by one parse+validate cycle."""

    model_config = WIRE_CONFIG

    original_text: str = Field(..., description="Text the user asked to cite")
    cited_text: str = Field(..., description="Narrative text returned by the generator")
    references: tuple[Reference, ...] = Field(default=(), description="References in citation order")
    grounding_urls: tuple[GroundingUrl, ...] = Field(default=(), description="Grounding web sources")

    def find_reference(self, reference_id: int) -> Reference | None:
        for reference in self.references:
            if reference.id == reference_id:
                return reference
        return None

    @property
    def selected_references(self) -> tuple[Reference, ...]:
        return tuple(ref for ref in self.references if ref.is_selected)


class CitationSession(CitationResult):
    """A citation result identified by its creation timestamp (epoch ms)."""

    timestamp: int = Field(..., ge=0, description="Creation time in epoch milliseconds")

    def with_references(self, references: tuple[Reference, ...]) -> CitationSession:
        """Return a new snapshot of this session carrying ``references``."""
        return self.model_copy(update={"references": tuple(references)})
