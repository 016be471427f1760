"""API request/response schemas for ScholarCite endpoints.

Reference records keep their camelCase wire names (the field set export
collaborators rely on); envelope fields are snake_case.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from scholarcite.models.reference import CitationSession, GroundingUrl, Reference
from scholarcite.utils.diff_engine import DiffKind, DiffToken, render_html
from scholarcite.utils.reference_validator import Rejection
from scholarcite.utils.tag_index import TagIndex

# ============================================================================
# Citation Endpoint Schemas
# ============================================================================


class ParseRequest(BaseModel):
    """Request model for /v1/citations/parse.

    Attributes:
        original_text: Text the user asked to cite
        raw_response: Output already produced by the text generator
        grounding_urls: Optional web sources reported with the output
    """

    original_text: str = Field(..., min_length=1, max_length=20000, description="Original text")
    raw_response: str = Field(..., max_length=200000, description="Raw generator output")
    grounding_urls: list[GroundingUrl] = Field(default_factory=list, description="Web sources")

    @field_validator("original_text")
    @classmethod
    def original_text_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Original text cannot be empty or whitespace-only")
        return v


class SessionResponse(BaseModel):
    """Full session with the text rendered for the current selection.

    Attributes:
        timestamp: Session identity (epoch ms)
        original_text: Text the user asked to cite
        cited_text: Narrative returned by the generator
        rendered_text: cited_text without deselected citation tags
        references: References in citation order (camelCase fields)
        grounding_urls: Web sources reported by the generator
        warnings: Tag collisions, overlaps and untagged references
        untagged_reference_ids: References whose toggle cannot change the text
        rejections: Records dropped during validation (creation responses only)
    """

    timestamp: int = Field(..., description="Session identity (epoch ms)")
    original_text: str = Field(..., description="Original text")
    cited_text: str = Field(..., description="Generator narrative")
    rendered_text: str = Field(..., description="Text for the current selection")
    references: list[Reference] = Field(default_factory=list, description="References")
    grounding_urls: list[GroundingUrl] = Field(default_factory=list, description="Web sources")
    warnings: list[str] = Field(default_factory=list, description="Tag warnings")
    untagged_reference_ids: list[int] = Field(default_factory=list, description="Untagged ids")
    rejections: list[Rejection] | None = Field(None, description="Dropped payload records")

    @classmethod
    def from_session(
        cls,
        session: CitationSession,
        rendered_text: str,
        rejections: tuple[Rejection, ...] | None = None,
    ) -> SessionResponse:
        index = TagIndex.build(session.references)
        return cls(
            timestamp=session.timestamp,
            original_text=session.original_text,
            cited_text=session.cited_text,
            rendered_text=rendered_text,
            references=list(session.references),
            grounding_urls=list(session.grounding_urls),
            warnings=index.warnings(),
            untagged_reference_ids=list(index.untagged),
            rejections=list(rejections) if rejections is not None else None,
        )


class SessionSummary(BaseModel):
    """Entry of the session history list."""

    timestamp: int = Field(..., description="Session identity (epoch ms)")
    original_text: str = Field(..., description="Original text")
    reference_count: int = Field(..., ge=0, description="Number of references")
    selected_count: int = Field(..., ge=0, description="Number of selected references")

    @classmethod
    def from_session(cls, session: CitationSession) -> SessionSummary:
        return cls(
            timestamp=session.timestamp,
            original_text=session.original_text,
            reference_count=len(session.references),
            selected_count=len(session.selected_references),
        )


class SessionListResponse(BaseModel):
    sessions: list[SessionSummary] = Field(default_factory=list, description="Most recent first")
    total: int = Field(..., ge=0, description="Number of sessions")


# ============================================================================
# Compare Endpoint Schemas
# ============================================================================


class CompareRequest(BaseModel):
    """Request model for /v1/compare.

    Attributes:
        baseline_text: Original text (markup allowed)
        revised_text: Revised text (markup allowed)
        mode: "membership" (word-set highlighter) or "sequence" (aligned diff)
    """

    baseline_text: str = Field(default="", max_length=200000, description="Original text")
    revised_text: str = Field(..., max_length=200000, description="Revised text")
    mode: Literal["membership", "sequence"] = Field(
        "membership", description="Diff strategy: 'membership' or 'sequence'"
    )


class DiffTokenResponse(BaseModel):
    token: str = Field(..., description="Token text")
    kind: DiffKind = Field(..., description="unchanged, added, removed or whitespace")


class CompareResponse(BaseModel):
    """Diff tokens plus ready-to-embed HTML."""

    mode: Literal["membership", "sequence"] = Field(..., description="Diff strategy used")
    tokens: list[DiffTokenResponse] = Field(default_factory=list, description="Ordered tokens")
    html: str = Field(..., description="Tokens rendered as <span> markup")
    added_count: int = Field(..., ge=0, description="Number of added words")

    @classmethod
    def from_tokens(
        cls, tokens: list[DiffToken], mode: Literal["membership", "sequence"]
    ) -> CompareResponse:
        return cls(
            mode=mode,
            tokens=[DiffTokenResponse(token=t.token, kind=t.kind) for t in tokens],
            html=render_html(tokens),
            added_count=sum(1 for t in tokens if t.kind is DiffKind.ADDED),
        )
