"""Decode and validate the references payload returned by the generator.

The payload is untrusted JSON. Decoding never raises: the outcome carries the
valid, normalized references plus a reason for every record that was
dropped, so callers can show "2 references were discarded" without guessing.
"""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from scholarcite.models.reference import Reference

logger = structlog.get_logger(__name__)

_TEXT_FIELDS = (
    "title",
    "authors",
    "year",
    "journal",
    "url",
    "grade",
    "lang",
    "snippet",
    "citation_reason",
    "citation_tag",
    "original_source_sentence",
    "source_paragraph",
    "source_section",
    "related_cited_sentence",
)
_METADATA_FIELDS = ("authors", "year", "journal", "url")
_INTEGER_ID = re.compile(r"-?[0-9]+")


class RejectionReason(str, Enum):
    """Why a payload or a single record was rejected."""

    NO_PAYLOAD = "no_payload"
    DECODE_ERROR = "decode_error"
    NOT_A_LIST = "not_a_list"
    NOT_AN_OBJECT = "not_an_object"
    INVALID_FIELDS = "invalid_fields"
    MISSING_TITLE = "missing_title"
    MISSING_EVIDENCE = "missing_evidence"
    MISSING_CITATION_TAG = "missing_citation_tag"
    MISSING_METADATA = "missing_metadata"


class Rejection(BaseModel):
    """A record dropped during validation."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Position of the record in the payload")
    reason: RejectionReason = Field(..., description="Rejection reason")
    detail: str = Field(default="", description="Human-readable explanation")


class ValidationOutcome(BaseModel):
    """Tagged result of decoding a payload.

    Attributes:
        references: Valid references in payload order
        rejections: One entry per dropped record
        error: Set when the payload as a whole could not be used
    """

    model_config = ConfigDict(frozen=True)

    references: tuple[Reference, ...] = Field(default=())
    rejections: tuple[Rejection, ...] = Field(default=())
    error: RejectionReason | None = Field(default=None)

    @property
    def ok(self) -> bool:
        return self.error is None


class _ReferencePayload(BaseModel):
    """Loose wire shape of one record, before validity rules apply."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: int | None = None
    title: str | None = None
    authors: str | None = None
    year: str | None = None
    journal: str | None = None
    url: str | None = None
    grade: str | None = None
    lang: str | None = None
    snippet: str | None = None
    citation_reason: str | None = None
    citation_tag: str | None = None
    original_source_sentence: str | None = None
    source_paragraph: str | None = None
    source_section: str | None = None
    related_cited_sentence: str | None = None
    is_selected: bool | None = None

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str | None:
        """Trim strings, stringify numbers, join author lists; blank becomes None."""
        if value is None:
            return None
        if isinstance(value, bool):
            raise ValueError("expected text, got a boolean")
        if isinstance(value, (int, float)):
            value = str(value)
        elif isinstance(value, list) and all(isinstance(item, str) for item in value):
            value = ", ".join(item.strip() for item in value if item.strip())
        if not isinstance(value, str):
            raise ValueError(f"expected text, got {type(value).__name__}")
        return value.strip() or None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> int | None:
        """Accept ints and integral strings/floats; anything else is synthesized later."""
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str) and _INTEGER_ID.fullmatch(value.strip()):
            return int(value.strip())
        return None


class ReferenceValidator:
    """Turn a raw JSON payload into validated ``Reference`` records.

    Example:
        >>> validator = ReferenceValidator(require_citation_tag=True)
        >>> outcome = validator.validate(parsed.references_raw)
        >>> [ref.citation_tag for ref in outcome.references]
        ['[1]', '[2]']
    """

    def __init__(self, require_citation_tag: bool = False, require_metadata: bool = False):
        """Initialize validator.

        Args:
            require_citation_tag: Drop records without a citationTag
                (modes that filter the text by tag)
            require_metadata: Also require authors, year, journal and url
        """
        self.require_citation_tag = require_citation_tag
        self.require_metadata = require_metadata

    def validate(self, references_raw: str | None) -> ValidationOutcome:
        """Decode and validate a payload.

        Args:
            references_raw: JSON array text, or None when no payload was found

        Returns:
            ValidationOutcome; never raises on bad input
        """
        if references_raw is None:
            return ValidationOutcome(error=RejectionReason.NO_PAYLOAD)

        try:
            decoded = json.loads(references_raw)
        except (json.JSONDecodeError, RecursionError) as e:
            logger.warning("references_decode_failed", error=str(e), chars=len(references_raw))
            return ValidationOutcome(error=RejectionReason.DECODE_ERROR)

        if not isinstance(decoded, list):
            logger.warning("references_not_a_list", payload_type=type(decoded).__name__)
            return ValidationOutcome(error=RejectionReason.NOT_A_LIST)

        accepted: list[_ReferencePayload] = []
        rejections: list[Rejection] = []
        for index, item in enumerate(decoded):
            record, rejection = self._check_record(index, item)
            if rejection is not None:
                rejections.append(rejection)
                logger.debug(
                    "reference_rejected",
                    index=index,
                    reason=rejection.reason.value,
                    detail=rejection.detail,
                )
            elif record is not None:
                accepted.append(record)

        references = tuple(self._assign_ids(accepted))
        logger.info(
            "references_validated",
            received=len(decoded),
            accepted=len(references),
            rejected=len(rejections),
        )
        return ValidationOutcome(references=references, rejections=tuple(rejections))

    def _check_record(
        self, index: int, item: Any
    ) -> tuple[_ReferencePayload | None, Rejection | None]:
        if not isinstance(item, dict):
            return None, Rejection(
                index=index,
                reason=RejectionReason.NOT_AN_OBJECT,
                detail=f"expected an object, got {type(item).__name__}",
            )

        try:
            record = _ReferencePayload.model_validate(item)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            return None, Rejection(
                index=index, reason=RejectionReason.INVALID_FIELDS, detail=f"invalid: {fields}"
            )

        if not record.title:
            return None, Rejection(index=index, reason=RejectionReason.MISSING_TITLE)
        if not (record.original_source_sentence or record.snippet):
            return None, Rejection(
                index=index,
                reason=RejectionReason.MISSING_EVIDENCE,
                detail="needs originalSourceSentence or snippet",
            )
        if self.require_citation_tag and not record.citation_tag:
            return None, Rejection(index=index, reason=RejectionReason.MISSING_CITATION_TAG)
        if self.require_metadata:
            missing = [name for name in _METADATA_FIELDS if not getattr(record, name)]
            if missing:
                return None, Rejection(
                    index=index,
                    reason=RejectionReason.MISSING_METADATA,
                    detail=f"missing: {', '.join(missing)}",
                )
        return record, None

    @staticmethod
    def _assign_ids(records: list[_ReferencePayload]) -> list[Reference]:
        """Keep model ids where unique, otherwise synthesize max(assigned) + 1."""
        assigned: set[int] = set()
        references: list[Reference] = []
        for record in records:
            ref_id = record.id
            if ref_id is None or ref_id in assigned:
                ref_id = max(assigned, default=0) + 1
            assigned.add(ref_id)

            data = record.model_dump(exclude={"id", "is_selected"}, exclude_none=True)
            references.append(
                Reference(
                    id=ref_id,
                    is_selected=True if record.is_selected is None else record.is_selected,
                    **data,
                )
            )
        return references


def validate_references(
    references_raw: str | None,
    require_citation_tag: bool = False,
    require_metadata: bool = False,
) -> list[Reference]:
    """Shortcut returning only the valid references."""
    validator = ReferenceValidator(
        require_citation_tag=require_citation_tag, require_metadata=require_metadata
    )
    return list(validator.validate(references_raw).references)
