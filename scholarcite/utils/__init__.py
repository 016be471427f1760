"""Parsing, validation, rendering and diff utilities for citation results."""

from scholarcite.utils.diff_engine import DiffKind, DiffToken, sequence_diff, word_diff
from scholarcite.utils.reference_validator import (
    ReferenceValidator,
    RejectionReason,
    ValidationOutcome,
    validate_references,
)
from scholarcite.utils.response_parser import (
    REFERENCES_SENTINEL,
    ParsedResponse,
    ResponseParser,
    find_json_array_span,
    format_response,
)
from scholarcite.utils.selective_renderer import SelectiveRenderer, clean_text, render_selected
from scholarcite.utils.tag_index import TagIndex

__all__ = [
    # Parsing
    "REFERENCES_SENTINEL",
    "ParsedResponse",
    "ResponseParser",
    "find_json_array_span",
    "format_response",
    # Validation
    "ReferenceValidator",
    "RejectionReason",
    "ValidationOutcome",
    "validate_references",
    # Rendering
    "SelectiveRenderer",
    "TagIndex",
    "clean_text",
    "render_selected",
    # Diff
    "DiffKind",
    "DiffToken",
    "sequence_diff",
    "word_diff",
]
