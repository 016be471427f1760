"""Split a raw generator response into narrative text and a references payload.

The generator is asked to answer in the form::

    Cited Text: <revised sentence with [1], [2] ...>
    ---REFERENCES_START---
    ```json
    [{"id": 1, "title": "...", ...}]
    ```

but models drift: the sentinel may be missing, the label may be bolded, the
payload may be wrapped in prose. Parsing never raises; a missing or malformed
payload only means ``references_raw`` is ``None``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from typing import Any, NamedTuple

import structlog

from scholarcite.models.reference import Reference

logger = structlog.get_logger(__name__)

REFERENCES_SENTINEL = "---REFERENCES_START---"

_CODE_FENCE = re.compile(r"```[\w-]*")
_LEADING_LABEL = re.compile(
    r"^\s*(?:#+\s*)?(?:\*\*)?cited\s+text(?:\*\*)?\s*:?\s*(?:\*\*)?\s*", re.IGNORECASE
)
_TRAILING_HEADING = re.compile(
    r"(?:^|\n)[ \t]*(?:#+[ \t]*)?(?:\*\*)?references(?:[ \t]+json)?(?:\*\*)?[ \t]*:?[ \t]*(?:\*\*)?\s*$",
    re.IGNORECASE,
)


class ParsedResponse(NamedTuple):
    """Result of splitting a raw response.

    Attributes:
        narrative_text: Revised text shown to the user (label and fences removed)
        references_raw: JSON array span, or None when no payload was found
    """

    narrative_text: str
    references_raw: str | None


def _scan_balanced(text: str, start: int) -> int | None:
    """Return the index just past the group opened at ``start``.

    Brackets and braces share one depth counter; characters inside JSON
    string literals are ignored. Returns None when depth never reaches zero.
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "[{":
            depth += 1
        elif char in "]}":
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def _opens_object(text: str, start: int) -> bool:
    """True when the group at ``start`` begins like ``[{``."""
    for char in text[start + 1 :]:
        if char.isspace():
            continue
        return char == "{"
    return False


def _decode_array(candidate: str) -> list[Any] | None:
    try:
        decoded = json.loads(candidate)
    except (ValueError, RecursionError):
        return None
    return decoded if isinstance(decoded, list) else None


def find_json_array_span(text: str, start: int = 0) -> tuple[int, int] | None:
    """Locate a syntactically complete JSON array of records in ``text``.

    The first balanced ``[`` group that decodes to a list holding at least
    one object wins, even when other values come first (the validator drops
    those one by one). Groups that hold no object, such as inline citation
    tags like ``[1]`` or a literal ``[]`` in prose, are skipped. An empty
    array is returned only when no array of records follows it. A group
    that opens like ``[{`` is returned even if it does not decode, so the
    caller can report the decode error; if it never closes the search ends.

    Args:
        text: Text to scan
        start: Index to start scanning from

    Returns:
        (begin, end) slice bounds of the array, or None

    Example:
        >>> find_json_array_span('see [1]. [{"title": "A [draft] Study"}]')
        (9, 39)
    """
    empty_array: tuple[int, int] | None = None
    position = text.find("[", start)
    while position != -1:
        opens_object = _opens_object(text, position)
        end = _scan_balanced(text, position)
        if end is None:
            if opens_object:
                break
        else:
            decoded = _decode_array(text[position:end])
            if decoded is None:
                if opens_object:
                    return position, end
            elif any(isinstance(item, dict) for item in decoded):
                return position, end
            elif not decoded and empty_array is None:
                empty_array = (position, end)
        position = text.find("[", position + 1)
    return empty_array


def clean_narrative(text: str) -> str:
    """Remove code fences, the leading label and a trailing references heading."""
    cleaned = _CODE_FENCE.sub("", text)
    cleaned = _LEADING_LABEL.sub("", cleaned, count=1)
    cleaned = _TRAILING_HEADING.sub("", cleaned.rstrip())
    return cleaned.strip()


class ResponseParser:
    """Split raw generator output into narrative text and a raw payload.

    Example:
        >>> parser = ResponseParser()
        >>> parsed = parser.parse(raw_text)
        >>> parsed.narrative_text
        'AI improves outcomes [1].'
    """

    def __init__(self, sentinel: str = REFERENCES_SENTINEL):
        if not sentinel:
            raise ValueError("sentinel must be a non-empty string")
        self.sentinel = sentinel

    def parse(self, raw: str | None) -> ParsedResponse:
        """Parse a raw response.

        Args:
            raw: Text produced by the generator (None is treated as empty)

        Returns:
            ParsedResponse with the narrative and the JSON array span (or None)
        """
        text = raw or ""

        sentinel_at = text.find(self.sentinel)
        if sentinel_at != -1:
            narrative = clean_narrative(text[:sentinel_at])
            tail = text[sentinel_at + len(self.sentinel) :]
            span = find_json_array_span(tail)
            references_raw = tail[span[0] : span[1]] if span else None
            logger.debug(
                "response_parsed",
                sentinel=True,
                narrative_chars=len(narrative),
                has_payload=references_raw is not None,
            )
            return ParsedResponse(narrative, references_raw)

        span = find_json_array_span(text)
        if span is not None:
            narrative = clean_narrative(text[: span[0]])
            logger.debug("response_parsed", sentinel=False, narrative_chars=len(narrative))
            return ParsedResponse(narrative, text[span[0] : span[1]])

        logger.debug("response_parsed_without_payload", chars=len(text))
        return ParsedResponse(clean_narrative(text), None)


def format_response(
    narrative_text: str,
    references: Iterable[Reference],
    sentinel: str = REFERENCES_SENTINEL,
) -> str:
    """Serialize narrative and references into the sentinel-delimited format.

    ``ResponseParser(sentinel).parse`` on the output gives back the same
    narrative and, after validation, the same references.
    """
    payload = json.dumps([ref.to_wire() for ref in references], ensure_ascii=False, indent=2)
    return f"Cited Text: {narrative_text}\n{sentinel}\n```json\n{payload}\n```\n"
