"""Rebuild the cited text so it shows only the selected citations.

Deselected references have their ``citation_tag`` removed literally from the
narrative; the cleanup transforms then repair the punctuation the removal
leaves behind (``"(Kim, 2020; , Lee)"``, ``"outcomes  [2] ."``, ``"()"``).

The transforms run in a fixed order and the whole pass is repeated until the
text stops changing. Every transform that changes the text makes it shorter,
so the loop terminates, and the output is a fixed point: rendering it again
with the same references returns it unchanged.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

import structlog

from scholarcite.models.reference import Reference

logger = structlog.get_logger(__name__)

Transform = Callable[[str], str]

_REPEATED_COMMAS = re.compile(r",(?:\s*,)+")
_WHITESPACE_RUN = re.compile(r"\s{2,}")
_COMMA_AFTER_OPEN_PAREN = re.compile(r"\(\s*,\s*")
_COMMA_BEFORE_CLOSE_PAREN = re.compile(r",\s*\)")
_EMPTY_PARENS = re.compile(r"\(\s*\)")
_EMPTY_BRACKETS = re.compile(r"\[\s*\]")
_SPACE_BEFORE_PUNCT = re.compile(r"\s+([.,])")


def collapse_repeated_commas(text: str) -> str:
    """``"a, , b"`` -> ``"a, b"``"""
    return _REPEATED_COMMAS.sub(",", text)


def collapse_whitespace(text: str) -> str:
    """Collapse runs of two or more whitespace characters into one space."""
    return _WHITESPACE_RUN.sub(" ", text)


def trim_commas_inside_parentheses(text: str) -> str:
    """``"(, Lee)"`` -> ``"(Lee)"`` and ``"(Kim,)"`` -> ``"(Kim)"``"""
    text = _COMMA_AFTER_OPEN_PAREN.sub("(", text)
    return _COMMA_BEFORE_CLOSE_PAREN.sub(")", text)


def drop_empty_groups(text: str) -> str:
    """Remove ``()`` and ``[]`` left empty by tag removal."""
    text = _EMPTY_PARENS.sub("", text)
    return _EMPTY_BRACKETS.sub("", text)


def tighten_punctuation(text: str) -> str:
    """Remove whitespace in front of commas and periods."""
    return _SPACE_BEFORE_PUNCT.sub(r"\1", text)


def strip_edges(text: str) -> str:
    return text.strip()


# Order matters: each rule assumes the normalization of the ones before it.
CLEANUP_TRANSFORMS: tuple[tuple[str, Transform], ...] = (
    ("collapse_repeated_commas", collapse_repeated_commas),
    ("collapse_whitespace", collapse_whitespace),
    ("trim_commas_inside_parentheses", trim_commas_inside_parentheses),
    ("drop_empty_groups", drop_empty_groups),
    ("tighten_punctuation", tighten_punctuation),
    ("strip_edges", strip_edges),
)


def deselected_tags(references: Iterable[Reference]) -> list[str]:
    """Tags to remove, longest first so the order never depends on the input order."""
    tags = {
        ref.citation_tag.strip()
        for ref in references
        if not ref.is_selected and ref.is_filterable
    }
    return sorted(tags, key=lambda tag: (-len(tag), tag))


def remove_tag(text: str, tag: str) -> str:
    """Remove every literal occurrence of ``tag``, including ones the removal creates."""
    while tag in text:
        text = text.replace(tag, "")
    return text


class SelectiveRenderer:
    """Derive the user-facing text from narrative text and selection state.

    Example:
        >>> renderer = SelectiveRenderer()
        >>> renderer.render("AI improves outcomes [1] and [2].", references)
        'AI improves outcomes and [2].'
    """

    def __init__(self, transforms: tuple[tuple[str, Transform], ...] = CLEANUP_TRANSFORMS):
        self.transforms = transforms

    def clean(self, text: str) -> str:
        """Apply the cleanup pipeline alone (until stable)."""
        return self._until_stable(text, [])

    def render(self, narrative_text: str, references: Iterable[Reference]) -> str:
        """Render ``narrative_text`` keeping only the selected citations.

        Args:
            narrative_text: Cited text returned by the generator
            references: References with their current selection state

        Returns:
            Cleaned text without the tags of deselected references
        """
        tags = deselected_tags(references)
        rendered = self._until_stable(narrative_text, tags)
        logger.debug("text_rendered", removed_tags=tags, chars=len(rendered))
        return rendered

    def _until_stable(self, text: str, tags: list[str]) -> str:
        # A changing pass removes at least one character.
        for _ in range(len(text) + 1):
            updated = self._single_pass(text, tags)
            if updated == text:
                break
            text = updated
        return text

    def _single_pass(self, text: str, tags: list[str]) -> str:
        for tag in tags:
            text = remove_tag(text, tag)
        for _name, transform in self.transforms:
            text = transform(text)
        return text


_default_renderer = SelectiveRenderer()


def render_selected(narrative_text: str, references: Iterable[Reference]) -> str:
    """Render with the default cleanup pipeline."""
    return _default_renderer.render(narrative_text, references)


def clean_text(text: str) -> str:
    """Cleanup pipeline without any tag removal."""
    return _default_renderer.clean(text)
