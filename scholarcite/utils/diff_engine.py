"""Word-level change highlighting between the original and the revised text.

``word_diff`` is a token-set-membership highlighter: a revised word is
"unchanged" if it occurs anywhere in the baseline. It ignores positions, so
it cannot report deletions or moved words. ``sequence_diff`` is the stricter
alternative built on ``difflib.SequenceMatcher``; it aligns the two token
streams and also reports removed words.
"""

from __future__ import annotations

import html
import re
from difflib import SequenceMatcher
from enum import Enum
from typing import NamedTuple

from bs4 import BeautifulSoup

_WHITESPACE_SPLIT = re.compile(r"(\s+)")


class DiffKind(str, Enum):
    """Classification of a rendered token."""

    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"
    WHITESPACE = "whitespace"


class DiffToken(NamedTuple):
    token: str
    kind: DiffKind


def strip_markup(text: str) -> str:
    """Return the text content of ``text`` with tags removed and entities decoded."""
    if not text:
        return ""
    return BeautifulSoup(text, "html.parser").get_text()


def tokenize(text: str) -> list[str]:
    """Split on whitespace runs, keeping the runs as their own tokens.

    Example:
        >>> tokenize("AI  improves\\noutcomes")
        ['AI', '  ', 'improves', '\\n', 'outcomes']
    """
    return [token for token in _WHITESPACE_SPLIT.split(text) if token]


def _is_whitespace(token: str) -> bool:
    return token.isspace()


def word_diff(baseline_text: str, revised_text: str) -> list[DiffToken]:
    """Classify each token of ``revised_text`` against ``baseline_text``.

    Args:
        baseline_text: Original text (markup allowed)
        revised_text: Revised text (markup allowed)

    Returns:
        Tokens of the revised text in order; joining them reproduces the
        markup-free revised text exactly
    """
    baseline_words = {
        token for token in tokenize(strip_markup(baseline_text)) if not _is_whitespace(token)
    }

    tokens: list[DiffToken] = []
    for token in tokenize(strip_markup(revised_text)):
        if _is_whitespace(token):
            tokens.append(DiffToken(token, DiffKind.WHITESPACE))
        elif token in baseline_words:
            tokens.append(DiffToken(token, DiffKind.UNCHANGED))
        else:
            tokens.append(DiffToken(token, DiffKind.ADDED))
    return tokens


def sequence_diff(baseline_text: str, revised_text: str) -> list[DiffToken]:
    """Align word sequences and report unchanged, added and removed words.

    Whitespace between words comes from the revised text; removed words are
    emitted at the position they held in the baseline, each followed by a
    single space.
    """
    baseline = tokenize(strip_markup(baseline_text))
    revised = tokenize(strip_markup(revised_text))
    baseline_words = [token for token in baseline if not _is_whitespace(token)]
    revised_words = [token for token in revised if not _is_whitespace(token)]

    # Map each revised word index to its diff kind, and collect removals
    # keyed by the revised word index they precede.
    kinds: dict[int, DiffKind] = {}
    removed_before: dict[int, list[str]] = {}
    matcher = SequenceMatcher(a=baseline_words, b=revised_words, autojunk=False)
    for opcode, a_start, a_end, b_start, b_end in matcher.get_opcodes():
        for j in range(b_start, b_end):
            kinds[j] = DiffKind.UNCHANGED if opcode == "equal" else DiffKind.ADDED
        if opcode in ("delete", "replace"):
            removed_before.setdefault(b_start, []).extend(baseline_words[a_start:a_end])

    tokens: list[DiffToken] = []
    word_index = 0
    for token in revised:
        if _is_whitespace(token):
            tokens.append(DiffToken(token, DiffKind.WHITESPACE))
            continue
        for removed in removed_before.pop(word_index, []):
            tokens.append(DiffToken(removed, DiffKind.REMOVED))
            tokens.append(DiffToken(" ", DiffKind.WHITESPACE))
        tokens.append(DiffToken(token, kinds[word_index]))
        word_index += 1

    for removed_words in removed_before.values():
        for removed in removed_words:
            tokens.append(DiffToken(" ", DiffKind.WHITESPACE))
            tokens.append(DiffToken(removed, DiffKind.REMOVED))
    return tokens


def render_html(tokens: list[DiffToken]) -> str:
    """Render tokens as ``<span class="diff-...">`` markup; whitespace stays verbatim."""
    parts = []
    for token, kind in tokens:
        escaped = html.escape(token)
        if kind is DiffKind.WHITESPACE:
            parts.append(escaped)
        else:
            parts.append(f'<span class="diff-{kind.value}">{escaped}</span>')
    return "".join(parts)
