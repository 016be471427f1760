"""Index references by their inline citation tag."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import structlog

from scholarcite.models.reference import Reference

logger = structlog.get_logger(__name__)


class TagIndex:
    """One-to-one mapping ``citation_tag -> Reference``.

    The first reference carrying a tag owns it. Shared tags and tags nested
    inside other tags make selective rendering ambiguous, so they are
    reported (``collisions``, ``overlaps``) rather than resolved here.

    Example:
        >>> index = TagIndex.build(result.references)
        >>> index["[1]"].title
        'Deep learning in radiology'
        >>> index.is_consistent
        True
    """

    def __init__(
        self,
        by_tag: dict[str, Reference],
        collisions: dict[str, tuple[int, ...]],
        overlaps: tuple[tuple[str, str], ...],
        untagged: tuple[int, ...],
    ):
        self._by_tag = by_tag
        self.collisions = collisions
        self.overlaps = overlaps
        self.untagged = untagged

    @classmethod
    def build(cls, references: Iterable[Reference]) -> TagIndex:
        by_tag: dict[str, Reference] = {}
        shared: dict[str, list[int]] = {}
        untagged: list[int] = []

        for reference in references:
            if not reference.is_filterable:
                untagged.append(reference.id)
                continue
            tag = reference.citation_tag.strip()
            if tag in by_tag:
                shared.setdefault(tag, [by_tag[tag].id]).append(reference.id)
                continue
            by_tag[tag] = reference

        tags = list(by_tag)
        overlaps = tuple(
            (inner, outer)
            for inner in tags
            for outer in tags
            if inner != outer and inner in outer
        )
        collisions = {tag: tuple(ids) for tag, ids in shared.items()}

        index = cls(by_tag, collisions, overlaps, tuple(untagged))
        for tag, ids in collisions.items():
            logger.warning("tag_collision", tag=tag, reference_ids=list(ids))
        for inner, outer in overlaps:
            logger.warning("tag_overlap", tag=inner, contained_in=outer)
        return index

    @property
    def is_consistent(self) -> bool:
        """True when tags are unique and none is a substring of another."""
        return not self.collisions and not self.overlaps

    def warnings(self) -> list[str]:
        """Messages for the UI about tags that cannot be filtered independently."""
        messages = [
            f"Tag {tag!r} is shared by references {', '.join(map(str, ids))}; "
            "deselecting any of them removes every occurrence"
            for tag, ids in self.collisions.items()
        ]
        messages.extend(
            f"Tag {inner!r} is contained in tag {outer!r}; removal order may matter"
            for inner, outer in self.overlaps
        )
        if self.untagged:
            messages.append(
                f"References {', '.join(map(str, self.untagged))} have no citation tag "
                "and cannot be removed from the text"
            )
        return messages

    def get(self, tag: str) -> Reference | None:
        return self._by_tag.get(tag.strip())

    def __getitem__(self, tag: str) -> Reference:
        return self._by_tag[tag.strip()]

    def __contains__(self, tag: object) -> bool:
        return isinstance(tag, str) and tag.strip() in self._by_tag

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_tag)

    def __len__(self) -> int:
        return len(self._by_tag)
