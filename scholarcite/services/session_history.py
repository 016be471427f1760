"""In-memory history of citation sessions.

The history is an immutable snapshot log. Sessions are kept most recent
first in a tuple that is replaced, never edited, on every change; a
selection toggle builds a new ``CitationSession`` and a new tuple. A reader
that grabbed ``history.sessions`` before a toggle keeps a consistent view,
and concurrent toggles resolve as last-write-wins on the tuple reference.
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Iterator
from typing import Literal

import structlog

from scholarcite.core.exceptions import ReferenceNotFoundError, SessionNotFoundError
from scholarcite.models.reference import CitationResult, CitationSession

logger = structlog.get_logger(__name__)

ExportScope = Literal["selected", "all"]

DEFAULT_UNDO_DEPTH = 50


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class SessionHistory:
    """Ordered, most-recent-first log of citation sessions.

    Example:
        >>> history = SessionHistory()
        >>> session = history.add(result)
        >>> updated = history.toggle_reference(session.timestamp, reference_id=1)
        >>> history.undo(session.timestamp) == session
        True
    """

    def __init__(self, undo_depth: int = DEFAULT_UNDO_DEPTH) -> None:
        """Initialize an empty history.

        Args:
            undo_depth: Snapshots kept per session for undo; older ones are dropped
        """
        if undo_depth < 1:
            raise ValueError("undo_depth must be at least 1")
        self.undo_depth = undo_depth
        self._sessions: tuple[CitationSession, ...] = ()
        self._previous: dict[int, deque[CitationSession]] = {}

    @property
    def sessions(self) -> tuple[CitationSession, ...]:
        """Current snapshot of all sessions, most recent first."""
        return self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[CitationSession]:
        return iter(self._sessions)

    def add(self, result: CitationResult, timestamp: int | None = None) -> CitationSession:
        """Record a new result at the front of the history.

        Args:
            result: Parsed and validated citation result
            timestamp: Identity in epoch ms (defaults to now); bumped until unique

        Returns:
            The stored session
        """
        stamp = _now_ms() if timestamp is None else timestamp
        taken = {session.timestamp for session in self._sessions}
        if self._sessions:
            # Newest first: never go below the current head.
            stamp = max(stamp, self._sessions[0].timestamp + 1)
        while stamp in taken:
            stamp += 1

        session = CitationSession(
            original_text=result.original_text,
            cited_text=result.cited_text,
            references=result.references,
            grounding_urls=result.grounding_urls,
            timestamp=stamp,
        )
        self._sessions = (session, *self._sessions)
        logger.info(
            "session_added",
            timestamp=stamp,
            references=len(session.references),
            history_size=len(self._sessions),
        )
        return session

    def get(self, timestamp: int) -> CitationSession:
        for session in self._sessions:
            if session.timestamp == timestamp:
                return session
        raise SessionNotFoundError(timestamp)

    def latest(self) -> CitationSession | None:
        return self._sessions[0] if self._sessions else None

    def active(self, timestamp: int | None = None) -> CitationSession | None:
        """Session with ``timestamp``, falling back to the latest one."""
        if timestamp is not None:
            for session in self._sessions:
                if session.timestamp == timestamp:
                    return session
        return self.latest()

    def set_selection(self, timestamp: int, reference_id: int, selected: bool) -> CitationSession:
        """Return a new snapshot with the reference's selection set to ``selected``."""
        session = self.get(timestamp)
        if session.find_reference(reference_id) is None:
            raise ReferenceNotFoundError(timestamp, reference_id)

        references = tuple(
            ref.model_copy(update={"is_selected": selected}) if ref.id == reference_id else ref
            for ref in session.references
        )
        updated = session.with_references(references)
        self._replace(session, updated)
        logger.info(
            "reference_selection_changed",
            timestamp=timestamp,
            reference_id=reference_id,
            selected=selected,
        )
        return updated

    def toggle_reference(self, timestamp: int, reference_id: int) -> CitationSession:
        """Flip the selection of one reference, producing a new snapshot."""
        reference = self.get(timestamp).find_reference(reference_id)
        if reference is None:
            raise ReferenceNotFoundError(timestamp, reference_id)
        return self.set_selection(timestamp, reference_id, not reference.is_selected)

    def undo(self, timestamp: int) -> CitationSession:
        """Restore the previous snapshot of a session.

        Returns:
            The restored snapshot (the current one when there is nothing to undo)
        """
        current = self.get(timestamp)
        previous = self._previous.get(timestamp)
        if not previous:
            return current

        restored = previous.pop()
        self._sessions = tuple(
            restored if session.timestamp == timestamp else session for session in self._sessions
        )
        logger.info("session_undone", timestamp=timestamp, remaining=len(previous))
        return restored

    def export_targets(
        self, scope: ExportScope = "selected", timestamp: int | None = None
    ) -> list[CitationSession]:
        """Sessions to export.

        Sessions are returned whole (deselected references are needed to
        render the text); sessions without any selected reference are skipped.

        Args:
            scope: "selected" for the active session only, "all" for the whole history
            timestamp: Active session (defaults to the latest)
        """
        if scope == "all":
            targets = list(self._sessions)
        else:
            active = self.active(timestamp)
            targets = [active] if active is not None else []
        return [session for session in targets if session.selected_references]

    def _replace(self, current: CitationSession, updated: CitationSession) -> None:
        previous = self._previous.setdefault(current.timestamp, deque(maxlen=self.undo_depth))
        previous.append(current)
        self._sessions = tuple(
            updated if session.timestamp == current.timestamp else session
            for session in self._sessions
        )
