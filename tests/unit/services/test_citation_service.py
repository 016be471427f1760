"""Tests for the citation pipeline service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from scholarcite.core.exceptions import GenerationError
from scholarcite.models.reference import GroundingUrl
from scholarcite.prompts.citation_prompt import CitationRequest
from scholarcite.services.citation_service import FALLBACK_CITED_TEXT, CitationService
from scholarcite.services.session_history import SessionHistory
from scholarcite.utils.diff_engine import DiffKind
from scholarcite.utils.reference_validator import RejectionReason
from scholarcite.utils.response_parser import REFERENCES_SENTINEL


class TestBuildResult:
    """Pure parse + validate step."""

    def test_builds_result_from_raw_response(
        self, citation_service: CitationService, sample_raw_response: str
    ) -> None:
        result, outcome = citation_service.build_result("AI helps diagnosis.", sample_raw_response)

        assert result.original_text == "AI helps diagnosis."
        assert result.cited_text == "AI improves diagnostic outcomes [1] and reduces costs [2]."
        assert [ref.citation_tag for ref in result.references] == ["[1]", "[2]"]
        assert outcome.ok

    def test_malformed_payload_gives_empty_references(
        self, citation_service: CitationService
    ) -> None:
        raw = f"Cited Text: Some text.\n{REFERENCES_SENTINEL}\nnot json"

        result, outcome = citation_service.build_result("Some text.", raw)

        assert result.cited_text == "Some text."
        assert result.references == ()
        assert outcome.error is RejectionReason.NO_PAYLOAD

    def test_empty_response_uses_fallback_text(self, citation_service: CitationService) -> None:
        result, _ = citation_service.build_result("Draft.", "")

        assert result.cited_text == FALLBACK_CITED_TEXT

    def test_grounding_urls_are_kept(
        self, citation_service: CitationService, sample_raw_response: str
    ) -> None:
        urls = [GroundingUrl(title="Source", uri="https://example.org")]

        result, _ = citation_service.build_result("Draft.", sample_raw_response, urls)

        assert result.grounding_urls == tuple(urls)


class TestIngest:
    def test_each_ingest_carries_its_own_outcome(
        self, citation_service: CitationService, sample_raw_response: str
    ) -> None:
        """Given: a clean response followed by one with a dropped record
        When: both are ingested
        Then: each recorded session reports only its own rejections
        """
        bad = f'Cited Text: Text [1].\n{REFERENCES_SENTINEL}\n[{{"title": "T", "snippet": "s"}}, 7]'

        first = citation_service.ingest("Draft.", sample_raw_response)
        second = citation_service.ingest("Other draft.", bad)

        assert first.outcome.rejections == ()
        assert [r.reason for r in second.outcome.rejections] == [RejectionReason.NOT_AN_OBJECT]
        assert citation_service.history.sessions == (second.session, first.session)


class TestCite:
    """Generator round trip."""

    @pytest.mark.asyncio
    async def test_cite_records_session(
        self, citation_service: CitationService, mock_generator: MagicMock
    ) -> None:
        session, outcome = await citation_service.cite(CitationRequest(text="AI helps diagnosis."))

        assert citation_service.history.latest() == session
        assert session.original_text == "AI helps diagnosis."
        assert len(session.references) == 2
        assert outcome.rejections == ()

        system_prompt, user_prompt = mock_generator.generate.call_args.args
        assert REFERENCES_SENTINEL in system_prompt
        assert "AI helps diagnosis." in user_prompt

    @pytest.mark.asyncio
    async def test_failed_generation_leaves_history_unchanged(
        self,
        citation_service: CitationService,
        mock_generator: MagicMock,
        sample_raw_response: str,
    ) -> None:
        """Given: one stored session and a generator that fails
        When: citing again
        Then: GenerationError propagates and the history is unchanged
        """
        existing = citation_service.ingest("Draft.", sample_raw_response).session
        mock_generator.generate = AsyncMock(side_effect=GenerationError("quota exceeded"))

        with pytest.raises(GenerationError):
            await citation_service.cite(CitationRequest(text="Another draft."))

        assert citation_service.history.sessions == (existing,)

    @pytest.mark.asyncio
    async def test_cite_without_generator(self) -> None:
        service = CitationService(history=SessionHistory())

        with pytest.raises(RuntimeError):
            await service.cite(CitationRequest(text="Draft."))


class TestRenderAndCompare:
    def test_render_follows_selection(
        self, citation_service: CitationService, sample_raw_response: str
    ) -> None:
        session = citation_service.ingest("AI helps diagnosis.", sample_raw_response).session

        updated = citation_service.history.toggle_reference(session.timestamp, 2)

        assert citation_service.render(session) == session.cited_text
        assert citation_service.render(updated) == (
            "AI improves diagnostic outcomes [1] and reduces costs."
        )

    def test_tag_index(self, citation_service: CitationService, sample_raw_response: str) -> None:
        session = citation_service.ingest("Draft.", sample_raw_response).session

        index = citation_service.tag_index(session)

        assert index["[2]"].id == 2
        assert index.is_consistent

    def test_compare_modes(
        self, citation_service: CitationService, sample_raw_response: str
    ) -> None:
        session = citation_service.ingest("AI improves costs.", sample_raw_response).session

        membership = citation_service.compare(session)
        sequence = citation_service.compare(session, mode="sequence")

        added = [t.token for t in membership if t.kind is DiffKind.ADDED]
        assert "diagnostic" in added
        assert "AI" not in added
        assert any(t.kind is DiffKind.REMOVED for t in sequence)
