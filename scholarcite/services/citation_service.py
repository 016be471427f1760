"""Citation pipeline: prompt, generate, parse, validate, record.

The service is the only place that touches the generator. Everything after
the generator call is pure: ``build_result`` turns a raw response into a
``CitationResult`` without I/O, and the history is only updated once a
result exists, so a failed call leaves earlier sessions untouched.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Literal, NamedTuple

import structlog

from scholarcite.core.config import settings
from scholarcite.models.reference import CitationResult, CitationSession, GroundingUrl
from scholarcite.prompts.citation_prompt import (
    CitationRequest,
    build_system_prompt,
    build_user_prompt,
)
from scholarcite.services.llm.schemas import CitationGenerator
from scholarcite.services.session_history import SessionHistory
from scholarcite.utils.diff_engine import DiffToken, sequence_diff, word_diff
from scholarcite.utils.reference_validator import ReferenceValidator, ValidationOutcome
from scholarcite.utils.response_parser import ResponseParser
from scholarcite.utils.selective_renderer import SelectiveRenderer
from scholarcite.utils.tag_index import TagIndex

logger = structlog.get_logger(__name__)

DiffMode = Literal["membership", "sequence"]

FALLBACK_CITED_TEXT = "Unable to generate cited text."


class RecordedSession(NamedTuple):
    """A stored session and the validation outcome of its references payload."""

    session: CitationSession
    outcome: ValidationOutcome


class CitationService:
    """Orchestrates one citation round-trip and the session history.

    Example:
        >>> service = CitationService(generator=OpenRouterClient())
        >>> session, outcome = await service.cite(CitationRequest(text="AI improves outcomes."))
        >>> service.render(session)
        'AI improves outcomes [1].'
    """

    def __init__(
        self,
        generator: CitationGenerator | None = None,
        history: SessionHistory | None = None,
        parser: ResponseParser | None = None,
        validator: ReferenceValidator | None = None,
        renderer: SelectiveRenderer | None = None,
    ):
        self.generator = generator
        self.history = (
            history if history is not None else SessionHistory(undo_depth=settings.UNDO_DEPTH)
        )
        self.parser = parser or ResponseParser(sentinel=settings.REFERENCES_SENTINEL)
        self.validator = validator or ReferenceValidator(
            require_citation_tag=settings.REQUIRE_CITATION_TAG,
            require_metadata=settings.REQUIRE_REFERENCE_METADATA,
        )
        self.renderer = renderer or SelectiveRenderer()

    def build_result(
        self,
        original_text: str,
        raw_response: str,
        grounding_urls: Iterable[GroundingUrl] = (),
    ) -> tuple[CitationResult, ValidationOutcome]:
        """Parse and validate a raw response into an immutable result.

        Args:
            original_text: Text the user asked to cite
            raw_response: Generator output
            grounding_urls: Web sources reported with the output

        Returns:
            The result and the validation outcome; a malformed payload gives an
            empty reference list
        """
        parsed = self.parser.parse(raw_response)
        outcome = self.validator.validate(parsed.references_raw)

        if outcome.error is not None:
            logger.info("references_unavailable", reason=outcome.error.value)

        result = CitationResult(
            original_text=original_text,
            cited_text=parsed.narrative_text or FALLBACK_CITED_TEXT,
            references=outcome.references,
            grounding_urls=tuple(grounding_urls),
        )
        return result, outcome

    def ingest(
        self,
        original_text: str,
        raw_response: str,
        grounding_urls: Iterable[GroundingUrl] = (),
    ) -> RecordedSession:
        """Record an already produced raw response as a new session."""
        result, outcome = self.build_result(original_text, raw_response, grounding_urls)
        return RecordedSession(self.history.add(result), outcome)

    async def cite(self, request: CitationRequest) -> RecordedSession:
        """Ask the generator for citations and record the result.

        Raises:
            GenerationError: If the generator call fails (history unchanged)
            RuntimeError: If the service has no generator
        """
        if self.generator is None:
            raise RuntimeError("CitationService was created without a generator")

        system_prompt = build_system_prompt(
            request,
            sentinel=self.parser.sentinel,
            context_chars=settings.SOURCE_CONTEXT_CHARS,
        )
        user_prompt = build_user_prompt(request)

        try:
            response = await self.generator.generate(system_prompt, user_prompt)
        except Exception as e:
            logger.error("citation_generation_failed", error=str(e), history_size=len(self.history))
            raise

        return self.ingest(request.text, response.text, response.grounding_urls)

    def render(self, session: CitationResult) -> str:
        """Cited text reduced to the currently selected citations."""
        return self.renderer.render(session.cited_text, session.references)

    def tag_index(self, session: CitationResult) -> TagIndex:
        return TagIndex.build(session.references)

    def compare(self, session: CitationResult, mode: DiffMode = "membership") -> list[DiffToken]:
        """Diff the original text against the rendered text."""
        rendered = self.render(session)
        if mode == "sequence":
            return sequence_diff(session.original_text, rendered)
        return word_diff(session.original_text, rendered)
