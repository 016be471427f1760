"""Pytest configuration for tests."""
# ruff: noqa: E402  # Module imports after sys.path manipulation

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from scholarcite.api.v1 import dependencies
from scholarcite.api.v1.dependencies import get_citation_service
from scholarcite.main import app
from scholarcite.models.reference import Reference
from scholarcite.services.citation_service import CitationService
from scholarcite.services.llm.schemas import GenerationResponse
from scholarcite.services.session_history import SessionHistory
from scholarcite.utils.response_parser import format_response

SAMPLE_NARRATIVE = "AI improves diagnostic outcomes [1] and reduces costs [2]."


@pytest.fixture
def sample_references() -> list[Reference]:
    """Provide two tagged, fully populated references."""
    return [
        Reference(
            id=1,
            title="Deep learning in radiology",
            authors="Kim, J.; Park, S.",
            year="2021",
            journal="Radiology",
            url="https://doi.org/10.1148/radiol.2021",
            grade="SCI",
            lang="ENG",
            snippet="CNN-based triage improved sensitivity by 12%.",
            citation_reason="Supports the outcome claim",
            citation_tag="[1]",
            original_source_sentence="Sensitivity improved from 0.81 to 0.93.",
        ),
        Reference(
            id=2,
            title="Cost analysis of AI-assisted [draft] screening",
            authors="Lee, H.",
            year="2023",
            journal="Health Economics",
            url="https://doi.org/10.1002/hec.2023",
            grade="SCOPUS",
            lang="ENG",
            snippet="Screening costs fell by 18% per patient.",
            citation_tag="[2]",
        ),
    ]


@pytest.fixture
def sample_raw_response(sample_references: list[Reference]) -> str:
    """Well-formed sentinel-delimited generator output."""
    return format_response(SAMPLE_NARRATIVE, sample_references)


@pytest.fixture
def mock_generator(sample_raw_response: str) -> MagicMock:
    """Generator double returning the sample response."""
    generator = MagicMock()
    generator.generate = AsyncMock(
        return_value=GenerationResponse(text=sample_raw_response, model="mock-model")
    )
    return generator


@pytest.fixture
def citation_service(mock_generator: MagicMock) -> CitationService:
    return CitationService(generator=mock_generator, history=SessionHistory())


@pytest.fixture(autouse=True)
def reset_service_singleton():
    """Drop the process-wide service between tests."""
    dependencies._citation_service = None
    yield
    dependencies._citation_service = None
    app.dependency_overrides.clear()


@pytest.fixture
def client(citation_service: CitationService) -> TestClient:
    """Test client bound to a fresh in-memory citation service."""
    app.dependency_overrides[get_citation_service] = lambda: citation_service
    return TestClient(app)
