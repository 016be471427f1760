"""Tests for /v1/compare and service-level endpoints."""

from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient


class TestCompareEndpoint:
    def test_membership_mode(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/compare",
            json={"baseline_text": "<p>AI improves</p>", "revised_text": "AI greatly improves"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["added_count"] == 1
        assert [t["kind"] for t in data["tokens"]] == [
            "unchanged",
            "whitespace",
            "added",
            "whitespace",
            "unchanged",
        ]

    def test_sequence_mode_reports_removals(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/compare",
            json={"baseline_text": "a b c", "revised_text": "a x c", "mode": "sequence"},
        )

        kinds = {t["token"]: t["kind"] for t in response.json()["tokens"]}
        assert kinds["b"] == "removed"
        assert kinds["x"] == "added"

    def test_empty_baseline(self, client: TestClient) -> None:
        response = client.post("/api/v1/compare", json={"revised_text": "all new"})

        assert response.json()["added_count"] == 2


def test_health(client: TestClient) -> None:
    response = client.get("/api/v1/health")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "healthy"


def test_root_with_lifespan(client: TestClient) -> None:
    """Startup configures logging before serving requests."""
    with client as started:
        response = started.get("/")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["service"] == "ScholarCite API"
