"""Tests for application wiring: startup checks and error envelopes."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.domain.exceptions import (
    InfrastructureError,
    InfrastructureTimeoutError,
    MalformedRecordError,
)
from app.infrastructure.config import settings
from app.main import app


class FailingCache:
    """Listing cache whose loads fail with a given error."""

    def __init__(self, error: Exception) -> None:
        self.error = error

    async def get_or_load(self, loader: object) -> list:
        raise self.error

    def invalidate(self) -> None:
        return None


def test_refuses_to_start_without_admin_password(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Startup fails when no admin password is configured."""
    monkeypatch.setattr(
        settings, "database_url", f"sqlite+aiosqlite:///{tmp_path / 'app.db'}"
    )
    monkeypatch.setattr(settings, "admin_password", "")

    with pytest.raises(RuntimeError, match="ADMIN_PASSWORD"):
        with TestClient(app):
            pass


class TestErrorEnvelopes:
    """Tests for infrastructure error rendering."""

    @pytest.mark.parametrize(
        ("error", "status_code", "error_code"),
        [
            (InfrastructureError("pool exhausted on db-7"), 503, "INFRASTRUCTURE_ERROR"),
            (MalformedRecordError("prod_001", "price is text"), 503, "INFRASTRUCTURE_ERROR"),
            (InfrastructureTimeoutError("get_all", 10.0), 504, "INFRASTRUCTURE_TIMEOUT"),
        ],
    )
    def test_infrastructure_errors_are_generic(
        self,
        client: TestClient,
        error: Exception,
        status_code: int,
        error_code: str,
    ) -> None:
        """Store failures answer 5xx without internal details."""
        cache = client.app.state.listing_cache
        client.app.state.listing_cache = FailingCache(error)
        try:
            response = client.get("/products")
        finally:
            client.app.state.listing_cache = cache

        assert response.status_code == status_code
        data = response.json()
        assert data["error_code"] == error_code
        assert "db-7" not in data["message"]
        assert "price is text" not in data["message"]
        assert data["details"] == []

    def test_unknown_route(self, client: TestClient) -> None:
        """Unknown routes use the same envelope."""
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"
