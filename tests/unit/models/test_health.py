"""Tests for the HealthStatus model."""

import datetime

from Market_Copilot.models import HealthStatus

NOW = datetime.datetime(2025, 1, 15, 14, 30, tzinfo=datetime.UTC)


class TestHealthStatus:
    """Tests for HealthStatus.any_remote_backend."""

    def test_remote_backend_available(self) -> None:
        status = HealthStatus(
            quote_providers={"finnhub": True},
            analysis_backends={"claude": False, "deepseek": True, "local": True},
            last_check=NOW,
        )
        assert status.any_remote_backend is True

    def test_local_only(self) -> None:
        status = HealthStatus(
            quote_providers={"finnhub": False},
            analysis_backends={"claude": False, "deepseek": False, "local": True},
            last_check=NOW,
        )
        assert status.any_remote_backend is False

    def test_serializes_computed_field(self) -> None:
        status = HealthStatus(
            quote_providers={},
            analysis_backends={"local": True},
            last_check=NOW,
        )
        assert status.model_dump()["any_remote_backend"] is False
