import pytest
from pydantic import ValidationError

from app.config import Settings, get_settings
from app.main import create_app


def test_defaults() -> None:
    settings = get_settings()
    assert settings.port == 3000
    assert settings.metrics_path == "/metrics"
    assert settings.app_version == "1.0.0"
    assert settings.welcome_message == "Welcome to Cloud-Native Pipeline Demo!"


def test_port_is_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "8080")
    get_settings.cache_clear()
    assert get_settings().port == 8080


def test_empty_port_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "")
    monkeypatch.setenv("METRICS_PATH", "")
    get_settings.cache_clear()
    settings = get_settings()
    assert settings.port == 3000
    assert settings.metrics_path == "/metrics"


def test_invalid_port_fails_at_startup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "not-a-port")
    with pytest.raises(ValidationError):
        Settings()


async def test_custom_metrics_path_is_served_and_bypassed() -> None:
    from httpx import ASGITransport, AsyncClient

    app = create_app(settings=Settings(METRICS_PATH="/internal/metrics"))
    registry = app.state.metrics_registry

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        resp = await client.get("/internal/metrics")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == registry.content_type

        await client.get("/")

    assert registry.sample_value("http_requests_total", {"method": "GET", "route": "/", "status_code": "200"}) == 1
    assert registry.sample_value(
        "http_requests_total", {"method": "GET", "route": "/internal/metrics", "status_code": "200"}
    ) is None
