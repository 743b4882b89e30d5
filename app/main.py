from __future__ import annotations

from datetime import datetime, timezone

from fastapi import FastAPI, Request

from app.api.metrics import build_metrics_router
from app.config import Settings, get_settings
from app.models.schemas import HealthResponse, WelcomeResponse
from app.observability.metrics import MetricsRegistry, build_registry, process_uptime
from app.observability.middleware import MetricsMiddleware


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_app(settings: Settings | None = None, registry: MetricsRegistry | None = None) -> FastAPI:
    settings = settings or get_settings()
    registry = registry or build_registry()

    app = FastAPI(title=settings.app_name, version=settings.app_version)
    app.state.settings = settings
    app.state.metrics_registry = registry

    app.add_middleware(MetricsMiddleware, registry=registry, metrics_path=settings.metrics_path)
    app.include_router(build_metrics_router(settings.metrics_path))

    @app.get("/", response_model=WelcomeResponse)
    async def index(request: Request) -> WelcomeResponse:
        app_settings: Settings = request.app.state.settings
        return WelcomeResponse(
            message=app_settings.welcome_message,
            version=app_settings.app_version,
            timestamp=_now(),
        )

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", uptime=process_uptime(), timestamp=_now())

    return app


app = create_app()
