from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from app.observability.metrics import MetricsRegistry


def get_metrics_registry(request: Request) -> MetricsRegistry:
    return request.app.state.metrics_registry


def build_metrics_router(metrics_path: str = "/metrics") -> APIRouter:
    router = APIRouter(tags=["metrics"])

    @router.get(metrics_path, include_in_schema=False)
    async def metrics(registry: MetricsRegistry = Depends(get_metrics_registry)) -> Response:
        return Response(content=registry.render(), media_type=registry.content_type)

    return router
