from __future__ import annotations

import uuid
from time import perf_counter
from typing import Any, Callable

import structlog

from app.observability.metrics import MetricsRegistry, http_instruments


def resolve_route(scope: dict[str, Any]) -> str:
    """Route template the router matched, else the literal request path."""

    route = scope.get("route")
    template = getattr(route, "path", None)
    if template:
        return str(template)
    return str(scope.get("path", ""))


class MetricsMiddleware:
    """Records request count, duration and in-flight gauge for every HTTP request.

    The scrape path is passed straight through so that scrapes never show up
    in their own output.
    """

    def __init__(self, app: Callable[..., Any], registry: MetricsRegistry, metrics_path: str = "/metrics") -> None:
        self.app = app
        self.metrics_path = metrics_path
        self.instruments = http_instruments(registry)

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http" or scope.get("path") == self.metrics_path:
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        path = scope.get("path")
        method = scope.get("method")

        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=path,
            method=method,
        )

        instruments = self.instruments
        instruments.active_connections.inc()
        start = perf_counter()
        # Stays 500 if the app fails before starting a response.
        status_code: int = 500

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code

            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed = perf_counter() - start
            route = resolve_route(scope)
            labels = {"method": method, "route": route, "status_code": str(status_code)}

            instruments.requests_total.labels(**labels).inc()
            instruments.request_duration.labels(**labels).observe(elapsed)
            instruments.active_connections.dec()

            structlog.get_logger("access").info(
                "http_request",
                route=route,
                status_code=status_code,
                elapsed_ms=round(elapsed * 1000.0, 2),
            )

            structlog.contextvars.clear_contextvars()
