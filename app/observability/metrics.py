from __future__ import annotations

import time
from functools import lru_cache
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from threading import Lock
from typing import TypeVar, Union

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    GCCollector,
    Gauge,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)


HTTP_REQUESTS_TOTAL = "http_requests_total"
HTTP_REQUEST_DURATION_SECONDS = "http_request_duration_seconds"
ACTIVE_CONNECTIONS = "active_connections"

HTTP_LABELS = ("method", "route", "status_code")

Instrument = Union[Counter, Histogram, Gauge]
InstrumentT = TypeVar("InstrumentT", Counter, Histogram, Gauge)

_IMPORTED_AT = time.time()


@lru_cache(maxsize=1)
def process_start_time() -> float:
    """Unix time the process started, as ProcessCollector reads it from /proc.

    Platforms without /proc report the time this module was imported.
    """

    for family in ProcessCollector(registry=None).collect():
        if family.name == "process_start_time_seconds" and family.samples:
            return float(family.samples[0].value)
    return _IMPORTED_AT


def process_uptime() -> float:
    return max(0.0, time.time() - process_start_time())


class MetricsConfigurationError(ValueError):
    """Raised at startup when the registry is wired incorrectly."""


class MetricsRegistry:
    """Owns the Prometheus instruments of one application instance.

    Instruments are keyed by the name they were registered with and are never
    removed. Updates go through prometheus_client, whose instruments lock
    internally, so a threaded server can share one registry.
    """

    def __init__(self) -> None:
        self._registry = CollectorRegistry(auto_describe=True)
        self._instruments: dict[str, Instrument] = {}
        self._lock = Lock()
        self._defaults_collected = False

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST

    def counter(self, name: str, documentation: str, labelnames: Sequence[str] = ()) -> Counter:
        return self._register(name, Counter(name, documentation, labelnames=labelnames, registry=None))

    def histogram(
        self,
        name: str,
        documentation: str,
        labelnames: Sequence[str] = (),
        buckets: Sequence[float] = Histogram.DEFAULT_BUCKETS,
    ) -> Histogram:
        return self._register(
            name,
            Histogram(name, documentation, labelnames=labelnames, buckets=buckets, registry=None),
        )

    def gauge(self, name: str, documentation: str, labelnames: Sequence[str] = ()) -> Gauge:
        return self._register(name, Gauge(name, documentation, labelnames=labelnames, registry=None))

    def _register(self, name: str, instrument: InstrumentT) -> InstrumentT:
        with self._lock:
            if name in self._instruments:
                raise MetricsConfigurationError(f"Metric {name!r} is already registered")
            try:
                self._registry.register(instrument)
            except ValueError as exc:
                # Collides with a series exported by a default collector.
                raise MetricsConfigurationError(str(exc)) from exc
            self._instruments[name] = instrument
        return instrument

    def get(self, name: str) -> Instrument:
        try:
            return self._instruments[name]
        except KeyError as exc:
            raise MetricsConfigurationError(f"Metric {name!r} is not registered") from exc

    def names(self) -> list[str]:
        return list(self._instruments)

    def collect_defaults(self) -> None:
        """Register process, platform and GC collectors plus an uptime gauge."""

        with self._lock:
            if self._defaults_collected:
                raise MetricsConfigurationError("Default metrics are already collected")

            ProcessCollector(registry=self._registry)
            PlatformCollector(registry=self._registry)
            GCCollector(registry=self._registry)

        uptime = self.gauge("process_uptime_seconds", "Seconds since the process started")
        uptime.set_function(process_uptime)

        with self._lock:
            self._defaults_collected = True

    @property
    def defaults_collected(self) -> bool:
        return self._defaults_collected

    def render(self) -> bytes:
        return generate_latest(self._registry)

    def sample_value(self, name: str, labels: Mapping[str, str] | None = None) -> float | None:
        return self._registry.get_sample_value(name, dict(labels or {}))


@dataclass(frozen=True)
class HttpInstruments:
    requests_total: Counter
    request_duration: Histogram
    active_connections: Gauge


def register_http_instruments(registry: MetricsRegistry) -> HttpInstruments:
    return HttpInstruments(
        requests_total=registry.counter(
            HTTP_REQUESTS_TOTAL,
            "Total number of HTTP requests",
            labelnames=HTTP_LABELS,
        ),
        request_duration=registry.histogram(
            HTTP_REQUEST_DURATION_SECONDS,
            "Duration of HTTP requests in seconds",
            labelnames=HTTP_LABELS,
        ),
        active_connections=registry.gauge(
            ACTIVE_CONNECTIONS,
            "Number of active connections",
        ),
    )


def http_instruments(registry: MetricsRegistry) -> HttpInstruments:
    """Look up the HTTP instruments a registry was built with."""

    return HttpInstruments(
        requests_total=registry.get(HTTP_REQUESTS_TOTAL),
        request_duration=registry.get(HTTP_REQUEST_DURATION_SECONDS),
        active_connections=registry.get(ACTIVE_CONNECTIONS),
    )


def build_registry() -> MetricsRegistry:
    registry = MetricsRegistry()
    registry.collect_defaults()
    register_http_instruments(registry)
    return registry
