from __future__ import annotations

import logging
import sys
from typing import Any, Callable

import structlog


_CONFIGURED = False

Processor = Callable[[Any, str, dict[str, Any]], dict[str, Any]]


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def add_service_info(service: str, version: str) -> Processor:
    """Stamp every event with the service identity.

    Request middleware clears contextvars after each request, so these fields
    cannot live there.
    """

    def processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service)
        event_dict.setdefault("version", version)
        return event_dict

    return processor


def configure_logging(
    level: int | str = logging.INFO,
    *,
    service: str | None = None,
    version: str | None = None,
) -> None:
    """Send structlog events and stdlib records (uvicorn's included) to stdout as JSON.

    Only the first call has any effect.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    numeric_level = _resolve_level(level)

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if service:
        pre_chain.append(add_service_info(service, version or "unknown"))
    pre_chain += [
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=pre_chain,
        )
    )

    logging.basicConfig(level=numeric_level, handlers=[handler], force=True)

    # uvicorn wires its own handlers at startup; point them at ours instead.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers = [handler]
        logger.propagate = False
        logger.setLevel(numeric_level)

    _CONFIGURED = True
