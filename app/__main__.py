from __future__ import annotations

import structlog
import uvicorn

from app.config import get_settings
from app.observability.logging import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, service=settings.app_name, version=settings.app_version)

    structlog.get_logger("server").info("server_listening", host=settings.host, port=settings.port)
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
