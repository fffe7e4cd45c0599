"""Application entry point for the PayID private API server."""

from __future__ import annotations

import os

import uvicorn

from payid_server.config.settings import AppConfig, LogLevel


def main() -> None:
    """Start the PayID private API server."""
    config = AppConfig()
    log_level = LogLevel.DEBUG if config.debug else config.log_level
    reload = os.getenv("PAYID_RELOAD", "false").lower() in ("1", "true", "yes")
    uvicorn.run(
        "payid_server.api.app:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        reload=reload,
        log_level=log_level.value,
    )


if __name__ == "__main__":
    main()
