"""
Process entrypoint: python -m book_api

uvicorn handles SIGINT/SIGTERM: it stops accepting connections, waits up to
shutdown_timeout_seconds for in-flight requests, then runs the app's lifespan
shutdown (collector stopped, pool disposed).
"""

from __future__ import annotations

import uvicorn

from book_api.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "book_api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        timeout_keep_alive=settings.idle_timeout_seconds,
        timeout_graceful_shutdown=settings.shutdown_timeout_seconds,
        log_level=settings.log_level.lower(),
        access_log=False,
    )


if __name__ == "__main__":
    main()
