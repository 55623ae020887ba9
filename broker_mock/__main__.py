"""Module entrypoint: ``python -m broker_mock``.

Host, port and log level come from ``BROKER_HOST``, ``BROKER_PORT`` and
``BROKER_LOG_LEVEL``; see ``broker_mock.config`` for the rest.
"""

from __future__ import annotations

import uvicorn

from .config import Settings
from .logging_config import setup_logging


def main() -> None:
    settings = Settings.from_env()
    setup_logging(settings.log_level)

    uvicorn.run(
        "broker_mock.server:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        # Platforms usually reach the broker through a router or tunnel.
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()
