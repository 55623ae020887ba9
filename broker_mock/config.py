"""Runtime configuration read from ``BROKER_*`` environment variables.

Values are read when ``Settings.from_env`` runs, inside ``create_app`` or
``main`` and never at import. ``create_app`` also accepts an explicit
``Settings`` so tests never depend on the process environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def truthy(value: str | None) -> bool:
    v = (value or "").strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


def _float(value: str | None, default: float) -> float:
    try:
        return float(value) if value not in (None, "") else default
    except ValueError:
        return default


@dataclass(slots=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"
    app_url: str = "http://localhost:8080"
    dashboard_url: str = ""
    catalog_path: str | None = None
    async_delay: float = 1.0
    binding_username: str = "admin"
    binding_password: str = "password"
    syslog_drain_url: str = "http://ladida"
    debug: bool = False

    def __post_init__(self) -> None:
        self.app_url = self.app_url.rstrip("/")
        if not self.dashboard_url:
            self.dashboard_url = f"{self.app_url}/dashboard"

    @classmethod
    def from_env(cls) -> "Settings":
        port = int(os.getenv("BROKER_PORT", "8080"))
        return cls(
            host=os.getenv("BROKER_HOST", "0.0.0.0"),
            port=port,
            log_level=os.getenv("BROKER_LOG_LEVEL", "info").lower(),
            app_url=os.getenv("BROKER_APP_URL", f"http://localhost:{port}"),
            dashboard_url=os.getenv("BROKER_DASHBOARD_URL", ""),
            catalog_path=os.getenv("BROKER_CATALOG_PATH") or None,
            async_delay=_float(os.getenv("BROKER_ASYNC_DELAY"), 1.0),
            binding_username=os.getenv("BROKER_BINDING_USERNAME", "admin"),
            binding_password=os.getenv("BROKER_BINDING_PASSWORD", "password"),
            syslog_drain_url=os.getenv("BROKER_SYSLOG_DRAIN_URL", "http://ladida"),
            debug=truthy(os.getenv("BROKER_DEBUG")),
        )

