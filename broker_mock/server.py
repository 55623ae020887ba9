"""HTTP server for the mock broker.

- ``/v2/*`` calls without ``X-Broker-Api-Version`` are answered with 412
  (metrics scrapes are exempt).
- ``BrokerError`` becomes its status code plus ``{"error", "description",
  "details"}``.
- Any other exception is logged and answered with a 500 error body instead of
  escaping to the framework.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from . import __version__
from .broker import BrokerService
from .catalog import CatalogStore, load_catalog_file
from .config import Settings
from .errors import BrokerError, PreconditionFailed, error_from_exception
from .headers import API_VERSION, build_request_context
from .logging_config import setup_logging
from .operations import Clock
from .responses import error_response
from .routes import register_routes


log = logging.getLogger("broker_mock.server")


def _requires_api_version(path: str) -> bool:
    return path.startswith("/v2/") and not path.endswith("/metrics")


def create_app(settings: Settings | None = None, *, clock: Clock | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    catalog = CatalogStore(load_catalog_file(settings.catalog_path) if settings.catalog_path else None)

    app = FastAPI(
        title="Mock Service Broker",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    # Single owner of all broker state; handlers reach it via request.state.
    app.state.broker = BrokerService(settings, catalog=catalog, clock=clock)  # type: ignore[attr-defined]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BrokerError)
    async def _broker_error(request: Request, exc: BrokerError):
        log.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.code)
        return error_response(exc)

    @app.middleware("http")
    async def _exception_guard(request: Request, call_next):
        """Enforce the API version header and keep unexpected errors out of the framework."""

        context = build_request_context(request.headers)
        request.state.ctx = context
        request.state.broker = app.state.broker  # type: ignore[attr-defined]

        if _requires_api_version(request.url.path) and not context.has_api_version:
            return error_response(
                PreconditionFailed(details=[{"location": "headers", "param": API_VERSION, "msg": "Missing broker api version"}])
            )

        # Cache request body bytes once; handlers parse from the scope.
        try:
            request.scope["_body"] = await request.body()
        except Exception:  # noqa: BLE001
            request.scope["_body"] = b""
        try:
            response: Response = await call_next(request)
            return response
        except Exception as exc:  # noqa: BLE001
            log.exception("Unhandled error on %s %s", request.method, request.url.path)
            payload = error_from_exception(exc, include_details=settings.debug)
            return JSONResponse(payload, status_code=500)

    @app.get("/")
    async def root():
        return {"status": "ok"}

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    register_routes(app)
    return app

