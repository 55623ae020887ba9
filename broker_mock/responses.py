"""Request/response helpers shared by the handlers.

Broker responses are plain JSON objects (no envelope). Every handled call
refreshes the broker's last request/response snapshot through ``respond``.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from fastapi import Request
from fastapi.responses import JSONResponse

from .broker import BrokerService
from .errors import BrokerError


JsonObject = dict[str, Any]


async def json_body(request: Request) -> Any | None:
    """Parse the JSON request body.

    Policy: never raise; return None on any parse/IO error. The guard
    middleware caches the raw bytes in the scope so the body is read once.
    """

    body = request.scope.get("_body")
    if body is None:
        try:
            body = await request.body()
        except Exception:  # noqa: BLE001
            return None
    if not body:
        return None
    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None


def json_object(value: Any) -> JsonObject:
    if isinstance(value, dict):
        return value
    return {}


def get_broker(request: Request) -> BrokerService:
    broker: BrokerService | None = getattr(request.state, "broker", None)
    if broker is None:
        broker = request.app.state.broker  # type: ignore[attr-defined]
    return broker


def request_snapshot(request: Request, body: Any) -> JsonObject:
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return {
        "url": url,
        "method": request.method,
        "body": body,
        "headers": dict(request.headers),
    }


def respond(
    request: Request,
    payload: Mapping[str, Any],
    *,
    status_code: int = 200,
    body: Any = None,
) -> JSONResponse:
    """Record the call on the broker and return ``payload`` as JSON."""

    content = dict(payload)
    get_broker(request).record(request_snapshot(request, body), content)
    return JSONResponse(content, status_code=status_code)


def error_response(exc: BrokerError) -> JSONResponse:
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)
