"""Introspection and test-support handlers.

- GET  /dashboard            JSON snapshot of instances, pending operations,
                             last request/response and catalog
- POST /admin/clean          drop all instances, pending operations and snapshots
- POST /admin/update-catalog replace the catalog with body["catalog"]
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from ..headers import build_request_context
from ..responses import get_broker, json_body, json_object


async def get_dashboard(request: Request) -> JSONResponse:
    ctx = build_request_context(request.headers)
    return JSONResponse(get_broker(request).dashboard(ctx.api_version or None))


async def post_clean(request: Request) -> JSONResponse:
    get_broker(request).reset()
    return JSONResponse({})


async def post_update_catalog(request: Request) -> JSONResponse:
    body = json_object(await json_body(request))
    get_broker(request).replace_catalog(body.get("catalog"))
    return JSONResponse({})
