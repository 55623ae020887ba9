"""Catalog handler: GET /v2/catalog."""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from ..responses import get_broker, respond


async def get_catalog(request: Request) -> JSONResponse:
    return respond(request, get_broker(request).get_catalog())
