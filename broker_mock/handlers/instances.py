"""Service instance handlers.

Implements:
- PUT    /v2/service_instances/{instance_id}
- PATCH  /v2/service_instances/{instance_id}
- DELETE /v2/service_instances/{instance_id}?service_id=..&plan_id=..
- GET    /v2/service_instances/{instance_id}/last_operation
- GET    /v2/service_instances/{instance_id}/metrics

Asynchronous plans answer 202 and complete once polled after their delay.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse

from ..config import truthy
from ..headers import RequestContext, build_request_context
from ..metrics import render_metrics
from ..preconditions import FieldChecker
from ..responses import get_broker, json_body, json_object, respond


def _ctx(request: Request) -> RequestContext:
    return getattr(request.state, "ctx", None) or build_request_context(request.headers)


async def put_instance(request: Request) -> JSONResponse:
    raw = await json_body(request)
    body = json_object(raw)

    check = FieldChecker()
    instance_id = check.not_empty(request.path_params, "params", "instance_id")
    service_id = check.not_empty(body, "body", "service_id")
    plan_id = check.not_empty(body, "body", "plan_id")
    organization_guid = check.not_empty(body, "body", "organization_guid")
    space_guid = check.not_empty(body, "body", "space_guid")
    parameters = check.object_or_none(body, "body", "parameters")
    context = check.object_or_none(body, "body", "context")
    check.raise_if_failed()

    result = get_broker(request).create_instance(
        instance_id,
        service_id=service_id,
        plan_id=plan_id,
        parameters=parameters,
        organization_guid=organization_guid,
        space_guid=space_guid,
        context=context,
        api_version=_ctx(request).api_version,
        accepts_incomplete=truthy(request.query_params.get("accepts_incomplete")),
    )
    return respond(request, result.as_dict(), status_code=202 if result.accepted else 200, body=raw)


async def patch_instance(request: Request) -> JSONResponse:
    raw = await json_body(request)
    body = json_object(raw)

    check = FieldChecker()
    instance_id = check.not_empty(request.path_params, "params", "instance_id")
    service_id = check.not_empty(body, "body", "service_id")
    plan_id = check.string_or_none(body, "body", "plan_id")
    parameters = check.object_or_none(body, "body", "parameters")
    context = check.object_or_none(body, "body", "context")
    check.raise_if_failed()

    result = get_broker(request).update_instance(
        instance_id,
        service_id=service_id,
        plan_id=plan_id,
        parameters=parameters,
        context=context,
        api_version=_ctx(request).api_version,
    )
    return respond(request, result.as_dict(), status_code=202 if result.accepted else 200, body=raw)


async def delete_instance(request: Request) -> JSONResponse:
    check = FieldChecker()
    instance_id = check.not_empty(request.path_params, "params", "instance_id")
    service_id = check.not_empty(request.query_params, "query", "service_id")
    plan_id = check.not_empty(request.query_params, "query", "plan_id")
    check.raise_if_failed()

    get_broker(request).delete_instance(instance_id, service_id=service_id, plan_id=plan_id)
    return respond(request, {})


async def get_last_operation(request: Request) -> JSONResponse:
    check = FieldChecker()
    instance_id = check.not_empty(request.path_params, "params", "instance_id")
    check.raise_if_failed()

    status = get_broker(request).last_operation(instance_id)
    return respond(request, status.as_dict())


async def get_metrics(request: Request) -> PlainTextResponse:
    instance_id = str(request.path_params.get("instance_id") or "")
    return PlainTextResponse(render_metrics(instance_id))
