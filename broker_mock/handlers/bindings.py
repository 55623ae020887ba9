"""Service binding handlers.

Implements:
- PUT    /v2/service_instances/{instance_id}/service_bindings/{binding_id}
- DELETE /v2/service_instances/{instance_id}/service_bindings/{binding_id}?service_id=..&plan_id=..
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from ..headers import build_request_context
from ..preconditions import FieldChecker
from ..responses import get_broker, json_body, json_object, respond


async def put_binding(request: Request) -> JSONResponse:
    raw = await json_body(request)
    body = json_object(raw)

    check = FieldChecker()
    instance_id = check.not_empty(request.path_params, "params", "instance_id")
    binding_id = check.not_empty(request.path_params, "params", "binding_id")
    service_id = check.not_empty(body, "body", "service_id")
    plan_id = check.not_empty(body, "body", "plan_id")
    app_guid = check.string_or_none(body, "body", "app_guid")
    bind_resource = check.object_or_none(body, "body", "bind_resource")
    parameters = check.object_or_none(body, "body", "parameters")
    check.raise_if_failed()

    ctx = getattr(request.state, "ctx", None) or build_request_context(request.headers)
    credentials = get_broker(request).create_binding(
        instance_id,
        binding_id,
        service_id=service_id,
        plan_id=plan_id,
        app_guid=app_guid,
        bind_resource=bind_resource,
        parameters=parameters,
        api_version=ctx.api_version,
    )
    return respond(request, credentials, body=raw)


async def delete_binding(request: Request) -> JSONResponse:
    check = FieldChecker()
    instance_id = check.not_empty(request.path_params, "params", "instance_id")
    binding_id = check.not_empty(request.path_params, "params", "binding_id")
    service_id = check.not_empty(request.query_params, "query", "service_id")
    plan_id = check.not_empty(request.query_params, "query", "plan_id")
    check.raise_if_failed()

    get_broker(request).delete_binding(instance_id, binding_id, service_id=service_id, plan_id=plan_id)
    return respond(request, {})
