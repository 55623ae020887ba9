"""Route table for the broker API.

``/v2/*`` routes follow the service broker API; ``/dashboard`` and
``/admin/*`` are mock-only introspection and test-support endpoints.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI

from .handlers.admin import get_dashboard, post_clean, post_update_catalog
from .handlers.bindings import delete_binding, put_binding
from .handlers.catalog import get_catalog
from .handlers.instances import (
    delete_instance,
    get_last_operation,
    get_metrics,
    patch_instance,
    put_instance,
)


log = logging.getLogger("broker_mock.routes")

INSTANCE_PATH = "/v2/service_instances/{instance_id}"
BINDING_PATH = INSTANCE_PATH + "/service_bindings/{binding_id}"

# Each item: {'path': str, 'methods': [str], 'handler': callable}
BROKER_ROUTES: list[dict[str, Any]] = [
    {"path": "/v2/catalog", "methods": ["GET"], "handler": get_catalog},
    {"path": INSTANCE_PATH, "methods": ["PUT"], "handler": put_instance},
    {"path": INSTANCE_PATH, "methods": ["PATCH"], "handler": patch_instance},
    {"path": INSTANCE_PATH, "methods": ["DELETE"], "handler": delete_instance},
    {"path": INSTANCE_PATH + "/last_operation", "methods": ["GET"], "handler": get_last_operation},
    {"path": INSTANCE_PATH + "/metrics", "methods": ["GET"], "handler": get_metrics},
    {"path": BINDING_PATH, "methods": ["PUT"], "handler": put_binding},
    {"path": BINDING_PATH, "methods": ["DELETE"], "handler": delete_binding},
    {"path": "/dashboard", "methods": ["GET"], "handler": get_dashboard},
    {"path": "/admin/clean", "methods": ["POST"], "handler": post_clean},
    {"path": "/admin/update-catalog", "methods": ["POST"], "handler": post_update_catalog},
]


def register_routes(app: FastAPI) -> None:
    for item in BROKER_ROUTES:
        app.add_route(item["path"], item["handler"], methods=item["methods"])
    log.debug("Registered %d broker routes", len(BROKER_ROUTES))
