"""Catalog store: the services and plans the broker advertises.

The raw catalog document is kept as given so ``get_catalog`` returns exactly
what was loaded; lookups go through parsed, immutable definitions.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from jsonschema import Draft7Validator

from .errors import CatalogFormatError
from .versioning import stable_id


log = logging.getLogger("broker_mock.catalog")

JsonObject = dict[str, Any]

RESOURCES = ("service_instance", "service_binding")
ACTIONS = ("create", "update")

# Legacy catalogs flag asynchronous plans by name only.
LEGACY_ASYNC_PLAN_NAME = "async"

_SCHEMA_SLOT: JsonObject = {
    "type": "object",
    "properties": {"parameters": {"type": ["object", "null"]}},
}

CATALOG_DOCUMENT_SCHEMA: JsonObject = {
    "type": "object",
    "required": ["services"],
    "properties": {
        "services": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "name", "plans"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "name": {"type": "string", "minLength": 1},
                    "description": {"type": "string"},
                    "bindable": {"type": "boolean"},
                    "requires": {"type": "array", "items": {"type": "string"}},
                    "plans": {
                        "type": "array",
                        "minItems": 1,
                        "items": {
                            "type": "object",
                            "required": ["id", "name"],
                            "properties": {
                                "id": {"type": "string", "minLength": 1},
                                "name": {"type": "string", "minLength": 1},
                                "description": {"type": "string"},
                                "asynchronous": {"type": "boolean"},
                                "schemas": {
                                    "type": "object",
                                    "properties": {
                                        "service_instance": {
                                            "type": "object",
                                            "properties": {"create": _SCHEMA_SLOT, "update": _SCHEMA_SLOT},
                                        },
                                        "service_binding": {
                                            "type": "object",
                                            "properties": {"create": _SCHEMA_SLOT},
                                        },
                                    },
                                },
                            },
                        },
                    },
                },
            },
        }
    },
}


@dataclass(frozen=True, slots=True)
class PlanDefinition:
    id: str
    name: str
    description: str = ""
    is_async: bool = False
    # (resource, action) -> parameters schema; absent key means no constraints.
    schemas: Mapping[tuple[str, str], JsonObject] = field(default_factory=dict)

    def schema_for(self, resource: str, action: str) -> JsonObject | None:
        return self.schemas.get((resource, action))


@dataclass(frozen=True, slots=True)
class ServiceDefinition:
    id: str
    name: str
    description: str = ""
    bindable: bool = True
    requires: tuple[str, ...] = ()
    plans: tuple[PlanDefinition, ...] = ()

    def get_plan(self, plan_id: str) -> PlanDefinition | None:
        for plan in self.plans:
            if plan.id == plan_id:
                return plan
        return None


def _parse_schemas(raw: Any) -> dict[tuple[str, str], JsonObject]:
    out: dict[tuple[str, str], JsonObject] = {}
    if not isinstance(raw, Mapping):
        return out
    for resource in RESOURCES:
        per_resource = raw.get(resource)
        if not isinstance(per_resource, Mapping):
            continue
        for action in ACTIONS:
            slot = per_resource.get(action)
            if not isinstance(slot, Mapping):
                continue
            parameters = slot.get("parameters")
            if isinstance(parameters, Mapping) and parameters:
                out[(resource, action)] = copy.deepcopy(dict(parameters))
    return out


def _parse_plan(raw: Mapping[str, Any]) -> PlanDefinition:
    is_async = raw.get("asynchronous")
    if is_async is None:
        is_async = raw["name"] == LEGACY_ASYNC_PLAN_NAME
    return PlanDefinition(
        id=raw["id"],
        name=raw["name"],
        description=str(raw.get("description") or ""),
        is_async=bool(is_async),
        schemas=_parse_schemas(raw.get("schemas")),
    )


def parse_catalog(document: Any) -> dict[str, ServiceDefinition]:
    """Validate a catalog document and build service definitions keyed by id.

    Raises CatalogFormatError without side effects when the document is
    structurally invalid or repeats a service/plan id.
    """

    validator = Draft7Validator(CATALOG_DOCUMENT_SCHEMA)
    problems = [
        f"{'/'.join(str(p) for p in e.absolute_path) or '$'}: {e.message}"
        for e in sorted(validator.iter_errors(document), key=lambda e: [str(p) for p in e.absolute_path])
    ]
    if problems:
        raise CatalogFormatError(details=problems)

    services: dict[str, ServiceDefinition] = {}
    for raw in document["services"]:
        if raw["id"] in services:
            problems.append(f"duplicate service id {raw['id']!r}")
            continue
        plans = [_parse_plan(p) for p in raw["plans"]]
        seen: set[str] = set()
        for plan in plans:
            if plan.id in seen:
                problems.append(f"duplicate plan id {plan.id!r} in service {raw['id']!r}")
            seen.add(plan.id)
        services[raw["id"]] = ServiceDefinition(
            id=raw["id"],
            name=raw["name"],
            description=str(raw.get("description") or ""),
            bindable=bool(raw.get("bindable", True)),
            requires=tuple(raw.get("requires") or ()),
            plans=tuple(plans),
        )
    if problems:
        raise CatalogFormatError(details=problems)
    return services


def _plan(service_name: str, name: str, description: str, **extra: Any) -> JsonObject:
    plan: JsonObject = {
        "id": stable_id("plan", f"{service_name}|{name}"),
        "name": name,
        "description": description,
        "free": True,
    }
    plan.update(extra)
    return plan


def default_catalog() -> JsonObject:
    """Built-in catalog used when no catalog file is configured."""

    validated_schemas = {
        "service_instance": {
            "create": {
                "parameters": {
                    "$schema": "http://json-schema.org/draft-07/schema#",
                    "type": "object",
                    "required": ["name"],
                    "properties": {
                        "name": {"type": "string", "minLength": 1},
                        "size": {"type": "string", "enum": ["small", "medium", "large"]},
                    },
                }
            },
            "update": {
                "parameters": {
                    "$schema": "http://json-schema.org/draft-07/schema#",
                    "type": "object",
                    "properties": {
                        "size": {"type": "string", "enum": ["small", "medium", "large"]},
                    },
                }
            },
        },
        "service_binding": {
            "create": {
                "parameters": {
                    "$schema": "http://json-schema.org/draft-07/schema#",
                    "type": "object",
                    "properties": {"read_only": {"type": "boolean"}},
                }
            }
        },
    }

    return {
        "services": [
            {
                "id": stable_id("svc", "overview-service"),
                "name": "overview-service",
                "description": "Provides an overview of any service instances and bindings that have been created by a platform.",
                "bindable": True,
                "plan_updateable": True,
                "requires": [],
                "plans": [
                    _plan("overview-service", "sync", "Instances are provisioned synchronously."),
                    _plan(
                        "overview-service",
                        "async",
                        "Instances are provisioned asynchronously; poll last_operation.",
                        asynchronous=True,
                    ),
                    _plan(
                        "overview-service",
                        "validated",
                        "Parameters are validated against a schema.",
                        schemas=validated_schemas,
                    ),
                ],
            },
            {
                "id": stable_id("svc", "overview-syslog-drain"),
                "name": "overview-syslog-drain",
                "description": "Bindings return a syslog drain URL.",
                "bindable": True,
                "requires": ["syslog_drain"],
                "plans": [_plan("overview-syslog-drain", "sync", "Synchronous plan.")],
            },
            {
                "id": stable_id("svc", "overview-volume-mount"),
                "name": "overview-volume-mount",
                "description": "Bindings return a volume mount.",
                "bindable": True,
                "requires": ["volume_mount"],
                "plans": [_plan("overview-volume-mount", "sync", "Synchronous plan.")],
            },
        ]
    }


def load_catalog_file(path: str | Path) -> JsonObject:
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


class CatalogStore:
    """Holds the current catalog; replacement is all-or-nothing."""

    def __init__(self, document: Mapping[str, Any] | None = None) -> None:
        if document is None:
            document = default_catalog()
        self._services: dict[str, ServiceDefinition] = {}
        self._document: JsonObject = {}
        self.set_catalog(document)

    def get_catalog(self) -> JsonObject:
        return copy.deepcopy(self._document)

    @property
    def services(self) -> list[ServiceDefinition]:
        return list(self._services.values())

    def get_service(self, service_id: str | None) -> ServiceDefinition | None:
        if not isinstance(service_id, str):
            return None
        return self._services.get(service_id)

    def get_plan_for_service(self, service_id: str | None, plan_id: str | None) -> PlanDefinition | None:
        service = self.get_service(service_id)
        if service is None or not isinstance(plan_id, str):
            return None
        return service.get_plan(plan_id)

    def set_catalog(self, document: Any) -> None:
        services = parse_catalog(document)
        self._document = copy.deepcopy(dict(document))
        self._services = services
        log.info("Catalog loaded with %d service(s)", len(services))
