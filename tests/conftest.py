"""Shared fixtures: controllable clock, a small catalog, broker and HTTP client."""

from __future__ import annotations

import copy
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from broker_mock.broker import BrokerService
from broker_mock.catalog import CatalogStore
from broker_mock.config import Settings
from broker_mock.server import create_app


class FakeClock:
    def __init__(self) -> None:
        self.current = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


STRICT_SCHEMA = {
    "type": "object",
    "required": ["name"],
    "properties": {"name": {"type": "string"}, "size": {"enum": ["s", "m", "l"]}},
}

CATALOG = {
    "services": [
        {
            "id": "svc-plain",
            "name": "plain",
            "description": "no requirements",
            "bindable": True,
            "requires": [],
            "plans": [
                {"id": "plan-sync", "name": "sync"},
                {"id": "plan-async", "name": "slow", "asynchronous": True},
                {
                    "id": "plan-strict",
                    "name": "strict",
                    "schemas": {
                        "service_instance": {
                            "create": {"parameters": STRICT_SCHEMA},
                            "update": {"parameters": {"type": "object", "properties": {"size": {"enum": ["s", "m", "l"]}}}},
                        },
                        "service_binding": {
                            "create": {"parameters": {"type": "object", "required": ["role"]}},
                        },
                    },
                },
            ],
        },
        {
            "id": "svc-syslog",
            "name": "syslog",
            "requires": ["syslog_drain"],
            "plans": [{"id": "plan-syslog", "name": "sync"}],
        },
        {
            "id": "svc-volume",
            "name": "volume",
            "requires": ["volume_mount"],
            "plans": [{"id": "plan-volume", "name": "sync"}],
        },
        {
            "id": "svc-both",
            "name": "both",
            "requires": ["volume_mount", "syslog_drain"],
            "plans": [{"id": "plan-both", "name": "sync"}],
        },
        {
            "id": "svc-routes",
            "name": "routes",
            "requires": ["route_forwarding"],
            "plans": [{"id": "plan-routes", "name": "sync"}],
        },
    ]
}

API_HEADERS = {"X-Broker-Api-Version": "2.13"}


@pytest.fixture
def catalog_document():
    return copy.deepcopy(CATALOG)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(app_url="http://broker.test", async_delay=1.0)


@pytest.fixture
def broker(settings, clock, catalog_document):
    return BrokerService(settings, catalog=CatalogStore(catalog_document), clock=clock)


@pytest.fixture
def app(settings, clock, catalog_document):
    application = create_app(settings, clock=clock)
    application.state.broker.replace_catalog(catalog_document)
    return application


@pytest.fixture
def client(app):
    with TestClient(app, headers=API_HEADERS) as c:
        yield c


def create_body(service_id="svc-plain", plan_id="plan-sync", **extra):
    body = {
        "service_id": service_id,
        "plan_id": plan_id,
        "organization_guid": "org-1",
        "space_guid": "space-1",
    }
    body.update(extra)
    return body
