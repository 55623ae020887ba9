import copy

import pytest

from broker_mock.catalog import CatalogStore, default_catalog, parse_catalog
from broker_mock.errors import CatalogFormatError


def test_default_catalog_is_valid_and_has_async_plan():
    store = CatalogStore()
    names = {s.name for s in store.services}
    assert names == {"overview-service", "overview-syslog-drain", "overview-volume-mount"}

    service = next(s for s in store.services if s.name == "overview-service")
    plans = {p.name: p for p in service.plans}
    assert plans["async"].is_async is True
    assert plans["sync"].is_async is False
    assert plans["validated"].schema_for("service_instance", "create")["required"] == ["name"]


def test_default_catalog_ids_are_stable():
    assert default_catalog() == default_catalog()


def test_lookup_service_and_plan(catalog_document):
    store = CatalogStore(catalog_document)

    assert store.get_service("svc-plain").name == "plain"
    assert store.get_service("nope") is None
    assert store.get_service(None) is None
    assert store.get_plan_for_service("svc-plain", "plan-sync").name == "sync"
    assert store.get_plan_for_service("svc-plain", "plan-syslog") is None
    assert store.get_plan_for_service("nope", "plan-sync") is None


def test_explicit_flag_wins_over_plan_name(catalog_document):
    catalog_document["services"][0]["plans"].append({"id": "p-x", "name": "async", "asynchronous": False})
    store = CatalogStore(catalog_document)

    assert store.get_plan_for_service("svc-plain", "plan-async").is_async is True
    assert store.get_plan_for_service("svc-plain", "p-x").is_async is False


def test_plan_named_async_without_flag_is_async(catalog_document):
    catalog_document["services"][0]["plans"].append({"id": "p-legacy", "name": "async"})
    store = CatalogStore(catalog_document)

    assert store.get_plan_for_service("svc-plain", "p-legacy").is_async is True


def test_replace_round_trip(catalog_document):
    store = CatalogStore()
    store.set_catalog(catalog_document)

    assert store.get_catalog() == catalog_document
    assert store.get_service("svc-plain") is not None
    assert store.get_service(default_catalog()["services"][0]["id"]) is None


def test_get_catalog_returns_a_copy(catalog_document):
    store = CatalogStore(catalog_document)
    store.get_catalog()["services"].clear()

    assert len(store.get_catalog()["services"]) == len(catalog_document["services"])


@pytest.mark.parametrize(
    "mutate",
    [
        lambda doc: doc.pop("services"),
        lambda doc: doc["services"][0].pop("id"),
        lambda doc: doc["services"][0].__setitem__("plans", []),
        lambda doc: doc["services"][0]["plans"][0].pop("name"),
        lambda doc: doc["services"][1].__setitem__("requires", "syslog_drain"),
        lambda doc: doc["services"].append(copy.deepcopy(doc["services"][0])),
        lambda doc: doc["services"][0]["plans"].append({"id": "plan-sync", "name": "dup"}),
    ],
)
def test_invalid_replacement_keeps_previous_catalog(catalog_document, mutate):
    store = CatalogStore(catalog_document)
    before = store.get_catalog()

    bad = copy.deepcopy(catalog_document)
    mutate(bad)
    with pytest.raises(CatalogFormatError) as info:
        store.set_catalog(bad)

    assert info.value.details
    assert store.get_catalog() == before
    assert store.get_plan_for_service("svc-plain", "plan-sync") is not None


def test_non_object_catalog_is_rejected():
    with pytest.raises(CatalogFormatError):
        parse_catalog(None)
    with pytest.raises(CatalogFormatError):
        parse_catalog([])


def test_non_string_ids_do_not_resolve(catalog_document):
    store = CatalogStore(catalog_document)

    assert store.get_service(["svc-plain"]) is None
    assert store.get_plan_for_service("svc-plain", {"id": "plan-sync"}) is None
