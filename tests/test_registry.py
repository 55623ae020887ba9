import pytest

from broker_mock.errors import ConflictError, NotFoundError
from broker_mock.registry import InstanceRegistry, ServiceBinding, ServiceInstance


def _instance(instance_id="i1", **extra):
    return ServiceInstance(instance_id=instance_id, service_id="svc", plan_id="plan", **extra)


def _binding(binding_id="b1"):
    return ServiceBinding(binding_id=binding_id, service_id="svc", plan_id="plan")


def test_create_and_get():
    registry = InstanceRegistry()
    registry.create(_instance(parameters={"a": 1}))

    instance = registry.get("i1")
    assert instance.parameters == {"a": 1}
    assert instance.bindings == {}
    assert instance.created_at
    assert "i1" in registry and len(registry) == 1
    assert registry.get("missing") is None


def test_create_existing_id_conflicts_and_keeps_original():
    registry = InstanceRegistry()
    registry.create(_instance(parameters={"a": 1}))

    with pytest.raises(ConflictError):
        registry.create(_instance(parameters={"a": 2}))
    assert registry.get("i1").parameters == {"a": 1}


def test_update_in_place():
    registry = InstanceRegistry()
    registry.create(_instance(parameters={"a": 1}, context={"platform": "cf"}))

    updated = registry.update("i1", service_id="svc", plan_id="plan-2", api_version="2.14", parameters={"b": 2})

    assert updated is registry.get("i1")
    assert updated.plan_id == "plan-2"
    assert updated.parameters == {"b": 2}
    assert updated.context == {"platform": "cf"}
    assert updated.api_version == "2.14"
    assert updated.last_updated is not None


def test_update_missing_instance():
    with pytest.raises(NotFoundError):
        InstanceRegistry().update("nope", service_id="s", plan_id="p", api_version="")


def test_delete_is_idempotent():
    registry = InstanceRegistry()
    registry.create(_instance())

    assert registry.delete("i1") is True
    assert registry.delete("i1") is False
    assert registry.get("i1") is None


def test_bindings_are_scoped_to_instance():
    registry = InstanceRegistry()
    registry.create(_instance("i1"))
    registry.create(_instance("i2"))

    registry.add_binding("i1", _binding("b1"))
    registry.add_binding("i2", _binding("b1"))

    assert registry.delete_binding("i1", "b1") is True
    assert "b1" in registry.get("i2").bindings


def test_add_binding_requires_instance():
    with pytest.raises(NotFoundError):
        InstanceRegistry().add_binding("nope", _binding())


def test_delete_binding_absorbs_absence():
    registry = InstanceRegistry()
    registry.create(_instance())

    assert registry.delete_binding("i1", "b-missing") is False
    assert registry.delete_binding("i-missing", "b1") is False


def test_snapshot_is_json_ready():
    registry = InstanceRegistry()
    registry.create(_instance())
    registry.add_binding("i1", _binding())

    snap = registry.snapshot()
    assert snap["i1"]["bindings"]["b1"]["service_id"] == "svc"

    registry.clear()
    assert len(registry) == 0


def test_add_binding_with_existing_id_replaces_it():
    registry = InstanceRegistry()
    registry.create(_instance())

    registry.add_binding("i1", ServiceBinding(binding_id="b1", service_id="svc", plan_id="plan", parameters={"v": 1}))
    registry.add_binding("i1", ServiceBinding(binding_id="b1", service_id="svc", plan_id="plan", parameters={"v": 2}))

    bindings = registry.get("i1").bindings
    assert len(bindings) == 1
    assert bindings["b1"].parameters == {"v": 2}
