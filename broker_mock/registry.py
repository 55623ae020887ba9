"""In-memory registry of service instances and their bindings.

The registry is not locked on its own; ``BrokerService`` serializes access
to it together with the operation tracker.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from .errors import ConflictError, NotFoundError
from .versioning import now_utc_iso


JsonObject = dict[str, Any]


@dataclass(slots=True)
class ServiceBinding:
    binding_id: str
    service_id: str
    plan_id: str
    api_version: str = ""
    app_guid: str | None = None
    bind_resource: JsonObject | None = None
    parameters: JsonObject = field(default_factory=dict)
    created_at: str = field(default_factory=now_utc_iso)


@dataclass(slots=True)
class ServiceInstance:
    instance_id: str
    service_id: str
    plan_id: str
    api_version: str = ""
    parameters: JsonObject = field(default_factory=dict)
    organization_guid: str | None = None
    space_guid: str | None = None
    context: JsonObject | None = None
    accepts_incomplete: bool = False
    created_at: str = field(default_factory=now_utc_iso)
    last_updated: str | None = None
    bindings: dict[str, ServiceBinding] = field(default_factory=dict)

    def as_dict(self) -> JsonObject:
        return asdict(self)


class InstanceRegistry:
    def __init__(self) -> None:
        self._instances: dict[str, ServiceInstance] = {}

    def __contains__(self, instance_id: object) -> bool:
        return instance_id in self._instances

    def __len__(self) -> int:
        return len(self._instances)

    def create(self, instance: ServiceInstance) -> None:
        if instance.instance_id in self._instances:
            raise ConflictError(
                f"Service instance {instance.instance_id} already exists",
                details={"instance_id": instance.instance_id},
            )
        instance.bindings = {}
        self._instances[instance.instance_id] = instance

    def get(self, instance_id: str) -> ServiceInstance | None:
        return self._instances.get(instance_id)

    def require(self, instance_id: str) -> ServiceInstance:
        instance = self._instances.get(instance_id)
        if instance is None:
            raise NotFoundError(
                f"Could not find service instance {instance_id}",
                details={"instance_id": instance_id},
            )
        return instance

    def update(
        self,
        instance_id: str,
        *,
        service_id: str,
        plan_id: str,
        api_version: str,
        parameters: JsonObject | None = None,
        context: JsonObject | None = None,
    ) -> ServiceInstance:
        """Apply field-level updates in place; unspecified parameters/context are kept."""

        instance = self.require(instance_id)
        instance.service_id = service_id
        instance.plan_id = plan_id
        instance.api_version = api_version
        if parameters is not None:
            instance.parameters = parameters
        if context is not None:
            instance.context = context
        instance.last_updated = now_utc_iso()
        return instance

    def delete(self, instance_id: str) -> bool:
        return self._instances.pop(instance_id, None) is not None

    def add_binding(self, instance_id: str, binding: ServiceBinding) -> None:
        instance = self.require(instance_id)
        instance.bindings[binding.binding_id] = binding

    def delete_binding(self, instance_id: str, binding_id: str) -> bool:
        """Remove a binding; False when the instance or binding is already gone."""

        instance = self._instances.get(instance_id)
        if instance is None:
            return False
        return instance.bindings.pop(binding_id, None) is not None

    def clear(self) -> None:
        self._instances.clear()

    def snapshot(self) -> JsonObject:
        return {iid: inst.as_dict() for iid, inst in self._instances.items()}
