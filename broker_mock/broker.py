"""Lifecycle orchestration for service instances and bindings.

``BrokerService`` is the single owner of all mutable broker state (catalog,
instance registry, pending operations, last request/response). Each public
method runs under one coarse lock, so create/update/delete on the same
instance id never interleave.

Order of checks for every mutating call:
  1. catalog lookup (service, plan)
  2. parameter schema for the (resource, action), when the plan has one
  3. registry mutation
  4. for asynchronous plans, a pending operation instead of immediate completion

Everything that can fail (including the completion time of an asynchronous
operation) is computed before step 3, so a rejected call leaves no trace.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from threading import RLock
from typing import Any, Mapping

from . import schema as schema_validator
from .catalog import CatalogStore, PlanDefinition, ServiceDefinition
from .config import Settings
from .errors import (
    PARAMETERS_INVALID,
    PLAN_NOT_FOUND,
    SERVICE_NOT_FOUND,
    ConcurrencyError,
    NotFoundError,
    ValidationError,
)
from .operations import CREATE, UPDATE, Clock, OperationStatus, OperationTracker
from .registry import InstanceRegistry, ServiceBinding, ServiceInstance


log = logging.getLogger("broker_mock.broker")

JsonObject = dict[str, Any]

SYSLOG_DRAIN = "syslog_drain"
VOLUME_MOUNT = "volume_mount"


@dataclass(frozen=True, slots=True)
class ProvisionResult:
    accepted: bool
    dashboard_url: str | None = None

    def as_dict(self) -> JsonObject:
        if self.dashboard_url is None:
            return {}
        return {"dashboard_url": self.dashboard_url}


class BrokerService:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        catalog: CatalogStore | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.catalog = catalog or CatalogStore()
        self.registry = InstanceRegistry()
        self.operations = OperationTracker(clock, default_delay=self.settings.async_delay)
        self._lock = RLock()
        self.last_request: JsonObject = {}
        self.last_response: Any = {}

    # -- catalog -----------------------------------------------------------------

    def get_catalog(self) -> JsonObject:
        with self._lock:
            return self.catalog.get_catalog()

    def replace_catalog(self, document: Any) -> None:
        """Swap the catalog; CatalogFormatError leaves the current one in place."""

        with self._lock:
            self.catalog.set_catalog(document)

    def _resolve(self, service_id: str, plan_id: str) -> tuple[ServiceDefinition, PlanDefinition]:
        service = self.catalog.get_service(service_id)
        if service is None:
            raise NotFoundError(
                f"Could not find service {service_id}",
                details={"service_id": service_id},
                error_code=SERVICE_NOT_FOUND,
            )
        plan = service.get_plan(plan_id)
        if plan is None:
            raise NotFoundError(
                f"Could not find service/plan {service_id}/{plan_id}",
                details={"service_id": service_id, "plan_id": plan_id},
                error_code=PLAN_NOT_FOUND,
            )
        return service, plan

    @staticmethod
    def _check_parameters(plan: PlanDefinition, resource: str, action: str, parameters: JsonObject) -> None:
        errors = schema_validator.validate(plan.schema_for(resource, action), parameters)
        if errors:
            raise ValidationError(
                f"Parameters rejected by {resource} {action} schema of plan {plan.name}",
                details=errors,
                error_code=PARAMETERS_INVALID,
            )

    def metrics_url(self, instance_id: str) -> str:
        return f"{self.settings.app_url}/v2/service_instances/{instance_id}/metrics"

    # -- instances ---------------------------------------------------------------

    def create_instance(
        self,
        instance_id: str,
        *,
        service_id: str,
        plan_id: str,
        parameters: JsonObject | None = None,
        organization_guid: str | None = None,
        space_guid: str | None = None,
        context: JsonObject | None = None,
        api_version: str = "",
        accepts_incomplete: bool = False,
    ) -> ProvisionResult:
        parameters = parameters or {}
        with self._lock:
            _, plan = self._resolve(service_id, plan_id)
            self._check_parameters(plan, "service_instance", "create", parameters)
            completes_at = self.operations.completion_time(parameters.get("delay")) if plan.is_async else None

            log.debug("Creating service %s", instance_id)
            self.registry.create(
                ServiceInstance(
                    instance_id=instance_id,
                    service_id=service_id,
                    plan_id=plan_id,
                    api_version=api_version,
                    parameters=parameters,
                    organization_guid=organization_guid,
                    space_guid=space_guid,
                    context=context,
                    accepts_incomplete=accepts_incomplete,
                )
            )

            if plan.is_async:
                self.operations.schedule(instance_id, CREATE, completes_at=completes_at)
                return ProvisionResult(accepted=True, dashboard_url=self.settings.dashboard_url)
            return ProvisionResult(accepted=False, dashboard_url=self.metrics_url(instance_id))

    def update_instance(
        self,
        instance_id: str,
        *,
        service_id: str,
        plan_id: str | None = None,
        parameters: JsonObject | None = None,
        context: JsonObject | None = None,
        api_version: str = "",
    ) -> ProvisionResult:
        with self._lock:
            instance = self.registry.require(instance_id)
            plan_id = plan_id or instance.plan_id
            _, plan = self._resolve(service_id, plan_id)
            self._check_parameters(plan, "service_instance", "update", parameters or {})
            completes_at = self.operations.completion_time((parameters or {}).get("delay")) if plan.is_async else None

            if self.operations.is_running(instance_id):
                pending = self.operations.pending(instance_id)
                raise ConcurrencyError(
                    f"Service instance {instance_id} has a {pending.operation} operation in progress",
                    details=pending.as_dict(),
                )
            # An expired but unpolled operation is done; drop it before tracking the update.
            self.operations.forget(instance_id)

            log.debug("Updating service %s", instance_id)
            self.registry.update(
                instance_id,
                service_id=service_id,
                plan_id=plan_id,
                api_version=api_version,
                parameters=parameters,
                context=context,
            )

            if plan.is_async:
                self.operations.schedule(instance_id, UPDATE, completes_at=completes_at)
                return ProvisionResult(accepted=True)
            return ProvisionResult(accepted=False)

    def delete_instance(self, instance_id: str, *, service_id: str, plan_id: str) -> None:
        with self._lock:
            if self.catalog.get_plan_for_service(service_id, plan_id) is None:
                # IDs may have changed since the instance was created (catalog replaced).
                log.warning("Could not find service %s, plan %s", service_id, plan_id)

            log.debug("Deleting service %s", instance_id)
            if not self.registry.delete(instance_id):
                log.debug("Service %s was already gone", instance_id)
            self.operations.forget(instance_id)

    def last_operation(self, instance_id: str) -> OperationStatus:
        with self._lock:
            return self.operations.poll(instance_id)

    # -- bindings ----------------------------------------------------------------

    def create_binding(
        self,
        instance_id: str,
        binding_id: str,
        *,
        service_id: str,
        plan_id: str,
        app_guid: str | None = None,
        bind_resource: JsonObject | None = None,
        parameters: JsonObject | None = None,
        api_version: str = "",
    ) -> JsonObject:
        parameters = parameters or {}
        with self._lock:
            service, plan = self._resolve(service_id, plan_id)
            self.registry.require(instance_id)
            self._check_parameters(plan, "service_binding", "create", parameters)

            log.debug("Creating service binding %s for service %s", binding_id, instance_id)
            self.registry.add_binding(
                instance_id,
                ServiceBinding(
                    binding_id=binding_id,
                    service_id=service_id,
                    plan_id=plan_id,
                    api_version=api_version,
                    app_guid=app_guid,
                    bind_resource=bind_resource,
                    parameters=parameters,
                ),
            )
            return self.binding_payload(service)

    def binding_payload(self, service: ServiceDefinition) -> JsonObject:
        """Credentials for a new binding, shaped by the service's ``requires`` tags.

        Tags are checked in a fixed order; the first match wins.
        """

        if not service.requires:
            return {
                "credentials": {
                    "username": self.settings.binding_username,
                    "password": self.settings.binding_password,
                }
            }
        if SYSLOG_DRAIN in service.requires:
            return {"syslog_drain_url": self.settings.syslog_drain_url}
        if VOLUME_MOUNT in service.requires:
            return {
                "driver": "nfs",
                "container_dir": "/tmp",
                "mode": "r",
                "device_type": "shared",
                "device": {"volume_id": "1"},
            }
        return {}

    def delete_binding(self, instance_id: str, binding_id: str, *, service_id: str, plan_id: str) -> None:
        with self._lock:
            log.debug("Deleting service binding %s for service %s", binding_id, instance_id)
            if not self.registry.delete_binding(instance_id, binding_id):
                log.debug("Binding %s for service %s was already gone", binding_id, instance_id)

    # -- administration ----------------------------------------------------------

    def reset(self) -> None:
        with self._lock:
            self.registry.clear()
            self.operations.clear()
            self.last_request = {}
            self.last_response = {}

    def record(self, request: Mapping[str, Any], response: Any) -> None:
        with self._lock:
            self.last_request = dict(request)
            self.last_response = copy.deepcopy(response)

    def dashboard(self, api_version: str | None = None) -> JsonObject:
        with self._lock:
            return {
                "title": "Overview Broker",
                "status": "running",
                "api_version": api_version,
                "service_instances": self.registry.snapshot(),
                "pending_operations": self.operations.snapshot(),
                "last_request": copy.deepcopy(self.last_request),
                "last_response": copy.deepcopy(self.last_response),
                "catalog": self.catalog.get_catalog(),
            }
