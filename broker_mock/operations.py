"""Simulated asynchronous operations.

Nothing runs in the background: an operation is "in progress" until the
clock passes its completion time, and the first poll that observes this
retires it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

from .versioning import to_iso, utc_now


log = logging.getLogger("broker_mock.operations")

Clock = Callable[[], datetime]

CREATE = "create"
UPDATE = "update"
OPERATION_CLASSES = (CREATE, UPDATE)

# Upper bound keeps datetime arithmetic in range.
MAX_DELAY_SECONDS = 86400.0 * 365

IN_PROGRESS = "in progress"
SUCCEEDED = "succeeded"


@dataclass(frozen=True, slots=True)
class PendingOperation:
    instance_id: str
    operation: str
    completes_at: datetime

    def as_dict(self) -> dict[str, Any]:
        return {
            "instance_id": self.instance_id,
            "operation": self.operation,
            "completes_at": to_iso(self.completes_at),
        }


@dataclass(frozen=True, slots=True)
class OperationStatus:
    state: str
    description: str | None = None

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"state": self.state}
        if self.description is not None:
            out["description"] = self.description
        return out


def coerce_delay(value: Any, default: float = 1.0) -> float:
    """Seconds to wait before completion.

    Missing, non-numeric and non-finite values use the default; the result is
    clamped to [0, MAX_DELAY_SECONDS].
    """

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    try:
        seconds = float(value)
    except OverflowError:
        return MAX_DELAY_SECONDS if value > 0 else 0.0
    if not math.isfinite(seconds):
        return default
    return min(max(seconds, 0.0), MAX_DELAY_SECONDS)


class OperationTracker:
    def __init__(self, clock: Clock | None = None, *, default_delay: float = 1.0) -> None:
        self._clock: Clock = clock or utc_now
        self.default_delay = default_delay
        self._pending: dict[str, dict[str, PendingOperation]] = {op: {} for op in OPERATION_CLASSES}

    def now(self) -> datetime:
        return self._clock()

    def completion_time(self, delay: Any = None) -> datetime:
        return self.now() + timedelta(seconds=coerce_delay(delay, self.default_delay))

    def schedule(
        self,
        instance_id: str,
        operation: str,
        delay: Any = None,
        *,
        completes_at: datetime | None = None,
    ) -> PendingOperation:
        """Track an operation; ``completes_at`` overrides ``delay`` when given."""

        if operation not in self._pending:
            raise ValueError(f"unknown operation class {operation!r}")
        pending = PendingOperation(
            instance_id=instance_id,
            operation=operation,
            completes_at=completes_at if completes_at is not None else self.completion_time(delay),
        )
        self._pending[operation][instance_id] = pending
        log.debug("Scheduled %s for %s, completes at %s", operation, instance_id, to_iso(pending.completes_at))
        return pending

    def pending(self, instance_id: str) -> PendingOperation | None:
        for operation in OPERATION_CLASSES:
            found = self._pending[operation].get(instance_id)
            if found is not None:
                return found
        return None

    def is_running(self, instance_id: str) -> bool:
        pending = self.pending(instance_id)
        return pending is not None and self.now() < pending.completes_at

    def poll(self, instance_id: str) -> OperationStatus:
        pending = self.pending(instance_id)
        # Unknown ids are treated as finished and forgotten (e.g. after a restart).
        if pending is None:
            return OperationStatus(state=SUCCEEDED)

        if self.now() < pending.completes_at:
            return OperationStatus(state=IN_PROGRESS, description="The operation is in progress...")

        self.forget(instance_id)
        log.debug("Operation %s for %s finished", pending.operation, instance_id)
        return OperationStatus(state=SUCCEEDED, description="The operation has finished!")

    def forget(self, instance_id: str) -> None:
        for operation in OPERATION_CLASSES:
            self._pending[operation].pop(instance_id, None)

    def clear(self) -> None:
        for table in self._pending.values():
            table.clear()

    def snapshot(self) -> list[dict[str, Any]]:
        return [p.as_dict() for table in self._pending.values() for p in table.values()]
