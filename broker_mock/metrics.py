"""Fake per-instance metrics in Prometheus text exposition format."""

from __future__ import annotations

import random
import time
from datetime import datetime


def render_metrics(instance_id: str, *, now: datetime | None = None, rng: random.Random | None = None) -> str:
    rng = rng or random.Random()
    now = now or datetime.now()
    millis = int(time.mktime(now.timetuple()) * 1000)
    label = f'service_instance="{instance_id}"'

    lines = [
        "# HELP health The service instance is healthy",
        "# TYPE health gauge",
        f"health{{{label}}} {rng.randint(0, 1)} {millis}",
        "",
        "# HELP cpu The service instance CPU load",
        "# TYPE cpu gauge",
        f"cpu{{{label}}} {rng.randint(0, 99)} {millis}",
        "",
        "# HELP total_requests Total requests to the service instance",
        "# TYPE total_requests counter",
        f"total_requests{{{label}}} {now.second} {millis}",
    ]
    return "\n".join(lines) + "\n"
