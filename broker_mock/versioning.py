"""Small helpers for deterministic IDs and timestamps (mock-friendly).

Catalog IDs are derived from names so they survive restarts; instance and
binding IDs are always supplied by the caller.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def now_utc_iso() -> str:
    return utc_now().replace(microsecond=0).isoformat()


def to_iso(value: datetime) -> str:
    return value.replace(microsecond=0).isoformat()


def stable_id(prefix: str, seed: str, *, length: int = 12) -> str:
    """Deterministic ID generator based on a seed string.

    Notes:
      - Uses SHA-1 for compactness and determinism (not for security).
      - Output format: <prefix>-<hex[:length]>
    """

    digest = hashlib.sha1(seed.encode("utf-8")).hexdigest()
    return f"{prefix}-{digest[:length]}"
