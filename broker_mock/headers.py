"""Header normalization utilities.

Platforms send ``X-Broker-Api-Version`` on every ``/v2`` call; the server
rejects calls without it. All request headers still reach the dashboard
through the last request snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


API_VERSION = "X-Broker-Api-Version"


def _lower_map(headers: Mapping[str, str]) -> dict[str, str]:
    return {str(k).lower(): str(v) for k, v in headers.items()}


@dataclass(slots=True)
class RequestContext:
    """Normalized request context derived from headers."""

    api_version: str

    @property
    def has_api_version(self) -> bool:
        return bool(self.api_version)


def build_request_context(headers: Mapping[str, str]) -> RequestContext:
    """Build a RequestContext from incoming headers. Always succeeds."""

    h = _lower_map(headers)

    def get(name: str) -> str:
        return h.get(name.lower(), "").strip()

    return RequestContext(
        api_version=get(API_VERSION),
    )
