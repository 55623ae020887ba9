"""Request field presence checks.

Collects every missing field before failing so callers see all problems at
once, in the ``[{"location", "param", "msg"}]`` shape.
"""

from __future__ import annotations

from typing import Any, Mapping

from .errors import ValidationError


class FieldChecker:
    def __init__(self) -> None:
        self.errors: list[dict[str, Any]] = []

    def not_empty(self, source: Mapping[str, Any], location: str, param: str) -> str | None:
        value = source.get(param)
        if value is None or (isinstance(value, str) and not value.strip()):
            self.errors.append({"location": location, "param": param, "msg": f"Missing {param}"})
            return None
        if not isinstance(value, str):
            self.errors.append({"location": location, "param": param, "msg": f"{param} must be a string"})
            return None
        return value

    def string_or_none(self, source: Mapping[str, Any], location: str, param: str) -> str | None:
        value = source.get(param)
        if value is None or value == "":
            return None
        if not isinstance(value, str):
            self.errors.append({"location": location, "param": param, "msg": f"{param} must be a string"})
            return None
        return value

    def object_or_none(self, source: Mapping[str, Any], location: str, param: str) -> dict[str, Any] | None:
        value = source.get(param)
        if value is None:
            return None
        if not isinstance(value, dict):
            self.errors.append({"location": location, "param": param, "msg": f"{param} must be an object"})
            return None
        return value

    def raise_if_failed(self) -> None:
        if self.errors:
            raise ValidationError(details=list(self.errors))
