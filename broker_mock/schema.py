"""Parameter validation against plan schemas.

Plans may carry a JSON Schema for the ``parameters`` object of each
(resource, action) pair. A missing or unusable schema means "no constraints".
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError


log = logging.getLogger("broker_mock.schema")


def _error_path(error: Any) -> str:
    parts = [str(p) for p in error.absolute_path]
    return ".".join(parts) if parts else "$"


def validate(schema: Mapping[str, Any] | None, parameters: Any) -> list[dict[str, Any]] | None:
    """Validate ``parameters`` against ``schema``.

    Returns None when there is nothing to report, otherwise a list of
    ``{"path", "message", "validator"}`` dicts ordered by path.
    """

    if not schema or not isinstance(schema, Mapping):
        return None

    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as exc:
        log.warning("Ignoring malformed parameter schema: %s", exc.message)
        return None

    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(parameters), key=lambda e: [str(p) for p in e.absolute_path])
    if not errors:
        return None

    return [
        {
            "path": _error_path(e),
            "message": e.message,
            "validator": e.validator,
        }
        for e in errors
    ]
