"""Coerce accessor results into typed optional values.

Every helper returns None when the path is absent, null or unknown, or when
a supplied condition does not hold. Explicit zero values (``""``, ``0``,
``False``, ``[]``) are returned as-is, since the management API treats an
omitted field and an explicitly cleared one differently.
"""

import json
from typing import Any, Dict, List, Optional

from identity_sync.data.conditions import Condition, evaluate
from identity_sync.data.tree import ResourceData, UNKNOWN, is_known
from identity_sync.utils.errors import ValidationConflict, ErrorContext


def _value(data: ResourceData, path: str, conditions) -> Any:
    if not evaluate(data, path, conditions):
        return None
    value = data.raw(path)
    if not is_known(value):
        return None
    return value


def get_string(data: ResourceData, path: str, *conditions: Condition) -> Optional[str]:
    value = _value(data, path, conditions)
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def get_bool(data: ResourceData, path: str, *conditions: Condition) -> Optional[bool]:
    """Return a boolean; strings must spell ``true`` or ``false``.

    Raises:
        ValidationConflict: If the value is neither
    """
    value = _value(data, path, conditions)
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationConflict(f"{path} must be a boolean, got {value!r}", context=_context(data))


def get_int(data: ResourceData, path: str, *conditions: Condition) -> Optional[int]:
    value = _value(data, path, conditions)
    if value is None:
        return None
    return _convert(int, value, path, data)


def get_float(data: ResourceData, path: str, *conditions: Condition) -> Optional[float]:
    value = _value(data, path, conditions)
    if value is None:
        return None
    return _convert(float, value, path, data)


def _convert(kind, value: Any, path: str, data: ResourceData) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ValidationConflict(
            f"{path} must be a number, got {value!r}",
            context=_context(data),
            cause=e,
        )


def get_string_list(data: ResourceData, path: str, *conditions: Condition) -> Optional[List[str]]:
    """Return a list of strings, skipping null and unknown elements."""
    value = _value(data, path, conditions)
    if value is None:
        return None
    if not isinstance(value, (list, tuple, set)):
        value = [value]
    return [str(item) for item in value if item is not None and item is not UNKNOWN]


def get_string_map(data: ResourceData, path: str, *conditions: Condition) -> Optional[Dict[str, str]]:
    """Return a map of strings, skipping null values."""
    value = _value(data, path, conditions)
    if value is None:
        return None
    if not isinstance(value, dict):
        return None
    return {
        key: item if isinstance(item, str) else str(item)
        for key, item in value.items()
        if item is not None and item is not UNKNOWN
    }


def get_json(data: ResourceData, path: str, *conditions: Condition) -> Optional[Dict[str, Any]]:
    """Return a JSON object stored either as a dict or as a JSON string.

    Raises:
        ValidationConflict: If the string is not a JSON object
    """
    value = _value(data, path, conditions)
    if value is None:
        return None
    return parse_json_object(value, path, data)


def parse_json_object(value: Any, path: str = "", data: Optional[ResourceData] = None) -> Dict[str, Any]:
    """Parse a dict or JSON string into a dict. Empty strings yield {}."""
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, str):
        if not value.strip():
            return {}
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValidationConflict(
                f"{path} is not valid JSON: {e}",
                context=_context(data),
                cause=e,
            )
        if not isinstance(parsed, dict):
            raise ValidationConflict(f"{path} must be a JSON object", context=_context(data))
        return parsed
    raise ValidationConflict(
        f"{path} must be a JSON object, got {type(value).__name__}", context=_context(data)
    )


def _context(data: Optional[ResourceData]) -> ErrorContext:
    if data is None:
        return ErrorContext(operation='expand')
    return ErrorContext(
        resource_id=data.id,
        resource_type=data.root.resource_type,
        operation='expand',
    )
