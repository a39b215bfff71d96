"""Change-gating predicates for expand operations.

A condition is a callable taking the accessor and the path being read. The
coercion helpers include a field only when every supplied condition holds.
"""

from typing import Callable

from identity_sync.data.tree import ResourceData

Condition = Callable[[ResourceData, str], bool]


def is_new_resource() -> Condition:
    """True only while the resource is being created."""
    def condition(data: ResourceData, path: str) -> bool:
        return data.is_new_resource()
    return condition


def has_change() -> Condition:
    """True when the old and new values at the path differ."""
    def condition(data: ResourceData, path: str) -> bool:
        return data.has_change(path)
    return condition


def not_(inner: Condition) -> Condition:
    """Negate a condition."""
    def condition(data: ResourceData, path: str) -> bool:
        return not inner(data, path)
    return condition


def any_of(*conditions: Condition) -> Condition:
    """True when at least one of the conditions holds.

    Used for fields sent on creation or when changed, e.g.
    ``any_of(is_new_resource(), has_change())``.
    """
    def condition(data: ResourceData, path: str) -> bool:
        return any(inner(data, path) for inner in conditions)
    return condition


def evaluate(data: ResourceData, path: str, conditions) -> bool:
    """Return True when all conditions hold (vacuously True for none)."""
    return all(condition(data, path) for condition in conditions)
