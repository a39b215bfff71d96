"""Keyed set difference for relationship collections."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from identity_sync.data.tree import ResourceData, UNKNOWN, is_known

KeySpec = Union[None, str, Sequence[str]]


@dataclass
class Difference:
    """Result of diffing the old and new snapshots of a collection."""
    to_add: List[Any] = field(default_factory=list)
    to_remove: List[Any] = field(default_factory=list)
    retained: List[Any] = field(default_factory=list)
    modified: List[Any] = field(default_factory=list)

    def is_empty(self) -> bool:
        """True when nothing needs to be added, removed or updated."""
        return not (self.to_add or self.to_remove or self.modified)


def key_function(key: KeySpec) -> Callable[[Any], Any]:
    """Build the identity function for a key spec.

    Args:
        key: None for scalars, a field name, or a sequence of field names

    Returns:
        Callable mapping an element to its identity
    """
    if key is None:
        return lambda element: element
    if isinstance(key, str):
        return lambda element: element.get(key)
    fields = tuple(key)
    return lambda element: tuple(element.get(name) for name in fields)


def _collapse(elements: Optional[Iterable[Any]], identity: Callable[[Any], Any]) -> Dict[Any, Any]:
    collapsed: Dict[Any, Any] = {}
    if elements is None:
        return collapsed
    if isinstance(elements, dict):
        elements = [elements]
    for element in elements:
        if element is None or element is UNKNOWN:
            continue
        # Last write wins for duplicate keys
        collapsed[identity(element)] = element
    return collapsed


def set_difference(old: Optional[Iterable[Any]], new: Optional[Iterable[Any]], key: KeySpec = None) -> Difference:
    """Diff two collections keyed by an identity field.

    Args:
        old: Previously observed elements
        new: Desired elements
        key: Identity of each element (see key_function)

    Returns:
        Difference with elements to add (from new), to remove (from old),
        retained (from new) and modified (retained with changed attributes)
    """
    identity = key_function(key)
    old_by_key = _collapse(old, identity)
    new_by_key = _collapse(new, identity)

    result = Difference()
    for element_key, element in new_by_key.items():
        if element_key not in old_by_key:
            result.to_add.append(element)
        else:
            result.retained.append(element)
            if old_by_key[element_key] != element:
                result.modified.append(element)

    for element_key, element in old_by_key.items():
        if element_key not in new_by_key:
            result.to_remove.append(element)

    return result


def difference(data: ResourceData, path: str, key: KeySpec = None) -> Difference:
    """Diff the old and new values of the collection at path.

    A collection left out of the desired tree is not managed: the diff is
    empty and remote members are kept. An explicit empty list removes them.
    """
    if not is_known(data.raw(path)):
        return Difference()
    old, new = data.get_change(path)
    return set_difference(old, new, key)


def apply_difference(old: Iterable[Any], diff: Difference, key: KeySpec = None) -> List[Any]:
    """Apply a difference to a collection, preserving unrelated members.

    Removed keys are dropped, modified members replaced, added members
    appended.
    """
    identity = key_function(key)
    removed = {identity(element) for element in diff.to_remove}
    replacements = {identity(element): element for element in diff.retained}

    result: List[Any] = []
    seen: set = set()
    for element in old or []:
        element_key = identity(element)
        if element_key in removed or element_key in seen:
            continue
        seen.add(element_key)
        result.append(replacements.get(element_key, element))

    for element in diff.to_add:
        element_key = identity(element)
        if element_key not in seen:
            seen.add(element_key)
            result.append(element)

    return result
