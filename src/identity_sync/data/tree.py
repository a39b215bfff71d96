"""Attribute accessor over desired and observed configuration trees.

A configuration tree is a plain Python structure: dicts for blocks and maps,
lists for repeated values, scalars, ``None`` for null, and the ``UNKNOWN``
sentinel for values that are not resolved yet. A key missing from its parent
dict is absent.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from identity_sync.utils.errors import AggregateError, AttributeSetError, ErrorContext


class _Unknown:
    """Sentinel for a value that is not resolved yet."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __bool__(self) -> bool:
        return False


class _Absent:
    """Marker returned by path lookups that hit a missing key."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


UNKNOWN = _Unknown()
ABSENT = _Absent()

SCALAR_TYPES = (str, bool, int, float)


def split_path(path: str) -> List[str]:
    """Split a dotted path such as ``options.0.validation.0.username``."""
    if not path:
        return []
    return path.split(".")


def lookup(tree: Any, parts: List[str]) -> Any:
    """Resolve path parts against a tree.

    Numeric parts index into lists. A dict standing where a list of blocks
    is expected is treated as a single block at index 0.

    Returns:
        The value found, ABSENT if any step is missing, or UNKNOWN if an
        unresolved value sits on the path.
    """
    node = tree
    for part in parts:
        if node is UNKNOWN:
            return UNKNOWN
        if part.isdigit():
            index = int(part)
            if isinstance(node, list):
                if index >= len(node):
                    return ABSENT
                node = node[index]
            elif isinstance(node, dict) and index == 0:
                continue
            else:
                return ABSENT
        elif isinstance(node, dict):
            if part not in node:
                return ABSENT
            node = node[part]
        else:
            return ABSENT
    return node


def is_known(value: Any) -> bool:
    """Return True when a value is present, non-null and resolved."""
    return value is not ABSENT and value is not UNKNOWN and value is not None


def _normalize(value: Any) -> Any:
    return None if value is ABSENT else value


def _validate_tree_value(value: Any) -> None:
    if value is None or value is UNKNOWN or isinstance(value, SCALAR_TYPES):
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _validate_tree_value(item)
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"map keys must be strings, got {type(key).__name__}")
            _validate_tree_value(item)
        return
    raise TypeError(f"cannot store value of type {type(value).__name__}")


def _copy_tree(value: Any) -> Any:
    """Copy a value for the observed tree, leaving out null block members.

    A block read back from the remote only records what the remote reports,
    so it compares equal to a desired block that sets the same keys.
    """
    if isinstance(value, (list, tuple)):
        return [_copy_tree(item) for item in value]
    if isinstance(value, dict):
        return {key: _copy_tree(item) for key, item in value.items() if item is not None}
    return value


@dataclass(frozen=True)
class Change:
    """Old (last observed) and new (desired) trees for one resource."""
    old: Dict[str, Any] = field(default_factory=dict)
    new: Dict[str, Any] = field(default_factory=dict)


class ResourceData:
    """Read, write and change-detection view over a resource's trees.

    Reads resolve against ``change.new``; change detection compares it with
    ``change.old``. Writes go to ``observed``, which holds the flattened
    remote state after a read.
    """

    def __init__(
        self,
        change: Change,
        resource_id: Optional[str] = None,
        new_resource: bool = False,
        resource_type: Optional[str] = None,
        _prefix: Tuple[str, ...] = (),
        _root: Optional["ResourceData"] = None
    ):
        """Initialize resource data.

        Args:
            change: Old and new trees
            resource_id: Remote id, if the resource already exists
            new_resource: True while the resource is being created
            resource_type: Resource type name used in error context
        """
        self.change = change
        self._prefix = _prefix
        self._root = _root
        if _root is None:
            self._id = resource_id
            self._new_resource = new_resource
            self.resource_type = resource_type
            self.observed: Dict[str, Any] = {}

    @classmethod
    def for_create(cls, config: Dict[str, Any], resource_type: Optional[str] = None) -> "ResourceData":
        """Build a view for a resource that does not exist yet."""
        return cls(Change(old={}, new=config), new_resource=True, resource_type=resource_type)

    @property
    def root(self) -> "ResourceData":
        return self._root if self._root is not None else self

    @property
    def id(self) -> Optional[str]:
        return self.root._id

    def set_id(self, resource_id: Optional[str]) -> None:
        """Set the tracked id. An empty value clears it."""
        self.root._id = resource_id or None

    def clear_id(self) -> None:
        """Signal that the resource no longer exists remotely."""
        self.root._id = None

    def is_new_resource(self) -> bool:
        return self.root._new_resource

    def mark_created(self) -> None:
        """Leave creation mode once the remote create has succeeded."""
        self.root._new_resource = False

    def _parts(self, path: str) -> List[str]:
        return list(self._prefix) + split_path(path)

    def raw(self, path: str) -> Any:
        """Return the desired value at path, including ABSENT and UNKNOWN."""
        return lookup(self.change.new, self._parts(path))

    def raw_old(self, path: str) -> Any:
        """Return the previously observed value at path."""
        return lookup(self.change.old, self._parts(path))

    def get(self, path: str) -> Any:
        """Return the desired value at path, or None when absent."""
        return _normalize(self.raw(path))

    def get_ok(self, path: str) -> Tuple[Any, bool]:
        """Return the desired value and whether it is set.

        A value is set when it is present, non-null and known.
        """
        value = self.raw(path)
        return _normalize(value), is_known(value)

    def get_change(self, path: str) -> Tuple[Any, Any]:
        """Return the old and new values at path, absent read as None."""
        return _normalize(self.raw_old(path)), _normalize(self.raw(path))

    def has_change(self, path: str) -> bool:
        old, new = self.get_change(path)
        return old != new

    def elements(self, path: str) -> Iterator["ResourceData"]:
        """Yield a scoped accessor for each block under path.

        The scoped accessor reads old and new values at the same index, so
        change detection works inside a block. A single dict is one block.
        """
        value = self.raw(path)
        base = self._parts(path)
        if isinstance(value, dict):
            yield self._scoped(tuple(base + ["0"]))
        elif isinstance(value, list):
            for index, item in enumerate(value):
                if isinstance(item, dict):
                    yield self._scoped(tuple(base + [str(index)]))

    def block(self, path: str) -> "ResourceData":
        """Return a scoped accessor for the first block under path.

        Unlike ``elements`` the view is returned even when the block is
        absent, so reads through it simply yield None.
        """
        return self._scoped(tuple(self._parts(path) + ["0"]))

    def _scoped(self, prefix: Tuple[str, ...]) -> "ResourceData":
        return ResourceData(self.change, _prefix=prefix, _root=self.root)

    def set(self, key: str, value: Any) -> None:
        """Write a flattened value into the observed tree.

        Raises:
            AttributeSetError: If the value is not tree-representable
        """
        try:
            _validate_tree_value(value)
        except TypeError as e:
            raise AttributeSetError(
                f"{key}: {e}",
                context=ErrorContext(
                    resource_id=self.id,
                    resource_type=self.root.resource_type,
                    operation='read',
                ),
                cause=e,
            )
        self.root.observed[key] = _copy_tree(value)

    def set_fields(self, values: Mapping[str, Any]) -> None:
        """Write several fields, reporting every failure together.

        Raises:
            AggregateError: If one or more fields could not be set
        """
        result = AggregateError()
        for key, value in values.items():
            try:
                self.set(key, value)
            except AttributeSetError as e:
                result.append(e)

        error = result.error_or_none()
        if error is not None:
            raise error
