"""Base reconciler interface and abstract classes."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, TypeVar

from identity_sync.client.base import DEFAULT_PER_PAGE, ManagementAPI, Page, paginate
from identity_sync.data import Difference, ResourceData
from identity_sync.data.difference import KeySpec, difference
from identity_sync.utils.errors import ErrorContext, NotFoundError, error_handler
from identity_sync.utils.logging import LogContext, get_logger
from identity_sync.utils.retry import RetryStrategy

logger = get_logger(__name__)

T = TypeVar('T')


class ChangeType(Enum):
    """Type of change for a resource."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    REPLACE = "replace"
    NO_CHANGE = "no_change"


@dataclass
class ReconcilePlan:
    """Plan for reconciling one resource."""
    resource_type: str
    resource_id: Optional[str]
    change_type: ChangeType
    changed_fields: List[str] = field(default_factory=list)
    relationships: Dict[str, Difference] = field(default_factory=dict)


class BaseReconciler(ABC):
    """Base class for all resource reconcilers.

    Subclasses implement the ``_create``/``_read``/``_update``/``_delete``
    hooks; the public lifecycle methods add logging context around them.
    """

    resource_type: ClassVar[str] = ""

    # Fields whose change cannot be applied in place
    replace_fields: ClassVar[Tuple[str, ...]] = ()

    # Relationship collections and the key identifying their members
    relationships: ClassVar[Dict[str, KeySpec]] = {}

    def __init__(self, api: ManagementAPI, retry_strategy: Optional[RetryStrategy] = None):
        """Initialize reconciler with a management API client.

        Args:
            api: Management API managers
            retry_strategy: Retry policy for transient remote errors
        """
        self.api = api
        self.retry_strategy = retry_strategy or RetryStrategy()

    def create(self, d: ResourceData) -> None:
        """Create the remote resource and read it back."""
        with LogContext(logger, resource_type=self.resource_type, operation='create'):
            logger.info(f"Creating {self.resource_type}")
            self._create(d)
            d.mark_created()
            logger.info(f"Created {self.resource_type} {d.id}")
            self.read(d)

    def read(self, d: ResourceData) -> None:
        """Refresh observed attributes; clears the id if the resource is gone."""
        with LogContext(logger, resource_type=self.resource_type, resource_id=d.id, operation='read'):
            self._read(d)

    def update(self, d: ResourceData) -> None:
        """Apply changed fields and relationship diffs, then read back."""
        with LogContext(logger, resource_type=self.resource_type, resource_id=d.id, operation='update'):
            logger.info(f"Updating {self.resource_type} {d.id}")
            self._update(d)
            self.read(d)

    def delete(self, d: ResourceData) -> None:
        """Delete the remote resource. A resource already gone is not an error."""
        with LogContext(logger, resource_type=self.resource_type, resource_id=d.id, operation='delete'):
            logger.info(f"Deleting {self.resource_type} {d.id}")
            self._delete(d)
            d.clear_id()

    @abstractmethod
    def _create(self, d: ResourceData) -> None:
        """Expand the full tree, create the resource and set its id."""
        pass

    @abstractmethod
    def _read(self, d: ResourceData) -> None:
        pass

    @abstractmethod
    def _update(self, d: ResourceData) -> None:
        pass

    @abstractmethod
    def _delete(self, d: ResourceData) -> None:
        pass

    @classmethod
    def plan(cls, d: ResourceData) -> ReconcilePlan:
        """Determine what changes are needed for the resource.

        Planning only compares trees and never calls the API.

        Args:
            d: Accessor over observed (old) and desired (new) attributes; an
                empty desired tree means the resource should be removed

        Returns:
            ReconcilePlan describing the changes needed
        """
        if not d.change.new:
            return ReconcilePlan(cls.resource_type, d.id, ChangeType.DELETE)

        if d.is_new_resource() or d.id is None:
            return ReconcilePlan(
                cls.resource_type,
                None,
                ChangeType.CREATE,
                changed_fields=sorted(d.change.new),
                relationships=cls._relationship_diffs(d),
            )

        changed = sorted(key for key in d.change.new if d.has_change(key))
        if any(name in changed for name in cls.replace_fields):
            change_type = ChangeType.REPLACE
        elif changed:
            change_type = ChangeType.UPDATE
        else:
            change_type = ChangeType.NO_CHANGE

        return ReconcilePlan(
            cls.resource_type,
            d.id,
            change_type,
            changed_fields=changed,
            relationships=cls._relationship_diffs(d),
        )

    def apply(self, d: ResourceData, plan: Optional[ReconcilePlan] = None) -> ResourceData:
        """Execute a plan.

        Args:
            d: Accessor for the resource
            plan: Plan to execute; computed from ``d`` when omitted

        Returns:
            The accessor holding the resulting id and observed attributes.
            A replace returns a fresh accessor for the new resource.
        """
        plan = plan or self.plan(d)

        if plan.change_type == ChangeType.CREATE:
            self.create(d)
        elif plan.change_type == ChangeType.UPDATE:
            self.update(d)
        elif plan.change_type == ChangeType.DELETE:
            self.delete(d)
        elif plan.change_type == ChangeType.REPLACE:
            self.delete(d)
            d = ResourceData.for_create(d.change.new, self.resource_type)
            self.create(d)
        return d

    @classmethod
    def _relationship_diffs(cls, d: ResourceData) -> Dict[str, Difference]:
        diffs = {}
        for path, key in cls.relationships.items():
            diff = difference(d, path, key)
            if not diff.is_empty():
                diffs[path] = diff
        return diffs

    def _call(self, d: ResourceData, operation: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call the management API with retries, translating failures.

        Raises:
            ReconcileError: Categorized error carrying the original message,
                e.g. NotFoundError for a 404
        """
        try:
            return self.retry_strategy.execute_with_retry(func, *args, **kwargs)
        except Exception as e:
            raise error_handler.handle_exception(
                e,
                ErrorContext(
                    resource_id=d.id,
                    resource_type=self.resource_type,
                    operation=operation,
                ),
            ) from e

    def _call_ignoring_not_found(self, d: ResourceData, operation: str, func: Callable[..., Any], *args: Any) -> None:
        """Call the management API, treating a 404 as already done."""
        try:
            self._call(d, operation, func, *args)
        except NotFoundError as e:
            logger.debug(f"Ignoring not found during {operation}: {e.message}")

    def _paginate(self, d: ResourceData, fetch: Callable[..., Page], *args: Any) -> List[Any]:
        """Collect every page of a relationship list call."""
        return paginate(
            lambda page: self._call(d, 'read', fetch, *args, page=page, per_page=DEFAULT_PER_PAGE)
        )

    def _read_or_clear(self, d: ResourceData, func: Callable[..., T], *args: Any) -> Optional[T]:
        """Read the resource, clearing the id and returning None on 404."""
        try:
            return self._call(d, 'read', func, *args)
        except NotFoundError:
            logger.warning(f"{self.resource_type} {d.id} no longer exists, removing it from state")
            d.clear_id()
            return None
