"""User reconciler."""

from typing import Any, Dict, List, Optional

from identity_sync.data import (
    ResourceData,
    get_bool,
    get_json,
    get_string,
    has_change,
    is_new_resource,
    parse_json_object,
)
from identity_sync.data.difference import difference
from identity_sync.models import User
from identity_sync.utils.errors import AggregateError, ErrorCategory, ErrorContext, ValidationConflict
from identity_sync.utils.logging import get_logger

from .base import BaseReconciler

logger = get_logger(__name__)

# Fields the API refuses to update in the same request
CONFLICTING_FIELDS = [
    ("username", "password"),
    ("username", "email_verified"),
    ("password", "email_verified"),
]


def expand_metadata(d: ResourceData, path: str) -> Optional[Dict[str, Any]]:
    """Build a metadata payload that deletes keys dropped from the config.

    The API merges metadata, so keys present before but missing now are
    sent as None.
    """
    old, new = d.get_change(path)
    if not old:
        return get_json(d, path)
    if not new:
        return {}

    old_map = parse_json_object(old, path, d)
    new_map = parse_json_object(new, path, d)
    for key in old_map:
        if key not in new_map:
            new_map[key] = None
    return new_map


def expand_user(d: ResourceData) -> User:
    """Build the user payload from changed fields only."""
    user = User(
        id=get_string(d, "user_id", is_new_resource()),
        connection=get_string(d, "connection_name", has_change()),
        email=get_string(d, "email", has_change()),
        name=get_string(d, "name", has_change()),
        given_name=get_string(d, "given_name", has_change()),
        family_name=get_string(d, "family_name", has_change()),
        username=get_string(d, "username", has_change()),
        nickname=get_string(d, "nickname", has_change()),
        password=get_string(d, "password", has_change()),
        phone_number=get_string(d, "phone_number", has_change()),
        email_verified=get_bool(d, "email_verified", has_change()),
        verify_email=get_bool(d, "verify_email", has_change()),
        phone_verified=get_bool(d, "phone_verified", has_change()),
        picture=get_string(d, "picture", has_change()),
        blocked=get_bool(d, "blocked", has_change()),
    )

    if d.has_change("user_metadata"):
        user.user_metadata = expand_metadata(d, "user_metadata")
    if d.has_change("app_metadata"):
        user.app_metadata = expand_metadata(d, "app_metadata")

    return user


def validate_user(user: User, d: ResourceData) -> None:
    """Reject updates combining fields the API cannot change together.

    Raises:
        AggregateError: Holding one ValidationConflict per conflicting pair
    """
    result = AggregateError(category=ErrorCategory.VALIDATION)
    for first, second in CONFLICTING_FIELDS:
        if getattr(user, first) is not None and getattr(user, second) is not None:
            result.append(ValidationConflict(
                f"cannot update {first} and {second} simultaneously",
                context=ErrorContext(resource_id=d.id, resource_type="user", operation='update'),
            ))

    error = result.error_or_none()
    if error is not None:
        raise error


def _metadata(value: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return value or None


class UserReconciler(BaseReconciler):
    """Reconciler for users and their role assignments."""

    resource_type = "user"
    relationships = {"roles": None}

    def _create(self, d: ResourceData) -> None:
        user = self._call(d, 'create', self.api.user.create, expand_user(d))
        d.set_id(user.id)
        self._update_roles(d)

    def _read(self, d: ResourceData) -> None:
        user = self._read_or_clear(d, self.api.user.read, d.id)
        if user is None:
            return

        roles = self._paginate(d, self.api.user.roles, d.id)
        d.set_fields({
            "user_id": user.id,
            "connection_name": user.connection,
            "username": user.username,
            "name": user.name,
            "family_name": user.family_name,
            "given_name": user.given_name,
            "nickname": user.nickname,
            "email": user.email,
            "email_verified": user.email_verified,
            "verify_email": user.verify_email,
            "phone_number": user.phone_number,
            "phone_verified": user.phone_verified,
            "blocked": user.blocked,
            "picture": user.picture,
            # Never returned by the API
            "password": d.get("password"),
            "user_metadata": _metadata(user.user_metadata),
            "app_metadata": _metadata(user.app_metadata),
            "roles": [role.id for role in roles],
        })

    def _update(self, d: ResourceData) -> None:
        user = expand_user(d)
        validate_user(user, d)

        if user.is_empty():
            logger.debug(f"No changes to send for user {d.id}")
        else:
            self._call(d, 'update', self.api.user.update, d.id, user)

        self._update_roles(d)

    def _delete(self, d: ResourceData) -> None:
        self._call_ignoring_not_found(d, 'delete', self.api.user.delete, d.id)

    def _update_roles(self, d: ResourceData) -> None:
        diff = difference(d, "roles")

        to_remove: List[str] = list(diff.to_remove)
        if to_remove:
            logger.debug(f"(-) user {d.id} roles {to_remove}")
            # The role may have been deleted before being unassigned
            self._call_ignoring_not_found(d, 'update', self.api.user.remove_roles, d.id, to_remove)

        to_add: List[str] = list(diff.to_add)
        if to_add:
            logger.debug(f"(+) user {d.id} roles {to_add}")
            self._call(d, 'update', self.api.user.assign_roles, d.id, to_add)
