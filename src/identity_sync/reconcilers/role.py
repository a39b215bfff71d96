"""Role reconciler."""

from typing import Any, Dict, List

from identity_sync.data import ResourceData, get_string
from identity_sync.data.difference import difference
from identity_sync.models import Permission, Role
from identity_sync.utils.logging import get_logger

from .base import BaseReconciler

logger = get_logger(__name__)

PERMISSION_KEY = ("name", "resource_server_identifier")


def expand_role(d: ResourceData) -> Role:
    return Role(
        name=get_string(d, "name"),
        description=get_string(d, "description"),
    )


def _permissions(elements: List[Dict[str, Any]]) -> List[Permission]:
    return [
        Permission(
            name=element.get("name"),
            resource_server_identifier=element.get("resource_server_identifier"),
        )
        for element in elements
    ]


def flatten_permissions(permissions: List[Permission]) -> List[Dict[str, Any]]:
    return [
        {
            "name": permission.name,
            "resource_server_identifier": permission.resource_server_identifier,
        }
        for permission in permissions
    ]


class RoleReconciler(BaseReconciler):
    """Reconciler for roles and their permission grants."""

    resource_type = "role"
    relationships = {"permissions": PERMISSION_KEY}

    def _create(self, d: ResourceData) -> None:
        role = self._call(d, 'create', self.api.role.create, expand_role(d))
        d.set_id(role.id)
        self._assign_permissions(d)

    def _read(self, d: ResourceData) -> None:
        role = self._read_or_clear(d, self.api.role.read, d.id)
        if role is None:
            return

        permissions = self._paginate(d, self.api.role.permissions, d.id)
        d.set_fields({
            "name": role.name,
            "description": role.description,
            "permissions": flatten_permissions(permissions),
        })

    def _update(self, d: ResourceData) -> None:
        role = expand_role(d)
        if not role.is_empty():
            self._call(d, 'update', self.api.role.update, d.id, role)
        self._assign_permissions(d)

    def _delete(self, d: ResourceData) -> None:
        self._call_ignoring_not_found(d, 'delete', self.api.role.delete, d.id)

    def _assign_permissions(self, d: ResourceData) -> None:
        """Apply the permission diff, removals first."""
        diff = difference(d, "permissions", PERMISSION_KEY)

        if diff.to_remove:
            for permission in diff.to_remove:
                logger.debug(f"(-) role {d.id} permission {permission.get('name')}")
            self._call_ignoring_not_found(
                d, 'update', self.api.role.remove_permissions, d.id, _permissions(diff.to_remove)
            )

        if diff.to_add:
            for permission in diff.to_add:
                logger.debug(f"(+) role {d.id} permission {permission.get('name')}")
            self._call(d, 'update', self.api.role.associate_permissions, d.id, _permissions(diff.to_add))
