"""Organization member reconciler."""

from typing import Tuple

from identity_sync.data import ResourceData
from identity_sync.data.difference import difference
from identity_sync.utils.errors import NotFoundError
from identity_sync.utils.logging import get_logger

from .base import BaseReconciler

logger = get_logger(__name__)


def member_id(organization_id: str, user_id: str) -> str:
    return f"{organization_id}:{user_id}"


class OrganizationMemberReconciler(BaseReconciler):
    """Reconciler for a user's membership of an organization and its roles.

    The membership has no remote id of its own; it is tracked as
    ``organization_id:user_id``.
    """

    resource_type = "organization_member"
    replace_fields = ("organization_id", "user_id")
    relationships = {"roles": None}

    def _ids(self, d: ResourceData) -> Tuple[str, str]:
        organization_id, user_id = d.get("organization_id"), d.get("user_id")
        if (organization_id is None or user_id is None) and d.id:
            organization_id, _, user_id = d.id.partition(":")
        return organization_id, user_id

    def _create(self, d: ResourceData) -> None:
        organization_id, user_id = self._ids(d)
        self._call(d, 'create', self.api.organization.add_members, organization_id, [user_id])
        d.set_id(member_id(organization_id, user_id))
        self._assign_roles(d)

    def _read(self, d: ResourceData) -> None:
        organization_id, user_id = self._ids(d)
        try:
            roles = self._paginate(d, self.api.organization.member_roles, organization_id, user_id)
        except NotFoundError:
            logger.warning(f"Organization member {d.id} no longer exists, removing it from state")
            d.clear_id()
            return

        d.set_fields({
            "organization_id": organization_id,
            "user_id": user_id,
            "roles": [role.id for role in roles],
        })

    def _update(self, d: ResourceData) -> None:
        self._assign_roles(d)

    def _delete(self, d: ResourceData) -> None:
        organization_id, user_id = self._ids(d)
        self._call_ignoring_not_found(d, 'delete', self.api.organization.delete_members, organization_id, [user_id])

    def _assign_roles(self, d: ResourceData) -> None:
        organization_id, user_id = self._ids(d)
        diff = difference(d, "roles")

        if diff.to_add:
            logger.debug(f"(+) organization {organization_id} member {user_id} roles {diff.to_add}")
            self._call(d, 'update', self.api.organization.assign_member_roles, organization_id, user_id, diff.to_add)

        if diff.to_remove:
            logger.debug(f"(-) organization {organization_id} member {user_id} roles {diff.to_remove}")
            self._call_ignoring_not_found(
                d, 'update', self.api.organization.delete_member_roles, organization_id, user_id, diff.to_remove
            )
