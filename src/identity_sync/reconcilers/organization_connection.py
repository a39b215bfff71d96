"""Organization connection reconciler."""

from typing import Tuple

from identity_sync.data import ResourceData, get_bool, get_string
from identity_sync.models import OrganizationConnection

from .base import BaseReconciler


class OrganizationConnectionReconciler(BaseReconciler):
    """Reconciler for a single connection enabled on an organization.

    Tracked as ``organization_id:connection_id``.
    """

    resource_type = "organization_connection"
    replace_fields = ("organization_id", "connection_id")

    def _ids(self, d: ResourceData) -> Tuple[str, str]:
        organization_id, connection_id = d.get("organization_id"), d.get("connection_id")
        if (organization_id is None or connection_id is None) and d.id:
            organization_id, _, connection_id = d.id.partition(":")
        return organization_id, connection_id

    def _create(self, d: ResourceData) -> None:
        organization_id, connection_id = self._ids(d)
        connection = OrganizationConnection(
            connection_id=get_string(d, "connection_id"),
            assign_membership_on_login=get_bool(d, "assign_membership_on_login"),
        )
        self._call(d, 'create', self.api.organization.add_connection, organization_id, connection)
        d.set_id(f"{organization_id}:{connection_id}")

    def _read(self, d: ResourceData) -> None:
        organization_id, connection_id = self._ids(d)
        connection = self._read_or_clear(d, self.api.organization.connection, organization_id, connection_id)
        if connection is None:
            return

        enabled = connection.connection
        d.set_fields({
            "organization_id": organization_id,
            "connection_id": connection_id,
            "assign_membership_on_login": connection.assign_membership_on_login,
            "name": enabled.name if enabled is not None else None,
            "strategy": enabled.strategy if enabled is not None else None,
        })

    def _update(self, d: ResourceData) -> None:
        organization_id, connection_id = self._ids(d)
        connection = OrganizationConnection(
            assign_membership_on_login=get_bool(d, "assign_membership_on_login"),
        )
        if connection.is_empty():
            return
        self._call(d, 'update', self.api.organization.update_connection, organization_id, connection_id, connection)

    def _delete(self, d: ResourceData) -> None:
        organization_id, connection_id = self._ids(d)
        self._call_ignoring_not_found(
            d, 'delete', self.api.organization.delete_connection, organization_id, connection_id
        )
