"""Organization reconciler."""

from typing import Any, Dict, List, Optional

from identity_sync.data import ResourceData, get_string, get_string_map
from identity_sync.data.difference import difference
from identity_sync.mappers.connection_options import first_block
from identity_sync.models import Branding, Organization, OrganizationConnection
from identity_sync.utils.logging import get_logger

from .base import BaseReconciler

logger = get_logger(__name__)


def expand_organization(d: ResourceData) -> Organization:
    organization = Organization(
        name=get_string(d, "name"),
        display_name=get_string(d, "display_name"),
        metadata=get_string_map(d, "metadata"),
    )

    branding = first_block(d, "branding")
    if branding is not None:
        organization.branding = Branding(
            logo_url=get_string(branding, "logo_url"),
            colors=get_string_map(branding, "colors"),
        )

    return organization


def flatten_branding(branding: Optional[Branding]) -> Optional[Dict[str, Any]]:
    if branding is None:
        return None
    return {"logo_url": branding.logo_url, "colors": branding.colors}


def flatten_organization_connections(connections: List[OrganizationConnection]) -> List[Dict[str, Any]]:
    return [
        {
            "connection_id": connection.connection_id,
            "assign_membership_on_login": connection.assign_membership_on_login,
        }
        for connection in connections
    ]


def _organization_connection(element: Dict[str, Any]) -> OrganizationConnection:
    return OrganizationConnection(
        connection_id=element.get("connection_id"),
        assign_membership_on_login=element.get("assign_membership_on_login"),
    )


class OrganizationReconciler(BaseReconciler):
    """Reconciler for organizations and their enabled connections."""

    resource_type = "organization"
    relationships = {"connections": "connection_id"}

    def _create(self, d: ResourceData) -> None:
        organization = self._call(d, 'create', self.api.organization.create, expand_organization(d))
        d.set_id(organization.id)
        self._assign_connections(d)

    def _read(self, d: ResourceData) -> None:
        organization = self._read_or_clear(d, self.api.organization.read, d.id)
        if organization is None:
            return

        connections = self._paginate(d, self.api.organization.connections, d.id)
        d.set_fields({
            "name": organization.name,
            "display_name": organization.display_name,
            "branding": flatten_branding(organization.branding),
            "metadata": organization.metadata,
            "connections": flatten_organization_connections(connections),
        })

    def _update(self, d: ResourceData) -> None:
        organization = expand_organization(d)
        if not organization.is_empty():
            self._call(d, 'update', self.api.organization.update, d.id, organization)
        self._assign_connections(d)

    def _delete(self, d: ResourceData) -> None:
        self._call_ignoring_not_found(d, 'delete', self.api.organization.delete, d.id)

    def _assign_connections(self, d: ResourceData) -> None:
        """Add, remove and update enabled connections individually."""
        diff = difference(d, "connections", "connection_id")

        for element in diff.to_add:
            logger.debug(f"(+) organization {d.id} connection {element.get('connection_id')}")
            self._call(d, 'update', self.api.organization.add_connection, d.id, _organization_connection(element))

        for element in diff.to_remove:
            connection_id = element.get("connection_id")
            logger.debug(f"(-) organization {d.id} connection {connection_id}")
            self._call_ignoring_not_found(d, 'update', self.api.organization.delete_connection, d.id, connection_id)

        for element in diff.modified:
            connection_id = element.get("connection_id")
            logger.debug(f"(~) organization {d.id} connection {connection_id}")
            self._call(
                d,
                'update',
                self.api.organization.update_connection,
                d.id,
                connection_id,
                OrganizationConnection(assign_membership_on_login=element.get("assign_membership_on_login")),
            )
