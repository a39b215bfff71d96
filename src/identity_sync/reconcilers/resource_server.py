"""Resource server (API) reconciler."""

from typing import Any, Dict, List, Optional

from identity_sync.data import (
    ResourceData,
    any_of,
    get_bool,
    get_int,
    get_string,
    get_string_map,
    has_change,
    is_new_resource,
)
from identity_sync.data.difference import Difference, apply_difference, difference
from identity_sync.models import ResourceServer, ResourceServerScope
from identity_sync.utils.logging import get_logger

from .base import BaseReconciler

logger = get_logger(__name__)


def expand_scopes(d: ResourceData) -> Optional[List[ResourceServerScope]]:
    scopes = [
        ResourceServerScope(
            value=get_string(scope, "value"),
            description=get_string(scope, "description"),
        )
        for scope in d.elements("scopes")
    ]
    return scopes or None


def expand_resource_server(d: ResourceData) -> ResourceServer:
    """Build the resource server payload.

    The identifier is immutable and only sent on creation. The signing
    secret and token dialect trigger side effects remotely, so they are only
    sent when new or changed.
    """
    return ResourceServer(
        name=get_string(d, "name"),
        identifier=get_string(d, "identifier", is_new_resource()),
        signing_alg=get_string(d, "signing_alg"),
        signing_secret=get_string(d, "signing_secret", any_of(is_new_resource(), has_change())),
        allow_offline_access=get_bool(d, "allow_offline_access"),
        token_lifetime=get_int(d, "token_lifetime"),
        token_lifetime_for_web=get_int(d, "token_lifetime_for_web", any_of(is_new_resource(), has_change())),
        skip_consent=get_bool(d, "skip_consent_for_verifiable_first_party_clients"),
        verification_location=get_string(d, "verification_location"),
        options=get_string_map(d, "options"),
        enforce_policies=get_bool(d, "enforce_policies"),
        token_dialect=get_string(d, "token_dialect", any_of(is_new_resource(), has_change())),
    )


def flatten_scopes(scopes: Optional[List[ResourceServerScope]]) -> List[Dict[str, Any]]:
    return [{"value": scope.value, "description": scope.description} for scope in scopes or []]


class ResourceServerReconciler(BaseReconciler):
    """Reconciler for resource servers and their scopes."""

    resource_type = "resource_server"
    replace_fields = ("identifier",)
    relationships = {"scopes": "value"}

    def _create(self, d: ResourceData) -> None:
        resource_server = expand_resource_server(d)
        resource_server.scopes = expand_scopes(d)
        created = self._call(d, 'create', self.api.resource_server.create, resource_server)
        d.set_id(created.id)

    def _read(self, d: ResourceData) -> None:
        resource_server = self._read_or_clear(d, self.api.resource_server.read, d.id)
        if resource_server is None:
            return

        d.set_fields({
            "name": resource_server.name,
            "identifier": resource_server.identifier,
            "scopes": flatten_scopes(resource_server.scopes),
            "signing_alg": resource_server.signing_alg,
            "signing_secret": resource_server.signing_secret,
            "allow_offline_access": resource_server.allow_offline_access,
            "token_lifetime": resource_server.token_lifetime,
            "token_lifetime_for_web": resource_server.token_lifetime_for_web,
            "skip_consent_for_verifiable_first_party_clients": resource_server.skip_consent,
            "verification_location": resource_server.verification_location,
            "options": resource_server.options,
            "enforce_policies": resource_server.enforce_policies,
            "token_dialect": resource_server.token_dialect,
        })

    def _update(self, d: ResourceData) -> None:
        resource_server = expand_resource_server(d)
        diff = difference(d, "scopes", "value")
        if not diff.is_empty():
            resource_server.scopes = self._merged_scopes(d, diff)

        if resource_server.is_empty():
            logger.debug(f"No changes to send for resource server {d.id}")
            return
        self._call(d, 'update', self.api.resource_server.update, d.id, resource_server)

    def _delete(self, d: ResourceData) -> None:
        self._call_ignoring_not_found(d, 'delete', self.api.resource_server.delete, d.id)

    def _merged_scopes(self, d: ResourceData, diff: Difference) -> List[ResourceServerScope]:
        """Apply the scope diff to the remote scope list.

        Scopes added remotely by other tools are kept; only scopes removed
        from the configuration are dropped.
        """
        for scope in diff.to_add:
            logger.debug(f"(+) resource server {d.id} scope {scope.get('value')}")
        for scope in diff.to_remove:
            logger.debug(f"(-) resource server {d.id} scope {scope.get('value')}")
        for scope in diff.modified:
            logger.debug(f"(~) resource server {d.id} scope {scope.get('value')}")

        current = self._call(d, 'update', self.api.resource_server.read, d.id)
        merged = apply_difference(flatten_scopes(current.scopes), diff, "value")
        return [
            ResourceServerScope(value=scope.get("value"), description=scope.get("description"))
            for scope in merged
        ]
