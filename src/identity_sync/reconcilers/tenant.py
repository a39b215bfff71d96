"""Tenant settings reconciler."""

import uuid

from identity_sync.data import ResourceData
from identity_sync.mappers import expand_tenant, flatten_tenant
from identity_sync.utils.logging import get_logger

from .base import BaseReconciler

logger = get_logger(__name__)


class TenantReconciler(BaseReconciler):
    """Reconciler for the tenant's settings.

    The tenant always exists remotely: creating it only starts tracking it
    and deleting it only stops.
    """

    resource_type = "tenant"

    def _create(self, d: ResourceData) -> None:
        d.set_id(uuid.uuid4().hex)
        self._update(d)

    def _read(self, d: ResourceData) -> None:
        tenant = self._call(d, 'read', self.api.tenant.read)
        d.set_fields(flatten_tenant(tenant))

    def _update(self, d: ResourceData) -> None:
        tenant = expand_tenant(d)
        if tenant.is_empty():
            logger.debug("No tenant settings to send")
            return
        self._call(d, 'update', self.api.tenant.update, tenant)

    def _delete(self, d: ResourceData) -> None:
        logger.info("Tenant settings are left in place, only tracking stops")
