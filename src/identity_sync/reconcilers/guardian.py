"""Guardian (multi-factor authentication) reconciler."""

import uuid

from identity_sync.data import ResourceData
from identity_sync.mappers.guardian import (
    disable_all,
    flatten_guardian,
    update_phone,
    update_policy,
    update_toggle_factor,
    update_webauthn,
)
from identity_sync.models import Factor
from identity_sync.utils.logging import get_logger

from .base import BaseReconciler

logger = get_logger(__name__)


class GuardianReconciler(BaseReconciler):
    """Reconciler for the tenant's MFA policy and factors."""

    resource_type = "guardian"

    def _create(self, d: ResourceData) -> None:
        d.set_id(uuid.uuid4().hex)
        self._update(d)

    def _read(self, d: ResourceData) -> None:
        d.set_fields(self._call(d, 'read', flatten_guardian, self.api.guardian))

    def _update(self, d: ResourceData) -> None:
        guardian = self.api.guardian
        self._call(d, 'update', update_policy, d, guardian)
        self._call(d, 'update', update_toggle_factor, d, guardian, Factor.EMAIL)
        self._call(d, 'update', update_toggle_factor, d, guardian, Factor.OTP)
        self._call(d, 'update', update_phone, d, guardian)
        self._call(d, 'update', update_webauthn, d, guardian, Factor.WEBAUTHN_ROAMING)
        self._call(d, 'update', update_webauthn, d, guardian, Factor.WEBAUTHN_PLATFORM)

    def _delete(self, d: ResourceData) -> None:
        disabled = self._call(d, 'delete', disable_all, self.api.guardian)
        logger.debug(f"Disabled guardian factors: {', '.join(disabled)}")
