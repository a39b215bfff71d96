"""Resource reconcilers for the identity platform management API."""

from typing import Dict, Type

from .base import BaseReconciler, ChangeType, ReconcilePlan
from .connection import ConnectionReconciler
from .custom_domain_verification import CustomDomainVerificationReconciler
from .guardian import GuardianReconciler
from .organization import OrganizationReconciler
from .organization_connection import OrganizationConnectionReconciler
from .organization_member import OrganizationMemberReconciler
from .resource_server import ResourceServerReconciler
from .role import RoleReconciler
from .tenant import TenantReconciler
from .user import UserReconciler

RECONCILERS: Dict[str, Type[BaseReconciler]] = {
    reconciler.resource_type: reconciler
    for reconciler in (
        ConnectionReconciler,
        RoleReconciler,
        UserReconciler,
        OrganizationReconciler,
        OrganizationMemberReconciler,
        OrganizationConnectionReconciler,
        ResourceServerReconciler,
        TenantReconciler,
        GuardianReconciler,
        CustomDomainVerificationReconciler,
    )
}

__all__ = [
    "BaseReconciler",
    "ChangeType",
    "ReconcilePlan",
    "RECONCILERS",
    "ConnectionReconciler",
    "CustomDomainVerificationReconciler",
    "GuardianReconciler",
    "OrganizationReconciler",
    "OrganizationConnectionReconciler",
    "OrganizationMemberReconciler",
    "ResourceServerReconciler",
    "RoleReconciler",
    "TenantReconciler",
    "UserReconciler",
]
