"""Management API client interface."""

from .base import (
    DEFAULT_PER_PAGE,
    ConnectionManager,
    CrudManager,
    CustomDomainManager,
    GuardianManager,
    ManagementAPI,
    ManagementAPIError,
    OrganizationManager,
    Page,
    ResourceServerManager,
    RoleManager,
    TenantManager,
    UserManager,
    is_not_found,
    paginate,
)

__all__ = [
    "DEFAULT_PER_PAGE",
    "ConnectionManager",
    "CrudManager",
    "CustomDomainManager",
    "GuardianManager",
    "ManagementAPI",
    "ManagementAPIError",
    "OrganizationManager",
    "Page",
    "ResourceServerManager",
    "RoleManager",
    "TenantManager",
    "UserManager",
    "is_not_found",
    "paginate",
]
