"""Management API client contract consumed by the reconcilers.

Concrete transports implement these managers; reconcilers only depend on the
abstract interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from identity_sync.models import (
    CustomDomain,
    FactorStatus,
    OrganizationConnection,
    Permission,
    SMSTemplate,
    Tenant,
    TwilioSettings,
    WebAuthnSettings,
)

DEFAULT_PER_PAGE = 50


class ManagementAPIError(Exception):
    """Error returned by the management API."""

    def __init__(self, status_code: int, message: str, error_code: Optional[str] = None):
        """Initialize API error.

        Args:
            status_code: HTTP status of the response
            message: Error message returned by the API
            error_code: Machine readable error code, if any
        """
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error_code = error_code

    def status(self) -> int:
        return self.status_code

    def __str__(self) -> str:
        return f"{self.status_code} {self.message}"


def is_not_found(error: Exception) -> bool:
    """Return True if the error is a management API 404."""
    return isinstance(error, ManagementAPIError) and error.status() == 404


@dataclass
class Page:
    """One page of a list response."""
    items: List[Any] = field(default_factory=list)
    start: int = 0
    limit: int = DEFAULT_PER_PAGE
    total: int = 0

    def has_next(self) -> bool:
        return self.start + self.limit < self.total


def paginate(fetch: Callable[[int], Page]) -> List[Any]:
    """Collect every item by requesting pages until none remain.

    Args:
        fetch: Callable returning the page at the given page index

    Returns:
        All items in order
    """
    items: List[Any] = []
    page_number = 0
    while True:
        page = fetch(page_number)
        items.extend(page.items)
        if not page.has_next():
            break
        page_number += 1
    return items


class CrudManager(ABC):
    """Create/read/update/delete operations shared by most managers."""

    @abstractmethod
    def create(self, resource: Any) -> Any:
        """Create the resource and return it with its generated id."""
        pass

    @abstractmethod
    def read(self, resource_id: str) -> Any:
        pass

    @abstractmethod
    def update(self, resource_id: str, resource: Any) -> Any:
        pass

    @abstractmethod
    def delete(self, resource_id: str) -> None:
        pass

    @abstractmethod
    def list(self, page: int = 0, per_page: int = DEFAULT_PER_PAGE, **filters: Any) -> Page:
        pass


class ConnectionManager(CrudManager):
    """Connections. ``create``/``read``/``update`` exchange ``Connection`` models."""


class ResourceServerManager(CrudManager):
    """APIs. ``create``/``read``/``update`` exchange ``ResourceServer`` models."""


class RoleManager(CrudManager):

    @abstractmethod
    def permissions(self, role_id: str, page: int = 0, per_page: int = DEFAULT_PER_PAGE) -> Page:
        """List the permissions granted to a role."""
        pass

    @abstractmethod
    def associate_permissions(self, role_id: str, permissions: List[Permission]) -> None:
        pass

    @abstractmethod
    def remove_permissions(self, role_id: str, permissions: List[Permission]) -> None:
        pass


class UserManager(CrudManager):

    @abstractmethod
    def roles(self, user_id: str, page: int = 0, per_page: int = DEFAULT_PER_PAGE) -> Page:
        """List the roles assigned to a user."""
        pass

    @abstractmethod
    def assign_roles(self, user_id: str, role_ids: List[str]) -> None:
        pass

    @abstractmethod
    def remove_roles(self, user_id: str, role_ids: List[str]) -> None:
        pass


class OrganizationManager(CrudManager):

    @abstractmethod
    def connections(self, organization_id: str, page: int = 0, per_page: int = DEFAULT_PER_PAGE) -> Page:
        """List the connections enabled on an organization."""
        pass

    @abstractmethod
    def connection(self, organization_id: str, connection_id: str) -> OrganizationConnection:
        pass

    @abstractmethod
    def add_connection(self, organization_id: str, connection: OrganizationConnection) -> OrganizationConnection:
        pass

    @abstractmethod
    def update_connection(
        self,
        organization_id: str,
        connection_id: str,
        connection: OrganizationConnection
    ) -> OrganizationConnection:
        pass

    @abstractmethod
    def delete_connection(self, organization_id: str, connection_id: str) -> None:
        pass

    @abstractmethod
    def members(self, organization_id: str, page: int = 0, per_page: int = DEFAULT_PER_PAGE) -> Page:
        pass

    @abstractmethod
    def add_members(self, organization_id: str, user_ids: List[str]) -> None:
        pass

    @abstractmethod
    def delete_members(self, organization_id: str, user_ids: List[str]) -> None:
        pass

    @abstractmethod
    def member_roles(
        self,
        organization_id: str,
        user_id: str,
        page: int = 0,
        per_page: int = DEFAULT_PER_PAGE
    ) -> Page:
        pass

    @abstractmethod
    def assign_member_roles(self, organization_id: str, user_id: str, role_ids: List[str]) -> None:
        pass

    @abstractmethod
    def delete_member_roles(self, organization_id: str, user_id: str, role_ids: List[str]) -> None:
        pass


class TenantManager(ABC):
    """Tenant settings. The tenant is a singleton and cannot be created."""

    @abstractmethod
    def read(self) -> Tenant:
        pass

    @abstractmethod
    def update(self, tenant: Tenant) -> Tenant:
        pass


class GuardianManager(ABC):
    """Multi-factor authentication settings."""

    @abstractmethod
    def policy(self) -> List[str]:
        pass

    @abstractmethod
    def update_policy(self, policies: List[str]) -> None:
        pass

    @abstractmethod
    def factors(self) -> List[FactorStatus]:
        pass

    @abstractmethod
    def enable_factor(self, factor: str, enabled: bool) -> None:
        pass

    @abstractmethod
    def phone_message_types(self) -> List[str]:
        pass

    @abstractmethod
    def update_phone_message_types(self, message_types: List[str]) -> None:
        pass

    @abstractmethod
    def phone_provider(self) -> Optional[str]:
        pass

    @abstractmethod
    def update_phone_provider(self, provider: str) -> None:
        pass

    @abstractmethod
    def sms_template(self) -> SMSTemplate:
        pass

    @abstractmethod
    def update_sms_template(self, template: SMSTemplate) -> None:
        pass

    @abstractmethod
    def twilio(self) -> TwilioSettings:
        pass

    @abstractmethod
    def update_twilio(self, settings: TwilioSettings) -> None:
        pass

    @abstractmethod
    def webauthn_settings(self, factor: str) -> WebAuthnSettings:
        pass

    @abstractmethod
    def update_webauthn_settings(self, factor: str, settings: WebAuthnSettings) -> None:
        pass


class CustomDomainManager(ABC):

    @abstractmethod
    def create(self, custom_domain: CustomDomain) -> CustomDomain:
        pass

    @abstractmethod
    def read(self, custom_domain_id: str) -> CustomDomain:
        pass

    @abstractmethod
    def delete(self, custom_domain_id: str) -> None:
        pass

    @abstractmethod
    def verify(self, custom_domain_id: str) -> CustomDomain:
        """Trigger verification and return the domain with its current status."""
        pass


class ManagementAPI:
    """Bundle of managers handed to every reconciler."""

    def __init__(
        self,
        connection: ConnectionManager,
        role: RoleManager,
        user: UserManager,
        organization: OrganizationManager,
        resource_server: ResourceServerManager,
        tenant: TenantManager,
        guardian: GuardianManager,
        custom_domain: CustomDomainManager
    ):
        self.connection = connection
        self.role = role
        self.user = user
        self.organization = organization
        self.resource_server = resource_server
        self.tenant = tenant
        self.guardian = guardian
        self.custom_domain = custom_domain

