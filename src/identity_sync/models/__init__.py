"""Typed payloads exchanged with the management API."""

from .base import ApiModel
from .connection import (
    OPTIONS_CLASSES,
    SHOW_AS_BUTTON_STRATEGIES,
    ADFSOptions,
    ADOptions,
    AppleOptions,
    AzureADOptions,
    Connection,
    ConnectionOptions,
    DatabaseOptions,
    EmailOptions,
    EmailSettings,
    FacebookOptions,
    FlagScopes,
    GatewayAuthentication,
    GitHubOptions,
    GoogleAppsOptions,
    GoogleOAuth2Options,
    LinkedInOptions,
    OAuth2Options,
    OIDCOptions,
    OTPSettings,
    SalesforceOptions,
    SAMLIdpInitiated,
    SAMLOptions,
    SAMLSigningKey,
    ScopedOptions,
    SMSOptions,
    Strategy,
    StringScopes,
    WindowsLiveOptions,
)
from .custom_domain import CustomDomain
from .guardian import (
    Factor,
    FactorStatus,
    GuardianPolicy,
    PhoneProvider,
    SMSTemplate,
    TwilioSettings,
    WebAuthnSettings,
)
from .organization import Branding, Organization, OrganizationConnection, OrganizationMember
from .resource_server import ResourceServer, ResourceServerScope
from .role import Permission, Role
from .tenant import (
    SessionCookie,
    Tenant,
    TenantErrorPage,
    TenantFlags,
    TenantPage,
    TenantUniversalLogin,
    UniversalLoginColors,
)
from .user import User

__all__ = [
    "ApiModel",
    "OPTIONS_CLASSES",
    "SHOW_AS_BUTTON_STRATEGIES",
    "ADFSOptions",
    "ADOptions",
    "AppleOptions",
    "AzureADOptions",
    "Connection",
    "ConnectionOptions",
    "DatabaseOptions",
    "EmailOptions",
    "EmailSettings",
    "FacebookOptions",
    "FlagScopes",
    "GatewayAuthentication",
    "GitHubOptions",
    "GoogleAppsOptions",
    "GoogleOAuth2Options",
    "LinkedInOptions",
    "OAuth2Options",
    "OIDCOptions",
    "OTPSettings",
    "SalesforceOptions",
    "SAMLIdpInitiated",
    "SAMLOptions",
    "SAMLSigningKey",
    "ScopedOptions",
    "SMSOptions",
    "Strategy",
    "StringScopes",
    "WindowsLiveOptions",
    "CustomDomain",
    "Factor",
    "FactorStatus",
    "GuardianPolicy",
    "PhoneProvider",
    "SMSTemplate",
    "TwilioSettings",
    "WebAuthnSettings",
    "Branding",
    "Organization",
    "OrganizationConnection",
    "OrganizationMember",
    "ResourceServer",
    "ResourceServerScope",
    "Permission",
    "Role",
    "SessionCookie",
    "Tenant",
    "TenantErrorPage",
    "TenantFlags",
    "TenantPage",
    "TenantUniversalLogin",
    "UniversalLoginColors",
    "User",
]
