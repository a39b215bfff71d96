"""Tenant settings payload."""

from typing import List, Optional

from .base import ApiModel


class TenantPage(ApiModel):
    """Customised hosted page (change password, MFA)."""
    enabled: Optional[bool] = None
    html: Optional[str] = None


class TenantErrorPage(ApiModel):
    html: Optional[str] = None
    show_log_link: Optional[bool] = None
    url: Optional[str] = None


class TenantFlags(ApiModel):
    enable_client_connections: Optional[bool] = None
    enable_apis_section: Optional[bool] = None
    enable_pipeline2: Optional[bool] = None
    enable_dynamic_client_registration: Optional[bool] = None
    enable_custom_domain_in_emails: Optional[bool] = None
    universal_login: Optional[bool] = None
    enable_legacy_logs_search_v2: Optional[bool] = None
    disable_clickjack_protection_headers: Optional[bool] = None
    enable_public_signup_user_exists_error: Optional[bool] = None
    use_scope_descriptions_for_consent: Optional[bool] = None


class UniversalLoginColors(ApiModel):
    primary: Optional[str] = None
    page_background: Optional[str] = None


class TenantUniversalLogin(ApiModel):
    colors: Optional[UniversalLoginColors] = None


class SessionCookie(ApiModel):
    mode: Optional[str] = None


class Tenant(ApiModel):
    change_password: Optional[TenantPage] = None
    guardian_mfa_page: Optional[TenantPage] = None
    default_audience: Optional[str] = None
    default_directory: Optional[str] = None
    default_redirection_uri: Optional[str] = None
    friendly_name: Optional[str] = None
    picture_url: Optional[str] = None
    support_email: Optional[str] = None
    support_url: Optional[str] = None
    allowed_logout_urls: Optional[List[str]] = None
    session_lifetime: Optional[float] = None
    idle_session_lifetime: Optional[float] = None
    sandbox_version: Optional[str] = None
    enabled_locales: Optional[List[str]] = None
    error_page: Optional[TenantErrorPage] = None
    flags: Optional[TenantFlags] = None
    universal_login: Optional[TenantUniversalLogin] = None
    session_cookie: Optional[SessionCookie] = None
