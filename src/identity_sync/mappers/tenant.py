"""Tenant settings expand/flatten."""

from typing import Any, Dict, List, Optional

from identity_sync.data import (
    ResourceData,
    any_of,
    get_float,
    get_string,
    get_string_list,
    has_change,
    is_new_resource,
)
from identity_sync.mappers.connection_options import (
    FieldMapping,
    bool_field,
    expand_fields,
    first_block,
    flatten_fields,
    string_field,
)
from identity_sync.models import (
    SessionCookie,
    Tenant,
    TenantErrorPage,
    TenantFlags,
    TenantPage,
    TenantUniversalLogin,
    UniversalLoginColors,
)

FLAG_FIELDS: List[FieldMapping] = [
    bool_field("enable_client_connections"),
    bool_field("enable_apis_section"),
    bool_field("enable_pipeline2"),
    bool_field("enable_dynamic_client_registration"),
    bool_field("enable_custom_domain_in_emails"),
    bool_field("universal_login"),
    bool_field("enable_legacy_logs_search_v2"),
    bool_field("disable_clickjack_protection_headers"),
    bool_field("enable_public_signup_user_exists_error"),
    bool_field("use_scope_descriptions_for_consent"),
]

PAGE_FIELDS = [bool_field("enabled"), string_field("html")]
ERROR_PAGE_FIELDS = [string_field("html"), bool_field("show_log_link"), string_field("url")]
COLOR_FIELDS = [string_field("primary"), string_field("page_background")]


def _page(d: ResourceData, path: str) -> Optional[TenantPage]:
    block = first_block(d, path)
    if block is None:
        return None
    return TenantPage(**expand_fields(block, PAGE_FIELDS))


def expand_tenant(d: ResourceData) -> Tenant:
    """Build the tenant settings payload.

    Only configured flags are sent so unmanaged flags keep their values.
    """
    tenant = Tenant(
        default_audience=get_string(d, "default_audience"),
        default_directory=get_string(d, "default_directory"),
        default_redirection_uri=get_string(d, "default_redirection_uri"),
        friendly_name=get_string(d, "friendly_name"),
        picture_url=get_string(d, "picture_url"),
        support_email=get_string(d, "support_email"),
        support_url=get_string(d, "support_url"),
        allowed_logout_urls=get_string_list(d, "allowed_logout_urls"),
        session_lifetime=get_float(d, "session_lifetime"),
        idle_session_lifetime=get_float(d, "idle_session_lifetime", any_of(is_new_resource(), has_change())),
        sandbox_version=get_string(d, "sandbox_version"),
        enabled_locales=get_string_list(d, "enabled_locales"),
        change_password=_page(d, "change_password"),
        guardian_mfa_page=_page(d, "guardian_mfa_page"),
    )

    error_page = first_block(d, "error_page")
    if error_page is not None:
        tenant.error_page = TenantErrorPage(**expand_fields(error_page, ERROR_PAGE_FIELDS))

    flags = first_block(d, "flags")
    if flags is not None:
        tenant.flags = TenantFlags(**expand_fields(flags, FLAG_FIELDS))

    universal_login = first_block(d, "universal_login")
    if universal_login is not None:
        tenant.universal_login = TenantUniversalLogin()
        colors = first_block(universal_login, "colors")
        if colors is not None:
            tenant.universal_login.colors = UniversalLoginColors(**expand_fields(colors, COLOR_FIELDS))

    session_cookie = first_block(d, "session_cookie")
    if session_cookie is not None:
        tenant.session_cookie = SessionCookie(mode=get_string(session_cookie, "mode"))

    return tenant


def _flatten_block(model: Any, fields: List[FieldMapping]) -> Optional[Dict[str, Any]]:
    if model is None:
        return None
    return flatten_fields(model, fields)


def flatten_tenant(tenant: Tenant) -> Dict[str, Any]:
    """Flatten tenant settings into observed fields."""
    universal_login = None
    if tenant.universal_login is not None and tenant.universal_login.colors is not None:
        universal_login = {"colors": flatten_fields(tenant.universal_login.colors, COLOR_FIELDS)}

    session_cookie = None
    if tenant.session_cookie is not None:
        session_cookie = {"mode": tenant.session_cookie.mode}

    return {
        "change_password": _flatten_block(tenant.change_password, PAGE_FIELDS),
        "guardian_mfa_page": _flatten_block(tenant.guardian_mfa_page, PAGE_FIELDS),
        "default_audience": tenant.default_audience,
        "default_directory": tenant.default_directory,
        "default_redirection_uri": tenant.default_redirection_uri,
        "friendly_name": tenant.friendly_name,
        "picture_url": tenant.picture_url,
        "support_email": tenant.support_email,
        "support_url": tenant.support_url,
        "allowed_logout_urls": tenant.allowed_logout_urls,
        "session_lifetime": tenant.session_lifetime,
        "idle_session_lifetime": tenant.idle_session_lifetime,
        "sandbox_version": tenant.sandbox_version,
        "enabled_locales": tenant.enabled_locales,
        "error_page": _flatten_block(tenant.error_page, ERROR_PAGE_FIELDS),
        "flags": _flatten_block(tenant.flags, FLAG_FIELDS),
        "universal_login": universal_login,
        "session_cookie": session_cookie,
    }
