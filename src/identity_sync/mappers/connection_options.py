"""Expand and flatten connection options for every mapped strategy.

Expansion picks one function from ``EXPANDERS`` by strategy. Flattening
dispatches on the runtime type of the options model, so a response whose
options type has no registered flattener is logged and skipped.
"""

from dataclasses import dataclass
from functools import singledispatch
from typing import Any, Callable, Dict, Iterable, List, Optional

from identity_sync.data import (
    ResourceData,
    get_bool,
    get_int,
    get_json,
    get_string,
    get_string_list,
    get_string_map,
    set_difference,
)
from identity_sync.data.tree import is_known
from identity_sync.models import (
    OPTIONS_CLASSES,
    ADFSOptions,
    ADOptions,
    AppleOptions,
    AzureADOptions,
    ConnectionOptions,
    DatabaseOptions,
    EmailOptions,
    EmailSettings,
    FacebookOptions,
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
    WindowsLiveOptions,
)
from identity_sync.utils.errors import (
    ErrorContext,
    UnmappedVariantError,
    ValidationConflict,
)
from identity_sync.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FieldMapping:
    """An options attribute read with ``getter`` from ``tree``.

    ``attr`` is the model field name when it differs from the tree name.
    """
    tree: str
    getter: Callable[..., Any] = get_string
    attr: Optional[str] = None
    empty_as_none: bool = False

    @property
    def name(self) -> str:
        return self.attr or self.tree


def string_field(tree: str, attr: Optional[str] = None) -> FieldMapping:
    return FieldMapping(tree, get_string, attr)


def bool_field(tree: str, attr: Optional[str] = None) -> FieldMapping:
    return FieldMapping(tree, get_bool, attr)


def int_field(tree: str, attr: Optional[str] = None) -> FieldMapping:
    return FieldMapping(tree, get_int, attr)


def list_field(tree: str, attr: Optional[str] = None) -> FieldMapping:
    return FieldMapping(tree, get_string_list, attr)


def map_field(tree: str, attr: Optional[str] = None) -> FieldMapping:
    return FieldMapping(tree, get_string_map, attr)


def json_field(tree: str, attr: Optional[str] = None) -> FieldMapping:
    return FieldMapping(tree, get_json, attr, empty_as_none=True)


NON_PERSISTENT = [list_field("non_persistent_attrs")]
UPSTREAM = [json_field("upstream_params")]
SHARED = [string_field("set_user_root_attributes")] + NON_PERSISTENT + UPSTREAM
CREDENTIALS = [string_field("client_id"), string_field("client_secret")]
DOMAIN = [string_field("tenant_domain"), list_field("domain_aliases"), string_field("icon_url")]

DATABASE_FIELDS = [
    string_field("password_policy"),
    bool_field("enabled_database_customization"),
    bool_field("brute_force_protection"),
    bool_field("import_mode"),
    bool_field("disable_signup"),
    bool_field("requires_username"),
    map_field("custom_scripts"),
    map_field("configuration"),
] + NON_PERSISTENT + UPSTREAM

GOOGLE_OAUTH2_FIELDS = CREDENTIALS + [list_field("allowed_audiences")] + SHARED

GOOGLE_APPS_FIELDS = CREDENTIALS + DOMAIN + [
    string_field("domain"),
    bool_field("api_enable_users"),
] + SHARED

OAUTH2_FIELDS = CREDENTIALS + [
    string_field("authorization_endpoint", "authorization_url"),
    string_field("token_endpoint", "token_url"),
    map_field("scripts"),
    string_field("icon_url"),
    bool_field("pkce_enabled"),
] + SHARED

SOCIAL_FIELDS = CREDENTIALS + SHARED

APPLE_FIELDS = CREDENTIALS + [string_field("team_id"), string_field("key_id")] + SHARED

VERSIONED_SOCIAL_FIELDS = CREDENTIALS + [int_field("strategy_version")] + SHARED

SALESFORCE_FIELDS = CREDENTIALS + [string_field("community_base_url")] + SHARED

SMS_FIELDS = [
    string_field("name"),
    string_field("from", "from_"),
    string_field("syntax"),
    string_field("template"),
    string_field("twilio_sid"),
    string_field("twilio_token"),
    string_field("messaging_service_sid"),
    string_field("provider"),
    string_field("gateway_url"),
    bool_field("forward_request_info"),
    bool_field("disable_signup"),
    bool_field("brute_force_protection"),
] + UPSTREAM

EMAIL_FIELDS = [
    string_field("name"),
    bool_field("disable_signup"),
    bool_field("brute_force_protection"),
] + SHARED

# Email settings live in a nested model but are flat in the tree
EMAIL_SETTINGS_FIELDS = [
    string_field("syntax"),
    string_field("from", "from_"),
    string_field("subject"),
    string_field("template", "body"),
]

OIDC_FIELDS = CREDENTIALS + DOMAIN + [
    string_field("discovery_url"),
    string_field("authorization_endpoint"),
    string_field("issuer"),
    string_field("jwks_uri"),
    string_field("type"),
    string_field("userinfo_endpoint"),
    string_field("token_endpoint"),
] + SHARED

AD_FIELDS = DOMAIN + [
    list_field("ips"),
    bool_field("use_cert_auth", "cert_auth"),
    bool_field("use_kerberos", "kerberos"),
    bool_field("disable_cache"),
    bool_field("brute_force_protection"),
] + SHARED

AZURE_AD_FIELDS = CREDENTIALS + DOMAIN + [
    string_field("app_id"),
    string_field("domain"),
    string_field("identity_api"),
    string_field("waad_protocol"),
    bool_field("waad_common_endpoint", "use_common_endpoint"),
    bool_field("use_wsfed"),
    bool_field("api_enable_users"),
    string_field("max_groups_to_retrieve"),
    string_field("should_trust_email_verified_connection", "trust_email_verified"),
] + SHARED

ADFS_FIELDS = DOMAIN + [
    string_field("adfs_server"),
    bool_field("api_enable_users"),
] + SHARED

SAML_FIELDS = DOMAIN + [
    bool_field("debug"),
    string_field("signing_cert"),
    string_field("protocol_binding"),
    string_field("sign_in_endpoint"),
    string_field("sign_out_endpoint"),
    bool_field("disable_sign_out"),
    string_field("signature_algorithm"),
    string_field("digest_algorithm"),
    bool_field("sign_saml_request"),
    string_field("request_template"),
    string_field("user_id_attribute"),
    string_field("entity_id"),
    string_field("metadata_xml"),
    string_field("metadata_url"),
    json_field("fields_map"),
] + SHARED

OTP_FIELDS = [int_field("time_step"), int_field("length")]

GATEWAY_AUTHENTICATION_FIELDS = [
    string_field("method"),
    string_field("subject"),
    string_field("audience"),
    string_field("secret"),
    bool_field("secret_base64_encoded"),
]

IDP_INITIATED_FIELDS = [
    string_field("client_id"),
    string_field("client_protocol"),
    string_field("client_authorize_query"),
]

SIGNING_KEY_FIELDS = [string_field("key"), string_field("cert")]


def expand_fields(d: ResourceData, fields: Iterable[FieldMapping]) -> Dict[str, Any]:
    """Read every mapped field into model keyword arguments."""
    return {field.name: field.getter(d, field.tree) for field in fields}


def flatten_fields(model: Any, fields: Iterable[FieldMapping]) -> Dict[str, Any]:
    """Read every mapped attribute of a model back into tree keys."""
    result = {}
    for field in fields:
        value = getattr(model, field.name)
        if field.empty_as_none and not value:
            value = None
        result[field.tree] = value
    return result


def first_block(d: ResourceData, path: str) -> Optional[ResourceData]:
    """Return the scoped view of the first block at path, or None if unset."""
    return next(d.elements(path), None)


def compact(**values: Any) -> Dict[str, Any]:
    """Build a dict leaving out None values."""
    return {key: value for key, value in values.items() if value is not None}


def expand_scopes(d: ResourceData, options: ScopedOptions) -> None:
    """Toggle scopes on options from the change in the ``scopes`` list.

    The options are seeded with the previously enabled scopes; each added
    scope is then enabled and each removed scope disabled individually.
    Retained scopes are left alone.
    """
    old, new = d.get_change("scopes")
    previous = [scope for scope in old or [] if isinstance(scope, str)]
    options.reset_scopes(previous)

    if not is_known(d.raw("scopes")):
        return

    diff = set_difference(previous, new)
    for scope in diff.to_add:
        options.set_scopes(True, scope)
    for scope in diff.to_remove:
        options.set_scopes(False, scope)


def _scoped_expander(options_class, fields: List[FieldMapping]) -> Callable[[ResourceData], ConnectionOptions]:
    """Build an expand function for a variant with only flat fields and scopes."""
    def expand(d: ResourceData) -> ConnectionOptions:
        options = options_class(**expand_fields(d, fields))
        expand_scopes(d, options)
        return options
    expand.__name__ = f"expand_{options_class.__name__}"
    return expand


def _otp(d: ResourceData) -> Optional[OTPSettings]:
    block = first_block(d, "totp")
    if block is None:
        return None
    return OTPSettings(**expand_fields(block, OTP_FIELDS))


def expand_database(d: ResourceData) -> DatabaseOptions:
    """Expand options for the username/password database strategy."""
    options = DatabaseOptions(**expand_fields(d, DATABASE_FIELDS))

    validation = first_block(d, "validation")
    if validation is not None:
        options.validation = {}
        username = first_block(validation, "username")
        if username is not None:
            options.validation["username"] = compact(
                min=get_int(username, "min"),
                max=get_int(username, "max"),
            )

    history = first_block(d, "password_history")
    if history is not None:
        options.password_history = compact(
            enable=get_bool(history, "enable"),
            size=get_int(history, "size"),
        )

    personal_info = first_block(d, "password_no_personal_info")
    if personal_info is not None:
        options.password_no_personal_info = compact(enable=get_bool(personal_info, "enable"))

    dictionary = first_block(d, "password_dictionary")
    if dictionary is not None:
        options.password_dictionary = compact(
            enable=get_bool(dictionary, "enable"),
            dictionary=get_string_list(dictionary, "dictionary"),
        )

    complexity = first_block(d, "password_complexity_options")
    if complexity is not None:
        options.password_complexity_options = compact(min_length=get_int(complexity, "min_length"))

    mfa = first_block(d, "mfa")
    if mfa is not None:
        options.mfa = compact(
            active=get_bool(mfa, "active"),
            return_enroll_settings=get_bool(mfa, "return_enroll_settings"),
        )

    return options


def expand_sms(d: ResourceData) -> SMSOptions:
    options = SMSOptions(**expand_fields(d, SMS_FIELDS))
    options.totp = _otp(d)

    gateway = first_block(d, "gateway_authentication")
    if gateway is not None:
        options.gateway_authentication = GatewayAuthentication(
            **expand_fields(gateway, GATEWAY_AUTHENTICATION_FIELDS)
        )

    return options


def expand_email(d: ResourceData) -> EmailOptions:
    options = EmailOptions(**expand_fields(d, EMAIL_FIELDS))
    settings = EmailSettings(**expand_fields(d, EMAIL_SETTINGS_FIELDS))
    options.email = None if settings.is_empty() else settings
    options.totp = _otp(d)
    return options


def expand_saml(d: ResourceData) -> SAMLOptions:
    options = SAMLOptions(**expand_fields(d, SAML_FIELDS))

    idp_initiated = first_block(d, "idp_initiated")
    if idp_initiated is not None:
        options.idp_initiated = SAMLIdpInitiated(**expand_fields(idp_initiated, IDP_INITIATED_FIELDS))

    signing_key = first_block(d, "signing_key")
    if signing_key is not None:
        options.signing_key = SAMLSigningKey(**expand_fields(signing_key, SIGNING_KEY_FIELDS))

    return options


def expand_ad(d: ResourceData) -> ADOptions:
    return ADOptions(**expand_fields(d, AD_FIELDS))


def expand_adfs(d: ResourceData) -> ADFSOptions:
    return ADFSOptions(**expand_fields(d, ADFS_FIELDS))


expand_salesforce = _scoped_expander(SalesforceOptions, SALESFORCE_FIELDS)

EXPANDERS: Dict[Strategy, Callable[[ResourceData], ConnectionOptions]] = {
    Strategy.AUTH0: expand_database,
    Strategy.GOOGLE_OAUTH2: _scoped_expander(GoogleOAuth2Options, GOOGLE_OAUTH2_FIELDS),
    Strategy.GOOGLE_APPS: _scoped_expander(GoogleAppsOptions, GOOGLE_APPS_FIELDS),
    Strategy.OAUTH2: _scoped_expander(OAuth2Options, OAUTH2_FIELDS),
    Strategy.FACEBOOK: _scoped_expander(FacebookOptions, SOCIAL_FIELDS),
    Strategy.APPLE: _scoped_expander(AppleOptions, APPLE_FIELDS),
    Strategy.LINKEDIN: _scoped_expander(LinkedInOptions, VERSIONED_SOCIAL_FIELDS),
    Strategy.GITHUB: _scoped_expander(GitHubOptions, SOCIAL_FIELDS),
    Strategy.WINDOWS_LIVE: _scoped_expander(WindowsLiveOptions, VERSIONED_SOCIAL_FIELDS),
    Strategy.SALESFORCE: expand_salesforce,
    Strategy.SALESFORCE_COMMUNITY: expand_salesforce,
    Strategy.SALESFORCE_SANDBOX: expand_salesforce,
    Strategy.SMS: expand_sms,
    Strategy.EMAIL: expand_email,
    Strategy.OIDC: _scoped_expander(OIDCOptions, OIDC_FIELDS),
    Strategy.AD: expand_ad,
    Strategy.AZURE_AD: _scoped_expander(AzureADOptions, AZURE_AD_FIELDS),
    Strategy.ADFS: expand_adfs,
    Strategy.SAML: expand_saml,
}

# Every options class a mapped strategy can produce
STRATEGY_OPTIONS = frozenset(OPTIONS_CLASSES.values())


def parse_strategy(value: Any, d: Optional[ResourceData] = None) -> Strategy:
    """Convert a strategy string to the Strategy enum.

    Raises:
        ValidationConflict: If the strategy is not one the API accepts
    """
    if isinstance(value, Strategy):
        return value
    try:
        return Strategy(value)
    except ValueError:
        context = ErrorContext(operation='expand')
        if d is not None:
            context.resource_id = d.id
            context.resource_type = d.root.resource_type
        raise ValidationConflict(
            f"unknown connection strategy {value!r}",
            context=context,
            suggestions=[f"Use one of: {', '.join(s.value for s in Strategy)}"],
        )


def expand_connection_options(d: ResourceData, strategy: Any) -> Optional[ConnectionOptions]:
    """Expand the options block for the given strategy.

    Args:
        d: Accessor scoped to the options block
        strategy: Strategy enum member or string

    Returns:
        Options model, or None for strategies without mapped options

    Raises:
        ValidationConflict: If the strategy is unknown or a field is invalid
    """
    strategy = parse_strategy(strategy, d)
    expander = EXPANDERS.get(strategy)
    if expander is None:
        logger.warning(f"Unsupported connection strategy {strategy.value}, options are not sent")
        return None
    return expander(d)


def flatten_connection_options(d: ResourceData, options: Any) -> Optional[Dict[str, Any]]:
    """Flatten a response options object back into an options block.

    Args:
        d: Accessor scoped to the desired options block, used for fields
            the API never returns
        options: Options from the remote response

    Returns:
        Options block, or None if there are no options or their type is
        not mapped
    """
    if options is None:
        return None
    return _flatten(options, d)


@singledispatch
def _flatten(options: Any, d: ResourceData) -> Optional[Dict[str, Any]]:
    error = UnmappedVariantError(
        f"no flattener for connection options of type {type(options).__name__}, skipping",
        context=ErrorContext(
            resource_id=d.id,
            resource_type=d.root.resource_type,
            operation='read',
        ),
    )
    logger.warning(str(error))
    return None


def _flatten_scoped(options, d: ResourceData, fields: List[FieldMapping]) -> Dict[str, Any]:
    result = flatten_fields(options, fields)
    configured = d.get("scopes") or []
    position = {scope: index for index, scope in enumerate(configured)}
    # Keep the configured order; scopes enabled elsewhere go last
    scopes = sorted(options.scopes(), key=lambda scope: position.get(scope, len(position)))
    result["scopes"] = scopes if scopes or d.get("scopes") is not None else None
    return result


def _flatten_otp(otp: Optional[OTPSettings]) -> Optional[Dict[str, Any]]:
    if otp is None:
        return None
    return flatten_fields(otp, OTP_FIELDS)


@_flatten.register(DatabaseOptions)
def _flatten_database(options: DatabaseOptions, d: ResourceData) -> Dict[str, Any]:
    result = flatten_fields(options, DATABASE_FIELDS)
    # Not returned by the API
    result["configuration"] = get_string_map(d, "configuration")

    for name in (
        "password_history",
        "password_no_personal_info",
        "password_dictionary",
        "password_complexity_options",
        "mfa",
    ):
        value = getattr(options, name)
        if value is not None:
            result[name] = dict(value)

    if options.validation is not None:
        result["validation"] = {"username": options.validation.get("username")}

    return result


@_flatten.register(GoogleOAuth2Options)
def _flatten_google_oauth2(options: GoogleOAuth2Options, d: ResourceData) -> Dict[str, Any]:
    return _flatten_scoped(options, d, GOOGLE_OAUTH2_FIELDS)


@_flatten.register(GoogleAppsOptions)
def _flatten_google_apps(options: GoogleAppsOptions, d: ResourceData) -> Dict[str, Any]:
    return _flatten_scoped(options, d, GOOGLE_APPS_FIELDS)


@_flatten.register(OAuth2Options)
def _flatten_oauth2(options: OAuth2Options, d: ResourceData) -> Dict[str, Any]:
    return _flatten_scoped(options, d, OAUTH2_FIELDS)


@_flatten.register(FacebookOptions)
def _flatten_facebook(options: FacebookOptions, d: ResourceData) -> Dict[str, Any]:
    return _flatten_scoped(options, d, SOCIAL_FIELDS)


@_flatten.register(AppleOptions)
def _flatten_apple(options: AppleOptions, d: ResourceData) -> Dict[str, Any]:
    return _flatten_scoped(options, d, APPLE_FIELDS)


@_flatten.register(LinkedInOptions)
def _flatten_linkedin(options: LinkedInOptions, d: ResourceData) -> Dict[str, Any]:
    return _flatten_scoped(options, d, VERSIONED_SOCIAL_FIELDS)


@_flatten.register(GitHubOptions)
def _flatten_github(options: GitHubOptions, d: ResourceData) -> Dict[str, Any]:
    return _flatten_scoped(options, d, SOCIAL_FIELDS)


@_flatten.register(WindowsLiveOptions)
def _flatten_windows_live(options: WindowsLiveOptions, d: ResourceData) -> Dict[str, Any]:
    return _flatten_scoped(options, d, VERSIONED_SOCIAL_FIELDS)


@_flatten.register(SalesforceOptions)
def _flatten_salesforce(options: SalesforceOptions, d: ResourceData) -> Dict[str, Any]:
    return _flatten_scoped(options, d, SALESFORCE_FIELDS)


@_flatten.register(SMSOptions)
def _flatten_sms(options: SMSOptions, d: ResourceData) -> Dict[str, Any]:
    result = flatten_fields(options, SMS_FIELDS)
    result["totp"] = _flatten_otp(options.totp)
    if options.gateway_authentication is not None:
        result["gateway_authentication"] = flatten_fields(
            options.gateway_authentication, GATEWAY_AUTHENTICATION_FIELDS
        )
    else:
        result["gateway_authentication"] = None
    return result


@_flatten.register(EmailOptions)
def _flatten_email(options: EmailOptions, d: ResourceData) -> Dict[str, Any]:
    result = flatten_fields(options, EMAIL_FIELDS)
    result.update(flatten_fields(options.email or EmailSettings(), EMAIL_SETTINGS_FIELDS))
    result["totp"] = _flatten_otp(options.totp)
    return result


@_flatten.register(OIDCOptions)
def _flatten_oidc(options: OIDCOptions, d: ResourceData) -> Dict[str, Any]:
    return _flatten_scoped(options, d, OIDC_FIELDS)


@_flatten.register(ADOptions)
def _flatten_ad(options: ADOptions, d: ResourceData) -> Dict[str, Any]:
    return flatten_fields(options, AD_FIELDS)


@_flatten.register(AzureADOptions)
def _flatten_azure_ad(options: AzureADOptions, d: ResourceData) -> Dict[str, Any]:
    return _flatten_scoped(options, d, AZURE_AD_FIELDS)


@_flatten.register(ADFSOptions)
def _flatten_adfs(options: ADFSOptions, d: ResourceData) -> Dict[str, Any]:
    return flatten_fields(options, ADFS_FIELDS)


@_flatten.register(SAMLOptions)
def _flatten_saml(options: SAMLOptions, d: ResourceData) -> Dict[str, Any]:
    result = flatten_fields(options, SAML_FIELDS)
    # Not returned by the API
    result["metadata_xml"] = get_string(d, "metadata_xml")

    result["idp_initiated"] = None
    if options.idp_initiated is not None:
        result["idp_initiated"] = flatten_fields(options.idp_initiated, IDP_INITIATED_FIELDS)

    result["signing_key"] = None
    if options.signing_key is not None:
        result["signing_key"] = flatten_fields(options.signing_key, SIGNING_KEY_FIELDS)

    return result


def flattened_types() -> frozenset:
    """Options classes with a registered flattener."""
    return frozenset(cls for cls in _flatten.registry if cls is not object)
