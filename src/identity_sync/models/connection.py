"""Connection payload with its strategy-specific options union."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Tuple, Type

from pydantic import Field

from .base import ApiModel


class Strategy(str, Enum):
    """Identity provider types accepted for a connection."""
    AD = "ad"
    ADFS = "adfs"
    AMAZON = "amazon"
    APPLE = "apple"
    DROPBOX = "dropbox"
    BITBUCKET = "bitbucket"
    AOL = "aol"
    AUTH0_ADLDAP = "auth0-adldap"
    AUTH0_OIDC = "auth0-oidc"
    AUTH0 = "auth0"
    BAIDU = "baidu"
    BITLY = "bitly"
    BOX = "box"
    CUSTOM = "custom"
    DACCOUNT = "daccount"
    DWOLLA = "dwolla"
    EMAIL = "email"
    EVERNOTE_SANDBOX = "evernote-sandbox"
    EVERNOTE = "evernote"
    EXACT = "exact"
    FACEBOOK = "facebook"
    FITBIT = "fitbit"
    FLICKR = "flickr"
    GITHUB = "github"
    GOOGLE_APPS = "google-apps"
    GOOGLE_OAUTH2 = "google-oauth2"
    GUARDIAN = "guardian"
    INSTAGRAM = "instagram"
    IP = "ip"
    LINE = "line"
    LINKEDIN = "linkedin"
    MIICARD = "miicard"
    OAUTH1 = "oauth1"
    OAUTH2 = "oauth2"
    OFFICE365 = "office365"
    OIDC = "oidc"
    PAYPAL = "paypal"
    PAYPAL_SANDBOX = "paypal-sandbox"
    PINGFEDERATE = "pingfederate"
    PLANNINGCENTER = "planningcenter"
    RENREN = "renren"
    SALESFORCE_COMMUNITY = "salesforce-community"
    SALESFORCE_SANDBOX = "salesforce-sandbox"
    SALESFORCE = "salesforce"
    SAML = "samlp"
    SHAREPOINT = "sharepoint"
    SHOPIFY = "shopify"
    SMS = "sms"
    SOUNDCLOUD = "soundcloud"
    THECITY_SANDBOX = "thecity-sandbox"
    THECITY = "thecity"
    THIRTYSEVENSIGNALS = "thirtysevensignals"
    TWITTER = "twitter"
    UNTAPPD = "untappd"
    VKONTAKTE = "vkontakte"
    AZURE_AD = "waad"
    WEIBO = "weibo"
    WINDOWS_LIVE = "windowslive"
    WORDPRESS = "wordpress"
    YAHOO = "yahoo"
    YAMMER = "yammer"
    YANDEX = "yandex"


# Strategies whose connections can be shown as a button on the login page
SHOW_AS_BUTTON_STRATEGIES = frozenset({
    Strategy.GOOGLE_APPS,
    Strategy.OIDC,
    Strategy.AD,
    Strategy.AZURE_AD,
    Strategy.SAML,
    Strategy.ADFS,
})


class ScopedOptions(ABC):
    """Options exposing OAuth scopes through enable/disable calls."""

    @abstractmethod
    def scopes(self) -> List[str]:
        pass

    @abstractmethod
    def set_scopes(self, enable: bool, *scopes: str) -> None:
        pass

    @abstractmethod
    def reset_scopes(self, scopes: Iterable[str]) -> None:
        """Replace the enabled scopes without issuing enable calls."""
        pass


class FlagScopes(ScopedOptions):
    """Scopes stored as one boolean field per known scope."""

    SCOPE_FIELDS: ClassVar[Tuple[str, ...]] = ()

    def scopes(self) -> List[str]:
        return [name for name in self.SCOPE_FIELDS if getattr(self, name) is True]

    def set_scopes(self, enable: bool, *scopes: str) -> None:
        # Unknown scope names have no field and are ignored
        for scope in scopes:
            if scope in self.SCOPE_FIELDS:
                setattr(self, scope, enable)

    def reset_scopes(self, scopes: Iterable[str]) -> None:
        enabled = set(scopes)
        for name in self.SCOPE_FIELDS:
            setattr(self, name, True if name in enabled else None)


class StringScopes(ScopedOptions):
    """Scopes stored as a single space-delimited ``scope`` string."""

    def scopes(self) -> List[str]:
        return (self.scope or "").split()

    def set_scopes(self, enable: bool, *scopes: str) -> None:
        current = self.scopes()
        for scope in scopes:
            if enable and scope not in current:
                current.append(scope)
            elif not enable and scope in current:
                current.remove(scope)
        self.scope = " ".join(current)

    def reset_scopes(self, scopes: Iterable[str]) -> None:
        joined = " ".join(dict.fromkeys(scopes))
        self.scope = joined or None


class ConnectionOptions(ApiModel):
    """Fields shared by every options variant."""
    set_user_root_attributes: Optional[str] = None
    non_persistent_attrs: Optional[List[str]] = None
    upstream_params: Optional[Dict[str, Any]] = None


class OTPSettings(ApiModel):
    time_step: Optional[int] = None
    length: Optional[int] = None


class GatewayAuthentication(ApiModel):
    method: Optional[str] = None
    subject: Optional[str] = None
    audience: Optional[str] = None
    secret: Optional[str] = None
    secret_base64_encoded: Optional[bool] = None


class EmailSettings(ApiModel):
    syntax: Optional[str] = None
    from_: Optional[str] = Field(None, alias="from")
    subject: Optional[str] = None
    body: Optional[str] = None


class SAMLIdpInitiated(ApiModel):
    client_id: Optional[str] = None
    client_protocol: Optional[str] = None
    client_authorize_query: Optional[str] = Field(None, alias="client_authorizequery")


class SAMLSigningKey(ApiModel):
    key: Optional[str] = None
    cert: Optional[str] = None


class DatabaseOptions(ConnectionOptions):
    """Options for the username/password database strategy."""
    validation: Optional[Dict[str, Any]] = None
    password_policy: Optional[str] = Field(None, alias="passwordPolicy")
    password_history: Optional[Dict[str, Any]] = None
    password_no_personal_info: Optional[Dict[str, Any]] = None
    password_dictionary: Optional[Dict[str, Any]] = None
    password_complexity_options: Optional[Dict[str, Any]] = None
    enabled_database_customization: Optional[bool] = Field(None, alias="enabledDatabaseCustomization")
    brute_force_protection: Optional[bool] = None
    import_mode: Optional[bool] = None
    disable_signup: Optional[bool] = None
    requires_username: Optional[bool] = None
    custom_scripts: Optional[Dict[str, str]] = Field(None, alias="customScripts")
    configuration: Optional[Dict[str, str]] = None
    mfa: Optional[Dict[str, Any]] = None


class GoogleOAuth2Options(FlagScopes, ConnectionOptions):
    SCOPE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "email", "profile", "contacts", "blogger", "calendar", "gmail", "google_plus",
        "orkut", "picasa_web", "tasks", "youtube", "adsense_management",
        "google_affiliate_network", "analytics", "google_books", "google_cloud_storage",
        "google_drive", "google_drive_files", "latitude_best", "latitude_city",
        "moderator", "sites", "spreadsheets", "url_shortener", "webmaster_tools",
        "coordinate", "coordinate_readonly", "chrome_web_store", "document_list",
    )

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    allowed_audiences: Optional[List[str]] = None

    email: Optional[bool] = None
    profile: Optional[bool] = None
    contacts: Optional[bool] = None
    blogger: Optional[bool] = None
    calendar: Optional[bool] = None
    gmail: Optional[bool] = None
    google_plus: Optional[bool] = None
    orkut: Optional[bool] = None
    picasa_web: Optional[bool] = None
    tasks: Optional[bool] = None
    youtube: Optional[bool] = None
    adsense_management: Optional[bool] = None
    google_affiliate_network: Optional[bool] = None
    analytics: Optional[bool] = None
    google_books: Optional[bool] = None
    google_cloud_storage: Optional[bool] = None
    google_drive: Optional[bool] = None
    google_drive_files: Optional[bool] = None
    latitude_best: Optional[bool] = None
    latitude_city: Optional[bool] = None
    moderator: Optional[bool] = None
    sites: Optional[bool] = None
    spreadsheets: Optional[bool] = None
    url_shortener: Optional[bool] = None
    webmaster_tools: Optional[bool] = None
    coordinate: Optional[bool] = None
    coordinate_readonly: Optional[bool] = None
    chrome_web_store: Optional[bool] = None
    document_list: Optional[bool] = None


class GoogleAppsOptions(FlagScopes, ConnectionOptions):
    SCOPE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "ext_agreed_terms", "ext_groups", "ext_is_admin", "ext_is_suspended",
    )

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    domain: Optional[str] = None
    tenant_domain: Optional[str] = None
    api_enable_users: Optional[bool] = None
    domain_aliases: Optional[List[str]] = None
    icon_url: Optional[str] = None

    ext_agreed_terms: Optional[bool] = None
    ext_groups: Optional[bool] = None
    ext_is_admin: Optional[bool] = None
    ext_is_suspended: Optional[bool] = None


class OAuth2Options(StringScopes, ConnectionOptions):
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    authorization_url: Optional[str] = Field(None, alias="authorizationURL")
    token_url: Optional[str] = Field(None, alias="tokenURL")
    scope: Optional[str] = None
    scripts: Optional[Dict[str, str]] = None
    icon_url: Optional[str] = None
    pkce_enabled: Optional[bool] = None


class FacebookOptions(FlagScopes, ConnectionOptions):
    SCOPE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "email", "public_profile", "groups_access_member_info", "publish_to_groups",
        "user_age_range", "user_birthday", "ads_management", "ads_read",
        "read_audience_network_insights", "read_insights", "manage_notifications",
        "publish_actions", "user_events", "user_friends", "user_gender", "user_hometown",
        "user_likes", "user_link", "user_location", "user_photos", "user_posts",
        "user_tagged_places", "user_videos",
    )

    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    email: Optional[bool] = None
    public_profile: Optional[bool] = None
    groups_access_member_info: Optional[bool] = None
    publish_to_groups: Optional[bool] = None
    user_age_range: Optional[bool] = None
    user_birthday: Optional[bool] = None
    ads_management: Optional[bool] = None
    ads_read: Optional[bool] = None
    read_audience_network_insights: Optional[bool] = None
    read_insights: Optional[bool] = None
    manage_notifications: Optional[bool] = None
    publish_actions: Optional[bool] = None
    user_events: Optional[bool] = None
    user_friends: Optional[bool] = None
    user_gender: Optional[bool] = None
    user_hometown: Optional[bool] = None
    user_likes: Optional[bool] = None
    user_link: Optional[bool] = None
    user_location: Optional[bool] = None
    user_photos: Optional[bool] = None
    user_posts: Optional[bool] = None
    user_tagged_places: Optional[bool] = None
    user_videos: Optional[bool] = None


class AppleOptions(FlagScopes, ConnectionOptions):
    SCOPE_FIELDS: ClassVar[Tuple[str, ...]] = ("email", "name")

    client_id: Optional[str] = None
    client_secret: Optional[str] = Field(None, alias="app_secret")
    team_id: Optional[str] = None
    key_id: Optional[str] = Field(None, alias="kid")

    email: Optional[bool] = None
    name: Optional[bool] = None


class LinkedInOptions(FlagScopes, ConnectionOptions):
    SCOPE_FIELDS: ClassVar[Tuple[str, ...]] = ("email", "profile", "basic_profile")

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    strategy_version: Optional[int] = None

    email: Optional[bool] = None
    profile: Optional[bool] = None
    basic_profile: Optional[bool] = None


class GitHubOptions(FlagScopes, ConnectionOptions):
    SCOPE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "email", "read_user", "follow", "public_repo", "repo", "repo_deployment",
        "repo_status", "delete_repo", "notifications", "gist", "read_repo_hook",
        "write_repo_hook", "admin_repo_hook", "read_org", "admin_org",
        "read_public_key", "write_public_key", "admin_public_key", "write_org",
    )

    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    email: Optional[bool] = None
    read_user: Optional[bool] = None
    follow: Optional[bool] = None
    public_repo: Optional[bool] = None
    repo: Optional[bool] = None
    repo_deployment: Optional[bool] = None
    repo_status: Optional[bool] = None
    delete_repo: Optional[bool] = None
    notifications: Optional[bool] = None
    gist: Optional[bool] = None
    read_repo_hook: Optional[bool] = None
    write_repo_hook: Optional[bool] = None
    admin_repo_hook: Optional[bool] = None
    read_org: Optional[bool] = None
    admin_org: Optional[bool] = None
    read_public_key: Optional[bool] = None
    write_public_key: Optional[bool] = None
    admin_public_key: Optional[bool] = None
    write_org: Optional[bool] = None


class WindowsLiveOptions(FlagScopes, ConnectionOptions):
    SCOPE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "signin", "emails", "birthday", "calendars", "contacts_birthday",
        "contacts_calendars", "offline_access", "basic", "phone_numbers",
        "postal_addresses", "work_profile", "graph_user", "graph_calendars",
    )

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    strategy_version: Optional[int] = None

    signin: Optional[bool] = None
    emails: Optional[bool] = None
    birthday: Optional[bool] = None
    calendars: Optional[bool] = None
    contacts_birthday: Optional[bool] = None
    contacts_calendars: Optional[bool] = None
    offline_access: Optional[bool] = None
    basic: Optional[bool] = None
    phone_numbers: Optional[bool] = None
    postal_addresses: Optional[bool] = None
    work_profile: Optional[bool] = None
    graph_user: Optional[bool] = None
    graph_calendars: Optional[bool] = None


class SalesforceOptions(FlagScopes, ConnectionOptions):
    """Shared by salesforce, salesforce-community and salesforce-sandbox."""

    SCOPE_FIELDS: ClassVar[Tuple[str, ...]] = ("profile",)

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    community_base_url: Optional[str] = None

    profile: Optional[bool] = None


class SMSOptions(ConnectionOptions):
    name: Optional[str] = None
    from_: Optional[str] = Field(None, alias="from")
    syntax: Optional[str] = None
    template: Optional[str] = None
    totp: Optional[OTPSettings] = None
    twilio_sid: Optional[str] = None
    twilio_token: Optional[str] = None
    messaging_service_sid: Optional[str] = None
    disable_signup: Optional[bool] = None
    brute_force_protection: Optional[bool] = None
    provider: Optional[str] = None
    gateway_url: Optional[str] = None
    gateway_authentication: Optional[GatewayAuthentication] = None
    forward_request_info: Optional[bool] = Field(None, alias="forward_req_info")


class EmailOptions(ConnectionOptions):
    name: Optional[str] = None
    email: Optional[EmailSettings] = None
    totp: Optional[OTPSettings] = None
    disable_signup: Optional[bool] = None
    brute_force_protection: Optional[bool] = None


class OIDCOptions(StringScopes, ConnectionOptions):
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    tenant_domain: Optional[str] = None
    domain_aliases: Optional[List[str]] = None
    icon_url: Optional[str] = None
    discovery_url: Optional[str] = None
    authorization_endpoint: Optional[str] = None
    issuer: Optional[str] = None
    jwks_uri: Optional[str] = None
    type: Optional[str] = None
    userinfo_endpoint: Optional[str] = None
    token_endpoint: Optional[str] = None
    scope: Optional[str] = None


class ADOptions(ConnectionOptions):
    tenant_domain: Optional[str] = None
    domain_aliases: Optional[List[str]] = None
    icon_url: Optional[str] = None
    ips: Optional[List[str]] = None
    cert_auth: Optional[bool] = Field(None, alias="certAuth")
    kerberos: Optional[bool] = None
    disable_cache: Optional[bool] = None
    brute_force_protection: Optional[bool] = None


class AzureADOptions(FlagScopes, ConnectionOptions):
    SCOPE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "basic_profile", "ext_profile", "ext_groups", "ext_nested_groups", "ext_admin",
        "ext_is_suspended", "ext_agreed_terms", "ext_assigned_plans",
    )

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    app_id: Optional[str] = None
    tenant_domain: Optional[str] = None
    domain: Optional[str] = None
    domain_aliases: Optional[List[str]] = None
    icon_url: Optional[str] = None
    identity_api: Optional[str] = None
    waad_protocol: Optional[str] = None
    use_common_endpoint: Optional[bool] = Field(None, alias="useCommonEndpoint")
    use_wsfed: Optional[bool] = None
    api_enable_users: Optional[bool] = None
    max_groups_to_retrieve: Optional[str] = None
    trust_email_verified: Optional[str] = Field(None, alias="should_trust_email_verified_connection")

    basic_profile: Optional[bool] = None
    ext_profile: Optional[bool] = None
    ext_groups: Optional[bool] = None
    ext_nested_groups: Optional[bool] = None
    ext_admin: Optional[bool] = None
    ext_is_suspended: Optional[bool] = None
    ext_agreed_terms: Optional[bool] = None
    ext_assigned_plans: Optional[bool] = None


class ADFSOptions(ConnectionOptions):
    tenant_domain: Optional[str] = None
    domain_aliases: Optional[List[str]] = None
    icon_url: Optional[str] = None
    adfs_server: Optional[str] = None
    api_enable_users: Optional[bool] = None


class SAMLOptions(ConnectionOptions):
    debug: Optional[bool] = None
    signing_cert: Optional[str] = Field(None, alias="signingCert")
    protocol_binding: Optional[str] = Field(None, alias="protocolBinding")
    tenant_domain: Optional[str] = None
    domain_aliases: Optional[List[str]] = None
    sign_in_endpoint: Optional[str] = Field(None, alias="signInEndpoint")
    sign_out_endpoint: Optional[str] = Field(None, alias="signOutEndpoint")
    disable_sign_out: Optional[bool] = Field(None, alias="disableSignout")
    signature_algorithm: Optional[str] = Field(None, alias="signatureAlgorithm")
    digest_algorithm: Optional[str] = Field(None, alias="digestAlgorithm")
    sign_saml_request: Optional[bool] = Field(None, alias="signSAMLRequest")
    request_template: Optional[str] = Field(None, alias="requestTemplate")
    user_id_attribute: Optional[str] = None
    icon_url: Optional[str] = None
    entity_id: Optional[str] = Field(None, alias="entityId")
    metadata_xml: Optional[str] = Field(None, alias="metadataXml")
    metadata_url: Optional[str] = Field(None, alias="metadataUrl")
    fields_map: Optional[Dict[str, Any]] = Field(None, alias="fieldsMap")
    idp_initiated: Optional[SAMLIdpInitiated] = Field(None, alias="idpinitiated")
    signing_key: Optional[SAMLSigningKey] = None


# Response options class per strategy; strategies not listed carry no typed options
OPTIONS_CLASSES: Dict[Strategy, Type[ConnectionOptions]] = {
    Strategy.AUTH0: DatabaseOptions,
    Strategy.GOOGLE_OAUTH2: GoogleOAuth2Options,
    Strategy.GOOGLE_APPS: GoogleAppsOptions,
    Strategy.OAUTH2: OAuth2Options,
    Strategy.FACEBOOK: FacebookOptions,
    Strategy.APPLE: AppleOptions,
    Strategy.LINKEDIN: LinkedInOptions,
    Strategy.GITHUB: GitHubOptions,
    Strategy.WINDOWS_LIVE: WindowsLiveOptions,
    Strategy.SALESFORCE: SalesforceOptions,
    Strategy.SALESFORCE_COMMUNITY: SalesforceOptions,
    Strategy.SALESFORCE_SANDBOX: SalesforceOptions,
    Strategy.SMS: SMSOptions,
    Strategy.EMAIL: EmailOptions,
    Strategy.OIDC: OIDCOptions,
    Strategy.AD: ADOptions,
    Strategy.AZURE_AD: AzureADOptions,
    Strategy.ADFS: ADFSOptions,
    Strategy.SAML: SAMLOptions,
}


class Connection(ApiModel):
    """Connection resource; ``options`` holds one strategy-specific model."""
    id: Optional[str] = None
    name: Optional[str] = None
    display_name: Optional[str] = None
    strategy: Optional[str] = None
    is_domain_connection: Optional[bool] = None
    show_as_button: Optional[bool] = None
    enabled_clients: Optional[List[str]] = None
    realms: Optional[List[str]] = None
    metadata: Optional[Dict[str, str]] = None
    options: Optional[Any] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(by_alias=True, exclude_none=True, exclude={"options"})
        if isinstance(self.options, ApiModel):
            payload["options"] = self.options.to_payload()
        elif self.options is not None:
            payload["options"] = dict(self.options)
        return payload

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Connection":
        """Build a connection, typing ``options`` from the strategy."""
        body = dict(data)
        raw_options = body.pop("options", None)
        connection = cls.model_validate(body)
        if raw_options is not None:
            options_class = None
            try:
                options_class = OPTIONS_CLASSES.get(Strategy(connection.strategy))
            except ValueError:
                pass
            if options_class is not None and isinstance(raw_options, dict):
                connection.options = options_class.from_payload(raw_options)
            else:
                connection.options = raw_options
        return connection
