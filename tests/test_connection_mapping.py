import logging
from typing import List, Tuple

import pytest
from pydantic import PrivateAttr

from identity_sync.data import Change, ResourceData
from identity_sync.mappers import (
    EXPANDERS,
    STRATEGY_OPTIONS,
    expand_connection,
    expand_connection_options,
    expand_scopes,
    flatten_connection,
    flatten_connection_options,
    flattened_types,
    parse_strategy,
)
from identity_sync.models import (
    OPTIONS_CLASSES,
    Connection,
    ConnectionOptions,
    DatabaseOptions,
    GoogleOAuth2Options,
    OAuth2Options,
    SAMLOptions,
    ScopedOptions,
    Strategy,
)
from identity_sync.utils.errors import ValidationConflict


def test_every_mapped_strategy_has_an_expander_and_a_flattener():
    assert set(EXPANDERS) == set(OPTIONS_CLASSES)
    assert flattened_types() == STRATEGY_OPTIONS


SALESFORCE_SAMPLE = {
    "client_id": "cid",
    "client_secret": "secret",
    "community_base_url": "https://community.example.com",
    "scopes": ["profile"],
}

# A representative options block per mapped strategy
ROUND_TRIP_OPTIONS = {
    Strategy.AUTH0: {
        "password_policy": "good",
        "brute_force_protection": True,
        "password_history": {"enable": True, "size": 5},
        "custom_scripts": {"login": "function login() {}"},
    },
    Strategy.GOOGLE_OAUTH2: {
        "client_id": "cid",
        "client_secret": "secret",
        "allowed_audiences": ["example.com"],
        "scopes": ["profile", "email"],
    },
    Strategy.GOOGLE_APPS: {
        "client_id": "cid",
        "domain": "example.com",
        "tenant_domain": "example.com",
        "api_enable_users": True,
        "scopes": ["ext_groups", "ext_is_admin"],
    },
    Strategy.OAUTH2: {
        "client_id": "cid",
        "authorization_endpoint": "https://idp.example.com/authorize",
        "token_endpoint": "https://idp.example.com/token",
        "scripts": {"fetchUserProfile": "function fetch() {}"},
        "pkce_enabled": True,
        "scopes": ["openid", "email"],
    },
    Strategy.FACEBOOK: {"client_id": "cid", "client_secret": "secret", "scopes": ["public_profile", "email"]},
    Strategy.APPLE: {
        "client_id": "cid",
        "client_secret": "-----KEY-----",
        "team_id": "TEAM",
        "key_id": "KID",
        "scopes": ["name", "email"],
    },
    Strategy.LINKEDIN: {
        "client_id": "cid",
        "client_secret": "secret",
        "strategy_version": 2,
        "scopes": ["basic_profile", "email"],
    },
    Strategy.GITHUB: {"client_id": "cid", "client_secret": "secret", "scopes": ["repo", "read_org"]},
    Strategy.WINDOWS_LIVE: {
        "client_id": "cid",
        "client_secret": "secret",
        "strategy_version": 2,
        "scopes": ["signin", "emails"],
    },
    Strategy.SALESFORCE: SALESFORCE_SAMPLE,
    Strategy.SALESFORCE_COMMUNITY: SALESFORCE_SAMPLE,
    Strategy.SALESFORCE_SANDBOX: SALESFORCE_SAMPLE,
    Strategy.SMS: {
        "name": "sms",
        "from": "+15551234567",
        "syntax": "md_with_macros",
        "template": "Your code is @@password@@",
        "twilio_sid": "sid",
        "forward_request_info": True,
        "totp": {"time_step": 300, "length": 6},
    },
    Strategy.EMAIL: {
        "name": "email",
        "from": "root@example.com",
        "subject": "Sign in",
        "template": "<html></html>",
        "disable_signup": True,
        "totp": {"time_step": 300, "length": 6},
    },
    Strategy.OIDC: {
        "client_id": "cid",
        "discovery_url": "https://idp.example.com/.well-known/openid-configuration",
        "issuer": "https://idp.example.com/",
        "type": "back_channel",
        "scopes": ["openid", "profile"],
    },
    Strategy.AD: {
        "tenant_domain": "corp.example.com",
        "ips": ["10.0.0.1"],
        "use_cert_auth": True,
        "brute_force_protection": True,
    },
    Strategy.AZURE_AD: {
        "client_id": "cid",
        "client_secret": "secret",
        "domain": "corp.onmicrosoft.com",
        "waad_protocol": "openid-connect",
        "waad_common_endpoint": True,
        "should_trust_email_verified_connection": "always_set_emails_as_verified",
        "scopes": ["basic_profile", "ext_groups"],
    },
    Strategy.ADFS: {
        "adfs_server": "https://adfs.example.com/FederationMetadata/2007-06/FederationMetadata.xml",
        "domain_aliases": ["corp.example.com"],
    },
    Strategy.SAML: {
        "sign_in_endpoint": "https://idp.example.com/sso",
        "signing_cert": "-----CERT-----",
        "debug": True,
        "fields_map": {"email": "mail"},
    },
}


def test_round_trip_samples_cover_every_mapped_strategy():
    assert set(ROUND_TRIP_OPTIONS) == set(EXPANDERS)


@pytest.mark.parametrize("strategy", sorted(EXPANDERS, key=lambda s: s.value), ids=lambda s: s.value)
def test_configured_options_survive_a_round_trip(strategy):
    block = ROUND_TRIP_OPTIONS[strategy]
    d = ResourceData.for_create(block)

    options = expand_connection_options(d, strategy)
    remote = Connection.from_payload({
        "id": "con_1",
        "strategy": strategy.value,
        "options": options.to_payload(),
    })
    flattened = flatten_connection_options(d, remote.options)

    assert type(remote.options) is OPTIONS_CLASSES[strategy]
    for key, value in block.items():
        assert flattened[key] == value, key


def test_scope_toggles_only_touch_changed_scopes():
    d = ResourceData(
        Change(old={"scopes": ["email", "profile"]}, new={"scopes": ["email", "calendar"]}),
        resource_id="con_1",
    )
    options = GoogleOAuth2Options()

    expand_scopes(d, options)

    assert options.scopes() == ["email", "calendar"]
    assert options.email is True
    assert options.calendar is True
    # Removed scopes are sent explicitly disabled
    assert options.profile is False
    payload = options.to_payload()
    assert payload == {"email": True, "calendar": True, "profile": False}


class RecordingOAuth2Options(OAuth2Options):
    _calls: List[Tuple] = PrivateAttr(default_factory=list)

    def set_scopes(self, enable, *scopes):
        self._calls.append((enable,) + scopes)
        super().set_scopes(enable, *scopes)


def test_string_scopes_keep_existing_order():
    d = ResourceData(
        Change(old={"scopes": ["openid", "profile"]}, new={"scopes": ["openid", "email"]}),
        resource_id="con_1",
    )
    options = RecordingOAuth2Options()

    expand_scopes(d, options)

    assert options.scope == "openid email"
    # openid is retained, so it is never toggled
    assert options._calls == [(True, "email"), (False, "profile")]


def test_scoped_options_must_implement_every_scope_operation():
    class HalfScoped(ScopedOptions):
        def scopes(self):
            return []

    with pytest.raises(TypeError):
        HalfScoped()

    assert isinstance(OAuth2Options(), ScopedOptions)


def test_expand_database_options():
    d = ResourceData.for_create({
        "password_policy": "good",
        "brute_force_protection": True,
        "password_history": {"enable": True, "size": 5},
        "validation": {"username": {"min": 3, "max": 20}},
        "password_complexity_options": {"min_length": 12},
        "custom_scripts": {"login": "function login() {}"},
        "configuration": {"api_key": "secret"},
    })

    options = expand_connection_options(d, "auth0")

    assert isinstance(options, DatabaseOptions)
    assert options.password_policy == "good"
    assert options.password_history == {"enable": True, "size": 5}
    assert options.validation == {"username": {"min": 3, "max": 20}}
    assert options.password_complexity_options == {"min_length": 12}
    payload = options.to_payload()
    assert payload["passwordPolicy"] == "good"
    assert payload["customScripts"] == {"login": "function login() {}"}
    assert "password_dictionary" not in payload


def test_database_options_round_trip_keeps_write_only_configuration():
    tree = {
        "password_policy": "fair",
        "password_history": {"enable": True, "size": 5},
        "validation": {"username": {"min": 3, "max": 20}},
        "configuration": {"api_key": "secret"},
    }
    d = ResourceData.for_create(tree)
    options = expand_connection_options(d, Strategy.AUTH0)

    # The API never returns configuration values
    options.configuration = None
    flattened = flatten_connection_options(d, options)

    for key, value in tree.items():
        assert flattened[key] == value


def test_saml_round_trip_keeps_metadata_xml_from_config():
    d = ResourceData.for_create({
        "sign_in_endpoint": "https://idp.example.com/sso",
        "metadata_xml": "<EntityDescriptor/>",
        "signing_key": {"key": "-----KEY-----", "cert": "-----CERT-----"},
        "fields_map": '{"email": "mail"}',
    })

    options = expand_connection_options(d, "samlp")

    assert isinstance(options, SAMLOptions)
    assert options.fields_map == {"email": "mail"}
    assert options.to_payload()["signInEndpoint"] == "https://idp.example.com/sso"

    options.metadata_xml = None
    flattened = flatten_connection_options(d, options)

    assert flattened["metadata_xml"] == "<EntityDescriptor/>"
    assert flattened["signing_key"] == {"key": "-----KEY-----", "cert": "-----CERT-----"}
    assert flattened["fields_map"] == {"email": "mail"}
    assert flattened["idp_initiated"] is None


def test_email_settings_are_flat_in_the_tree():
    d = ResourceData.for_create({
        "name": "email",
        "from": "{{ application.name }} <root@auth0.com>",
        "subject": "Welcome",
        "syntax": "liquid",
        "template": "<html></html>",
        "totp": {"time_step": 300, "length": 6},
    })

    options = expand_connection_options(d, "email")
    payload = options.to_payload()

    assert payload["email"] == {
        "syntax": "liquid",
        "from": "{{ application.name }} <root@auth0.com>",
        "subject": "Welcome",
        "body": "<html></html>",
    }
    assert payload["totp"] == {"time_step": 300, "length": 6}

    flattened = flatten_connection_options(d, options)
    assert flattened["template"] == "<html></html>"
    assert flattened["from"] == "{{ application.name }} <root@auth0.com>"
    assert flattened["totp"] == {"time_step": 300, "length": 6}


def test_empty_json_fields_flatten_to_none():
    options = GoogleOAuth2Options(client_id="cid", upstream_params={})

    flattened = flatten_connection_options(ResourceData.for_create({}), options)

    assert flattened["upstream_params"] is None
    assert flattened["client_id"] == "cid"
    assert flattened["scopes"] is None


def test_unmapped_options_type_is_logged_and_skipped(caplog):
    caplog.set_level(logging.WARNING)
    d = ResourceData(Change(), resource_id="con_1", resource_type="connection")

    assert flatten_connection_options(d, ConnectionOptions()) is None
    assert flatten_connection_options(d, {"raw": True}) is None
    assert flatten_connection_options(d, None) is None

    assert "no flattener for connection options of type ConnectionOptions" in caplog.text


def test_strategy_without_mapped_options_sends_none(caplog):
    caplog.set_level(logging.WARNING)

    assert expand_connection_options(ResourceData.for_create({"client_id": "x"}), "twitter") is None
    assert "Unsupported connection strategy twitter" in caplog.text


def test_unknown_strategy_is_a_validation_conflict():
    with pytest.raises(ValidationConflict, match="unknown connection strategy 'myspace'"):
        parse_strategy("myspace")

    assert parse_strategy("waad") is Strategy.AZURE_AD


def test_expand_connection_sends_name_and_strategy_only_on_create():
    config = {
        "name": "corp-saml",
        "strategy": "samlp",
        "display_name": "Corporate",
        "show_as_button": True,
        "realms": ["corp"],
        "options": {"sign_in_endpoint": "https://idp/sso"},
    }

    created = expand_connection(ResourceData.for_create(config, "connection"))
    assert created.name == "corp-saml"
    assert created.strategy == "samlp"
    assert created.show_as_button is True
    assert created.realms == ["corp"]
    assert created.options.sign_in_endpoint == "https://idp/sso"

    updated = expand_connection(ResourceData(Change(old=config, new=config), resource_id="con_1"))
    assert updated.name is None
    assert updated.strategy is None
    assert updated.realms is None
    assert updated.display_name == "Corporate"


def test_show_as_button_only_for_enterprise_strategies():
    connection = expand_connection(ResourceData.for_create({
        "name": "google",
        "strategy": "google-oauth2",
        "show_as_button": True,
    }))

    assert connection.show_as_button is None
    assert "show_as_button" not in connection.to_payload()


def test_connection_from_payload_types_options_by_strategy():
    connection = Connection.from_payload({
        "id": "con_1",
        "name": "google",
        "strategy": "google-oauth2",
        "options": {"client_id": "cid", "email": True, "profile": True},
    })

    assert isinstance(connection.options, GoogleOAuth2Options)

    flattened = flatten_connection(ResourceData.for_create({}), connection)
    assert flattened["options"]["scopes"] == ["email", "profile"]
    assert flattened["options"]["client_id"] == "cid"
    assert flattened["strategy"] == "google-oauth2"
