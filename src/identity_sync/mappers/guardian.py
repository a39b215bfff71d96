"""Guardian (MFA) expand/flatten.

Guardian settings are spread over several endpoints, so these helpers talk
to the guardian manager directly instead of building a single payload.
"""

from typing import Any, Dict, List

from identity_sync.client.base import GuardianManager
from identity_sync.data import ResourceData, get_bool, get_string, get_string_list
from identity_sync.mappers.connection_options import first_block
from identity_sync.models import (
    Factor,
    GuardianPolicy,
    PhoneProvider,
    SMSTemplate,
    TwilioSettings,
    WebAuthnSettings,
)
from identity_sync.utils.logging import get_logger

logger = get_logger(__name__)


def factor_should_be_updated(d: ResourceData, factor: str) -> bool:
    """True if the factor block is configured or is being added."""
    _, ok = d.get_ok(factor)
    if ok:
        return True
    if d.has_change(factor):
        _, new = d.get_change(factor)
        return bool(new)
    return False


def update_policy(d: ResourceData, guardian: GuardianManager) -> None:
    if not d.has_change("policy"):
        return
    policy = d.get("policy")
    # "never" is expressed as no policy at all
    policies = [] if policy in (None, GuardianPolicy.NEVER.value) else [policy]
    logger.debug(f"(~) guardian policy: {policies}")
    guardian.update_policy(policies)


def update_toggle_factor(d: ResourceData, guardian: GuardianManager, factor: Factor) -> None:
    """Enable or disable a factor that has no settings (email, otp)."""
    if d.has_change(factor.value):
        enabled = bool(d.get(factor.value))
        logger.debug(f"(~) guardian factor {factor.value}: enabled={enabled}")
        guardian.enable_factor(factor.value, enabled)


def expand_sms_template(d: ResourceData) -> SMSTemplate:
    return SMSTemplate(
        enrollment_message=get_string(d, "enrollment_message"),
        verification_message=get_string(d, "verification_message"),
    )


def expand_twilio(d: ResourceData) -> TwilioSettings:
    return TwilioSettings(
        sid=get_string(d, "sid"),
        auth_token=get_string(d, "auth_token"),
        from_=get_string(d, "from"),
        messaging_service_sid=get_string(d, "messaging_service_sid"),
    )


def update_phone(d: ResourceData, guardian: GuardianManager) -> None:
    """Configure the phone factor, or disable it when not configured.

    The factor is always enabled before it is configured; the API rejects
    message types for a disabled factor.
    """
    if not factor_should_be_updated(d, "phone"):
        guardian.enable_factor(Factor.SMS.value, False)
        return

    guardian.enable_factor(Factor.SMS.value, True)

    phone = first_block(d, "phone")
    if phone is None:
        return

    provider = get_string(phone, "provider")
    if provider is not None:
        options = first_block(phone, "options")
        if options is not None:
            if provider == PhoneProvider.TWILIO.value:
                guardian.update_twilio(expand_twilio(options))
                guardian.update_sms_template(expand_sms_template(options))
            elif provider == PhoneProvider.AUTH0.value:
                guardian.update_sms_template(expand_sms_template(options))
        guardian.update_phone_provider(provider)

    message_types = get_string_list(phone, "message_types")
    if message_types:
        guardian.update_phone_message_types(message_types)


def update_webauthn(d: ResourceData, guardian: GuardianManager, factor: Factor) -> None:
    """Enable and configure a WebAuthn factor, or disable it."""
    attribute = factor.value.replace("-", "_")
    if not factor_should_be_updated(d, attribute):
        guardian.enable_factor(factor.value, False)
        return

    guardian.enable_factor(factor.value, True)

    block = first_block(d, attribute)
    if block is None:
        return

    settings = WebAuthnSettings(
        override_relying_party=get_bool(block, "override_relying_party"),
        relying_party_identifier=get_string(block, "relying_party_identifier"),
    )
    # Platform authenticators always verify the user
    if factor == Factor.WEBAUTHN_ROAMING:
        settings.user_verification = get_string(block, "user_verification")

    if settings.is_empty():
        return
    guardian.update_webauthn_settings(factor.value, settings)


def flatten_policy(guardian: GuardianManager) -> str:
    policies = guardian.policy()
    if policies:
        return policies[0]
    return GuardianPolicy.NEVER.value


def flatten_phone(guardian: GuardianManager) -> Dict[str, Any]:
    """Read the phone factor configuration."""
    provider = guardian.phone_provider()
    phone: Dict[str, Any] = {
        "provider": provider,
        "message_types": guardian.phone_message_types(),
        "options": None,
    }

    if provider in (PhoneProvider.TWILIO.value, PhoneProvider.AUTH0.value):
        template = guardian.sms_template()
        options = {
            "enrollment_message": template.enrollment_message,
            "verification_message": template.verification_message,
        }
        if provider == PhoneProvider.TWILIO.value:
            twilio = guardian.twilio()
            options.update(
                sid=twilio.sid,
                auth_token=twilio.auth_token,
                messaging_service_sid=twilio.messaging_service_sid,
            )
            options["from"] = twilio.from_
        phone["options"] = options

    return phone


def flatten_webauthn(guardian: GuardianManager, factor: Factor) -> Dict[str, Any]:
    settings = guardian.webauthn_settings(factor.value)
    result = {
        "override_relying_party": settings.override_relying_party,
        "relying_party_identifier": settings.relying_party_identifier,
    }
    if factor == Factor.WEBAUTHN_ROAMING:
        result["user_verification"] = settings.user_verification
    return result


def flatten_guardian(guardian: GuardianManager) -> Dict[str, Any]:
    """Read every guardian setting into observed fields.

    Factor blocks are only read back while the factor is enabled.
    """
    observed: Dict[str, Any] = {"policy": flatten_policy(guardian)}

    for status in guardian.factors():
        if status.name in (Factor.EMAIL.value, Factor.OTP.value):
            observed[status.name] = bool(status.enabled)
        elif status.name == Factor.SMS.value:
            observed["phone"] = flatten_phone(guardian) if status.enabled else None
        elif status.name in (Factor.WEBAUTHN_ROAMING.value, Factor.WEBAUTHN_PLATFORM.value):
            factor = Factor(status.name)
            attribute = factor.value.replace("-", "_")
            observed[attribute] = flatten_webauthn(guardian, factor) if status.enabled else None

    return observed


def disable_all(guardian: GuardianManager) -> List[str]:
    """Disable every managed factor and return their names."""
    disabled = []
    for factor in Factor:
        guardian.enable_factor(factor.value, False)
        disabled.append(factor.value)
    return disabled
