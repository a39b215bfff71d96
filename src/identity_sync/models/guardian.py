"""Multi-factor authentication (Guardian) payloads."""

from enum import Enum
from typing import Optional

from pydantic import Field

from .base import ApiModel


class GuardianPolicy(str, Enum):
    """When users are asked for a second factor."""
    NEVER = "never"
    ALL_APPLICATIONS = "all-applications"
    CONFIDENCE_SCORE = "confidence-score"


class PhoneProvider(str, Enum):
    TWILIO = "twilio"
    AUTH0 = "auth0"
    PHONE_MESSAGE_HOOK = "phone-message-hook"


class Factor(str, Enum):
    """Factor names as used by the enable endpoints."""
    EMAIL = "email"
    OTP = "otp"
    SMS = "sms"
    WEBAUTHN_ROAMING = "webauthn-roaming"
    WEBAUTHN_PLATFORM = "webauthn-platform"


class FactorStatus(ApiModel):
    name: Optional[str] = None
    enabled: Optional[bool] = None
    trial_expired: Optional[bool] = None


class SMSTemplate(ApiModel):
    enrollment_message: Optional[str] = None
    verification_message: Optional[str] = None


class TwilioSettings(ApiModel):
    sid: Optional[str] = None
    auth_token: Optional[str] = None
    from_: Optional[str] = Field(None, alias="from")
    messaging_service_sid: Optional[str] = None


class WebAuthnSettings(ApiModel):
    user_verification: Optional[str] = None
    override_relying_party: Optional[bool] = None
    relying_party_identifier: Optional[str] = None
