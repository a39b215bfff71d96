"""Resource server (API) payload."""

from typing import Dict, List, Optional

from pydantic import Field

from .base import ApiModel


class ResourceServerScope(ApiModel):
    value: Optional[str] = None
    description: Optional[str] = None


class ResourceServer(ApiModel):
    id: Optional[str] = None
    name: Optional[str] = None
    identifier: Optional[str] = None
    scopes: Optional[List[ResourceServerScope]] = None
    signing_alg: Optional[str] = None
    signing_secret: Optional[str] = None
    allow_offline_access: Optional[bool] = None
    token_lifetime: Optional[int] = None
    token_lifetime_for_web: Optional[int] = None
    skip_consent: Optional[bool] = Field(None, alias="skip_consent_for_verifiable_first_party_clients")
    verification_location: Optional[str] = None
    options: Optional[Dict[str, str]] = None
    enforce_policies: Optional[bool] = None
    token_dialect: Optional[str] = None
