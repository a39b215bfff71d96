"""Organization, membership and enabled-connection payloads."""

from typing import Dict, Optional

from .base import ApiModel
from .connection import Connection


class Branding(ApiModel):
    logo_url: Optional[str] = None
    colors: Optional[Dict[str, str]] = None


class Organization(ApiModel):
    id: Optional[str] = None
    name: Optional[str] = None
    display_name: Optional[str] = None
    branding: Optional[Branding] = None
    metadata: Optional[Dict[str, str]] = None


class OrganizationConnection(ApiModel):
    """A connection enabled on an organization."""
    connection_id: Optional[str] = None
    assign_membership_on_login: Optional[bool] = None
    connection: Optional[Connection] = None


class OrganizationMember(ApiModel):
    user_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
