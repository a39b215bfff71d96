"""Role and permission payloads."""

from typing import Optional

from pydantic import Field

from .base import ApiModel


class Role(ApiModel):
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None


class Permission(ApiModel):
    """A permission granted to a role, identified by name and API."""
    name: Optional[str] = Field(None, alias="permission_name")
    resource_server_identifier: Optional[str] = None
    description: Optional[str] = None
    resource_server_name: Optional[str] = None
