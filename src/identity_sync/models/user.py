"""User payload."""

from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import Field

from .base import ApiModel


class User(ApiModel):
    """User resource.

    ``user_metadata`` and ``app_metadata`` may hold None values, which the
    API reads as "delete this key", so they are serialised as-is.
    """

    NULLABLE_MAPS: ClassVar[Tuple[str, ...]] = ("user_metadata", "app_metadata")

    id: Optional[str] = Field(None, alias="user_id")
    connection: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    username: Optional[str] = None
    nickname: Optional[str] = None
    password: Optional[str] = None
    phone_number: Optional[str] = None
    email_verified: Optional[bool] = None
    verify_email: Optional[bool] = None
    phone_verified: Optional[bool] = None
    picture: Optional[str] = None
    blocked: Optional[bool] = None
    user_metadata: Optional[Dict[str, Any]] = None
    app_metadata: Optional[Dict[str, Any]] = None
