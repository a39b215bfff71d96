"""Custom domain payload."""

from typing import Any, Dict, List, Optional

from .base import ApiModel


class CustomDomain(ApiModel):
    id: Optional[str] = None
    domain: Optional[str] = None
    type: Optional[str] = None
    primary: Optional[bool] = None
    status: Optional[str] = None
    origin_domain_name: Optional[str] = None
    verification: Optional[Dict[str, List[Dict[str, Any]]]] = None
