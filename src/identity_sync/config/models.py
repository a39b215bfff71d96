"""Pydantic models for the desired-state configuration file."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from identity_sync.models import Strategy
from identity_sync.reconcilers import RECONCILERS


class ResourceConfig(BaseModel):
    """One managed resource."""

    type: str = Field(..., description="Resource type, e.g. connection or role")
    name: str = Field(..., min_length=1, description="Name unique among resources of the same type")
    id: Optional[str] = Field(None, description="Remote id of an existing resource to adopt")
    attributes: Dict[str, Any] = Field(default_factory=dict)
    depends_on: List[str] = Field(default_factory=list)

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        """Validate the resource type is one that can be reconciled."""
        if v not in RECONCILERS:
            raise ValueError(f"Unknown resource type '{v}'. Known types: {', '.join(sorted(RECONCILERS))}")
        return v

    @model_validator(mode="after")
    def validate_strategy(self):
        """Validate the strategy of a connection."""
        if self.type != "connection":
            return self
        strategy = self.attributes.get("strategy")
        if strategy is None:
            raise ValueError("Connections require a 'strategy' attribute")
        try:
            Strategy(strategy)
        except ValueError:
            raise ValueError(f"Unknown connection strategy '{strategy}'") from None
        return self

    @property
    def address(self) -> str:
        """Unique reference to this resource, ``type.name``."""
        return f"{self.type}.{self.name}"


class DesiredConfig(BaseModel):
    """Root of the configuration file."""

    version: str = "1"
    resources: List[ResourceConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_references(self):
        """Validate names are unique per type and dependencies exist."""
        addresses = [resource.address for resource in self.resources]
        duplicates = sorted({address for address in addresses if addresses.count(address) > 1})
        if duplicates:
            raise ValueError(f"Duplicate resource names: {', '.join(duplicates)}")

        known = set(addresses)
        for resource in self.resources:
            for dependency in resource.depends_on:
                if dependency not in known:
                    raise ValueError(f"{resource.address} depends on unknown resource '{dependency}'")
        return self
