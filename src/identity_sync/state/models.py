"""Observed-state file data models."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from identity_sync.config.models import ResourceConfig
from identity_sync.data import Change, ResourceData


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ResourceState(BaseModel):
    """Last observed state of one managed resource."""

    type: str = Field(..., description="Resource type (e.g. connection)")
    name: str = Field(..., description="Resource name from the configuration")
    id: Optional[str] = Field(None, description="Remote id")
    attributes: Dict[str, Any] = Field(
        default_factory=dict, description="Attributes flattened from the last read"
    )
    dependencies: List[str] = Field(
        default_factory=list, description="Addresses of resources this one depends on"
    )

    @property
    def address(self) -> str:
        return f"{self.type}.{self.name}"


class State(BaseModel):
    """Represents the complete observed state."""

    version: str = Field("1.0", description="State file format version")
    timestamp: datetime = Field(default_factory=_now, description="Last update timestamp")
    resources: Dict[str, ResourceState] = Field(
        default_factory=dict, description="Resources keyed by address (type.name)"
    )

    def add_resource(self, resource: ResourceState) -> None:
        self.resources[resource.address] = resource

    def remove_resource(self, address: str) -> Optional[ResourceState]:
        """Remove a resource from the state and return it."""
        return self.resources.pop(address, None)

    def get_resource(self, address: str) -> Optional[ResourceState]:
        return self.resources.get(address)

    def list_resources(self) -> List[ResourceState]:
        return list(self.resources.values())

    def change_for(self, resource: ResourceConfig) -> Change:
        """Build the change between stored and desired attributes.

        Args:
            resource: Desired resource configuration

        Returns:
            Change with the observed attributes as old ({} if untracked)
        """
        current = self.get_resource(resource.address)
        old = dict(current.attributes) if current is not None else {}
        return Change(old=old, new=dict(resource.attributes))

    def resource_data_for(self, resource: ResourceConfig) -> ResourceData:
        """Build the accessor used to plan and reconcile a configured resource.

        A resource with no tracked id is new, unless the configuration names
        an existing remote id to adopt.
        """
        current = self.get_resource(resource.address)
        resource_id = current.id if current is not None else None
        change = self.change_for(resource)

        if resource_id is None and resource.id is None:
            return ResourceData.for_create(change.new, resource.type)
        return ResourceData(change, resource_id=resource_id or resource.id, resource_type=resource.type)

    def removal_data_for(self, resource: ResourceState) -> ResourceData:
        """Build the accessor for a tracked resource that should be removed."""
        return ResourceData(
            Change(old=dict(resource.attributes), new={}),
            resource_id=resource.id,
            resource_type=resource.type,
        )

    def orphaned(self, resources: List[ResourceConfig]) -> List[ResourceState]:
        """Tracked resources no longer present in the configuration."""
        configured = {resource.address for resource in resources}
        return [state for address, state in self.resources.items() if address not in configured]

    def record(self, resource_type: str, name: str, d: ResourceData, dependencies: Optional[List[str]] = None) -> None:
        """Store the outcome of a reconcile; a cleared id drops the resource."""
        address = f"{resource_type}.{name}"
        if d.id is None:
            self.remove_resource(address)
            return
        self.add_resource(ResourceState(
            type=resource_type,
            name=name,
            id=d.id,
            attributes=dict(d.observed),
            dependencies=dependencies or [],
        ))
        self.timestamp = _now()

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "State":
        return cls.model_validate(data)
