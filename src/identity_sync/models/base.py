"""Base class for typed management API payloads."""

from typing import Any, ClassVar, Dict, Tuple

from pydantic import BaseModel, ConfigDict


class ApiModel(BaseModel):
    """Typed remote resource.

    Every field is optional; None means "omit from the request body".
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Map fields whose None values must be sent (e.g. to delete metadata keys)
    NULLABLE_MAPS: ClassVar[Tuple[str, ...]] = ()

    def to_payload(self) -> Dict[str, Any]:
        """Serialise for a request body, dropping omitted fields."""
        payload = self.model_dump(by_alias=True, exclude_none=True)
        for name in self.NULLABLE_MAPS:
            value = getattr(self, name)
            if value is not None:
                alias = type(self).model_fields[name].alias or name
                payload[alias] = dict(value)
        return payload

    def is_empty(self) -> bool:
        """True when the payload would be an empty JSON object."""
        return not self.to_payload()

    @classmethod
    def from_payload(cls, data: Dict[str, Any]):
        """Build the model from a response body."""
        return cls.model_validate(data)
