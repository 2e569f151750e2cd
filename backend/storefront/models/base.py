"""
Base schema configuration.

API payloads use camelCase keys (``numOfReviews``, ``shippingInfo``) while
Python code uses snake_case attributes; both are accepted on input.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_json(self) -> dict:
        """JSON-compatible dict with API field names, as cached and returned."""
        return self.model_dump(mode="json", by_alias=True)
