"""Shared model configuration"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model serialized with the backend's camelCase field names"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def to_wire(self) -> dict:
        """Dump using camelCase keys, JSON-compatible values"""
        return self.model_dump(by_alias=True, mode="json")
