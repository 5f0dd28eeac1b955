"""Base model shared by all booking DTOs."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialises to camelCase JSON, accepts both camelCase and snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        """Dump to the JSON form stored in the key-value cache."""
        return self.model_dump_json(by_alias=True)
