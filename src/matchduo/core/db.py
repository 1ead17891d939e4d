"""MongoDB document base model and connection helpers."""

from typing import Any, Self
from urllib.parse import urlparse
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class MongoModel(BaseModel):
    """Document keyed by a UUID stored as ``_id``."""

    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)

    model_config = ConfigDict(populate_by_name=True)

    def to_mongo(self) -> dict[str, Any]:
        data = self.model_dump()
        data["_id"] = data.pop("id")
        return data

    @classmethod
    def from_mongo(cls, document: dict[str, Any] | None) -> Self | None:
        """Build a model from a raw document; None stays None so lookups can return it directly."""
        if document is None:
            return None
        return cls.model_validate(document)


def database_name(database_url: str) -> str:
    """Database name from the path part of a MongoDB URL, e.g. ``mongodb://host/matchduo``."""
    name = urlparse(database_url).path.lstrip("/")
    if not name:
        raise ValueError("database_url must name a database")
    return name
