from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Self
from uuid import UUID, uuid4

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pymongo.asynchronous.cursor import AsyncCursor
from pymongo.errors import ConnectionFailure

from thinkboard.errors import StorageUnavailable

logger = structlog.get_logger(__name__)


class MongoModel(BaseModel):
    """Document model whose `id` is stored as MongoDB `_id`.

    Also used by the in-memory stores, which keep the models themselves.
    """

    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        json_schema_serialization_defaults_required=True,
    )

    def to_mongo(self) -> dict[str, Any]:
        """Dump for MongoDB storage, renaming id to _id."""
        data = self.model_dump()
        data["_id"] = data.pop("id")
        return data

    @classmethod
    def from_mongo(cls, doc: Mapping[str, Any] | None) -> Self | None:
        """Validate a document returned by find_one and friends; None passes through."""
        return cls.model_validate(doc) if doc else None

    @classmethod
    async def list_cursor(cls, cursor: AsyncCursor[dict[str, Any]]) -> list[Self]:
        """Drain an AsyncCursor into model instances."""
        return [cls.model_validate(item) async for item in cursor]


@contextmanager
def storage_errors() -> Iterator[None]:
    """Translate lost database connectivity into StorageUnavailable."""
    try:
        yield
    except ConnectionFailure as e:
        logger.exception("storage_unavailable", error=str(e))
        raise StorageUnavailable from e
