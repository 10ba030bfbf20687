from typing import Any, Protocol
from uuid import UUID

from pymongo.asynchronous.collection import AsyncCollection

from thinkboard.core.db import storage_errors
from thinkboard.core.modules.user.models import User


class UserStore(Protocol):
    async def on_start(self) -> None: ...

    async def list_all(self) -> list[User]: ...

    async def upsert(self, user: User) -> None: ...


class MongoUserStore:
    def __init__(self, collection: AsyncCollection[dict[str, Any]]) -> None:
        self._collection = collection

    async def on_start(self) -> None:
        await self._collection.create_index([("username", 1)])

    async def list_all(self) -> list[User]:
        with storage_errors():
            return await User.list_cursor(self._collection.find())

    async def upsert(self, user: User) -> None:
        with storage_errors():
            await self._collection.replace_one({"_id": user.id}, user.to_mongo(), upsert=True)


class MemoryUserStore:
    def __init__(self) -> None:
        self._users: dict[UUID, User] = {}

    async def on_start(self) -> None:
        pass

    async def list_all(self) -> list[User]:
        return list(self._users.values())

    async def upsert(self, user: User) -> None:
        self._users[user.id] = user
