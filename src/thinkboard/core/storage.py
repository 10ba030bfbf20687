from typing import Any
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient

from thinkboard.config import Config
from thinkboard.core.modules.attachment.storage import BlobStore, LocalBlobStore
from thinkboard.core.modules.note.store import MemoryNoteStore, MongoNoteStore, NoteStore
from thinkboard.core.modules.user.store import MemoryUserStore, MongoUserStore, UserStore

logger = structlog.get_logger(__name__)

MEMORY_SCHEME = "memory"


class Storage:
    """Backing stores shared by all services."""

    def __init__(
        self,
        notes: NoteStore,
        users: UserStore,
        blobs: BlobStore,
        mongo_client: AsyncMongoClient[dict[str, Any]] | None = None,
    ) -> None:
        self.notes = notes
        self.users = users
        self.blobs = blobs
        self._mongo_client = mongo_client

    @classmethod
    def from_config(cls, config: Config) -> "Storage":
        """Open MongoDB stores, or in-process stores for a memory:// URL."""
        blobs = LocalBlobStore(config.attachments_path)
        url = urlparse(config.database_url)
        if url.scheme == MEMORY_SCHEME:
            return cls(notes=MemoryNoteStore(), users=MemoryUserStore(), blobs=blobs)

        client: AsyncMongoClient[dict[str, Any]] = AsyncMongoClient(
            config.database_url, uuidRepresentation="standard", tz_aware=True
        )
        database = client.get_database(url.path[1:])
        return cls(
            notes=MongoNoteStore(database.get_collection("notes")),
            users=MongoUserStore(database.get_collection("users")),
            blobs=blobs,
            mongo_client=client,
        )

    async def on_start(self) -> None:
        await self.notes.on_start()
        await self.users.on_start()
        logger.debug("storage_started", backend="mongodb" if self._mongo_client else MEMORY_SCHEME)

    async def on_stop(self) -> None:
        if self._mongo_client is not None:
            await self._mongo_client.aclose()
