"""Persistence of note aggregates.

Every write is conditional on the stored revision. A writer holding a
stale copy gets ConflictError and must redo its read-modify-write.
"""

import asyncio
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

import structlog
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from thinkboard.core.db import storage_errors
from thinkboard.core.modules.note.filters import (
    NoteFilter,
    NoteSort,
    build_mongo_query,
    build_mongo_sort,
    matches_filter,
    sort_notes,
)
from thinkboard.core.modules.note.models import Note
from thinkboard.core.pagination import page_offset
from thinkboard.errors import ConflictError, NotFoundOrForbidden

logger = structlog.get_logger(__name__)


class ShareTokenCollision(ConflictError):
    """Raised when a write would give two notes the same share token."""

    def __init__(self) -> None:
        super().__init__("Share token already in use")


class NoteStore(Protocol):
    async def on_start(self) -> None: ...

    async def insert(self, note: Note) -> Note: ...

    async def get(self, note_id: UUID) -> Note | None: ...

    async def save(self, note: Note, expected_revision: int) -> Note:
        """Replace the stored note if its revision still equals expected_revision.

        Returns the stored note with its new revision.

        Raises:
            ConflictError: If the note was written since it was read
            ShareTokenCollision: If the share token is used by another note
            NotFoundOrForbidden: If the note no longer exists
        """
        ...

    async def delete(self, note_id: UUID) -> Note | None: ...

    async def find_by_share_token(self, token: str) -> Note | None: ...

    async def search(
        self, owner_id: UUID, note_filter: NoteFilter, sort: NoteSort, page: int, limit: int
    ) -> tuple[list[Note], int]: ...

    async def list_collaborating(self, user_id: UUID, page: int, limit: int) -> tuple[list[Note], int]: ...

    async def list_tags(self, owner_id: UUID) -> list[str]: ...

    async def find_due_reminders(self, window_start: datetime, window_end: datetime) -> list[Note]:
        """Notes having at least one reminder due in the window that is neither completed nor notified."""
        ...

    async def find_owner_reminders(self, owner_id: UUID, start: datetime, end: datetime | None) -> list[Note]:
        """Owner's notes having at least one reminder dated in [start, end] (end None = unbounded)."""
        ...

    async def mark_reminder_notified(self, note_id: UUID, reminder_id: UUID) -> bool:
        """Atomically set notification_sent on a reminder that has not been notified yet.

        Returns False if the reminder is gone or was already marked.
        """
        ...


class MongoNoteStore:
    """Notes stored as single documents with embedded versions, reminders and attachments."""

    def __init__(self, collection: AsyncCollection[dict[str, Any]]) -> None:
        self._collection = collection

    async def on_start(self) -> None:
        """Create indexes for owner listing, collaborator lookup, reminders and share tokens."""
        await self._collection.create_index([("owner_id", 1), ("last_modified", -1)])
        await self._collection.create_index([("collaborators.user_id", 1)])
        await self._collection.create_index([("reminders.reminder_date", 1)])
        await self._collection.create_index(
            [("sharing.share_token", 1)],
            unique=True,
            partialFilterExpression={"sharing.share_token": {"$type": "string"}},
        )

    async def insert(self, note: Note) -> Note:
        with storage_errors():
            try:
                await self._collection.insert_one(note.to_mongo())
            except DuplicateKeyError as e:
                raise ShareTokenCollision from e
        return note

    async def get(self, note_id: UUID) -> Note | None:
        with storage_errors():
            doc = await self._collection.find_one({"_id": note_id})
        return Note.from_mongo(doc)

    async def save(self, note: Note, expected_revision: int) -> Note:
        stored = note.model_copy(update={"revision": expected_revision + 1})
        with storage_errors():
            try:
                result = await self._collection.replace_one(
                    {"_id": note.id, "revision": expected_revision}, stored.to_mongo()
                )
            except DuplicateKeyError as e:
                raise ShareTokenCollision from e
            if result.matched_count == 0:
                if await self._collection.count_documents({"_id": note.id}, limit=1) == 0:
                    raise NotFoundOrForbidden
                raise ConflictError
        return stored

    async def delete(self, note_id: UUID) -> Note | None:
        with storage_errors():
            doc = await self._collection.find_one_and_delete({"_id": note_id})
        return Note.from_mongo(doc)

    async def find_by_share_token(self, token: str) -> Note | None:
        with storage_errors():
            doc = await self._collection.find_one({"sharing.share_token": token})
        return Note.from_mongo(doc)

    async def search(
        self, owner_id: UUID, note_filter: NoteFilter, sort: NoteSort, page: int, limit: int
    ) -> tuple[list[Note], int]:
        query = build_mongo_query(owner_id, note_filter)
        with storage_errors():
            total = await self._collection.count_documents(query)
            cursor = self._collection.find(query).sort(build_mongo_sort(sort)).skip(page_offset(page, limit)).limit(limit)
            notes = await Note.list_cursor(cursor)
        logger.debug("search_notes", owner_id=owner_id, query=query, total=total, page=page, returned=len(notes))
        return notes, total

    async def list_collaborating(self, user_id: UUID, page: int, limit: int) -> tuple[list[Note], int]:
        query = {"collaborators.user_id": user_id}
        with storage_errors():
            total = await self._collection.count_documents(query)
            cursor = self._collection.find(query).sort("last_modified", -1).skip(page_offset(page, limit)).limit(limit)
            notes = await Note.list_cursor(cursor)
        return notes, total

    async def list_tags(self, owner_id: UUID) -> list[str]:
        with storage_errors():
            tags = await self._collection.distinct("tags", {"owner_id": owner_id})
        return sorted(str(tag) for tag in tags)

    async def find_due_reminders(self, window_start: datetime, window_end: datetime) -> list[Note]:
        query = {
            "reminders": {
                "$elemMatch": {
                    "reminder_date": {"$gte": window_start, "$lte": window_end},
                    "is_completed": False,
                    "notification_sent": False,
                }
            }
        }
        with storage_errors():
            return await Note.list_cursor(self._collection.find(query))

    async def find_owner_reminders(self, owner_id: UUID, start: datetime, end: datetime | None) -> list[Note]:
        date_range: dict[str, datetime] = {"$gte": start}
        if end is not None:
            date_range["$lte"] = end
        query = {"owner_id": owner_id, "reminders": {"$elemMatch": {"reminder_date": date_range}}}
        with storage_errors():
            return await Note.list_cursor(self._collection.find(query))

    async def mark_reminder_notified(self, note_id: UUID, reminder_id: UUID) -> bool:
        with storage_errors():
            result = await self._collection.update_one(
                {"_id": note_id, "reminders": {"$elemMatch": {"id": reminder_id, "notification_sent": False}}},
                {"$set": {"reminders.$.notification_sent": True}, "$inc": {"revision": 1}},
            )
        return result.modified_count == 1


class MemoryNoteStore:
    """In-process note store with the same semantics as MongoNoteStore."""

    def __init__(self) -> None:
        self._notes: dict[UUID, Note] = {}
        self._lock = asyncio.Lock()

    async def on_start(self) -> None:
        pass

    def _token_taken(self, note: Note) -> bool:
        if note.sharing is None:
            return False
        token = note.sharing.share_token
        return any(
            other.id != note.id and other.sharing is not None and other.sharing.share_token == token
            for other in self._notes.values()
        )

    async def insert(self, note: Note) -> Note:
        async with self._lock:
            if self._token_taken(note):
                raise ShareTokenCollision
            self._notes[note.id] = note.model_copy(deep=True)
        return note

    async def get(self, note_id: UUID) -> Note | None:
        note = self._notes.get(note_id)
        return note.model_copy(deep=True) if note else None

    async def save(self, note: Note, expected_revision: int) -> Note:
        async with self._lock:
            current = self._notes.get(note.id)
            if current is None:
                raise NotFoundOrForbidden
            if current.revision != expected_revision:
                raise ConflictError
            if self._token_taken(note):
                raise ShareTokenCollision
            stored = note.model_copy(update={"revision": expected_revision + 1}, deep=True)
            self._notes[note.id] = stored
        return stored.model_copy(deep=True)

    async def delete(self, note_id: UUID) -> Note | None:
        async with self._lock:
            return self._notes.pop(note_id, None)

    async def find_by_share_token(self, token: str) -> Note | None:
        for note in self._notes.values():
            if note.sharing is not None and note.sharing.share_token == token:
                return note.model_copy(deep=True)
        return None

    async def search(
        self, owner_id: UUID, note_filter: NoteFilter, sort: NoteSort, page: int, limit: int
    ) -> tuple[list[Note], int]:
        matched = [n for n in self._notes.values() if matches_filter(n, owner_id, note_filter)]
        ordered = sort_notes(matched, sort)
        offset = page_offset(page, limit)
        return [n.model_copy(deep=True) for n in ordered[offset : offset + limit]], len(matched)

    async def list_collaborating(self, user_id: UUID, page: int, limit: int) -> tuple[list[Note], int]:
        matched = [n for n in self._notes.values() if n.permission_for(user_id) is not None]
        ordered = sorted(matched, key=lambda n: n.last_modified, reverse=True)
        offset = page_offset(page, limit)
        return [n.model_copy(deep=True) for n in ordered[offset : offset + limit]], len(matched)

    async def list_tags(self, owner_id: UUID) -> list[str]:
        return sorted({tag for n in self._notes.values() if n.owner_id == owner_id for tag in n.tags})

    async def find_due_reminders(self, window_start: datetime, window_end: datetime) -> list[Note]:
        return [
            n.model_copy(deep=True)
            for n in self._notes.values()
            if any(r.is_due(window_start, window_end) for r in n.reminders)
        ]

    async def find_owner_reminders(self, owner_id: UUID, start: datetime, end: datetime | None) -> list[Note]:
        return [
            n.model_copy(deep=True)
            for n in self._notes.values()
            if n.owner_id == owner_id
            and any(r.reminder_date >= start and (end is None or r.reminder_date <= end) for r in n.reminders)
        ]

    async def mark_reminder_notified(self, note_id: UUID, reminder_id: UUID) -> bool:
        async with self._lock:
            note = self._notes.get(note_id)
            if note is None:
                return False
            reminder = note.get_reminder(reminder_id)
            if reminder is None or reminder.notification_sent:
                return False
            reminders = [
                r.model_copy(update={"notification_sent": True}) if r.id == reminder_id else r for r in note.reminders
            ]
            self._notes[note_id] = note.model_copy(update={"reminders": reminders, "revision": note.revision + 1})
        return True
