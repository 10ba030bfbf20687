"""Search filters and how each store interprets them."""

import re
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from thinkboard.core.modules.note.models import Note, NoteCategory, NotePriority
from thinkboard.core.modules.note.validators import normalize_tags
from thinkboard.utils import ensure_utc


class SortField(StrEnum):
    LAST_MODIFIED = "last_modified"
    CREATED_AT = "created_at"
    TITLE = "title"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


class NoteFilter(BaseModel):
    """Search criteria over an owner's notes. Unset criteria match everything."""

    text: str | None = Field(None, description="Case-insensitive substring over title and content")
    tags: list[str] | None = Field(None, description="Match notes having any of these tags")
    category: NoteCategory | None = None
    priority: NotePriority | None = None
    is_favorite: bool | None = None
    created_from: datetime | None = Field(None, description="Inclusive lower bound on created_at")
    created_to: datetime | None = Field(None, description="Inclusive upper bound on created_at")

    @field_validator("created_from", "created_to")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None

    def normalized_tags(self) -> list[str]:
        return normalize_tags(self.tags or [])

    def normalized_text(self) -> str | None:
        if self.text is None or not self.text.strip():
            return None
        return self.text.strip()


class NoteSort(BaseModel):
    field: SortField = SortField.LAST_MODIFIED
    order: SortOrder = SortOrder.DESC


def build_mongo_query(owner_id: UUID, note_filter: NoteFilter) -> dict[str, Any]:
    """Build MongoDB query document for an owner's notes.

    Args:
        owner_id: Only notes owned by this user match
        note_filter: Search criteria

    Returns:
        MongoDB query document
    """
    query: dict[str, Any] = {"owner_id": owner_id}

    tags = note_filter.normalized_tags()
    if tags:
        query["tags"] = {"$in": tags}
    if note_filter.category is not None:
        query["category"] = note_filter.category
    if note_filter.priority is not None:
        query["priority"] = note_filter.priority
    if note_filter.is_favorite is not None:
        query["is_favorite"] = note_filter.is_favorite

    created: dict[str, datetime] = {}
    if note_filter.created_from is not None:
        created["$gte"] = note_filter.created_from
    if note_filter.created_to is not None:
        created["$lte"] = note_filter.created_to
    if created:
        query["created_at"] = created

    text = note_filter.normalized_text()
    if text is not None:
        pattern = {"$regex": re.escape(text), "$options": "i"}
        query["$or"] = [{"title": pattern}, {"content": pattern}]

    return query


def build_mongo_sort(sort: NoteSort) -> list[tuple[str, int]]:
    """Build the MongoDB sort order, with _id as a stable tie-breaker."""
    direction = -1 if sort.order == SortOrder.DESC else 1
    return [(sort.field.value, direction), ("_id", direction)]


def matches_filter(note: Note, owner_id: UUID, note_filter: NoteFilter) -> bool:
    """In-process equivalent of build_mongo_query."""
    if note.owner_id != owner_id:
        return False

    tags = note_filter.normalized_tags()
    if tags and not set(tags) & set(note.tags):
        return False
    if note_filter.category is not None and note.category != note_filter.category:
        return False
    if note_filter.priority is not None and note.priority != note_filter.priority:
        return False
    if note_filter.is_favorite is not None and note.is_favorite != note_filter.is_favorite:
        return False
    if note_filter.created_from is not None and note.created_at < note_filter.created_from:
        return False
    if note_filter.created_to is not None and note.created_at > note_filter.created_to:
        return False

    text = note_filter.normalized_text()
    if text is not None:
        needle = text.lower()
        if needle not in note.title.lower() and needle not in note.content.lower():
            return False

    return True


def sort_notes(notes: list[Note], sort: NoteSort) -> list[Note]:
    """In-process equivalent of build_mongo_sort."""
    reverse = sort.order == SortOrder.DESC
    return sorted(notes, key=lambda n: (getattr(n, sort.field.value), str(n.id)), reverse=reverse)
