"""Pure functions maintaining the append-only version history of a note.

Every save that touches title, content or tags appends exactly one
Version numbered current_version + 1. Versions are never edited or
removed; restoring an old version appends a copy of it.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from thinkboard.core.modules.note.models import Note, NotePatch, Version
from thinkboard.core.modules.note.validators import normalize_tags, validate_content, validate_title
from thinkboard.errors import VersionNotFound

CONTENT_FIELDS = frozenset({"title", "content", "tags"})


def make_version(
    version_number: int, title: str, content: str, tags: list[str], created_by: UUID, created_at: datetime
) -> Version:
    return Version(
        version_number=version_number,
        title=title,
        content=content,
        tags=list(tags),
        created_by=created_by,
        created_at=created_at,
    )


def creates_version(patch: NotePatch) -> bool:
    """Whether applying the patch must append a new version."""
    return any(getattr(patch, name) is not None for name in CONTENT_FIELDS)


def append_version(note: Note, title: str, content: str, tags: list[str], actor: UUID, at: datetime) -> tuple[Note, Version]:
    """Return a copy of the note with live content replaced and one version appended."""
    version = make_version(note.current_version + 1, title, content, tags, actor, at)
    updated = note.model_copy(
        update={
            "title": title,
            "content": content,
            "tags": list(tags),
            "versions": [*note.versions, version],
            "current_version": version.version_number,
            "last_modified": at,
        }
    )
    return updated, version


def apply_patch(note: Note, patch: NotePatch, actor: UUID, at: datetime) -> tuple[Note, Version | None]:
    """Apply a partial update.

    Content fields are merged (patch value if present, else current) into a new
    version. Other fields only update last_modified.

    Raises:
        ValidationError: If a patched title, content or tag is invalid
    """
    metadata: dict[str, Any] = {"last_modified": at}
    if patch.category is not None:
        metadata["category"] = patch.category
    if patch.priority is not None:
        metadata["priority"] = patch.priority
    if patch.is_favorite is not None:
        metadata["is_favorite"] = patch.is_favorite

    updated = note.model_copy(update=metadata)
    if not creates_version(patch):
        return updated, None

    title = validate_title(patch.title) if patch.title is not None else note.title
    content = validate_content(patch.content) if patch.content is not None else note.content
    tags = normalize_tags(patch.tags) if patch.tags is not None else note.tags
    return append_version(updated, title, content, tags, actor, at)


def restore_version(note: Note, version_number: int, actor: UUID, at: datetime) -> tuple[Note, Version]:
    """Append a new version copying an earlier one and make it live.

    Restoring the current version still appends a history entry.

    Raises:
        VersionNotFound: If no version has that number
    """
    target = note.get_version(version_number)
    if target is None:
        raise VersionNotFound(f"Version {version_number} not found")
    return append_version(note, target.title, target.content, target.tags, actor, at)
