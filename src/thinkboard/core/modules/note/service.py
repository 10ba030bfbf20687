from collections.abc import Callable
from uuid import UUID

import structlog

from thinkboard.core.core import Service
from thinkboard.core.modules.note.filters import NoteFilter, NoteSort
from thinkboard.core.modules.note.models import (
    Collaborator,
    Note,
    NoteDraft,
    NotePatch,
    Permission,
    Reminder,
    ReminderDraft,
    Version,
)
from thinkboard.core.modules.note.validators import (
    normalize_tags,
    parse_reminder_date,
    validate_content,
    validate_reminder_description,
    validate_reminder_title,
    validate_title,
)
from thinkboard.core.modules.note.versioning import apply_patch, make_version, restore_version
from thinkboard.core.pagination import PaginationResult
from thinkboard.errors import BlobStoreError, ConflictError, NotFoundOrForbidden, ReminderNotFound, ValidationError

logger = structlog.get_logger(__name__)

MAX_PAGE_SIZE = 100


def validate_pagination(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError("Page must be at least 1", field="page")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")


class NoteService(Service):
    """Mutation API of the note aggregate: versioned content, collaborators and reminders."""

    async def _load(self, note_id: UUID) -> Note:
        note = await self.storage.notes.get(note_id)
        if note is None:
            raise NotFoundOrForbidden
        return note

    async def mutate(self, note_id: UUID, mutation: Callable[[Note], Note]) -> Note:
        """Run a read-modify-write cycle on a note under optimistic concurrency.

        `mutation` receives the freshly loaded note and returns the updated copy,
        raising to abort. When another writer got in between, the whole cycle is
        repeated up to `conflict_retries` times before ConflictError surfaces.
        """
        attempt = 0
        while True:
            note = await self._load(note_id)
            updated = mutation(note)
            try:
                return await self.storage.notes.save(updated, note.revision)
            except ConflictError:
                attempt += 1
                if attempt > self.core.config.conflict_retries:
                    logger.warning("note_write_conflict", note_id=note_id, attempts=attempt)
                    raise
                logger.debug("note_write_retry", note_id=note_id, attempt=attempt)

    async def get_note(self, actor: UUID | None, note_id: UUID) -> Note:
        """Get note if the actor may read it."""
        note = await self._load(note_id)
        self.core.services.access.ensure_can_read(actor, note)
        return note

    async def get_managed_note(self, actor: UUID, note_id: UUID) -> Note:
        """Get note if the actor may change its sharing and collaborators."""
        note = await self._load(note_id)
        self.core.services.access.ensure_can_manage(actor, note)
        return note

    async def create_note(self, owner_id: UUID, draft: NoteDraft) -> Note:
        """Create a note owned by owner_id with version 1 as its initial history."""
        title = validate_title(draft.title)
        content = validate_content(draft.content)
        tags = normalize_tags(draft.tags)
        reminders = [self._build_reminder(r) for r in draft.reminders]
        timestamp = self.core.clock.now()

        note = Note(
            owner_id=owner_id,
            title=title,
            content=content,
            tags=tags,
            category=draft.category,
            priority=draft.priority,
            reminders=reminders,
            versions=[make_version(1, title, content, tags, owner_id, timestamp)],
            current_version=1,
            created_at=timestamp,
            last_modified=timestamp,
        )
        await self.storage.notes.insert(note)
        logger.info("note_created", note_id=note.id, owner_id=owner_id)
        return note

    async def update_note(self, actor: UUID, note_id: UUID, patch: NotePatch) -> Note:
        """Apply a partial update; content changes append exactly one version."""
        created: list[Version] = []

        def mutation(note: Note) -> Note:
            self.core.services.access.ensure_can_write(actor, note)
            if patch.is_favorite is not None:
                self.core.services.access.ensure_can_manage(actor, note)
            updated, version = apply_patch(note, patch, actor, self.core.clock.now())
            created[:] = [version] if version else []
            return updated

        note = await self.mutate(note_id, mutation)
        logger.info(
            "note_updated",
            note_id=note_id,
            actor=actor,
            version=created[0].version_number if created else None,
        )
        return note

    async def restore_version(self, actor: UUID, note_id: UUID, version_number: int) -> Note:
        """Append a copy of an earlier version as the new current version."""

        def mutation(note: Note) -> Note:
            self.core.services.access.ensure_can_write(actor, note)
            updated, _ = restore_version(note, version_number, actor, self.core.clock.now())
            return updated

        note = await self.mutate(note_id, mutation)
        logger.info("note_restored", note_id=note_id, restored=version_number, version=note.current_version)
        return note

    async def list_versions(self, actor: UUID, note_id: UUID) -> list[Version]:
        """Version history, newest first."""
        note = await self.get_note(actor, note_id)
        return sorted(note.versions, key=lambda v: v.version_number, reverse=True)

    async def delete_note(self, actor: UUID, note_id: UUID) -> None:
        """Delete a note (owner only) and release its attachment blobs.

        Blob release is best effort: failures are logged and the note stays deleted.
        """
        note = await self._load(note_id)
        self.core.services.access.ensure_can_delete(actor, note)
        deleted = await self.storage.notes.delete(note_id)
        if deleted is None:
            raise NotFoundOrForbidden

        for attachment in deleted.attachments:
            try:
                await self.storage.blobs.delete(attachment.storage_path)
            except BlobStoreError as e:
                logger.warning(
                    "attachment_release_failed", note_id=note_id, attachment_id=attachment.id, error=str(e)
                )
        logger.info("note_deleted", note_id=note_id, attachments=len(deleted.attachments))

    async def search_notes(
        self,
        owner_id: UUID,
        note_filter: NoteFilter | None = None,
        sort: NoteSort | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> PaginationResult[Note]:
        """Search the owner's own notes. Notes shared with the owner are listed separately."""
        validate_pagination(page, limit)
        notes, total = await self.storage.notes.search(owner_id, note_filter or NoteFilter(), sort or NoteSort(), page, limit)
        return PaginationResult(items=notes, total=total, page=page, limit=limit)

    async def list_shared_with_me(self, actor: UUID, page: int = 1, limit: int = 10) -> PaginationResult[Note]:
        """Notes on which the actor is a collaborator."""
        validate_pagination(page, limit)
        notes, total = await self.storage.notes.list_collaborating(actor, page, limit)
        return PaginationResult(items=notes, total=total, page=page, limit=limit)

    async def list_tags(self, owner_id: UUID) -> list[str]:
        """All distinct tags used on the owner's notes."""
        return await self.storage.notes.list_tags(owner_id)

    async def set_collaborator(self, actor: UUID, note_id: UUID, user_id: UUID, permission: Permission) -> Note:
        """Grant or change a collaborator's permission (owner only)."""

        def mutation(note: Note) -> Note:
            self.core.services.access.ensure_can_manage(actor, note)
            self.core.services.user.get_user(user_id)
            if user_id == note.owner_id:
                raise ValidationError("The owner cannot be added as a collaborator", field="user")
            others = [c for c in note.collaborators if c.user_id != user_id]
            collaborator = Collaborator(user_id=user_id, permission=permission, added_at=self.core.clock.now())
            return note.model_copy(update={"collaborators": [*others, collaborator]})

        note = await self.mutate(note_id, mutation)
        logger.info("collaborator_set", note_id=note_id, user_id=user_id, permission=permission)
        return note

    async def remove_collaborator(self, actor: UUID, note_id: UUID, user_id: UUID) -> Note:
        def mutation(note: Note) -> Note:
            self.core.services.access.ensure_can_manage(actor, note)
            return note.model_copy(update={"collaborators": [c for c in note.collaborators if c.user_id != user_id]})

        return await self.mutate(note_id, mutation)

    def _build_reminder(self, draft: ReminderDraft) -> Reminder:
        return Reminder(
            title=validate_reminder_title(draft.title),
            description=validate_reminder_description(draft.description),
            reminder_date=parse_reminder_date(draft.reminder_date),
            created_at=self.core.clock.now(),
        )

    async def add_reminder(self, actor: UUID, note_id: UUID, draft: ReminderDraft) -> Reminder:
        """Attach a pending reminder to the note."""
        reminder = self._build_reminder(draft)

        def mutation(note: Note) -> Note:
            self.core.services.access.ensure_can_write(actor, note)
            return note.model_copy(update={"reminders": [*note.reminders, reminder]})

        await self.mutate(note_id, mutation)
        logger.info("reminder_added", note_id=note_id, reminder_id=reminder.id, reminder_date=reminder.reminder_date)
        return reminder

    async def set_reminder_completed(self, actor: UUID, note_id: UUID, reminder_id: UUID, completed: bool) -> Reminder:
        def mutation(note: Note) -> Note:
            self.core.services.access.ensure_can_write(actor, note)
            if note.get_reminder(reminder_id) is None:
                raise ReminderNotFound
            reminders = [
                r.model_copy(update={"is_completed": completed}) if r.id == reminder_id else r for r in note.reminders
            ]
            return note.model_copy(update={"reminders": reminders})

        note = await self.mutate(note_id, mutation)
        reminder = note.get_reminder(reminder_id)
        if reminder is None:
            raise ReminderNotFound
        return reminder

    async def delete_reminder(self, actor: UUID, note_id: UUID, reminder_id: UUID) -> None:
        def mutation(note: Note) -> Note:
            self.core.services.access.ensure_can_write(actor, note)
            if note.get_reminder(reminder_id) is None:
                raise ReminderNotFound
            return note.model_copy(update={"reminders": [r for r in note.reminders if r.id != reminder_id]})

        await self.mutate(note_id, mutation)
