from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from uuid import UUID

from thinkboard.config import Config
from thinkboard.core.core import Core
from thinkboard.core.modules.attachment.models import AttachmentContent, AttachmentUpload
from thinkboard.core.modules.identity.service import AuthToken
from thinkboard.core.modules.note.filters import NoteFilter, NoteSort
from thinkboard.core.modules.note.models import Attachment, Note, NoteDraft, NotePatch, Permission, Reminder, ReminderDraft, Version
from thinkboard.core.modules.reminder.models import ReminderView
from thinkboard.core.modules.share.models import SharedNoteView, ShareLink
from thinkboard.core.modules.user.models import User, UserView
from thinkboard.core.pagination import PaginationResult


class App:
    """Facade for all application operations, authenticates the caller before delegating to Core."""

    def __init__(self, config: Config, core: Core | None = None) -> None:
        self._core = core if core is not None else Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def _authenticate(self, auth_token: AuthToken) -> User:
        return await self._core.services.identity.authenticate(auth_token)

    async def _actor_or_none(self, auth_token: AuthToken | None) -> UUID | None:
        if auth_token is None:
            return None
        return (await self._authenticate(auth_token)).id

    async def get_current_user(self, auth_token: AuthToken) -> UserView:
        """Get the authenticated user's directory entry."""
        user = await self._authenticate(auth_token)
        return UserView.from_domain(user)

    async def get_all_users(self, auth_token: AuthToken) -> list[UserView]:
        """Get all known users, e.g. for picking collaborators."""
        await self._authenticate(auth_token)
        return [UserView.from_domain(user) for user in self._core.services.user.get_all_users()]

    # --- Notes ---

    async def create_note(self, auth_token: AuthToken, draft: NoteDraft) -> Note:
        """Create a note owned by the current user."""
        user = await self._authenticate(auth_token)
        return await self._core.services.note.create_note(user.id, draft)

    async def get_note(self, auth_token: AuthToken, note_id: UUID) -> Note:
        user = await self._authenticate(auth_token)
        return await self._core.services.note.get_note(user.id, note_id)

    async def update_note(self, auth_token: AuthToken, note_id: UUID, patch: NotePatch) -> Note:
        """Partially update a note (owner or write collaborator)."""
        user = await self._authenticate(auth_token)
        return await self._core.services.note.update_note(user.id, note_id, patch)

    async def delete_note(self, auth_token: AuthToken, note_id: UUID) -> None:
        """Delete a note (owner only)."""
        user = await self._authenticate(auth_token)
        await self._core.services.note.delete_note(user.id, note_id)

    async def search_notes(
        self,
        auth_token: AuthToken,
        note_filter: NoteFilter | None = None,
        sort: NoteSort | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> PaginationResult[Note]:
        """Search the current user's own notes."""
        user = await self._authenticate(auth_token)
        return await self._core.services.note.search_notes(user.id, note_filter, sort, page, limit)

    async def list_tags(self, auth_token: AuthToken) -> list[str]:
        user = await self._authenticate(auth_token)
        return await self._core.services.note.list_tags(user.id)

    async def list_shared_with_me(self, auth_token: AuthToken, page: int = 1, limit: int = 10) -> PaginationResult[Note]:
        """Notes on which the current user is a collaborator."""
        user = await self._authenticate(auth_token)
        return await self._core.services.note.list_shared_with_me(user.id, page, limit)

    async def list_versions(self, auth_token: AuthToken, note_id: UUID) -> list[Version]:
        user = await self._authenticate(auth_token)
        return await self._core.services.note.list_versions(user.id, note_id)

    async def restore_version(self, auth_token: AuthToken, note_id: UUID, version_number: int) -> Note:
        user = await self._authenticate(auth_token)
        return await self._core.services.note.restore_version(user.id, note_id, version_number)

    async def set_collaborator(self, auth_token: AuthToken, note_id: UUID, username: str, permission: Permission) -> Note:
        """Grant a user read or write access to a note (owner only)."""
        user = await self._authenticate(auth_token)
        await self._core.services.note.get_managed_note(user.id, note_id)
        collaborator = self._core.services.user.resolve_user(username)
        return await self._core.services.note.set_collaborator(user.id, note_id, collaborator.id, permission)

    async def remove_collaborator(self, auth_token: AuthToken, note_id: UUID, username: str) -> Note:
        user = await self._authenticate(auth_token)
        await self._core.services.note.get_managed_note(user.id, note_id)
        collaborator = self._core.services.user.resolve_user(username)
        return await self._core.services.note.remove_collaborator(user.id, note_id, collaborator.id)

    # --- Attachments ---

    async def add_attachments(
        self, auth_token: AuthToken, note_id: UUID, uploads: Sequence[AttachmentUpload]
    ) -> list[Attachment]:
        """Upload files to a note (owner or write collaborator)."""
        user = await self._authenticate(auth_token)
        return await self._core.services.attachment.add_attachments(user.id, note_id, uploads)

    async def remove_attachment(self, auth_token: AuthToken, note_id: UUID, attachment_id: UUID) -> None:
        user = await self._authenticate(auth_token)
        await self._core.services.attachment.remove_attachment(user.id, note_id, attachment_id)

    async def get_attachment_content(
        self, auth_token: AuthToken | None, note_id: UUID, attachment_id: UUID
    ) -> AttachmentContent:
        """Download an attachment; anonymous callers succeed only through an active public share."""
        actor = await self._actor_or_none(auth_token)
        return await self._core.services.attachment.get_attachment_content(actor, note_id, attachment_id)

    # --- Sharing ---

    async def create_share(
        self,
        auth_token: AuthToken,
        note_id: UUID,
        is_public: bool,
        expires_at: datetime | None = None,
        allowed_users: Sequence[str] = (),
    ) -> ShareLink:
        """Create or replace the share link of a note (owner only)."""
        user = await self._authenticate(auth_token)
        await self._core.services.note.get_managed_note(user.id, note_id)
        allowed = [self._core.services.user.resolve_user(name).id for name in allowed_users]
        return await self._core.services.share.create_or_replace(user.id, note_id, is_public, expires_at, allowed)

    async def get_share(self, auth_token: AuthToken, note_id: UUID) -> ShareLink | None:
        user = await self._authenticate(auth_token)
        return await self._core.services.share.get_share(user.id, note_id)

    async def revoke_share(self, auth_token: AuthToken, note_id: UUID) -> None:
        user = await self._authenticate(auth_token)
        await self._core.services.share.revoke(user.id, note_id)

    async def resolve_share(self, auth_token: AuthToken | None, share_token: str) -> SharedNoteView:
        """Resolve a share link, anonymously or as the authenticated user."""
        actor = await self._actor_or_none(auth_token)
        return await self._core.services.share.resolve(share_token, actor)

    # --- Reminders ---

    async def add_reminder(self, auth_token: AuthToken, note_id: UUID, draft: ReminderDraft) -> Reminder:
        user = await self._authenticate(auth_token)
        return await self._core.services.note.add_reminder(user.id, note_id, draft)

    async def set_reminder_completed(
        self, auth_token: AuthToken, note_id: UUID, reminder_id: UUID, completed: bool
    ) -> Reminder:
        user = await self._authenticate(auth_token)
        return await self._core.services.note.set_reminder_completed(user.id, note_id, reminder_id, completed)

    async def delete_reminder(self, auth_token: AuthToken, note_id: UUID, reminder_id: UUID) -> None:
        user = await self._authenticate(auth_token)
        await self._core.services.note.delete_reminder(user.id, note_id, reminder_id)

    async def get_upcoming_reminders(self, auth_token: AuthToken, limit: int = 10) -> list[ReminderView]:
        user = await self._authenticate(auth_token)
        return await self._core.services.reminder.get_upcoming(user.id, limit)

    async def get_today_reminders(self, auth_token: AuthToken) -> list[ReminderView]:
        user = await self._authenticate(auth_token)
        return await self._core.services.reminder.get_today(user.id)
