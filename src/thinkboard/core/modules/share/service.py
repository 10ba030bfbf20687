import secrets
from datetime import datetime
from uuid import UUID

import structlog

from thinkboard.core.core import Service
from thinkboard.core.modules.note.models import Note, ShareRecord
from thinkboard.core.modules.note.store import ShareTokenCollision
from thinkboard.core.modules.share.models import SharedNoteView, ShareLink
from thinkboard.core.modules.user.models import UserView
from thinkboard.errors import AccessDeniedError, ExpiredError, NotFoundError, NotFoundOrForbidden
from thinkboard.utils import ensure_utc

logger = structlog.get_logger(__name__)

SHARE_TOKEN_BYTES = 32  # 256 bits of randomness
SHARE_TOKEN_ATTEMPTS = 3  # Token collisions are retried independently of conflict_retries


def generate_share_token() -> str:
    return secrets.token_urlsafe(SHARE_TOKEN_BYTES)


class ShareService(Service):
    """Creates, resolves and revokes share links.

    A note has at most one share record. Creating a new one replaces the
    previous record, so the old token stops resolving at once.
    """

    def build_link(self, record: ShareRecord) -> ShareLink:
        return ShareLink.from_record(record, self.core.config.frontend_url)

    async def create_or_replace(
        self,
        actor: UUID,
        note_id: UUID,
        is_public: bool,
        expires_at: datetime | None = None,
        allowed_users: list[UUID] | None = None,
    ) -> ShareLink:
        """Create a share link for a note, replacing any existing one.

        An expiry in the past is accepted and yields an already expired link.

        Raises:
            NotFoundOrForbidden: If the note is missing or the actor is not its owner
        """
        expiry = ensure_utc(expires_at) if expires_at is not None else None
        allowed = list(dict.fromkeys(allowed_users or []))

        def mutation(note: Note) -> Note:
            self.core.services.access.ensure_can_manage(actor, note)
            # Fresh token on every attempt so a collision is never repeated
            record = ShareRecord(
                share_token=generate_share_token(),
                is_public=is_public,
                expires_at=expiry,
                allowed_users=allowed,
                created_at=self.core.clock.now(),
            )
            return note.model_copy(update={"sharing": record})

        for attempt in range(1, SHARE_TOKEN_ATTEMPTS + 1):
            try:
                note = await self.core.services.note.mutate(note_id, mutation)
                break
            except ShareTokenCollision:
                if attempt == SHARE_TOKEN_ATTEMPTS:
                    raise
                logger.warning("share_token_collision", note_id=note_id, attempt=attempt)
        if note.sharing is None:
            raise NotFoundOrForbidden
        logger.info("share_created", note_id=note_id, is_public=is_public, expires_at=expiry)
        return self.build_link(note.sharing)

    async def get_share(self, actor: UUID, note_id: UUID) -> ShareLink | None:
        """Current share link of an owned note, if any."""
        note = await self.core.services.note.get_note(actor, note_id)
        self.core.services.access.ensure_can_manage(actor, note)
        return self.build_link(note.sharing) if note.sharing else None

    async def revoke(self, actor: UUID, note_id: UUID) -> None:
        def mutation(note: Note) -> Note:
            self.core.services.access.ensure_can_manage(actor, note)
            return note.model_copy(update={"sharing": None})

        await self.core.services.note.mutate(note_id, mutation)
        logger.info("share_revoked", note_id=note_id)

    async def resolve(self, token: str, actor: UUID | None = None) -> SharedNoteView:
        """Resolve a share token to a read-only view of the note.

        Raises:
            NotFoundError: If no note carries the token
            ExpiredError: If the link is past its expiry
            AccessDeniedError: If the link is private and the actor may not read the note
        """
        note = await self.storage.notes.find_by_share_token(token)
        if note is None or note.sharing is None:
            raise NotFoundError("Share link not found")
        if note.sharing.is_expired(self.core.clock.now()):
            raise ExpiredError
        access = self.core.services.access
        if not note.sharing.is_public and not access.can_read(actor, note):
            raise AccessDeniedError("You do not have access to this shared note")

        owner = self.core.services.user.find_user(note.owner_id)
        return SharedNoteView.from_note(
            note,
            owner=UserView.from_domain(owner) if owner else None,
            can_edit=access.can_write(actor, note),
        )
