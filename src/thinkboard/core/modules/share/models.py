from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from thinkboard.core.modules.note.models import Attachment, Note, NoteCategory, NotePriority, ShareRecord
from thinkboard.core.modules.user.models import UserView


class ShareLink(BaseModel):
    """A note's active share record together with its public URL."""

    token: str = Field(..., description="Opaque share token")
    url: str = Field(..., description="Frontend URL resolving the share")
    is_public: bool = Field(..., description="Whether anyone holding the link can read the note")
    expires_at: datetime | None = Field(None, description="Expiry timestamp, None for links that never expire")
    allowed_users: list[UUID] = Field(default_factory=list, description="Users allowed to resolve a private link")
    created_at: datetime

    @classmethod
    def from_record(cls, record: ShareRecord, frontend_url: str) -> "ShareLink":
        return cls(
            token=record.share_token,
            url=f"{frontend_url.rstrip('/')}/shared/{record.share_token}",
            is_public=record.is_public,
            expires_at=record.expires_at,
            allowed_users=record.allowed_users,
            created_at=record.created_at,
        )


class SharedAttachment(BaseModel):
    """Attachment as shown to share link visitors, without storage details or uploader."""

    id: UUID
    original_name: str
    mimetype: str
    size: int
    uploaded_at: datetime

    @classmethod
    def from_attachment(cls, attachment: Attachment) -> "SharedAttachment":
        return cls(
            id=attachment.id,
            original_name=attachment.original_name,
            mimetype=attachment.mimetype,
            size=attachment.size,
            uploaded_at=attachment.uploaded_at,
        )


class SharedNoteView(BaseModel):
    """Read-only projection of a note reached through a share link."""

    id: UUID
    title: str
    content: str
    tags: list[str]
    category: NoteCategory
    priority: NotePriority
    attachments: list[SharedAttachment]
    owner: UserView | None = Field(None, description="Owner, if known to the user directory")
    current_version: int
    created_at: datetime
    last_modified: datetime
    is_public: bool
    expires_at: datetime | None
    can_edit: bool = Field(..., description="Whether the resolving actor may edit the note")

    @classmethod
    def from_note(cls, note: Note, owner: UserView | None, can_edit: bool) -> "SharedNoteView":
        sharing = note.sharing
        return cls(
            id=note.id,
            title=note.title,
            content=note.content,
            tags=note.tags,
            category=note.category,
            priority=note.priority,
            attachments=[SharedAttachment.from_attachment(a) for a in note.attachments],
            owner=owner,
            current_version=note.current_version,
            created_at=note.created_at,
            last_modified=note.last_modified,
            is_public=sharing.is_public if sharing else False,
            expires_at=sharing.expires_at if sharing else None,
            can_edit=can_edit,
        )
