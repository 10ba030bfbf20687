from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from thinkboard.core.db import MongoModel
from thinkboard.utils import now


class NoteCategory(StrEnum):
    PERSONAL = "personal"
    WORK = "work"
    STUDY = "study"
    PROJECT = "project"
    OTHER = "other"


class NotePriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Permission(StrEnum):
    """Access level granted to a collaborator."""

    READ = "read"
    WRITE = "write"


class Version(BaseModel):
    """Immutable snapshot of a note's content fields."""

    version_number: int = Field(..., ge=1)
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=now)
    created_by: UUID

    model_config = {"frozen": True}


class Collaborator(BaseModel):
    user_id: UUID
    permission: Permission
    added_at: datetime = Field(default_factory=now)


class Attachment(BaseModel):
    """Metadata of a file stored in the blob store; the record is the source of truth."""

    id: UUID = Field(default_factory=uuid4)
    filename: str  # Name under which the blob was stored
    original_name: str  # Sanitized filename supplied by the uploader
    mimetype: str
    size: int = Field(..., ge=0)
    storage_path: str
    uploaded_at: datetime = Field(default_factory=now)
    uploaded_by: UUID


class ShareRecord(BaseModel):
    share_token: str
    is_public: bool = False
    expires_at: datetime | None = None  # None means the link never expires
    allowed_users: list[UUID] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=now)

    def is_expired(self, at: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < at


class Reminder(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    description: str | None = None
    reminder_date: datetime
    is_completed: bool = False
    notification_sent: bool = False  # Written only by the reminder scheduler
    created_at: datetime = Field(default_factory=now)

    def is_due(self, window_start: datetime, window_end: datetime) -> bool:
        """Whether the scheduler should notify this reminder in the given window."""
        if self.is_completed or self.notification_sent:
            return False
        return window_start <= self.reminder_date <= window_end


class Note(MongoModel):
    """Aggregate root: a note with its history, sharing state, reminders and attachments."""

    owner_id: UUID
    title: str
    content: str  # HTML from the rich-text editor
    tags: list[str] = Field(default_factory=list)
    category: NoteCategory = NoteCategory.OTHER
    priority: NotePriority = NotePriority.MEDIUM
    collaborators: list[Collaborator] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    versions: list[Version] = Field(default_factory=list)
    current_version: int = 0
    sharing: ShareRecord | None = None
    reminders: list[Reminder] = Field(default_factory=list)
    is_favorite: bool = False
    created_at: datetime = Field(default_factory=now)
    last_modified: datetime = Field(default_factory=now)
    revision: int = 0  # Optimistic concurrency counter, bumped by every stored write

    def permission_for(self, user_id: UUID) -> Permission | None:
        """Collaborator permission of a user, or None if not a collaborator."""
        return next((c.permission for c in self.collaborators if c.user_id == user_id), None)

    def get_version(self, version_number: int) -> Version | None:
        return next((v for v in self.versions if v.version_number == version_number), None)

    def get_reminder(self, reminder_id: UUID) -> Reminder | None:
        return next((r for r in self.reminders if r.id == reminder_id), None)

    def get_attachment(self, attachment_id: UUID) -> Attachment | None:
        return next((a for a in self.attachments if a.id == attachment_id), None)


class NotePatch(BaseModel):
    """Partial update of a note. Fields left as None are not changed."""

    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    category: NoteCategory | None = None
    priority: NotePriority | None = None
    is_favorite: bool | None = None


class ReminderDraft(BaseModel):
    """Reminder input before validation."""

    title: str
    description: str | None = None
    reminder_date: datetime | str


class NoteDraft(BaseModel):
    """Input for creating a note."""

    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    category: NoteCategory = NoteCategory.OTHER
    priority: NotePriority = NotePriority.MEDIUM
    reminders: list[ReminderDraft] = Field(default_factory=list)
