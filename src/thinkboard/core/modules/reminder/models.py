from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from thinkboard.core.modules.note.models import Note, Reminder


class ReminderView(BaseModel):
    """A reminder with the note it belongs to (API representation)."""

    id: UUID
    note_id: UUID = Field(..., description="Note the reminder is attached to")
    note_title: str
    title: str
    description: str | None = None
    reminder_date: datetime
    is_completed: bool
    notification_sent: bool
    created_at: datetime

    @classmethod
    def from_note(cls, note: Note, reminder: Reminder) -> "ReminderView":
        return cls(
            id=reminder.id,
            note_id=note.id,
            note_title=note.title,
            title=reminder.title,
            description=reminder.description,
            reminder_date=reminder.reminder_date,
            is_completed=reminder.is_completed,
            notification_sent=reminder.notification_sent,
            created_at=reminder.created_at,
        )


class ReminderEmailContext(BaseModel):
    """Template context for reminder notification emails."""

    username: str
    note_title: str
    title: str
    description: str | None
    reminder_date: str
    url: str
