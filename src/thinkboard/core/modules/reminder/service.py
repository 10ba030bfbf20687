from datetime import datetime, time, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo

import structlog

from thinkboard.core.core import Service
from thinkboard.core.modules.note.models import Note, Reminder
from thinkboard.core.modules.reminder.models import ReminderView
from thinkboard.core.modules.reminder.rendering import reminder_subject, render_reminder_email
from thinkboard.core.modules.reminder.scheduler import ReminderScheduler
from thinkboard.core.storage import Storage
from thinkboard.errors import TransportError, ValidationError

logger = structlog.get_logger(__name__)


class ReminderService(Service):
    """Reminder queries and the notification tick driven by ReminderScheduler."""

    def __init__(self, storage: Storage) -> None:
        super().__init__(storage)
        self._scheduler: ReminderScheduler | None = None

    async def on_start(self) -> None:
        config = self.core.config
        if not config.reminder_scheduler_enabled:
            logger.info("reminder_scheduler_disabled")
            return
        if self.core.email_transport is None:
            logger.warning("reminder_email_transport_missing", email_backend=config.email_backend)
        self._scheduler = ReminderScheduler(self.process_due_reminders, config.reminder_check_interval)
        self._scheduler.start()

    async def on_stop(self) -> None:
        if self._scheduler is not None:
            await self._scheduler.stop()
            self._scheduler = None

    async def process_due_reminders(self) -> int:
        """Notify owners of reminders due within the next window.

        A reminder is marked as sent only after its email was handed to the
        transport. Without a transport, a transport failure, or an owner
        without an email address the reminder stays pending and is retried
        on the next tick.

        Returns:
            Number of reminders marked as sent
        """
        window_start = self.core.clock.now()
        window_end = window_start + timedelta(minutes=self.core.config.reminder_window_minutes)
        notes = await self.storage.notes.find_due_reminders(window_start, window_end)

        notified = 0
        for note in notes:
            for reminder in note.reminders:
                if not reminder.is_due(window_start, window_end):
                    continue
                try:
                    if await self._notify(note, reminder):
                        notified += 1
                except TransportError as e:
                    logger.warning("reminder_email_failed", note_id=note.id, reminder_id=reminder.id, error=str(e))
                except Exception as e:
                    logger.exception("reminder_notify_error", note_id=note.id, reminder_id=reminder.id, error=str(e))

        if notes:
            logger.info("reminder_tick_completed", due_notes=len(notes), notified=notified)
        return notified

    async def _notify(self, note: Note, reminder: Reminder) -> bool:
        transport = self.core.email_transport
        if transport is None:
            logger.debug("reminder_left_pending", note_id=note.id, reminder_id=reminder.id, reason="no_transport")
            return False

        owner = self.core.services.user.find_user(note.owner_id)
        if owner is None or not owner.email:
            logger.warning("reminder_owner_without_email", note_id=note.id, owner_id=note.owner_id)
            return False

        body = render_reminder_email(note, reminder, owner, self.core.config.frontend_url)
        await transport.send(owner.email, reminder_subject(reminder), body)

        marked = await self.storage.notes.mark_reminder_notified(note.id, reminder.id)
        if marked:
            logger.info("reminder_notified", note_id=note.id, reminder_id=reminder.id, owner_id=note.owner_id)
        return marked

    async def get_upcoming(self, owner_id: UUID, limit: int = 10) -> list[ReminderView]:
        """Future incomplete reminders across the owner's notes, soonest first."""
        if limit < 1:
            raise ValidationError("Limit must be at least 1", field="limit")
        start = self.core.clock.now()
        notes = await self.storage.notes.find_owner_reminders(owner_id, start, None)
        views = [
            ReminderView.from_note(note, r)
            for note in notes
            for r in note.reminders
            if r.reminder_date >= start and not r.is_completed
        ]
        return sorted(views, key=lambda v: v.reminder_date)[:limit]

    def today_bounds(self) -> tuple[datetime, datetime]:
        """Start and end of the current day in the configured time zone."""
        zone = ZoneInfo(self.core.config.timezone)
        local_now = self.core.clock.now().astimezone(zone)
        start = datetime.combine(local_now.date(), time.min, tzinfo=zone)
        return start, start + timedelta(days=1)

    async def get_today(self, owner_id: UUID) -> list[ReminderView]:
        """All of today's reminders on the owner's notes, completed ones included."""
        start, end = self.today_bounds()
        notes = await self.storage.notes.find_owner_reminders(owner_id, start, end)
        views = [
            ReminderView.from_note(note, r) for note in notes for r in note.reminders if start <= r.reminder_date < end
        ]
        return sorted(views, key=lambda v: v.reminder_date)
