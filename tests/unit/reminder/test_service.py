"""Tests for ReminderService: the notification tick and reminder queries."""

import asyncio
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from thinkboard.core.core import Core
from thinkboard.core.modules.note.models import NoteDraft, ReminderDraft
from thinkboard.errors import TransportError


@pytest.fixture
def reminders(core):
    return core.services.reminder


async def add_note_with_reminders(core, owner, *dates, title="Note", completed=()):
    note = await core.services.note.create_note(owner.id, NoteDraft(title=title, content="x"))
    created = []
    for i, date in enumerate(dates):
        reminder = await core.services.note.add_reminder(owner.id, note.id, ReminderDraft(title=f"R{i}", reminder_date=date))
        if i in completed:
            await core.services.note.set_reminder_completed(owner.id, note.id, reminder.id, True)
        created.append(reminder)
    return note, created


async def stored_reminder(core, note_id, reminder_id):
    note = await core.storage.notes.get(note_id)
    return note.get_reminder(reminder_id)


class TestProcessDueReminders:
    async def test_notified_exactly_once(self, core, reminders, alice, clock, transport):
        """A reminder due in three minutes gets one email and is marked sent."""
        note, (reminder,) = await add_note_with_reminders(core, alice, clock.now() + timedelta(minutes=3), title="Budget")

        assert await reminders.process_due_reminders() == 1
        assert await reminders.process_due_reminders() == 0

        assert len(transport.sent) == 1
        to_address, subject, body = transport.sent[0]
        assert to_address == "alice@example.com"
        assert subject == "Reminder: R0"
        assert f"https://notes.example.com/notes/{note.id}" in body
        assert (await stored_reminder(core, note.id, reminder.id)).notification_sent is True

    async def test_window_bounds(self, core, reminders, alice, clock, transport):
        """Only reminders dated within [now, now + 5 min] are due."""
        now = clock.now()
        await add_note_with_reminders(
            core, alice, now - timedelta(minutes=1), now, now + timedelta(minutes=5), now + timedelta(minutes=6)
        )

        assert await reminders.process_due_reminders() == 2

        clock.advance(minutes=2)
        assert await reminders.process_due_reminders() == 1
        assert len(transport.sent) == 3

    async def test_completed_never_notified(self, core, reminders, alice, clock, transport):
        await add_note_with_reminders(core, alice, clock.now() + timedelta(minutes=1), completed=(0,))

        assert await reminders.process_due_reminders() == 0
        assert transport.sent == []

    async def test_transport_failure_retried_next_tick(self, core, reminders, alice, clock, transport):
        note, (reminder,) = await add_note_with_reminders(core, alice, clock.now() + timedelta(minutes=4))

        transport.fail = True
        assert await reminders.process_due_reminders() == 0
        assert (await stored_reminder(core, note.id, reminder.id)).notification_sent is False

        transport.fail = False
        clock.advance(minutes=1)
        assert await reminders.process_due_reminders() == 1
        assert len(transport.sent) == 1

    async def test_owner_without_email_stays_pending(self, core, reminders, carol, clock, transport):
        note, (reminder,) = await add_note_with_reminders(core, carol, clock.now() + timedelta(minutes=1))

        assert await reminders.process_due_reminders() == 0
        assert transport.sent == []
        assert (await stored_reminder(core, note.id, reminder.id)).notification_sent is False

    async def test_one_failure_does_not_abort_tick(self, core, reminders, alice, bob, clock):
        class BrokenForBob:
            def __init__(self):
                self.sent = []

            async def send(self, to_address, subject, body):
                if to_address == "bob@example.com":
                    raise TransportError("mailbox full")
                self.sent.append(to_address)

        core.email_transport = BrokenForBob()
        await add_note_with_reminders(core, bob, clock.now() + timedelta(minutes=1))
        await add_note_with_reminders(core, alice, clock.now() + timedelta(minutes=2))

        assert await reminders.process_due_reminders() == 1
        assert core.email_transport.sent == ["alice@example.com"]

    async def test_without_transport_reminders_stay_pending(self, config, clock):
        """With no email transport configured nothing is marked sent.

        This deliberately differs from marking every due reminder as sent
        whether or not a message went out: delivery stays at-least-once.
        """
        core = Core(config, clock=clock)
        assert core.email_transport is None
        async with core.lifespan():
            owner = await core.services.user.sync_user(uuid4(), "dave", "dave@example.com")
            note, (reminder,) = await add_note_with_reminders(core, owner, clock.now() + timedelta(minutes=1))

            assert await core.services.reminder.process_due_reminders() == 0
            assert (await stored_reminder(core, note.id, reminder.id)).notification_sent is False


class TestScheduledDelivery:
    async def test_scheduler_runs_with_core(self, config, clock, transport):
        config = config.model_copy(update={"reminder_scheduler_enabled": True, "reminder_check_interval": 0.01})
        core = Core(config, clock=clock, email_transport=transport)
        async with core.lifespan():
            owner = await core.services.user.sync_user(uuid4(), "erin", "erin@example.com")
            await add_note_with_reminders(core, owner, clock.now() + timedelta(minutes=2))
            for _ in range(100):
                if transport.sent:
                    break
                await asyncio.sleep(0.01)

        assert [to for to, _, _ in transport.sent] == ["erin@example.com"]


class TestQueries:
    async def test_upcoming(self, core, reminders, alice, bob, clock):
        now = clock.now()
        await add_note_with_reminders(
            core,
            alice,
            now + timedelta(days=2),
            now - timedelta(hours=1),
            now + timedelta(hours=1),
            now + timedelta(hours=3),
            completed=(3,),
            title="Mine",
        )
        await add_note_with_reminders(core, bob, now + timedelta(minutes=30), title="Bob's")

        upcoming = await reminders.get_upcoming(alice.id)
        assert [r.title for r in upcoming] == ["R2", "R0"]
        assert all(r.note_title == "Mine" for r in upcoming)

        assert [r.title for r in await reminders.get_upcoming(alice.id, limit=1)] == ["R2"]

    async def test_today_utc(self, core, reminders, alice, clock):
        day = clock.now().replace(hour=0, minute=0)
        await add_note_with_reminders(
            core,
            alice,
            day + timedelta(minutes=30),
            day + timedelta(hours=23, minutes=30),
            day + timedelta(days=1, minutes=30),
            day - timedelta(minutes=1),
            day + timedelta(hours=15),
            completed=(4,),
        )

        today = await reminders.get_today(alice.id)
        assert [r.title for r in today] == ["R0", "R4", "R1"]

    async def test_today_uses_configured_timezone(self, core, reminders, alice):
        """At 12:00 UTC on Oct 20 it is 08:00 in New York (UTC-4), whose day runs 04:00Z to 04:00Z."""
        core.config.timezone = "America/New_York"
        await add_note_with_reminders(
            core,
            alice,
            datetime(2025, 10, 20, 3, 0, tzinfo=UTC),
            datetime(2025, 10, 20, 4, 0, tzinfo=UTC),
            datetime(2025, 10, 21, 2, 0, tzinfo=UTC),
            datetime(2025, 10, 21, 4, 0, tzinfo=UTC),
        )

        assert [r.title for r in await reminders.get_today(alice.id)] == ["R1", "R2"]
