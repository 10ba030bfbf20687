"""Tests for reminder email rendering."""

from datetime import UTC, datetime

import pytest

from thinkboard.core.modules.note.models import Note, Reminder
from thinkboard.core.modules.reminder.rendering import reminder_subject, render_reminder_email
from thinkboard.core.modules.user.models import User


@pytest.fixture
def owner():
    return User(username="alice", email="alice@example.com")


@pytest.fixture
def note(owner):
    return Note(owner_id=owner.id, title="Quarterly <b>plan</b>", content="x")


@pytest.fixture
def reminder():
    return Reminder(title="Call Bob", description="About the offer", reminder_date=datetime(2025, 10, 20, 14, 30, tzinfo=UTC))


class TestRenderReminderEmail:
    def test_contains_details_and_link(self, note, reminder, owner):
        body = render_reminder_email(note, reminder, owner, "https://notes.example.com/")

        assert "Hello alice" in body
        assert "Call Bob" in body
        assert "About the offer" in body
        assert "2025-10-20 14:30 UTC" in body
        assert f'href="https://notes.example.com/notes/{note.id}"' in body

    def test_user_text_is_escaped(self, note, reminder, owner):
        body = render_reminder_email(note, reminder, owner, "https://notes.example.com")

        assert "<b>plan</b>" not in body
        assert "&lt;b&gt;plan&lt;/b&gt;" in body

    def test_description_optional(self, note, owner):
        reminder = Reminder(title="Ping", reminder_date=datetime(2025, 1, 1, tzinfo=UTC))
        body = render_reminder_email(note, reminder, owner, "https://notes.example.com")

        assert "None" not in body

    def test_broken_template(self, note, reminder, owner):
        with pytest.raises(ValueError, match="Failed to render template"):
            render_reminder_email(note, reminder, owner, "https://x", template="{% if %}")

    def test_subject(self, reminder):
        assert reminder_subject(reminder) == "Reminder: Call Bob"

