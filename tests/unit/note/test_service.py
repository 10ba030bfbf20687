"""Tests for NoteService."""

import asyncio
from datetime import timedelta
from uuid import uuid4

import pytest

from thinkboard.core.modules.note.filters import NoteFilter, NoteSort, SortField, SortOrder
from thinkboard.core.modules.note.models import NoteDraft, NotePatch, Permission, ReminderDraft
from thinkboard.errors import (
    ConflictError,
    NotFoundError,
    NotFoundOrForbidden,
    ReminderNotFound,
    ValidationError,
    VersionNotFound,
)


@pytest.fixture
def notes(core):
    return core.services.note


@pytest.fixture
async def note(notes, alice):
    return await notes.create_note(alice.id, NoteDraft(title="Draft", content="first", tags=["Work"]))


@pytest.fixture
def interleaved_reads(core, monkeypatch):
    """Make every note read yield to the event loop, so concurrent mutations read the same revision."""
    store = core.storage.notes
    original_get = store.get

    async def get(note_id):
        result = await original_get(note_id)
        await asyncio.sleep(0)
        return result

    monkeypatch.setattr(store, "get", get)


class TestCreate:
    async def test_initial_version(self, notes, alice, clock):
        note = await notes.create_note(alice.id, NoteDraft(title="Draft", content="first", tags=[" Work ", "work"]))

        assert note.owner_id == alice.id
        assert note.current_version == 1
        assert len(note.versions) == 1
        assert note.versions[0].created_by == alice.id
        assert note.versions[0].title == "Draft"
        assert note.tags == ["work"]
        assert note.created_at == clock.now()
        assert note.last_modified == clock.now()

    async def test_invalid_input(self, notes, alice):
        with pytest.raises(ValidationError) as exc_info:
            await notes.create_note(alice.id, NoteDraft(title="", content="x"))
        assert exc_info.value.field == "title"

        with pytest.raises(ValidationError) as exc_info:
            await notes.create_note(alice.id, NoteDraft(title="t", content="x" * 100_001))
        assert exc_info.value.field == "content"

    async def test_with_reminders(self, notes, alice):
        note = await notes.create_note(
            alice.id,
            NoteDraft(title="t", content="x", reminders=[ReminderDraft(title="Call", reminder_date="2025-10-21T09:00:00Z")]),
        )
        assert len(note.reminders) == 1
        assert note.reminders[0].notification_sent is False

    async def test_bad_reminder_rejects_note(self, notes, alice):
        with pytest.raises(ValidationError):
            await notes.create_note(
                alice.id, NoteDraft(title="t", content="x", reminders=[ReminderDraft(title="Call", reminder_date="soon")])
            )
        assert (await notes.search_notes(alice.id)).total == 0


class TestVersioningScenario:
    async def test_edit_and_restore(self, notes, note, alice, bob):
        """Owner creates, write collaborator edits, owner restores version 1."""
        await notes.set_collaborator(alice.id, note.id, bob.id, Permission.WRITE)

        edited = await notes.update_note(bob.id, note.id, NotePatch(content="second"))
        assert edited.current_version == 2
        assert edited.versions[-1].created_by == bob.id

        restored = await notes.restore_version(alice.id, note.id, 1)
        assert restored.current_version == 3
        assert restored.content == "first"
        assert [v.version_number for v in restored.versions] == [1, 2, 3]

        history = await notes.list_versions(alice.id, note.id)
        assert [v.version_number for v in history] == [3, 2, 1]

    async def test_metadata_update_keeps_version(self, notes, note, alice, clock):
        clock.advance(minutes=1)
        updated = await notes.update_note(alice.id, note.id, NotePatch(is_favorite=True))

        assert updated.current_version == 1
        assert updated.is_favorite is True
        assert updated.last_modified == clock.now()

    async def test_restore_unknown_version(self, notes, note, alice):
        with pytest.raises(VersionNotFound):
            await notes.restore_version(alice.id, note.id, 9)


class TestAccess:
    async def test_stranger_sees_nothing(self, notes, note, bob):
        with pytest.raises(NotFoundOrForbidden):
            await notes.get_note(bob.id, note.id)
        with pytest.raises(NotFoundOrForbidden):
            await notes.update_note(bob.id, note.id, NotePatch(title="x"))

    async def test_missing_note_looks_the_same(self, notes, bob):
        with pytest.raises(NotFoundOrForbidden):
            await notes.get_note(bob.id, uuid4())

    async def test_read_collaborator_cannot_write(self, notes, note, alice, bob):
        await notes.set_collaborator(alice.id, note.id, bob.id, Permission.READ)

        assert (await notes.get_note(bob.id, note.id)).id == note.id
        with pytest.raises(NotFoundOrForbidden):
            await notes.update_note(bob.id, note.id, NotePatch(content="nope"))

    async def test_write_collaborator_cannot_delete_or_favorite(self, notes, note, alice, bob):
        await notes.set_collaborator(alice.id, note.id, bob.id, Permission.WRITE)

        with pytest.raises(NotFoundOrForbidden):
            await notes.delete_note(bob.id, note.id)
        with pytest.raises(NotFoundOrForbidden):
            await notes.update_note(bob.id, note.id, NotePatch(is_favorite=True))

    async def test_owner_deletes(self, notes, note, alice):
        await notes.delete_note(alice.id, note.id)
        with pytest.raises(NotFoundOrForbidden):
            await notes.get_note(alice.id, note.id)


class TestCollaborators:
    async def test_owner_cannot_be_collaborator(self, notes, note, alice):
        with pytest.raises(ValidationError):
            await notes.set_collaborator(alice.id, note.id, alice.id, Permission.WRITE)

    async def test_unknown_user(self, notes, note, alice):
        with pytest.raises(NotFoundError):
            await notes.set_collaborator(alice.id, note.id, uuid4(), Permission.READ)

    async def test_permission_replaced_and_removed(self, notes, note, alice, bob):
        await notes.set_collaborator(alice.id, note.id, bob.id, Permission.READ)
        updated = await notes.set_collaborator(alice.id, note.id, bob.id, Permission.WRITE)
        assert [(c.user_id, c.permission) for c in updated.collaborators] == [(bob.id, Permission.WRITE)]

        updated = await notes.remove_collaborator(alice.id, note.id, bob.id)
        assert updated.collaborators == []

    async def test_only_owner_manages(self, notes, note, alice, bob, carol):
        await notes.set_collaborator(alice.id, note.id, bob.id, Permission.WRITE)
        with pytest.raises(NotFoundOrForbidden):
            await notes.set_collaborator(bob.id, note.id, carol.id, Permission.READ)

    async def test_non_owner_gets_same_error_for_unknown_user(self, notes, note, bob):
        with pytest.raises(NotFoundOrForbidden):
            await notes.set_collaborator(bob.id, note.id, uuid4(), Permission.READ)

    async def test_shared_with_me(self, notes, note, alice, bob):
        await notes.set_collaborator(alice.id, note.id, bob.id, Permission.READ)

        shared = await notes.list_shared_with_me(bob.id)
        assert [n.id for n in shared.items] == [note.id]
        assert (await notes.search_notes(bob.id)).total == 0


class TestSearch:
    async def test_pagination(self, notes, alice, clock):
        for i in range(5):
            clock.advance(minutes=1)
            await notes.create_note(alice.id, NoteDraft(title=f"Note {i}", content="x"))

        page = await notes.search_notes(alice.id, page=2, limit=2)

        assert page.total == 5
        assert page.pages == 3
        assert [n.title for n in page.items] == ["Note 2", "Note 1"]

    async def test_filters_and_sort(self, notes, alice):
        await notes.create_note(alice.id, NoteDraft(title="Groceries", content="milk", tags=["home"]))
        await notes.create_note(alice.id, NoteDraft(title="Budget", content="numbers", tags=["work"]))
        await notes.create_note(alice.id, NoteDraft(title="Agenda", content="Milk supplier call", tags=["work"]))

        result = await notes.search_notes(
            alice.id, NoteFilter(text="MILK"), NoteSort(field=SortField.TITLE, order=SortOrder.ASC)
        )
        assert [n.title for n in result.items] == ["Agenda", "Groceries"]

        result = await notes.search_notes(alice.id, NoteFilter(tags=["work"]))
        assert result.total == 2

    async def test_invalid_pagination(self, notes, alice):
        with pytest.raises(ValidationError):
            await notes.search_notes(alice.id, page=0)
        with pytest.raises(ValidationError):
            await notes.search_notes(alice.id, limit=101)

    async def test_list_tags(self, notes, note, alice):
        await notes.create_note(alice.id, NoteDraft(title="t", content="x", tags=["Ideas"]))
        assert await notes.list_tags(alice.id) == ["ideas", "work"]


class TestReminders:
    async def test_add_complete_delete(self, notes, note, alice, clock):
        reminder = await notes.add_reminder(
            alice.id, note.id, ReminderDraft(title="Call", reminder_date=clock.now() + timedelta(days=1))
        )
        completed = await notes.set_reminder_completed(alice.id, note.id, reminder.id, True)
        assert completed.is_completed is True

        await notes.delete_reminder(alice.id, note.id, reminder.id)
        assert (await notes.get_note(alice.id, note.id)).reminders == []

    async def test_unknown_reminder(self, notes, note, alice):
        with pytest.raises(ReminderNotFound):
            await notes.set_reminder_completed(alice.id, note.id, uuid4(), True)
        with pytest.raises(ReminderNotFound):
            await notes.delete_reminder(alice.id, note.id, uuid4())

    async def test_reminder_requires_write(self, notes, note, bob, clock):
        with pytest.raises(NotFoundOrForbidden):
            await notes.add_reminder(bob.id, note.id, ReminderDraft(title="x", reminder_date=clock.now()))


class TestConcurrency:
    async def test_concurrent_updates_both_land(self, notes, note, alice, interleaved_reads):
        """Two updates racing from version N end at N + 2 with both versions present."""
        await asyncio.gather(
            notes.update_note(alice.id, note.id, NotePatch(content="from A")),
            notes.update_note(alice.id, note.id, NotePatch(title="from B")),
        )

        final = await notes.get_note(alice.id, note.id)
        assert final.current_version == 3
        assert [v.version_number for v in final.versions] == [1, 2, 3]
        assert final.content == "from A"
        assert final.title == "from B"

    async def test_conflict_surfaces_without_retries(self, core, notes, note, alice, interleaved_reads):
        core.config.conflict_retries = 0

        results = await asyncio.gather(
            notes.update_note(alice.id, note.id, NotePatch(content="from A")),
            notes.update_note(alice.id, note.id, NotePatch(content="from B")),
            return_exceptions=True,
        )

        assert sum(isinstance(r, ConflictError) for r in results) == 1
        final = await notes.get_note(alice.id, note.id)
        assert final.current_version == 2
