"""Authorization rules for notes.

Pure functions of (actor, note, now). Every read or mutation goes through
these; no other module decides access on its own. `actor` is None for
anonymous callers.
"""

from datetime import datetime
from uuid import UUID

from thinkboard.core.modules.note.models import Note, Permission


def is_owner(actor: UUID | None, note: Note) -> bool:
    return actor is not None and actor == note.owner_id


def has_active_share(note: Note, now: datetime) -> bool:
    return note.sharing is not None and not note.sharing.is_expired(now)


def can_read(actor: UUID | None, note: Note, now: datetime) -> bool:
    """Owner, any collaborator, anyone via an active public share, or an allowed user of an active share."""
    if is_owner(actor, note):
        return True
    if actor is not None and note.permission_for(actor) is not None:
        return True
    sharing = note.sharing
    if sharing is None or sharing.is_expired(now):
        return False
    if sharing.is_public:
        return True
    return actor is not None and actor in sharing.allowed_users


def can_write(actor: UUID | None, note: Note) -> bool:
    """Owner or a collaborator with write permission."""
    if is_owner(actor, note):
        return True
    return actor is not None and note.permission_for(actor) == Permission.WRITE


def can_delete(actor: UUID | None, note: Note) -> bool:
    """Only the owner; write collaborators cannot delete."""
    return is_owner(actor, note)


def can_manage(actor: UUID | None, note: Note) -> bool:
    """Owner-only settings: sharing, collaborators and the favorite flag."""
    return is_owner(actor, note)
