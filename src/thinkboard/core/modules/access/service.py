from uuid import UUID

from thinkboard.core.core import Service
from thinkboard.core.modules.access import policy
from thinkboard.core.modules.note.models import Note
from thinkboard.errors import NotFoundOrForbidden


class AccessService(Service):
    """Enforces the note access policy, hiding notes the actor may not see."""

    def ensure_can_read(self, actor: UUID | None, note: Note) -> None:
        if not policy.can_read(actor, note, self.core.clock.now()):
            raise NotFoundOrForbidden

    def ensure_can_write(self, actor: UUID | None, note: Note) -> None:
        if not policy.can_write(actor, note):
            raise NotFoundOrForbidden

    def ensure_can_delete(self, actor: UUID | None, note: Note) -> None:
        if not policy.can_delete(actor, note):
            raise NotFoundOrForbidden

    def ensure_can_manage(self, actor: UUID | None, note: Note) -> None:
        if not policy.can_manage(actor, note):
            raise NotFoundOrForbidden

    def can_read(self, actor: UUID | None, note: Note) -> bool:
        return policy.can_read(actor, note, self.core.clock.now())

    def can_write(self, actor: UUID | None, note: Note) -> bool:
        return policy.can_write(actor, note)
