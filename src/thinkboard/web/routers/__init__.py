from thinkboard.web.routers.attachments import router as attachments_router
from thinkboard.web.routers.notes import router as notes_router
from thinkboard.web.routers.profile import router as profile_router
from thinkboard.web.routers.reminders import router as reminders_router
from thinkboard.web.routers.sharing import router as sharing_router

__all__ = [
    "attachments_router",
    "notes_router",
    "profile_router",
    "reminders_router",
    "sharing_router",
]
