from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from thinkboard.core.modules.note.models import Reminder, ReminderDraft
from thinkboard.core.modules.reminder.models import ReminderView
from thinkboard.web.deps import AppDep, AuthTokenDep
from thinkboard.web.openapi import ErrorResponse

router = APIRouter(tags=["reminders"])


class CreateReminderRequest(ReminderDraft):
    """Request to add a reminder. Dates without a timezone are taken as UTC."""

    model_config = {
        "json_schema_extra": {
            "examples": [{"title": "Call back", "description": "About the offer", "reminder_date": "2025-10-20T14:30:00Z"}]
        }
    }


class CompleteReminderRequest(BaseModel):
    is_completed: bool = Field(..., description="Whether the reminder is done")


@router.post(
    "/notes/{note_id}/reminders",
    summary="Add reminder",
    description="Add a reminder to a note. The owner is emailed shortly before it is due. Requires write access.",
    operation_id="addReminder",
    status_code=201,
    responses={
        201: {"description": "Reminder created"},
        400: {"model": ErrorResponse, "description": "Missing title or invalid date"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note not found or access denied"},
    },
)
async def add_reminder(note_id: UUID, request: CreateReminderRequest, app: AppDep, auth_token: AuthTokenDep) -> Reminder:
    return await app.add_reminder(auth_token, note_id, request)


@router.patch(
    "/notes/{note_id}/reminders/{reminder_id}",
    summary="Complete reminder",
    description="Mark a reminder as completed or reopen it. Completed reminders are never notified.",
    operation_id="setReminderCompleted",
    responses={
        200: {"description": "Updated reminder"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note or reminder not found"},
    },
)
async def set_reminder_completed(
    note_id: UUID, reminder_id: UUID, request: CompleteReminderRequest, app: AppDep, auth_token: AuthTokenDep
) -> Reminder:
    return await app.set_reminder_completed(auth_token, note_id, reminder_id, request.is_completed)


@router.delete(
    "/notes/{note_id}/reminders/{reminder_id}",
    summary="Delete reminder",
    description="Remove a reminder from a note.",
    operation_id="deleteReminder",
    status_code=204,
    responses={
        204: {"description": "Reminder deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note or reminder not found"},
    },
)
async def delete_reminder(note_id: UUID, reminder_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_reminder(auth_token, note_id, reminder_id)


@router.get(
    "/reminders/upcoming",
    summary="Upcoming reminders",
    description="Future reminders on the current user's notes that are not completed, soonest first.",
    operation_id="getUpcomingReminders",
    responses={
        200: {"description": "Reminders"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_upcoming_reminders(
    app: AppDep, auth_token: AuthTokenDep, limit: Annotated[int, Query(ge=1, le=100)] = 10
) -> list[ReminderView]:
    return await app.get_upcoming_reminders(auth_token, limit)


@router.get(
    "/reminders/today",
    summary="Today's reminders",
    description="All reminders of the current day on the current user's notes, completed ones included.",
    operation_id="getTodayReminders",
    responses={
        200: {"description": "Reminders"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_today_reminders(app: AppDep, auth_token: AuthTokenDep) -> list[ReminderView]:
    return await app.get_today_reminders(auth_token)
