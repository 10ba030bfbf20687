from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from thinkboard.core.modules.note.filters import NoteFilter, NoteSort, SortField, SortOrder
from thinkboard.core.modules.note.models import Note, NoteCategory, NoteDraft, NotePatch, NotePriority, Permission, Version
from thinkboard.core.pagination import PaginationResult
from thinkboard.web.deps import AppDep, AuthTokenDep
from thinkboard.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["notes"])


class CreateNoteRequest(NoteDraft):
    """Request to create a new note."""

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Sprint planning",
                    "content": "<p>Agenda for Monday</p>",
                    "tags": ["work", "planning"],
                    "category": "work",
                    "priority": "high",
                    "reminders": [{"title": "Prepare slides", "reminder_date": "2025-10-20T09:00:00Z"}],
                }
            ]
        }
    }


class UpdateNoteRequest(NotePatch):
    """Partial update. Changing title, content or tags creates a new version."""

    model_config = {"json_schema_extra": {"examples": [{"content": "<p>Updated agenda</p>"}, {"is_favorite": True}]}}


class SetCollaboratorRequest(BaseModel):
    permission: Permission = Field(..., description="Access level granted to the collaborator")


@router.get(
    "/notes",
    summary="Search notes",
    description="""Search the current user's own notes. Notes shared with the user are listed under `/notes/shared`.

**Filters** (all optional, combined with AND):
- `q` - case-insensitive substring of title or content
- `tags` - repeat the parameter for several tags; a note matches if it has any of them
- `category`, `priority`, `is_favorite`
- `created_from`, `created_to` - inclusive bounds on creation time (naive values are UTC)

Sorted by `last_modified` descending unless `sort`/`order` say otherwise. Pages are 1-indexed.""",
    operation_id="searchNotes",
    responses={
        200: {"description": "Paginated list of notes"},
        400: {"model": ErrorResponse, "description": "Invalid filter or pagination"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def search_notes(
    app: AppDep,
    auth_token: AuthTokenDep,
    q: str | None = None,
    tags: Annotated[list[str] | None, Query()] = None,
    category: NoteCategory | None = None,
    priority: NotePriority | None = None,
    is_favorite: bool | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    sort: SortField = SortField.LAST_MODIFIED,
    order: SortOrder = SortOrder.DESC,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> PaginationResult[Note]:
    note_filter = NoteFilter(
        text=q,
        tags=tags,
        category=category,
        priority=priority,
        is_favorite=is_favorite,
        created_from=created_from,
        created_to=created_to,
    )
    return await app.search_notes(auth_token, note_filter, NoteSort(field=sort, order=order), page, limit)


@router.post(
    "/notes",
    summary="Create note",
    description="Create a note owned by the current user. The initial content becomes version 1.",
    operation_id="createNote",
    status_code=201,
    responses={
        201: {"description": "Note created"},
        400: {"model": ErrorResponse, "description": "Validation failed"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_note(request: CreateNoteRequest, app: AppDep, auth_token: AuthTokenDep) -> Note:
    return await app.create_note(auth_token, request)


@router.get(
    "/notes/tags",
    summary="List tags",
    description="All distinct tags used on the current user's notes, sorted.",
    operation_id="listTags",
    responses={
        200: {"description": "Sorted tags"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_tags(app: AppDep, auth_token: AuthTokenDep) -> list[str]:
    return await app.list_tags(auth_token)


@router.get(
    "/notes/shared",
    summary="Notes shared with me",
    description="Notes on which the current user is a collaborator, most recently modified first.",
    operation_id="listSharedWithMe",
    responses={
        200: {"description": "Paginated list of notes"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_shared_with_me(
    app: AppDep,
    auth_token: AuthTokenDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> PaginationResult[Note]:
    return await app.list_shared_with_me(auth_token, page, limit)


@router.get(
    "/notes/{note_id}",
    summary="Get note",
    description="Get a note the current user can read.",
    operation_id="getNote",
    responses={
        200: {"description": "Note details"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note not found or access denied"},
    },
)
async def get_note(note_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> Note:
    return await app.get_note(auth_token, note_id)


@router.patch(
    "/notes/{note_id}",
    summary="Update note",
    description=(
        "Partial update by the owner or a write collaborator. Changing title, content or tags appends "
        "a new version. Only the owner can change `is_favorite`."
    ),
    operation_id="updateNote",
    responses={
        200: {"description": "Updated note"},
        400: {"model": ErrorResponse, "description": "Validation failed"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note not found or access denied"},
        409: {"model": ErrorResponse, "description": "Concurrent modification, retry"},
    },
)
async def update_note(note_id: UUID, request: UpdateNoteRequest, app: AppDep, auth_token: AuthTokenDep) -> Note:
    return await app.update_note(auth_token, note_id, request)


@router.delete(
    "/notes/{note_id}",
    summary="Delete note",
    description="Delete a note and its attachments. Only the owner can delete.",
    operation_id="deleteNote",
    status_code=204,
    responses={
        204: {"description": "Note deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note not found or access denied"},
    },
)
async def delete_note(note_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_note(auth_token, note_id)


@router.get(
    "/notes/{note_id}/versions",
    summary="List versions",
    description="Version history of a note, newest first.",
    operation_id="listVersions",
    responses={
        200: {"description": "Versions"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note not found or access denied"},
    },
)
async def list_versions(note_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> list[Version]:
    return await app.list_versions(auth_token, note_id)


@router.post(
    "/notes/{note_id}/versions/{version_number}/restore",
    summary="Restore version",
    description="Append a copy of an earlier version as the new current version.",
    operation_id="restoreVersion",
    responses={
        200: {"description": "Note with the restored content"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note or version not found"},
        409: {"model": ErrorResponse, "description": "Concurrent modification, retry"},
    },
)
async def restore_version(note_id: UUID, version_number: int, app: AppDep, auth_token: AuthTokenDep) -> Note:
    return await app.restore_version(auth_token, note_id, version_number)


@router.put(
    "/notes/{note_id}/collaborators/{username}",
    summary="Set collaborator",
    description="Grant a user read or write access, or change an existing grant. Owner only.",
    operation_id="setCollaborator",
    responses={
        200: {"description": "Updated note"},
        400: {"model": ErrorResponse, "description": "The owner cannot be a collaborator"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note or user not found"},
    },
)
async def set_collaborator(
    note_id: UUID, username: str, request: SetCollaboratorRequest, app: AppDep, auth_token: AuthTokenDep
) -> Note:
    return await app.set_collaborator(auth_token, note_id, username, request.permission)


@router.delete(
    "/notes/{note_id}/collaborators/{username}",
    summary="Remove collaborator",
    description="Revoke a collaborator's access. Owner only.",
    operation_id="removeCollaborator",
    responses={
        200: {"description": "Updated note"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note or user not found"},
    },
)
async def remove_collaborator(note_id: UUID, username: str, app: AppDep, auth_token: AuthTokenDep) -> Note:
    return await app.remove_collaborator(auth_token, note_id, username)
