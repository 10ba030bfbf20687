from datetime import datetime
from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from thinkboard.core.modules.share.models import SharedNoteView, ShareLink
from thinkboard.web.deps import AppDep, AuthTokenDep, OptionalAuthTokenDep
from thinkboard.web.openapi import ErrorResponse

router = APIRouter(tags=["sharing"])


class CreateShareRequest(BaseModel):
    """Request to create or replace a note's share link."""

    is_public: bool = Field(False, description="Anyone with the link can read the note")
    expires_at: datetime | None = Field(None, description="Expiry (UTC if naive); omit for a link that never expires")
    allowed_users: list[str] = Field(default_factory=list, description="Usernames or IDs allowed to open a private link")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"is_public": True, "expires_at": "2025-12-31T23:59:59Z"},
                {"is_public": False, "allowed_users": ["alice"]},
            ]
        }
    }


@router.put(
    "/notes/{note_id}/share",
    summary="Create share link",
    description="Create a share link, replacing any previous one. The previous link stops working immediately. Owner only.",
    operation_id="createShare",
    responses={
        200: {"description": "Share link"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note or allowed user not found"},
    },
)
async def create_share(note_id: UUID, request: CreateShareRequest, app: AppDep, auth_token: AuthTokenDep) -> ShareLink:
    return await app.create_share(auth_token, note_id, request.is_public, request.expires_at, request.allowed_users)


@router.get(
    "/notes/{note_id}/share",
    summary="Get share link",
    description="Current share link of a note, or null. Owner only.",
    operation_id="getShare",
    responses={
        200: {"description": "Share link or null"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note not found or access denied"},
    },
)
async def get_share(note_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> ShareLink | None:
    return await app.get_share(auth_token, note_id)


@router.delete(
    "/notes/{note_id}/share",
    summary="Revoke share link",
    description="Remove the share link of a note. Owner only.",
    operation_id="revokeShare",
    status_code=204,
    responses={
        204: {"description": "Share link revoked"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note not found or access denied"},
    },
)
async def revoke_share(note_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.revoke_share(auth_token, note_id)


@router.get(
    "/shared/{token}",
    summary="Open shared note",
    description=(
        "Resolve a share link to a read-only view of the note. Public links work without a token; "
        "private links require the caller to be allowed to read the note."
    ),
    operation_id="resolveShare",
    responses={
        200: {"description": "Shared note"},
        401: {"model": ErrorResponse, "description": "Invalid token"},
        403: {"model": ErrorResponse, "description": "Private link not shared with the caller"},
        404: {"model": ErrorResponse, "description": "Unknown share link"},
        410: {"model": ErrorResponse, "description": "Share link has expired"},
    },
)
async def resolve_share(token: str, app: AppDep, auth_token: OptionalAuthTokenDep) -> SharedNoteView:
    return await app.resolve_share(auth_token, token)
