from fastapi import APIRouter

from thinkboard.core.modules.user.models import UserView
from thinkboard.web.deps import AppDep, AuthTokenDep
from thinkboard.web.openapi import ErrorResponse

router = APIRouter(tags=["profile"])


@router.get(
    "/profile",
    summary="Get current user profile",
    description="Get the directory entry of the authenticated user, as last reported by the identity provider.",
    operation_id="getCurrentUserProfile",
    responses={
        200: {"description": "Current user profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_profile(app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.get_current_user(auth_token)


@router.get(
    "/users",
    summary="List users",
    description="Users known to the service, for choosing collaborators and share recipients.",
    operation_id="listUsers",
    responses={
        200: {"description": "Known users"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_users(app: AppDep, auth_token: AuthTokenDep) -> list[UserView]:
    return await app.get_all_users(auth_token)
