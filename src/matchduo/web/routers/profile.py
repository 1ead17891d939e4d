from fastapi import APIRouter, Response

from matchduo.core.modules.user.models import UserView
from matchduo.web.deps import AccessTokenDep, AppDep, CookieCodecDep
from matchduo.web.openapi import ErrorResponse

router = APIRouter(tags=["profile"])


@router.get(
    "/profile",
    summary="Get current user profile",
    description="Get the profile of the currently authenticated user.",
    operation_id="getCurrentUserProfile",
    responses={
        200: {"description": "Current user profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_profile(app: AppDep, access_token: AccessTokenDep) -> UserView:
    return await app.get_current_user(access_token)


@router.delete(
    "/profile",
    summary="Delete account",
    description="Delete the current user, drop their refresh token and clear the auth cookies.",
    operation_id="resign",
    status_code=204,
    responses={
        204: {"description": "Account deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def resign(app: AppDep, access_token: AccessTokenDep, codec: CookieCodecDep, response: Response) -> None:
    await app.resign(access_token)
    codec.expire_all(response)
