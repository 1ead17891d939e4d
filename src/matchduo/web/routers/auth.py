from fastapi import APIRouter, Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from matchduo.core.modules.user.models import UserView
from matchduo.web.deps import AppDep, CookieCodecDep, LoginRateLimitDep, RefreshTokenDep
from matchduo.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    """Authentication request."""

    email: str = Field(..., min_length=1, description="Login email")
    password: str = Field(..., min_length=1, description="Password")


class LoginResponse(BaseModel):
    """Authentication response; both tokens are also set as cookies."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user: UserView = Field(..., description="Authenticated user")
    access_token: str = Field(..., description="Short-lived access token")
    refresh_token: str = Field(..., description="Refresh token, valid until the next login")


class RefreshResponse(BaseModel):
    """New access token; the refresh token stays in its cookie."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user: UserView = Field(..., description="Token owner")
    access_token: str = Field(..., description="Newly issued access token")


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with email and password. Limited to 5 attempts per client per 15 minutes.",
    operation_id="login",
    dependencies=[LoginRateLimitDep],
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Wrong password"},
        404: {"model": ErrorResponse, "description": "Unknown email"},
        429: {"model": ErrorResponse, "description": "Too many login attempts"},
    },
)
async def login(login_data: LoginRequest, app: AppDep, codec: CookieCodecDep, response: Response) -> LoginResponse:
    """Authenticate user and create session."""
    result = await app.login(login_data.email, login_data.password)

    codec.write_access_token(response, result.access_token)
    codec.write_refresh_token(response, result.refresh_token)

    return LoginResponse(
        user=result.user,
        access_token=result.access_token.value,
        refresh_token=result.refresh_token.value,
    )


@router.post(
    "/auth/refresh",
    summary="Refresh access token",
    description="Issue a new access token from the refresh token cookie.",
    operation_id="refreshAccessToken",
    responses={
        200: {"description": "New access token issued"},
        401: {"model": ErrorResponse, "description": "Missing, invalid or superseded refresh token"},
        404: {"model": ErrorResponse, "description": "User no longer exists"},
    },
)
async def refresh(
    app: AppDep, codec: CookieCodecDep, refresh_token: RefreshTokenDep, response: Response
) -> RefreshResponse:
    result = await app.refresh(refresh_token)
    codec.write_access_token(response, result.access_token)
    return RefreshResponse(user=result.user, access_token=result.access_token.value)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Forget the server-side refresh token when the cookie is valid and always clear both cookies.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Logged out"},
    },
)
async def logout(app: AppDep, codec: CookieCodecDep, refresh_token: RefreshTokenDep, response: Response) -> None:
    await app.logout(refresh_token)
    codec.expire_all(response)
