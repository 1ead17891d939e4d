from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer

from matchduo.app import App
from matchduo.web.cookies import ACCESS_TOKEN_COOKIE, AuthCookieCodec

# Security schemes
bearer_scheme = HTTPBearer(auto_error=False)
cookie_scheme = APIKeyCookie(name=ACCESS_TOKEN_COOKIE, auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_cookie_codec(request: Request) -> AuthCookieCodec:
    return cast(AuthCookieCodec, request.app.state.cookie_codec)


def get_client_key(request: Request) -> str:
    """Client address for rate limiting: first X-Forwarded-For entry, else the peer address."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if request.client is not None:
        return request.client.host
    return "unknown"


async def get_access_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
    token_cookie: Annotated[str | None, Depends(cookie_scheme)] = None,
) -> str | None:
    """Get access token from Authorization Bearer header or cookie, unvalidated."""

    # Check Bearer token first (preferred)
    if credentials and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return token_cookie


async def get_refresh_token(
    request: Request, codec: Annotated[AuthCookieCodec, Depends(get_cookie_codec)]
) -> str | None:
    return codec.read_refresh_token(request)


async def enforce_login_rate_limit(
    app: Annotated[App, Depends(get_app)], client_key: Annotated[str, Depends(get_client_key)]
) -> None:
    """Consume a login attempt; raises RateLimitedError before the endpoint body runs."""
    app.check_login_rate_limit(client_key)


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
CookieCodecDep = Annotated[AuthCookieCodec, Depends(get_cookie_codec)]
AccessTokenDep = Annotated[str | None, Depends(get_access_token)]
RefreshTokenDep = Annotated[str | None, Depends(get_refresh_token)]
LoginRateLimitDep = Depends(enforce_login_rate_limit)
