"""Maps issued tokens to and from the auth cookies."""

from fastapi import Request, Response

from matchduo.config import Config
from matchduo.core.modules.token.issuer import IssuedToken

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


class AuthCookieCodec:
    """Writes and expires the accessToken/refreshToken cookies and reads the refresh cookie back.

    Both cookies are HttpOnly and scoped to the whole site; Secure, SameSite and
    Domain come from the config. Each cookie lives exactly as long as its token.
    """

    def __init__(self, config: Config) -> None:
        self._secure = config.cookie_secure
        self._samesite = config.cookie_samesite
        self._domain = config.cookie_domain

    def write_access_token(self, response: Response, token: IssuedToken) -> None:
        self._set(response, ACCESS_TOKEN_COOKIE, token.value, token.max_age)

    def write_refresh_token(self, response: Response, token: IssuedToken) -> None:
        self._set(response, REFRESH_TOKEN_COOKIE, token.value, token.max_age)

    def expire_all(self, response: Response) -> None:
        self._set(response, ACCESS_TOKEN_COOKIE, "", 0)
        self._set(response, REFRESH_TOKEN_COOKIE, "", 0)

    def read_refresh_token(self, request: Request) -> str | None:
        return request.cookies.get(REFRESH_TOKEN_COOKIE)

    def _set(self, response: Response, key: str, value: str, max_age: int) -> None:
        response.set_cookie(
            key=key,
            value=value,
            max_age=max_age,
            path="/",
            domain=self._domain,
            secure=self._secure,
            httponly=True,
            samesite=self._samesite,
        )
