"""Results of the login, refresh and logout operations."""

from dataclasses import dataclass
from enum import StrEnum

from matchduo.core.modules.token.issuer import IssuedToken
from matchduo.core.modules.user.models import UserView


@dataclass(frozen=True)
class LoginResult:
    user: UserView
    access_token: IssuedToken
    refresh_token: IssuedToken


@dataclass(frozen=True)
class RefreshResult:
    user: UserView
    access_token: IssuedToken


class LogoutOutcome(StrEnum):
    """What logout did with the presented refresh token. Never an error."""

    REVOKED = "revoked"  # valid token, the user's record was deleted
    ABSENT = "absent"  # no token presented
    IGNORED = "ignored"  # token failed validation and was left alone
