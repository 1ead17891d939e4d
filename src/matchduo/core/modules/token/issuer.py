"""Signed bearer tokens for access and refresh.

Tokens are HS256 JWTs carrying the user id in ``sub``, the token kind in
``typ`` and a random ``jti``, so two tokens minted for the same user within
the same second still differ. Validity is decided here and nowhere else.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from uuid import UUID

import jwt

from matchduo.utils import now

ALGORITHM = "HS256"


class TokenType(StrEnum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class IssuedToken:
    value: str
    expires_at: datetime
    max_age: int  # seconds, used as the cookie lifetime


@dataclass(frozen=True)
class VerifiedToken:
    user_id: UUID
    token_type: TokenType


@dataclass(frozen=True)
class MissingToken:
    pass


@dataclass(frozen=True)
class RejectedToken:
    reason: str  # for logs only, never returned to the client


TokenCheck = VerifiedToken | MissingToken | RejectedToken


class TokenIssuer:
    """Mints and validates access/refresh JWTs."""

    def __init__(self, secret_key: str, access_ttl: timedelta, refresh_ttl: timedelta) -> None:
        if len(secret_key) < 32:
            raise ValueError("JWT secret key must be at least 32 characters")
        self._secret_key = secret_key
        self._ttl = {TokenType.ACCESS: access_ttl, TokenType.REFRESH: refresh_ttl}

    def issue_access(self, user_id: UUID) -> IssuedToken:
        return self._issue(user_id, TokenType.ACCESS)

    def issue_refresh(self, user_id: UUID) -> IssuedToken:
        return self._issue(user_id, TokenType.REFRESH)

    def validate(self, token: str) -> dict[str, object]:
        """Verify signature and expiry and return the claims.

        Raises:
            jwt.InvalidTokenError: If the token is unsigned, tampered, expired or malformed
        """
        claims: dict[str, object] = jwt.decode(
            token,
            self._secret_key,
            algorithms=[ALGORITHM],
            options={"require": ["sub", "exp", "typ"]},
        )
        return claims

    def subject_of(self, token: str) -> UUID:
        """Return the user id of a valid token.

        Raises:
            jwt.InvalidTokenError: If the token is not valid
            ValueError: If the subject is not a user id
        """
        return UUID(str(self.validate(token)["sub"]))

    def inspect(self, token: str | None, expected: TokenType | None = None) -> TokenCheck:
        """Validate a token taken from a request without raising.

        Blank or absent input is MissingToken; every validation failure is RejectedToken.
        """
        if token is None or not token.strip():
            return MissingToken()
        try:
            claims = self.validate(token)
            user_id = UUID(str(claims["sub"]))
            token_type = TokenType(str(claims["typ"]))
        except jwt.InvalidTokenError as e:
            return RejectedToken(type(e).__name__)
        except ValueError:
            return RejectedToken("MalformedClaims")
        if expected is not None and token_type != expected:
            return RejectedToken("WrongTokenType")
        return VerifiedToken(user_id=user_id, token_type=token_type)

    def _issue(self, user_id: UUID, token_type: TokenType) -> IssuedToken:
        ttl = self._ttl[token_type]
        issued_at = now()
        expires_at = issued_at + ttl
        payload = {
            "sub": str(user_id),
            "typ": token_type.value,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": uuid.uuid4().hex,
        }
        value = jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)
        return IssuedToken(value=value, expires_at=expires_at, max_age=int(ttl.total_seconds()))
