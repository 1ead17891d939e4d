import hmac
from uuid import UUID

import structlog

from matchduo.core.modules.password.verifier import PasswordVerifier
from matchduo.core.modules.refresh_token.store import RefreshTokenStore
from matchduo.core.modules.session.models import LoginResult, LogoutOutcome, RefreshResult
from matchduo.core.modules.token.issuer import MissingToken, RejectedToken, TokenIssuer, TokenType, VerifiedToken
from matchduo.core.modules.user.models import User, UserView
from matchduo.core.service import Service
from matchduo.errors import NotFoundUserError, UnauthorizedUserError, WrongPasswordError

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Issues access/refresh tokens and keeps one live refresh token per user."""

    def __init__(self, refresh_tokens: RefreshTokenStore, tokens: TokenIssuer, verifier: PasswordVerifier) -> None:
        super().__init__()
        self._refresh_tokens = refresh_tokens
        self._tokens = tokens
        self._verifier = verifier

    async def login(self, email: str, password: str) -> LoginResult:
        """Check credentials and start a new session, superseding any previous one.

        Callers must pass the login rate limiter first.
        """
        user = await self.core.services.user.get_user_by_email(email)
        if not await self._verifier.verify(password, user):
            logger.info("login_failed", user_id=str(user.id))
            raise WrongPasswordError

        access_token = self._tokens.issue_access(user.id)
        refresh_token = self._tokens.issue_refresh(user.id)
        await self._refresh_tokens.upsert(user.id, refresh_token.value, refresh_token.expires_at)

        logger.info("login_succeeded", user_id=str(user.id))
        return LoginResult(user=UserView.from_domain(user), access_token=access_token, refresh_token=refresh_token)

    async def refresh(self, refresh_token: str | None) -> RefreshResult:
        """Issue a new access token for the holder of the current refresh token.

        The refresh token itself is not rotated.
        """
        user_id = await self._resolve_current_refresh(refresh_token)
        user = await self.core.services.user.get_user(user_id)
        access_token = self._tokens.issue_access(user.id)
        logger.debug("access_token_refreshed", user_id=str(user.id))
        return RefreshResult(user=UserView.from_domain(user), access_token=access_token)

    async def logout(self, refresh_token: str | None) -> LogoutOutcome:
        """End the session behind ``refresh_token`` if it is valid; invalid input is ignored."""
        match self._tokens.inspect(refresh_token):
            case VerifiedToken(user_id=user_id):
                await self._refresh_tokens.delete_by_user(user_id)
                logger.info("logout_succeeded", user_id=str(user_id))
                return LogoutOutcome.REVOKED
            case MissingToken():
                return LogoutOutcome.ABSENT
            case RejectedToken(reason=reason):
                logger.info("logout_token_ignored", reason=reason)
                return LogoutOutcome.IGNORED

    async def authenticate(self, access_token: str | None) -> User:
        """Resolve the user behind an access token."""
        match self._tokens.inspect(access_token, TokenType.ACCESS):
            case VerifiedToken(user_id=user_id):
                try:
                    return await self.core.services.user.get_user(user_id)
                except NotFoundUserError:
                    raise UnauthorizedUserError from None
            case MissingToken() | RejectedToken():
                raise UnauthorizedUserError

    async def revoke(self, user_id: UUID) -> None:
        """Forget the user's refresh token so no session can be refreshed."""
        await self._refresh_tokens.delete_by_user(user_id)

    async def on_start(self) -> None:
        await self._refresh_tokens.ensure_indexes()

    async def _resolve_current_refresh(self, refresh_token: str | None) -> UUID:
        if refresh_token is None:
            raise UnauthorizedUserError
        match self._tokens.inspect(refresh_token):
            case VerifiedToken(user_id=user_id):
                pass
            case MissingToken():
                raise UnauthorizedUserError
            case RejectedToken(reason=reason):
                logger.info("refresh_rejected", reason=reason)
                raise UnauthorizedUserError

        record = await self._refresh_tokens.find_by_user(user_id)
        if record is None:
            logger.info("refresh_rejected", reason="no_stored_token", user_id=str(user_id))
            raise UnauthorizedUserError
        # A signed, unexpired token that is not the stored one was superseded by a later login
        if not hmac.compare_digest(record.token, refresh_token):
            logger.info("refresh_rejected", reason="superseded", user_id=str(user_id))
            raise UnauthorizedUserError
        return user_id
