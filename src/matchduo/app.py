import math
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog

from matchduo.config import Config
from matchduo.core.core import Core
from matchduo.core.modules.session.models import LoginResult, LogoutOutcome, RefreshResult
from matchduo.core.modules.user.models import UserView
from matchduo.errors import RateLimitedError

logger = structlog.get_logger(__name__)


class App:
    """Facade for all application operations, the entry point used by the web layer."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    def check_login_rate_limit(self, client_key: str) -> None:
        """Consume one login attempt for the client. Must run before any credential check."""
        decision = self._core.login_limiter.try_acquire(client_key)
        if not decision.allowed:
            retry_after = max(1, math.ceil(decision.retry_after))
            logger.warning("login_rate_limited", client_key=client_key, retry_after=retry_after)
            raise RateLimitedError(retry_after=retry_after)

    async def login(self, email: str, password: str) -> LoginResult:
        """Authenticate user and start a session."""
        return await self._core.services.session.login(email, password)

    async def refresh(self, refresh_token: str | None) -> RefreshResult:
        """Issue a new access token from the current refresh token."""
        return await self._core.services.session.refresh(refresh_token)

    async def logout(self, refresh_token: str | None) -> LogoutOutcome:
        """End the session, best effort."""
        return await self._core.services.session.logout(refresh_token)

    async def get_current_user(self, access_token: str | None) -> UserView:
        """Get current authenticated user profile."""
        user = await self._core.services.session.authenticate(access_token)
        return UserView.from_domain(user)

    async def resign(self, access_token: str | None) -> None:
        """Delete the current user's account and its session."""
        user = await self._core.services.session.authenticate(access_token)
        await self._core.services.session.revoke(user.id)
        await self._core.services.user.delete_user(user.id)
        logger.info("user_resigned", user_id=str(user.id))

    async def create_user(self, email: str, nickname: str, password: str, *, legacy: bool = False) -> UserView:
        """Register an identity; used for seeding accounts."""
        user = await self._core.services.user.create_user(email, nickname, password, legacy=legacy)
        return UserView.from_domain(user)
