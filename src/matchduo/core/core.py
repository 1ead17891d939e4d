from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

import structlog
from pymongo import AsyncMongoClient

from matchduo.config import Config
from matchduo.core.db import database_name
from matchduo.core.modules.password.verifier import PasswordVerifier
from matchduo.core.modules.ratelimit.limiter import LoginRateLimiter
from matchduo.core.modules.refresh_token.store import MemoryRefreshTokenStore, MongoRefreshTokenStore, RefreshTokenStore
from matchduo.core.modules.session.service import SessionService
from matchduo.core.modules.token.issuer import TokenIssuer
from matchduo.core.modules.user.service import UserService
from matchduo.core.modules.user.store import MemoryUserStore, MongoUserStore, UserStore
from matchduo.core.service import Service

logger = structlog.get_logger(__name__)


class Services:
    """Service registry wiring each service to its stores."""

    user: UserService
    session: SessionService

    def __init__(self, user_store: UserStore, refresh_token_store: RefreshTokenStore, token_issuer: TokenIssuer) -> None:
        # Order matters for startup - user first
        self.user = UserService(user_store)
        self.session = SessionService(refresh_token_store, token_issuer, PasswordVerifier(self.user))
        self._services: list[Service] = [self.user, self.session]

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, stores, token issuer, login limiter and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    token_issuer: TokenIssuer
    login_limiter: LoginRateLimiter
    services: Services

    def __init__(self, config: Config) -> None:
        """Initialize core; MongoDB when a database URL is configured, in-memory stores otherwise."""
        self.config = config
        self.mongo_client = None

        user_store: UserStore
        refresh_token_store: RefreshTokenStore
        if config.database_url:
            self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
            database = self.mongo_client.get_database(database_name(config.database_url))
            user_store = MongoUserStore(database)
            refresh_token_store = MongoRefreshTokenStore(database)
        else:
            user_store = MemoryUserStore()
            refresh_token_store = MemoryRefreshTokenStore()

        self.token_issuer = TokenIssuer(
            config.jwt_secret_key,
            access_ttl=timedelta(seconds=config.access_token_expire_seconds),
            refresh_ttl=timedelta(seconds=config.refresh_token_expire_seconds),
        )
        sweep_seconds = config.login_rate_limit_sweep_seconds
        self.login_limiter = LoginRateLimiter(
            capacity=config.login_rate_limit_capacity,
            window=timedelta(seconds=config.login_rate_limit_window_seconds),
            sweep_interval=timedelta(seconds=sweep_seconds) if sweep_seconds else None,
        )
        self.services = Services(user_store, refresh_token_store, self.token_issuer)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.services.start_all()
        logger.debug("core_started", storage="mongodb" if self.mongo_client else "memory")

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()
