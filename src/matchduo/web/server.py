from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from matchduo.app import App
from matchduo.config import Config
from matchduo.errors import UserError
from matchduo.web.cookies import AuthCookieCodec
from matchduo.web.error_handlers import general_exception_handler, user_error_handler
from matchduo.web.openapi import set_custom_openapi
from matchduo.web.routers import auth_router, profile_router


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        async with app_instance.lifespan():
            yield

    app = FastAPI(title="MatchDuo Auth API", lifespan=lifespan)

    # Available before startup so dependencies work even without a lifespan run
    app.state.app = app_instance
    app.state.config = config
    app.state.cookie_codec = AuthCookieCodec(config)

    # Cookies are only sent cross-origin to explicitly allowed frontends
    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Health check endpoint (at root level, not versioned)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(profile_router, prefix="/api/v1")

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
