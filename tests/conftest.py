"""Shared pytest fixtures."""

from collections.abc import AsyncGenerator, Generator

import pytest
from fastapi.testclient import TestClient

from matchduo.app import App
from matchduo.config import Config
from matchduo.core.core import Core
from matchduo.web.server import create_fastapi_app

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture
def config() -> Config:
    """In-memory configuration with plain-http cookies so TestClient sends them back."""
    return Config(
        _env_file=None,
        database_url=None,
        jwt_secret_key=TEST_SECRET,
        cookie_secure=False,
    )


@pytest.fixture
async def core(config: Config) -> AsyncGenerator[Core]:
    """Started core backed by in-memory stores."""
    core = Core(config)
    async with core.lifespan():
        yield core


@pytest.fixture
def app(config: Config) -> App:
    return App(config)


@pytest.fixture
def client(app: App, config: Config) -> Generator[TestClient]:
    with TestClient(create_fastapi_app(app, config)) as client:
        yield client
