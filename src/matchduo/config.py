from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str | None = None  # MongoDB URL; in-memory stores are used when unset
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False
    cors_origins: list[str] = []
    jwt_secret_key: str = Field(..., min_length=32)  # HS256 signing key, at least 256 bits
    access_token_expire_seconds: int = 60 * 60
    refresh_token_expire_seconds: int = 7 * 24 * 60 * 60
    cookie_secure: bool = True
    cookie_samesite: Literal["lax", "strict", "none"] = "lax"
    cookie_domain: str | None = None
    login_rate_limit_capacity: int = 5
    login_rate_limit_window_seconds: int = 15 * 60
    # Drop idle login buckets at this interval; buckets are kept for the process lifetime when unset
    login_rate_limit_sweep_seconds: int | None = None

    model_config = {
        "env_file": [".env"],
        "env_prefix": "MATCHDUO_",
        "extra": "ignore",
    }
