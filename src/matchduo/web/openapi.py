from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

from matchduo.web.cookies import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE

# Routes reachable without an access token
PUBLIC_ENDPOINTS = {
    ("POST", "/api/v1/auth/login"),
    ("POST", "/api/v1/auth/refresh"),
    ("POST", "/api/v1/auth/logout"),
    ("GET", "/health"),
}


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="MatchDuo Auth API",
            version="0.1.0",
            summary="Login, token refresh and logout for MatchDuo",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Access token in the Authorization header",
            },
            "AccessTokenCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": ACCESS_TOKEN_COOKIE,
                "description": "Access token cookie set by login and refresh",
            },
            "RefreshTokenCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": REFRESH_TOKEN_COOKIE,
                "description": "Refresh token cookie set by login, read by refresh and logout",
            },
        }

        # Apply security globally (will be overridden for public endpoints)
        openapi_schema["security"] = [
            {"BearerAuth": []},
            {"AccessTokenCookie": []},
        ]

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in PUBLIC_ENDPOINTS:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Coarse error category")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"code": "WRONG_PASSWORD", "message": "Wrong password", "type": "authentication_error"},
                {"code": "NOT_FOUND_EMAIL", "message": "No account found for this email", "type": "not_found"},
                {"code": "RATE_LIMITED", "message": "Too many login attempts. Try again later.", "type": "rate_limited"},
            ]
        }
    }
