from uuid import UUID

from pydantic import BaseModel, Field

from matchduo.core.db import MongoModel


class User(MongoModel):
    """User domain model with credentials."""

    email: str
    nickname: str
    password: str  # bcrypt hash, or legacy plaintext until the next successful login


class UserView(BaseModel):
    """Identity summary returned by the auth endpoints (API representation)."""

    id: UUID = Field(..., serialization_alias="userId", description="User ID")
    email: str = Field(..., description="Login email")
    nickname: str = Field(..., description="Display name")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, email=user.email, nickname=user.nickname)
