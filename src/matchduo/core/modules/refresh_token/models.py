"""Server-side refresh token record."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from matchduo.core.db import MongoModel
from matchduo.utils import now


class RefreshRecord(MongoModel):
    """The one refresh token currently honoured for a user.

    Indexed on user_id - unique, expires_at (TTL).
    """

    user_id: UUID
    token: str
    expires_at: datetime
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
