"""Refresh token persistence with at most one record per user.

Both implementations upsert in a single conditional write: insert when the
user has no record, overwrite token and expiry in place otherwise. Two
concurrent logins for the same user leave exactly one record, holding
whichever token was written last.
"""

import threading
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID, uuid4

from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from matchduo.core.modules.refresh_token.models import RefreshRecord
from matchduo.utils import now


class RefreshTokenStore(Protocol):
    async def ensure_indexes(self) -> None: ...

    async def find_by_user(self, user_id: UUID) -> RefreshRecord | None: ...

    async def upsert(self, user_id: UUID, token: str, expires_at: datetime) -> RefreshRecord: ...

    async def delete_by_user(self, user_id: UUID) -> bool: ...


class MongoRefreshTokenStore:
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("refresh_tokens")

    async def ensure_indexes(self) -> None:
        # The unique index is what makes concurrent upserts for one user collapse into one document
        await self._collection.create_index([("user_id", 1)], unique=True)
        await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)

    async def find_by_user(self, user_id: UUID) -> RefreshRecord | None:
        return RefreshRecord.from_mongo(await self._collection.find_one({"user_id": user_id}))

    async def upsert(self, user_id: UUID, token: str, expires_at: datetime) -> RefreshRecord:
        timestamp = now()
        document = await self._collection.find_one_and_update(
            {"user_id": user_id},
            {
                "$set": {"token": token, "expires_at": expires_at, "updated_at": timestamp},
                "$setOnInsert": {"_id": uuid4(), "user_id": user_id, "created_at": timestamp},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return RefreshRecord.model_validate(document)

    async def delete_by_user(self, user_id: UUID) -> bool:
        res = await self._collection.delete_one({"user_id": user_id})
        return res.deleted_count > 0


class MemoryRefreshTokenStore:
    """Process-local records keyed by user id."""

    def __init__(self) -> None:
        self._records: dict[UUID, RefreshRecord] = {}
        self._lock = threading.Lock()

    async def ensure_indexes(self) -> None:
        """Nothing to index in memory."""

    async def find_by_user(self, user_id: UUID) -> RefreshRecord | None:
        with self._lock:
            return self._records.get(user_id)

    async def upsert(self, user_id: UUID, token: str, expires_at: datetime) -> RefreshRecord:
        timestamp = now()
        with self._lock:
            existing = self._records.get(user_id)
            if existing is None:
                record = RefreshRecord(user_id=user_id, token=token, expires_at=expires_at, created_at=timestamp)
            else:
                record = existing.model_copy(update={"token": token, "expires_at": expires_at, "updated_at": timestamp})
            self._records[user_id] = record
            return record

    async def delete_by_user(self, user_id: UUID) -> bool:
        with self._lock:
            return self._records.pop(user_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
