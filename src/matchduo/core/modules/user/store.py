"""Identity persistence: MongoDB collection and in-memory fallback."""

import threading
from typing import Any, Protocol
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from matchduo.core.modules.user.models import User
from matchduo.errors import ValidationError


class UserStore(Protocol):
    async def ensure_indexes(self) -> None: ...

    async def get_by_email(self, email: str) -> User | None: ...

    async def get(self, user_id: UUID) -> User | None: ...

    async def insert(self, user: User) -> User: ...

    async def set_password(self, user_id: UUID, password: str) -> None: ...

    async def delete(self, user_id: UUID) -> bool: ...


class MongoUserStore:
    """Users collection, unique on email."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("users")

    async def ensure_indexes(self) -> None:
        await self._collection.create_index([("email", 1)], unique=True)

    async def get_by_email(self, email: str) -> User | None:
        return User.from_mongo(await self._collection.find_one({"email": email}))

    async def get(self, user_id: UUID) -> User | None:
        return User.from_mongo(await self._collection.find_one({"_id": user_id}))

    async def insert(self, user: User) -> User:
        """Insert a new user.

        Raises:
            ValidationError: If another user already has this email
        """
        try:
            await self._collection.insert_one(user.to_mongo())
        except DuplicateKeyError as e:
            raise ValidationError(f"User '{user.email}' already exists") from e
        return user

    async def set_password(self, user_id: UUID, password: str) -> None:
        await self._collection.update_one({"_id": user_id}, {"$set": {"password": password}})

    async def delete(self, user_id: UUID) -> bool:
        res = await self._collection.delete_one({"_id": user_id})
        return res.deleted_count > 0


class MemoryUserStore:
    """Process-local user table used when no database is configured."""

    def __init__(self) -> None:
        self._users: dict[UUID, User] = {}
        self._lock = threading.Lock()

    async def ensure_indexes(self) -> None:
        """Nothing to index in memory."""

    async def get_by_email(self, email: str) -> User | None:
        with self._lock:
            user = next((u for u in self._users.values() if u.email == email), None)
            return user.model_copy() if user else None

    async def get(self, user_id: UUID) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    async def insert(self, user: User) -> User:
        with self._lock:
            if any(u.email == user.email for u in self._users.values()):
                raise ValidationError(f"User '{user.email}' already exists")
            self._users[user.id] = user.model_copy()
        return user

    async def set_password(self, user_id: UUID, password: str) -> None:
        with self._lock:
            user = self._users.get(user_id)
            if user is not None:
                self._users[user_id] = user.model_copy(update={"password": password})

    async def delete(self, user_id: UUID) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None
