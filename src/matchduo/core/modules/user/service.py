from uuid import UUID

import structlog

from matchduo.core.modules.password.verifier import BCRYPT_MAX_BYTES, hash_password
from matchduo.core.modules.user.models import User
from matchduo.core.modules.user.store import UserStore
from matchduo.core.modules.user.validators import validate_email, validate_password
from matchduo.core.service import Service
from matchduo.errors import NotFoundEmailError, NotFoundUserError, ValidationError

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Reads identities and owns the only writes to their credential field."""

    def __init__(self, store: UserStore) -> None:
        super().__init__()
        self._store = store

    async def get_user(self, user_id: UUID) -> User:
        """Get user by ID."""
        user = await self._store.get(user_id)
        if user is None:
            raise NotFoundUserError
        return user

    async def get_user_by_email(self, email: str) -> User:
        """Get user by login email."""
        user = await self._store.get_by_email(email)
        if user is None:
            raise NotFoundEmailError
        return user

    async def create_user(self, email: str, nickname: str, password: str, *, legacy: bool = False) -> User:
        """Create user with hashed password.

        With ``legacy=True`` the password is stored as plaintext, the way accounts
        imported from the old system arrive; it is upgraded on first login.
        """
        validate_email(email)
        # Legacy plaintext is never hashed here and has no byte limit
        validate_password(password, max_bytes=None if legacy else BCRYPT_MAX_BYTES)
        if await self._store.get_by_email(email) is not None:
            raise ValidationError(f"User '{email}' already exists")

        stored = password if legacy else hash_password(password)
        user = await self._store.insert(User(email=email, nickname=nickname, password=stored))
        logger.debug("user_created", user_id=str(user.id), legacy=legacy)
        return user

    async def update_password_hash(self, user_id: UUID, digest: str) -> None:
        await self._store.set_password(user_id, digest)

    async def delete_user(self, user_id: UUID) -> None:
        """Delete a user from the system."""
        if not await self._store.delete(user_id):
            raise NotFoundUserError

    async def on_start(self) -> None:
        await self._store.ensure_indexes()
