"""Password verification with lazy migration of legacy plaintext credentials.

Stored credentials come in two formats. Current accounts hold a bcrypt hash,
recognisable by its ``$2`` prefix (``$2a$``, ``$2b$``, ``$2y$``). Accounts
imported from the old system still hold the plaintext. A plaintext credential
is upgraded to bcrypt the first time its owner logs in successfully; nothing
upgrades credentials in bulk.
"""

import hmac
from dataclasses import dataclass
from typing import TYPE_CHECKING

import bcrypt
import structlog

from matchduo.core.modules.user.models import User

if TYPE_CHECKING:
    from matchduo.core.modules.user.service import UserService

logger = structlog.get_logger(__name__)

BCRYPT_PREFIX = "$2"
# bcrypt only reads this many bytes of input and rejects anything longer
BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class HashedCredential:
    digest: str


@dataclass(frozen=True)
class LegacyCredential:
    plaintext: str


Credential = HashedCredential | LegacyCredential


def decode_credential(stored: str) -> Credential:
    """Classify a stored password string. The only place the format prefix is inspected."""
    if stored.startswith(BCRYPT_PREFIX):
        return HashedCredential(stored)
    return LegacyCredential(stored)


def hash_password(password: str) -> str:
    """Hash a password with a fresh salt.

    Raises:
        ValueError: If the password is longer than BCRYPT_MAX_BYTES once encoded
    """
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise ValueError(f"password cannot be longer than {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")


class PasswordVerifier:
    """Checks presented passwords and migrates legacy credentials on match."""

    def __init__(self, users: "UserService") -> None:
        self._users = users

    async def verify(self, presented: str, user: User) -> bool:
        match decode_credential(user.password):
            case HashedCredential(digest=digest):
                encoded = presented.encode("utf-8")
                if len(encoded) > BCRYPT_MAX_BYTES:
                    return False  # no stored digest can come from such input
                return bcrypt.checkpw(encoded, digest.encode("utf-8"))
            case LegacyCredential(plaintext=plaintext):
                encoded = presented.encode("utf-8")
                if not hmac.compare_digest(encoded, plaintext.encode("utf-8")):
                    return False
                if len(encoded) > BCRYPT_MAX_BYTES:
                    logger.warning("password_migration_skipped", user_id=str(user.id), reason="too_long")
                    return True
                # Concurrent logins may both get here and write two different hashes of the same password
                await self._users.update_password_hash(user.id, hash_password(presented))
                logger.info("password_migrated", user_id=str(user.id))
                return True
