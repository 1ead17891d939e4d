import re

from matchduo.core.modules.password.verifier import BCRYPT_MAX_BYTES
from matchduo.errors import ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_email(email: str) -> None:
    """Validate email has a local part, a domain and no whitespace.

    Raises:
        ValidationError: If email doesn't look like an address
    """
    if not EMAIL_RE.fullmatch(email):
        raise ValidationError(f"Invalid email: '{email}'")


def validate_password(password: str, max_bytes: int | None = BCRYPT_MAX_BYTES) -> None:
    """Validate password meets requirements.

    Requirements:
    - No whitespace characters
    - Minimum length of 2 characters
    - At most ``max_bytes`` bytes in UTF-8, the most bcrypt accepts (None for no limit)

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < 2:
        raise ValidationError("Password must be at least 2 characters long")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")

    if max_bytes is not None and len(password.encode("utf-8")) > max_bytes:
        raise ValidationError(f"Password cannot be longer than {max_bytes} bytes")
