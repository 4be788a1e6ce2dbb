# core/security.py

import re

import bcrypt

from core.config import get_settings

PASSWORD_MIN_LENGTH = 8
# bcrypt only accepts up to 72 bytes of input
PASSWORD_MAX_BYTES = 72
PASSWORD_SPECIAL_CHARACTERS = "@$!%*?&£#"
PASSWORD_REGEX = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&£#])[A-Za-z\d@$!%*?&£#]{8,}$"
)
PASSWORD_POLICY_MESSAGE = (
    "Password must contain at least one uppercase letter, one lowercase letter, "
    "one number, and one special character."
)


def validate_password(password: str) -> str:
    """Raise ValueError unless the password satisfies the policy."""
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters.")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must not be longer than {PASSWORD_MAX_BYTES} bytes.")
    if not PASSWORD_REGEX.match(password):
        raise ValueError(PASSWORD_POLICY_MESSAGE)
    return password


def is_valid_password(password: str) -> bool:
    try:
        validate_password(password)
    except ValueError:
        return False
    return True


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    if not hashed_password or len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
