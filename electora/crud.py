import logging
from typing import Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from electora.config import MIN_PASSWORD_LENGTH, VOTER_ROLE
from electora.exceptions import ValidationError
from electora.schemas import RegisterRequest, UserCreate, UserRecord
from electora.security import hash_password, verify_password
from electora.storage import MemoryStorage

logger = logging.getLogger(__name__)


# Register a new voter account with a hashed password
def register_user(storage: MemoryStorage, data: RegisterRequest) -> UserRecord:
    if not data.username or not data.email or not data.password or not data.confirm_password:
        raise ValidationError("All fields are required")
    if data.password != data.confirm_password:
        raise ValidationError("Passwords do not match")
    if len(data.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    try:
        user = UserCreate(username=data.username, email=data.email, password=data.password, role=VOTER_ROLE)
    except PydanticValidationError:
        raise ValidationError("Invalid email address")

    # hashing is slow, so do it before the store takes its lock
    hashed = hash_password(user.password)
    created = storage.add_user_if_unique(user.username, user.email, hashed, user.role)
    logger.info(f"Registered user {created.username} (id={created.id})")
    return created


# Login user
def login_user(storage: MemoryStorage, username: str, password: str) -> Tuple[Optional[UserRecord], Optional[str]]:
    user = storage.get_user_by_username(username)
    if not user:
        return None, "Invalid credentials"

    if not verify_password(password, user.hashed_password):
        return None, "Invalid credentials"

    return user, None
