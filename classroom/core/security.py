"""Security utilities: bearer tokens and the acting user."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from classroom.core.settings import settings

# JWT configuration
ALGORITHM = "HS256"


class Role(str, Enum):
    """Roles known to the enrollment service."""

    ADMIN = "ADMIN"
    LECTURER = "LECTURER"
    STUDENT = "STUDENT"


class Actor(BaseModel):
    """The authenticated caller of a service operation."""

    user_id: str
    role: Role
    # Student record of a STUDENT caller. Carried in the token but not read yet;
    # reserved for letting students update their own enrollment.
    student_id: Optional[int] = None

    @property
    def is_staff(self) -> bool:
        return self.role in (Role.ADMIN, Role.LECTURER)

    def __str__(self) -> str:
        return f"{self.role.value}:{self.user_id}"


class TokenData(BaseModel):
    """Token payload model."""

    sub: str
    role: Role
    student_id: Optional[int] = None


def create_access_token(actor: Actor, expires_delta: Optional[timedelta] = None) -> str:
    """Create access token for an actor."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )
    to_encode = {
        "sub": actor.user_id,
        "role": actor.role.value,
        "exp": expire,
    }
    if actor.student_id is not None:
        to_encode["student_id"] = actor.student_id
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[Actor]:
    """Verify access token and return the actor it names."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        token_data = TokenData(**payload)
    except (JWTError, ValidationError):
        return None
    return Actor(
        user_id=token_data.sub,
        role=token_data.role,
        student_id=token_data.student_id,
    )
