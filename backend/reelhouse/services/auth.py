"""Authentication service with JWT token management."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.config import get_settings
from reelhouse.database import get_db
from reelhouse.errors import ForbiddenError, UnauthorizedError
from reelhouse.models.user import User

logger = logging.getLogger(__name__)

settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# OAuth2 scheme
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

# JWT settings
ALGORITHM = "HS256"


@dataclass(frozen=True)
class RequestContext:
    """Authenticated identity for the current request."""

    user_id: int
    username: str
    is_admin: bool = False

    def can_access_user(self, user_id: int) -> bool:
        return self.is_admin or self.user_id == user_id

    def ensure_owner(self, owner_user_id: int) -> None:
        """Raise ForbiddenError unless the caller owns the resource."""
        if not self.can_access_user(owner_user_id):
            raise ForbiddenError("Access denied")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_subject(token: str) -> Optional[int]:
    """Return the user id carried by a token, or None if it is not valid."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    subject = payload.get("sub")
    if subject is None:
        return None
    try:
        return int(subject)
    except (TypeError, ValueError):
        return None


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Get the current authenticated user from the bearer token, if any."""
    if not token:
        return None

    user_id = decode_subject(token)
    if user_id is None:
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user and not user.is_active:
        return None

    return user


async def require_user(
    current_user: Optional[User] = Depends(get_current_user),
) -> User:
    """Require an authenticated user. Raises 401 if not authenticated."""
    if not current_user:
        raise UnauthorizedError("Authentication required")
    return current_user


async def require_admin(
    current_user: User = Depends(require_user),
) -> User:
    """Require an admin user. Raises 403 if not admin."""
    if not current_user.is_admin:
        raise ForbiddenError("Admin privileges required")
    return current_user


async def get_request_context(
    current_user: User = Depends(require_user),
) -> RequestContext:
    """Build the request-scoped identity passed into service calls."""
    return RequestContext(
        user_id=current_user.id,
        username=current_user.username,
        is_admin=bool(current_user.is_admin),
    )

