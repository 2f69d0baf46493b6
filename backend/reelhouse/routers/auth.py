"""Authentication router for registration, login and the current user."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.database import get_db
from reelhouse.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from reelhouse.models.user import User
from reelhouse.responses import success
from reelhouse.schemas import LoginRequest, RegisterRequest, TokenOut, UserOut
from reelhouse.services.auth import (
    create_access_token,
    get_password_hash,
    require_user,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create an account. The very first account becomes the admin."""
    if request.password != request.confirm_password:
        raise ValidationError("Passwords do not match")

    existing_result = await db.execute(
        select(User).where(or_(User.email == request.email, User.username == request.username))
    )
    existing = existing_result.scalars().first()
    if existing:
        if existing.email == request.email:
            raise ConflictError("Email already exists")
        raise ConflictError("Username already exists")

    count_result = await db.execute(select(func.count(User.id)))
    user_count = count_result.scalar() or 0

    user = User(
        username=request.username,
        email=request.email,
        hashed_password=get_password_hash(request.password),
        is_admin=user_count == 0,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("User %s registered", user.id)
    return success(UserOut.model_validate(user), "User registered successfully")


@router.post("/login")
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == request.email))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise NotFoundError("User not found")
    if not verify_password(request.password, user.hashed_password):
        raise UnauthorizedError("Incorrect password")

    user.last_login_at = datetime.utcnow()
    await db.commit()
    await db.refresh(user)

    token = create_access_token(data={"sub": str(user.id)})
    return success(
        TokenOut(access_token=token, user=UserOut.model_validate(user)),
        "Login successful",
    )


@router.get("/me")
async def get_me(current_user: User = Depends(require_user)):
    return success(UserOut.model_validate(current_user))
