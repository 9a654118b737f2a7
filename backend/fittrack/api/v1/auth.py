"""Auth: register, login, refresh, me."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.api.deps import get_current_user
from fittrack.config import settings
from fittrack.core.auth import (
    create_access_token,
    create_refresh_token,
    hash_password,
    hash_refresh_token,
    verify_password,
)
from fittrack.db.session import get_db
from fittrack.models.refresh_token import RefreshToken
from fittrack.models.user import User

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterBody(BaseModel):
    email: str
    password: str = Field(..., min_length=1)
    display_name: str | None = Field(None, max_length=255)


class LoginBody(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    id: int
    email: str
    display_name: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds until access token expires
    user: UserOut


class RefreshBody(BaseModel):
    refresh_token: str


def user_out(user: User) -> UserOut:
    return UserOut(id=user.id, email=user.email, display_name=user.display_name)


async def _token_response(session: AsyncSession, user: User) -> TokenResponse:
    """Issue an access token and a stored (hashed) refresh token."""
    refresh_plain = create_refresh_token()
    session.add(
        RefreshToken(
            user_id=user.id,
            token_hash=hash_refresh_token(refresh_plain),
            expires_at=datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_expire_days),
        )
    )
    await session.flush()
    return TokenResponse(
        access_token=create_access_token(user.id, user.email),
        refresh_token=refresh_plain,
        expires_in=settings.access_token_expire_minutes * 60,
        user=user_out(user),
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    summary="Register a new user",
    responses={400: {"description": "Email and password required or email already registered"}},
)
async def register(
    session: Annotated[AsyncSession, Depends(get_db)],
    body: RegisterBody,
) -> TokenResponse:
    email = (body.email or "").strip().lower()
    if not email or "@" not in email or not body.password:
        raise HTTPException(status_code=400, detail="Email and password required")
    r = await session.execute(select(User).where(User.email == email))
    if r.scalar_one_or_none() is not None:
        raise HTTPException(status_code=400, detail="Email already registered")
    display_name = (body.display_name or "").strip() or None
    user = User(email=email, password_hash=hash_password(body.password), display_name=display_name)
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as e:
        logger.warning("Register IntegrityError: %s", e)
        raise HTTPException(status_code=400, detail="Email already registered") from e
    logger.info("auth: registered user_id=%s", user.id)
    return await _token_response(session, user)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login with email and password",
    responses={401: {"description": "Invalid email or password"}},
)
async def login(
    session: Annotated[AsyncSession, Depends(get_db)],
    body: LoginBody,
) -> TokenResponse:
    email = (body.email or "").strip().lower()
    if not email or not body.password:
        raise HTTPException(status_code=401, detail="Email and password required")
    r = await session.execute(select(User).where(User.email == email))
    user = r.scalar_one_or_none()
    if not user or not user.password_hash or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return await _token_response(session, user)


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Exchange refresh token for new access and refresh tokens",
    responses={401: {"description": "Refresh token required, invalid or expired"}},
)
async def refresh_tokens(
    session: Annotated[AsyncSession, Depends(get_db)],
    body: RefreshBody,
) -> TokenResponse:
    """Rotation: the presented refresh token is consumed and a new pair is issued."""
    plain = (body.refresh_token or "").strip()
    if not plain:
        raise HTTPException(status_code=401, detail="Refresh token required")
    r = await session.execute(
        select(RefreshToken).where(
            RefreshToken.token_hash == hash_refresh_token(plain),
            RefreshToken.expires_at > datetime.now(timezone.utc),
        )
    )
    row = r.scalar_one_or_none()
    if not row:
        raise HTTPException(status_code=401, detail="Invalid or expired refresh token")
    user_id = row.user_id
    await session.delete(row)
    await session.flush()
    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return await _token_response(session, user)


@router.get(
    "/me",
    response_model=UserOut,
    summary="Get current authenticated user",
    responses={401: {"description": "Not authenticated or invalid token"}},
)
async def me(user: Annotated[User, Depends(get_current_user)]) -> UserOut:
    return user_out(user)
