"""User profile endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.api.deps import get_current_user
from fittrack.api.v1.auth import UserOut, user_out
from fittrack.db.session import get_db
from fittrack.models.user import User

router = APIRouter(prefix="/users", tags=["users"])


class ProfileUpdate(BaseModel):
    display_name: str | None = Field(None, max_length=255)


@router.patch(
    "/me",
    response_model=UserOut,
    summary="Update the current user's profile",
    responses={401: {"description": "Not authenticated"}},
)
async def update_me(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    body: ProfileUpdate,
) -> UserOut:
    """Blank display_name clears it."""
    user.display_name = (body.display_name or "").strip() or None
    await session.flush()
    return user_out(user)
