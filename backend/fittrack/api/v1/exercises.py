"""Exercises API: update summary numbers, delete, read and replace per-set details."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.api.deps import get_current_user
from fittrack.db.session import get_db
from fittrack.models.exercise import Exercise
from fittrack.models.user import User
from fittrack.schemas.workout import ExerciseOut, ExerciseSetOut, ExerciseSetsReplace, ExerciseUpdate
from fittrack.services.audit import record_action
from fittrack.services.progression import apply_progressive_overload
from fittrack.services.workout_writer import (
    exercise_set_to_response,
    exercise_to_response,
    load_exercise,
    replace_exercise_sets,
)

router = APIRouter(prefix="/exercises", tags=["exercises"])

NOT_FOUND = {404: {"description": "Exercise not found"}, 401: {"description": "Not authenticated"}}


async def _require_exercise(session: AsyncSession, user_id: int, exercise_id: int) -> Exercise:
    exercise = await load_exercise(session, user_id, exercise_id)
    if not exercise:
        raise HTTPException(status_code=404, detail="Exercise not found.")
    return exercise


@router.patch("/{exercise_id}", response_model=ExerciseOut, summary="Update exercise", responses=NOT_FOUND)
async def update_exercise(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    exercise_id: int,
    body: ExerciseUpdate,
) -> dict:
    """Only fields present in the body change; a new weight re-evaluates progressive overload."""
    exercise = await _require_exercise(session, user.id, exercise_id)
    changes = body.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(exercise, field, value)
    if "weight_kg" in changes:
        await apply_progressive_overload(session, user.id, exercise, exercise.workout_session)
    await session.flush()
    return exercise_to_response(await _require_exercise(session, user.id, exercise_id))


@router.delete("/{exercise_id}", status_code=204, summary="Delete exercise and its sets", responses=NOT_FOUND)
async def delete_exercise(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    exercise_id: int,
) -> None:
    exercise = await _require_exercise(session, user.id, exercise_id)
    await record_action(session, user.id, "delete", "exercise", exercise.id)
    await session.delete(exercise)
    await session.flush()


@router.get("/{exercise_id}/sets", response_model=list[ExerciseSetOut], summary="List sets", responses=NOT_FOUND)
async def list_sets(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    exercise_id: int,
) -> list[dict]:
    exercise = await _require_exercise(session, user.id, exercise_id)
    return [exercise_set_to_response(s) for s in exercise.exercise_sets]


@router.put(
    "/{exercise_id}/sets",
    response_model=list[ExerciseSetOut],
    summary="Replace all sets of an exercise",
    responses=NOT_FOUND,
)
async def replace_sets(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    exercise_id: int,
    body: ExerciseSetsReplace,
) -> list[dict]:
    exercise = await _require_exercise(session, user.id, exercise_id)
    await replace_exercise_sets(session, exercise, body.sets)
    exercise = await _require_exercise(session, user.id, exercise_id)
    return [exercise_set_to_response(s) for s in exercise.exercise_sets]
