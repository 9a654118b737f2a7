"""Workout sessions API: CRUD with nested exercises and sets, weekly schedule copy, dashboard stats."""

import logging
from datetime import date, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.api.deps import get_current_user
from fittrack.db.session import get_db
from fittrack.models.exercise import Exercise
from fittrack.models.user import User
from fittrack.models.workout_plan import WorkoutPlan
from fittrack.models.workout_session import WorkoutSession
from fittrack.schemas.pagination import PaginatedResponse
from fittrack.schemas.workout import (
    CopyScheduleRequest,
    CopyScheduleResponse,
    ExerciseCreate,
    ExerciseOut,
    WorkoutSessionCreate,
    WorkoutSessionOut,
    WorkoutSessionUpdate,
    WorkoutStats,
)
from fittrack.services.audit import record_action
from fittrack.services.schedule_copy import copy_week_schedule
from fittrack.services.workout_writer import (
    add_exercise,
    create_workout_session,
    exercise_to_response,
    load_exercise,
    load_workout_session,
    load_workout_sessions,
    session_to_response,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sessions", tags=["sessions"])


def sunday_week_start(day: date) -> date:
    """Dashboard weeks run Sunday to Saturday."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


async def _require_session(session: AsyncSession, user_id: int, session_id: int) -> WorkoutSession:
    ws = await load_workout_session(session, user_id, session_id)
    if not ws:
        raise HTTPException(status_code=404, detail="Workout session not found.")
    return ws


async def _require_plan(session: AsyncSession, user_id: int, plan_id: int | None) -> None:
    if plan_id is None:
        return
    r = await session.execute(select(WorkoutPlan.id).where(WorkoutPlan.id == plan_id, WorkoutPlan.user_id == user_id))
    if r.scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="Workout plan not found.")


@router.get(
    "",
    response_model=PaginatedResponse,
    summary="List workout sessions",
    responses={401: {"description": "Not authenticated"}},
)
async def list_sessions(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    from_date: date | None = None,
    to_date: date | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> PaginatedResponse:
    """Sessions in [from_date, to_date] ordered by date, with exercises and sets. Defaults to the last 14 days."""
    to_date = to_date or date.today()
    from_date = from_date or (to_date - timedelta(days=14))
    count_q = select(func.count(WorkoutSession.id)).where(
        WorkoutSession.user_id == user.id,
        WorkoutSession.date >= from_date,
        WorkoutSession.date <= to_date,
    )
    total = (await session.execute(count_q)).scalar() or 0
    rows = await load_workout_sessions(session, user.id, from_date, to_date, limit=limit, offset=offset)
    return PaginatedResponse(
        items=[session_to_response(r) for r in rows],
        total=total,
        limit=limit,
        offset=offset,
        has_more=(offset + limit) < total,
    )


@router.get(
    "/stats",
    response_model=WorkoutStats,
    summary="Dashboard workout statistics",
    responses={401: {"description": "Not authenticated"}},
)
async def get_stats(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
) -> WorkoutStats:
    """Total sessions, sessions this week (Sunday start) and the sum of exercises' set counts."""
    week_start = sunday_week_start(date.today())
    total = await session.scalar(select(func.count(WorkoutSession.id)).where(WorkoutSession.user_id == user.id))
    this_week = await session.scalar(
        select(func.count(WorkoutSession.id)).where(
            WorkoutSession.user_id == user.id,
            WorkoutSession.date >= week_start,
            WorkoutSession.date <= week_start + timedelta(days=6),
        )
    )
    total_sets = await session.scalar(
        select(func.coalesce(func.sum(Exercise.sets), 0))
        .join(WorkoutSession, Exercise.workout_session_id == WorkoutSession.id)
        .where(WorkoutSession.user_id == user.id)
    )
    return WorkoutStats(total_workouts=total or 0, this_week_workouts=this_week or 0, total_sets=total_sets or 0)


@router.post(
    "",
    response_model=WorkoutSessionOut,
    status_code=201,
    summary="Create workout session with exercises",
    responses={401: {"description": "Not authenticated"}, 404: {"description": "Workout plan not found"}},
)
async def create_session(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    body: WorkoutSessionCreate,
) -> dict:
    await _require_plan(session, user.id, body.workout_plan_id)
    ws, created = await create_workout_session(
        session,
        user.id,
        date=body.date,
        category=body.category.value,
        duration_minutes=body.duration_minutes,
        notes=body.notes,
        workout_plan_id=body.workout_plan_id,
        exercises=body.exercises,
    )
    await record_action(
        session, user.id, "create", "workout_session", ws.id, details={"source": "manual", "exercises": created}
    )
    return session_to_response(await _require_session(session, user.id, ws.id))


@router.post(
    "/copy-week",
    response_model=CopyScheduleResponse,
    status_code=201,
    summary="Copy a week's schedule to the following weeks",
    responses={401: {"description": "Not authenticated"}},
)
async def copy_week(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    body: CopyScheduleRequest,
) -> CopyScheduleResponse:
    created = await copy_week_schedule(session, user.id, body.week_start_date, body.weeks)
    out = [session_to_response(await _require_session(session, user.id, ws.id)) for ws in created]
    return CopyScheduleResponse(
        message=f"Copied {len(created)} workout sessions for the next {body.weeks} weeks.",
        sessions_created=len(created),
        sessions=out,
    )


@router.get(
    "/{session_id}",
    response_model=WorkoutSessionOut,
    summary="Get workout session",
    responses={401: {"description": "Not authenticated"}, 404: {"description": "Workout session not found"}},
)
async def get_session(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    session_id: int,
) -> dict:
    return session_to_response(await _require_session(session, user.id, session_id))


@router.patch(
    "/{session_id}",
    response_model=WorkoutSessionOut,
    summary="Update workout session",
    responses={401: {"description": "Not authenticated"}, 404: {"description": "Workout session not found"}},
)
async def update_session(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    session_id: int,
    body: WorkoutSessionUpdate,
) -> dict:
    ws = await _require_session(session, user.id, session_id)
    if body.date is not None:
        ws.date = body.date
    if body.category is not None:
        ws.category = body.category.value
    if body.duration_minutes is not None:
        ws.duration_minutes = body.duration_minutes
    if body.notes is not None:
        ws.notes = body.notes
    await session.flush()
    await record_action(session, user.id, "update", "workout_session", ws.id)
    return session_to_response(await _require_session(session, user.id, session_id))


@router.delete(
    "/{session_id}",
    status_code=204,
    summary="Delete workout session with its exercises and sets",
    responses={401: {"description": "Not authenticated"}, 404: {"description": "Workout session not found"}},
)
async def delete_session(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    session_id: int,
) -> None:
    ws = await _require_session(session, user.id, session_id)
    await record_action(
        session, user.id, "delete", "workout_session", ws.id, details={"exercises": len(ws.exercises)}
    )
    await session.delete(ws)
    await session.flush()


@router.post(
    "/{session_id}/exercises",
    response_model=ExerciseOut,
    status_code=201,
    summary="Add an exercise to a session",
    responses={401: {"description": "Not authenticated"}, 404: {"description": "Workout session not found"}},
)
async def create_exercise(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    session_id: int,
    body: ExerciseCreate,
) -> dict:
    ws = await _require_session(session, user.id, session_id)
    exercise = await add_exercise(session, user.id, ws, body)
    return exercise_to_response(await load_exercise(session, user.id, exercise.id))
