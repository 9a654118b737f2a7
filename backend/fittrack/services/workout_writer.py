"""
Create and load workout sessions with their exercises and sets.

Shared by manual entry, AI text import, PDF plan import and schedule copy.
Rows are linked through foreign keys only; callers reload through
load_workout_session() to get the nested tree.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fittrack.models.exercise import Exercise, ExerciseSet, ExerciseType
from fittrack.models.workout_session import WorkoutSession
from fittrack.services.progression import apply_progressive_overload

logger = logging.getLogger(__name__)


def _session_tree_options():
    return selectinload(WorkoutSession.exercises).selectinload(Exercise.exercise_sets)


async def load_workout_session(session: AsyncSession, user_id: int, session_id: int) -> WorkoutSession | None:
    r = await session.execute(
        select(WorkoutSession)
        .where(WorkoutSession.id == session_id, WorkoutSession.user_id == user_id)
        .options(_session_tree_options())
        .execution_options(populate_existing=True)
    )
    return r.scalar_one_or_none()


async def load_workout_sessions(
    session: AsyncSession,
    user_id: int,
    from_date: date,
    to_date: date,
    limit: int | None = None,
    offset: int = 0,
) -> Sequence[WorkoutSession]:
    """Sessions in [from_date, to_date] (inclusive), oldest first, with exercises and sets."""
    q = (
        select(WorkoutSession)
        .where(
            WorkoutSession.user_id == user_id,
            WorkoutSession.date >= from_date,
            WorkoutSession.date <= to_date,
        )
        .order_by(WorkoutSession.date.asc(), WorkoutSession.id.asc())
        .options(_session_tree_options())
        .execution_options(populate_existing=True)
    )
    if limit is not None:
        q = q.offset(offset).limit(limit)
    r = await session.execute(q)
    return r.scalars().all()


async def load_exercise(session: AsyncSession, user_id: int, exercise_id: int) -> Exercise | None:
    """The user's exercise with its sets and parent session loaded."""
    r = await session.execute(
        select(Exercise)
        .join(WorkoutSession, Exercise.workout_session_id == WorkoutSession.id)
        .where(Exercise.id == exercise_id, WorkoutSession.user_id == user_id)
        .options(selectinload(Exercise.exercise_sets), selectinload(Exercise.workout_session))
        .execution_options(populate_existing=True)
    )
    return r.scalar_one_or_none()


def _set_rows(exercise: Exercise, sets: Iterable) -> list[ExerciseSet]:
    rows = []
    for idx, s in enumerate(sets or [], start=1):
        if s.reps is None:
            continue
        rows.append(
            ExerciseSet(
                exercise_id=exercise.id,
                set_number=s.set_number or idx,
                reps=s.reps,
                weight_kg=s.weight_kg if exercise.exercise_type == ExerciseType.strength.value else None,
            )
        )
    return rows


async def add_exercise(
    session: AsyncSession,
    user_id: int,
    workout_session: WorkoutSession,
    data,
) -> Exercise:
    """
    Insert one exercise (ExerciseCreate or ParsedExercise) and its sets, then
    compute progressive overload against the user's history.
    """
    exercise_type = data.exercise_type.value if isinstance(data.exercise_type, ExerciseType) else data.exercise_type
    exercise = Exercise(
        workout_session_id=workout_session.id,
        exercise_name=data.exercise_name.strip(),
        exercise_type=exercise_type or ExerciseType.strength.value,
        sets=data.sets,
        reps=data.reps,
        weight_kg=data.weight_kg,
        distance_km=data.distance_km,
        time_minutes=data.time_minutes,
        laps=data.laps,
        notes=data.notes,
    )
    session.add(exercise)
    await session.flush()
    set_rows = _set_rows(exercise, data.exercise_sets)
    session.add_all(set_rows)
    await apply_progressive_overload(session, user_id, exercise, workout_session)
    await session.flush()
    return exercise


async def create_workout_session(
    session: AsyncSession,
    user_id: int,
    *,
    date: date,
    category: str,
    exercises: Iterable,
    duration_minutes: int | None = None,
    notes: str | None = None,
    workout_plan_id: int | None = None,
) -> tuple[WorkoutSession, int]:
    """Insert a session and its exercises. Returns (session row, number of exercises created)."""
    ws = WorkoutSession(
        user_id=user_id,
        date=date,
        category=category,
        duration_minutes=duration_minutes,
        notes=notes,
        workout_plan_id=workout_plan_id,
    )
    session.add(ws)
    await session.flush()
    created = 0
    for data in exercises:
        await add_exercise(session, user_id, ws, data)
        created += 1
    logger.debug("workout_writer: session %s on %s with %d exercises (user_id=%s)", ws.id, date, created, user_id)
    return ws, created


async def replace_exercise_sets(session: AsyncSession, exercise: Exercise, sets: Iterable) -> list[ExerciseSet]:
    """Delete every set of `exercise` and insert `sets` in their place."""
    await session.execute(delete(ExerciseSet).where(ExerciseSet.exercise_id == exercise.id))
    rows = _set_rows(exercise, sets)
    session.add_all(rows)
    await session.flush()
    return rows


def exercise_set_to_response(row: ExerciseSet) -> dict:
    return {
        "id": row.id,
        "set_number": row.set_number,
        "reps": row.reps,
        "weight_kg": row.weight_kg,
    }


def exercise_to_response(row: Exercise) -> dict:
    return {
        "id": row.id,
        "workout_session_id": row.workout_session_id,
        "exercise_name": row.exercise_name,
        "exercise_type": row.exercise_type,
        "sets": row.sets,
        "reps": row.reps,
        "weight_kg": row.weight_kg,
        "distance_km": row.distance_km,
        "time_minutes": row.time_minutes,
        "laps": row.laps,
        "notes": row.notes,
        "is_progressive": bool(row.is_progressive),
        "previous_weight_kg": row.previous_weight_kg,
        "weight_improvement_kg": row.weight_improvement_kg,
        "exercise_sets": [exercise_set_to_response(s) for s in row.exercise_sets],
    }


def session_to_response(row: WorkoutSession) -> dict:
    return {
        "id": row.id,
        "date": row.date.isoformat(),
        "category": row.category,
        "duration_minutes": row.duration_minutes,
        "notes": row.notes,
        "workout_plan_id": row.workout_plan_id,
        "exercises": [exercise_to_response(e) for e in row.exercises],
    }
