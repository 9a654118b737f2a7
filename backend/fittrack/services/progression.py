"""Progressive overload: compare an exercise's weight with the latest prior same-named exercise."""

from __future__ import annotations

import logging

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.models.exercise import Exercise
from fittrack.models.workout_session import WorkoutSession

logger = logging.getLogger(__name__)


def normalize_exercise_name(name: str) -> str:
    return (name or "").strip().lower()


def compare_weights(current: float | None, previous: float | None) -> tuple[bool, float | None]:
    """Return (is_progressive, improvement). Progressive only when current strictly exceeds previous."""
    if current is None or previous is None:
        return False, None
    if current > previous:
        return True, round(current - previous, 3)
    return False, None


async def find_previous_exercise(
    session: AsyncSession,
    user_id: int,
    exercise: Exercise,
    workout_session: WorkoutSession,
) -> Exercise | None:
    """
    Most recent exercise with the same name for this user before `exercise`:
    an earlier session date, or the same date with a lower exercise id.
    """
    name_key = normalize_exercise_name(exercise.exercise_name)
    earlier = WorkoutSession.date < workout_session.date
    if exercise.id is not None:
        earlier = or_(earlier, and_(WorkoutSession.date == workout_session.date, Exercise.id < exercise.id))
    q = (
        select(Exercise)
        .join(WorkoutSession, Exercise.workout_session_id == WorkoutSession.id)
        .where(
            WorkoutSession.user_id == user_id,
            func.lower(func.trim(Exercise.exercise_name)) == name_key,
            earlier,
        )
        .order_by(WorkoutSession.date.desc(), Exercise.id.desc())
        .limit(1)
    )
    r = await session.execute(q)
    return r.scalars().first()


async def apply_progressive_overload(
    session: AsyncSession,
    user_id: int,
    exercise: Exercise,
    workout_session: WorkoutSession,
) -> None:
    """Fill is_progressive / previous_weight_kg / weight_improvement_kg on `exercise` (not flushed)."""
    previous = await find_previous_exercise(session, user_id, exercise, workout_session)
    previous_weight = previous.weight_kg if previous is not None else None
    is_progressive, improvement = compare_weights(exercise.weight_kg, previous_weight)
    exercise.previous_weight_kg = previous_weight
    exercise.is_progressive = is_progressive
    exercise.weight_improvement_kg = improvement
    if is_progressive:
        logger.debug(
            "progression: %s %.1f -> %.1f kg (user_id=%s)",
            exercise.exercise_name,
            previous_weight,
            exercise.weight_kg,
            user_id,
        )
