"""Repeat one week's workout schedule over the following weeks."""
from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.models.workout_session import WorkoutSession
from fittrack.services.weekly_report import week_bounds
from fittrack.services.workout_writer import create_workout_session, load_workout_sessions

logger = logging.getLogger(__name__)


async def copy_week_schedule(
    session: AsyncSession, user_id: int, week_start: date, weeks: int
) -> list[WorkoutSession]:
    """
    Duplicate every session of [week_start, week_start + 6] into each of the next `weeks` weeks,
    keeping weekday, category, duration, notes, plan link, exercises and sets.
    Returns the new sessions (not yet reloaded).
    """
    start, end = week_bounds(week_start)
    source = await load_workout_sessions(session, user_id, start, end)
    created: list[WorkoutSession] = []
    for offset in range(1, weeks + 1):
        shift = timedelta(weeks=offset)
        for src in source:
            ws, _ = await create_workout_session(
                session,
                user_id,
                date=src.date + shift,
                category=src.category,
                duration_minutes=src.duration_minutes,
                notes=src.notes,
                workout_plan_id=src.workout_plan_id,
                exercises=list(src.exercises),
            )
            created.append(ws)
    logger.info(
        "schedule_copy: user_id=%s week=%s source_sessions=%d weeks=%d created=%d",
        user_id, week_start, len(source), weeks, len(created),
    )
    return created
