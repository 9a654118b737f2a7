"""Weekly report data: sessions, progress photos and summary statistics for a 7-day window."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.models.progress_photo import ProgressPhoto
from fittrack.models.workout_session import WorkoutSession
from fittrack.services.workout_writer import load_workout_sessions, session_to_response


def week_bounds(week_start: date) -> tuple[date, date]:
    """Inclusive [start, start + 6 days]."""
    return week_start, week_start + timedelta(days=6)


def exercise_set_count(exercise) -> int:
    """Recorded set rows when present, otherwise the summary `sets` value."""
    if exercise.exercise_sets:
        return len(exercise.exercise_sets)
    return exercise.sets or 0


def compute_week_stats(sessions: Sequence[WorkoutSession]) -> dict:
    categories: list[str] = []
    for s in sessions:
        if s.category not in categories:
            categories.append(s.category)
    return {
        "total_workouts": len(sessions),
        "total_exercises": sum(len(s.exercises) for s in sessions),
        "total_sets": sum(exercise_set_count(e) for s in sessions for e in s.exercises),
        "categories_worked": categories,
    }


def photo_to_response(row: ProgressPhoto) -> dict:
    return {
        "id": row.id,
        "photo_url": row.photo_url,
        "week_start_date": row.week_start_date.isoformat(),
        "notes": row.notes,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }


async def load_week_photos(session: AsyncSession, user_id: int, week_start: date) -> Sequence[ProgressPhoto]:
    r = await session.execute(
        select(ProgressPhoto)
        .where(ProgressPhoto.user_id == user_id, ProgressPhoto.week_start_date == week_start)
        .order_by(ProgressPhoto.created_at.asc(), ProgressPhoto.id.asc())
    )
    return r.scalars().all()


async def load_week(
    session: AsyncSession, user_id: int, week_start: date
) -> tuple[Sequence[WorkoutSession], Sequence[ProgressPhoto]]:
    start, end = week_bounds(week_start)
    sessions = await load_workout_sessions(session, user_id, start, end)
    photos = await load_week_photos(session, user_id, week_start)
    return sessions, photos


async def build_weekly_report(session: AsyncSession, user_id: int, week_start: date) -> dict:
    """Payload shared by GET /reports/weekly and the public share page."""
    sessions, photos = await load_week(session, user_id, week_start)
    start, end = week_bounds(week_start)
    return {
        "workouts": [session_to_response(s) for s in sessions],
        "progress_photos": [photo_to_response(p) for p in photos],
        "stats": compute_week_stats(sessions),
        "week_range": {"start": start.isoformat(), "end": end.isoformat()},
    }
