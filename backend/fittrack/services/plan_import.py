"""Turn the workouts extracted from a PDF plan into sessions linked to that plan."""
from __future__ import annotations

import logging
from datetime import date, timedelta

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.config import settings
from fittrack.models.workout_plan import WorkoutPlan
from fittrack.schemas.parsing import ParsedPlanWorkout
from fittrack.services import storage
from fittrack.services.http_client import get_http_client
from fittrack.services.workout_writer import create_workout_session

logger = logging.getLogger(__name__)


def next_monday(today: date | None = None) -> date:
    """The Monday after `today` (a week ahead when today is Monday)."""
    today = today or date.today()
    return today + timedelta(days=7 - today.weekday())


async def fetch_plan_pdf(plan: WorkoutPlan) -> bytes:
    """PDF bytes of a plan: from the plans bucket when we stored it, else from its file_url."""
    if plan.storage_path:
        return await storage.download_object(settings.s3_plans_bucket, plan.storage_path)
    if not plan.file_url:
        raise ValueError("Workout plan has no file")
    resp = await get_http_client().get(plan.file_url)
    resp.raise_for_status()
    return resp.content


def validate_plan_items(items: list, today: date | None = None) -> list[ParsedPlanWorkout]:
    """
    Keep the items that validate; undated ones are scheduled on consecutive
    days starting next Monday, in the order they appear.
    """
    start = next_monday(today)
    undated = 0
    workouts: list[ParsedPlanWorkout] = []
    for idx, item in enumerate(items):
        try:
            workout = ParsedPlanWorkout.model_validate(item)
        except ValidationError as e:
            logger.warning("plan_import: skipping item %d: %s", idx, e.errors()[:1])
            continue
        if workout.date is None:
            workout.date = start + timedelta(days=undated)
            undated += 1
        workouts.append(workout)
    return workouts


async def import_plan_workouts(
    session: AsyncSession, user_id: int, plan: WorkoutPlan, items: list
) -> tuple[int, int]:
    """Create one session per valid item. Returns (workouts_created, exercises_created)."""
    workouts_created = exercises_created = 0
    for workout in validate_plan_items(items):
        _, created = await create_workout_session(
            session,
            user_id,
            date=workout.date,
            category=workout.category.value,
            duration_minutes=workout.duration_minutes,
            notes=workout.notes,
            workout_plan_id=plan.id,
            exercises=workout.exercises,
        )
        workouts_created += 1
        exercises_created += created
    logger.info(
        "plan_import: plan_id=%s items=%d workouts=%d exercises=%d",
        plan.id, len(items), workouts_created, exercises_created,
    )
    return workouts_created, exercises_created
