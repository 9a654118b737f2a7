"""Workout plans API: PDF upload to object storage, listing, deletion, AI import into sessions."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.api.deps import consume_ai_quota, get_current_user
from fittrack.api.v1.ai import AI_PARSE_FAILED
from fittrack.config import settings
from fittrack.db.session import get_db
from fittrack.models.user import User
from fittrack.models.workout_plan import WorkoutPlan
from fittrack.models.workout_session import WorkoutSession
from fittrack.schemas.parsing import ParsePlanResponse
from fittrack.schemas.plan import WorkoutPlanOut
from fittrack.services import storage
from fittrack.services.audit import record_action
from fittrack.services.gemini_workout_parser import GeminiNotConfiguredError, parse_workout_plan_pdf
from fittrack.services.plan_import import fetch_plan_pdf, import_plan_workouts

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/plans", tags=["plans"])

PDF_MAGIC = b"%PDF"


def _validate_pdf(data: bytes) -> None:
    if len(data) == 0:
        raise HTTPException(status_code=400, detail="File is empty or invalid.")
    if len(data) > settings.max_plan_bytes:
        raise HTTPException(
            status_code=400, detail=f"File too large (max {settings.max_plan_bytes // (1024 * 1024)}MB)"
        )
    if not data.startswith(PDF_MAGIC):
        raise HTTPException(status_code=400, detail="File must be a PDF.")


def default_plan_name(filename: str | None) -> str:
    name = (filename or "").rsplit("/", 1)[-1].strip()
    if name.lower().endswith(".pdf"):
        name = name[:-4]
    return name or "Workout plan"


def _plan_to_response(row: WorkoutPlan, session_count: int = 0) -> dict:
    return {
        "id": row.id,
        "name": row.name,
        "file_url": row.file_url,
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "session_count": session_count,
    }


async def _require_plan(session: AsyncSession, user_id: int, plan_id: int) -> WorkoutPlan:
    r = await session.execute(select(WorkoutPlan).where(WorkoutPlan.id == plan_id, WorkoutPlan.user_id == user_id))
    plan = r.scalar_one_or_none()
    if not plan:
        raise HTTPException(status_code=404, detail="Workout plan not found.")
    return plan


@router.post(
    "",
    response_model=WorkoutPlanOut,
    status_code=201,
    summary="Upload a PDF workout plan",
    responses={
        400: {"description": "Not a PDF, empty or too large"},
        401: {"description": "Not authenticated"},
        502: {"description": "Storage unavailable"},
    },
)
async def upload_plan(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    file: Annotated[UploadFile, File(description="Workout plan PDF")],
    name: Annotated[str | None, Form()] = None,
) -> dict:
    data = await file.read()
    _validate_pdf(data)
    key = storage.plan_object_key(user.id, file.filename)
    try:
        file_url = await storage.upload_object(settings.s3_plans_bucket, key, data, "application/pdf")
    except Exception as e:
        logger.exception("Failed to store plan for user_id=%s", user.id)
        raise HTTPException(status_code=502, detail="Failed to store the file. Please try again.") from e
    plan = WorkoutPlan(
        user_id=user.id,
        name=(name or "").strip() or default_plan_name(file.filename),
        file_url=file_url,
        storage_path=key,
    )
    session.add(plan)
    await session.flush()
    await record_action(session, user.id, "create", "workout_plan", plan.id, details={"bytes": len(data)})
    return _plan_to_response(plan)


@router.get(
    "",
    response_model=list[WorkoutPlanOut],
    summary="List workout plans",
    responses={401: {"description": "Not authenticated"}},
)
async def list_plans(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
) -> list[dict]:
    """Newest first, with the number of sessions created from each plan."""
    counts = (
        select(WorkoutSession.workout_plan_id, func.count(WorkoutSession.id).label("n"))
        .where(WorkoutSession.user_id == user.id, WorkoutSession.workout_plan_id.isnot(None))
        .group_by(WorkoutSession.workout_plan_id)
        .subquery()
    )
    r = await session.execute(
        select(WorkoutPlan, func.coalesce(counts.c.n, 0))
        .outerjoin(counts, counts.c.workout_plan_id == WorkoutPlan.id)
        .where(WorkoutPlan.user_id == user.id)
        .order_by(WorkoutPlan.created_at.desc(), WorkoutPlan.id.desc())
    )
    return [_plan_to_response(plan, n) for plan, n in r.all()]


@router.delete(
    "/{plan_id}",
    status_code=204,
    summary="Delete workout plan (sessions are kept and detached)",
    responses={401: {"description": "Not authenticated"}, 404: {"description": "Workout plan not found"}},
)
async def delete_plan(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    plan_id: int,
) -> None:
    plan = await _require_plan(session, user.id, plan_id)
    await session.execute(
        update(WorkoutSession)
        .where(WorkoutSession.workout_plan_id == plan.id)
        .values(workout_plan_id=None)
        .execution_options(synchronize_session="fetch")
    )
    if plan.storage_path:
        await storage.delete_objects_best_effort(settings.s3_plans_bucket, [plan.storage_path])
    await record_action(session, user.id, "delete", "workout_plan", plan.id)
    await session.delete(plan)
    await session.flush()


@router.post(
    "/{plan_id}/parse",
    response_model=ParsePlanResponse,
    summary="Extract workouts from the plan PDF with AI and create sessions",
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "Workout plan not found"},
        422: {"description": "AI reply could not be used"},
        429: {"description": "Daily AI limit reached"},
        502: {"description": "Plan file or AI provider unavailable"},
        503: {"description": "AI provider not configured"},
    },
)
async def parse_plan(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    _: Annotated[None, Depends(consume_ai_quota)],
    plan_id: int,
) -> ParsePlanResponse:
    plan = await _require_plan(session, user.id, plan_id)
    try:
        pdf = await fetch_plan_pdf(plan)
    except Exception as e:
        logger.exception("Failed to download plan_id=%s", plan.id)
        raise HTTPException(status_code=502, detail="Failed to load the plan file.") from e
    logger.info("plans: parsing plan_id=%s bytes=%d", plan.id, len(pdf))
    try:
        items, method = await parse_workout_plan_pdf(pdf)
    except GeminiNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except ValueError as e:
        logger.warning("plans: unusable reply for plan_id=%s: %s", plan.id, e)
        raise HTTPException(status_code=422, detail=AI_PARSE_FAILED) from e
    except Exception as e:
        logger.exception("plans: plan parsing failed")
        raise HTTPException(status_code=502, detail="AI provider error. Please try again.") from e
    workouts, exercises = await import_plan_workouts(session, user.id, plan, items)
    await record_action(
        session, user.id, "import", "workout_plan", plan.id,
        details={"parse_method": method, "workouts": workouts, "exercises": exercises},
    )
    return ParsePlanResponse(
        message=f"Created {workouts} workouts with {exercises} exercises from the plan",
        workouts_created=workouts,
        exercises_created=exercises,
    )
