"""AI endpoints: workout text import, provider connectivity checks, Gemini debug."""

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.api.deps import consume_ai_quota, get_current_user
from fittrack.config import settings
from fittrack.db.session import get_db
from fittrack.models.user import User
from fittrack.models.workout_session import WorkoutCategory
from fittrack.schemas.parsing import (
    ConnectivityResult,
    DebugParseRequest,
    DebugParseResponse,
    ProcessWorkoutTextRequest,
    ProcessWorkoutTextResponse,
)
from fittrack.services.audit import record_action
from fittrack.services.gemini_workout_parser import GeminiNotConfiguredError, debug_parse, parse_workout_text
from fittrack.services.llm_connectivity import check_provider
from fittrack.services.workout_writer import create_workout_session

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ai", tags=["ai"])

AI_PARSE_FAILED = "AI parsing failed: add manually"


def resolve_category(parsed: WorkoutCategory | None, hint: str | None) -> str:
    """Parsed category wins; otherwise a concrete hint; "auto" or unknown hints do not count."""
    if parsed is not None:
        return parsed.value
    hint = (hint or "").strip().lower()
    if hint in {c.value for c in WorkoutCategory}:
        return hint
    raise ValueError("Could not determine workout category")


@router.post(
    "/process-workout-text",
    response_model=ProcessWorkoutTextResponse,
    summary="Create a workout session from a free-text description",
    responses={
        401: {"description": "Not authenticated"},
        422: {"description": "AI reply could not be used"},
        429: {"description": "Daily AI limit reached"},
        502: {"description": "AI provider error"},
        503: {"description": "AI provider not configured"},
    },
)
async def process_workout_text(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    _: Annotated[None, Depends(consume_ai_quota)],
    body: ProcessWorkoutTextRequest,
) -> ProcessWorkoutTextResponse:
    logger.info("ai: process-workout-text user_id=%s date=%s", user.id, body.workout_date)
    try:
        parsed, method = await parse_workout_text(body.workout_text, body.category)
        category = resolve_category(parsed.workout_session.category, body.category)
    except GeminiNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except ValueError as e:
        logger.warning("ai: unusable reply for user_id=%s: %s", user.id, e)
        raise HTTPException(status_code=422, detail=AI_PARSE_FAILED) from e
    except Exception as e:
        logger.exception("ai: workout text parsing failed")
        raise HTTPException(status_code=502, detail="AI provider error. Please try again.") from e

    ws, created = await create_workout_session(
        session,
        user.id,
        date=body.workout_date,
        category=category,
        duration_minutes=parsed.workout_session.duration_minutes or settings.default_session_duration_minutes,
        notes=parsed.workout_session.notes,
        exercises=parsed.exercises,
    )
    await record_action(
        session, user.id, "create", "workout_session", ws.id, details={"source": "ai_text", "parse_method": method}
    )
    message = f"Successfully created workout with {created} exercises"
    if parsed.skipped_exercises:
        message += f" ({parsed.skipped_exercises} could not be read)"
    return ProcessWorkoutTextResponse(
        message=message,
        exercises_created=created,
        workout_session_id=ws.id,
        parse_method=method,
    )


@router.get(
    "/test/{provider}",
    response_model=ConnectivityResult,
    summary="Check connectivity to an LLM provider",
    responses={401: {"description": "Not authenticated"}},
)
async def test_provider(
    user: Annotated[User, Depends(get_current_user)],
    provider: Literal["gemini", "openai", "aiml"],
) -> ConnectivityResult:
    """Always 200; failures are described in the body."""
    result = await check_provider(provider)
    logger.info("ai: connectivity %s success=%s (user_id=%s)", provider, result.success, user.id)
    return result


@router.post(
    "/debug/gemini",
    response_model=DebugParseResponse,
    summary="Show Gemini's raw reply and how it was parsed",
    responses={
        401: {"description": "Not authenticated"},
        429: {"description": "Daily AI limit reached"},
        502: {"description": "AI provider error"},
        503: {"description": "AI provider not configured"},
    },
)
async def debug_gemini(
    user: Annotated[User, Depends(get_current_user)],
    _: Annotated[None, Depends(consume_ai_quota)],
    body: DebugParseRequest,
) -> dict:
    """Nothing is stored. Uses a sample workout when no text is given."""
    try:
        return await debug_parse(body.workout_text)
    except GeminiNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except Exception as e:
        logger.exception("ai: debug request failed (user_id=%s)", user.id)
        raise HTTPException(status_code=502, detail="AI provider error. Please try again.") from e
