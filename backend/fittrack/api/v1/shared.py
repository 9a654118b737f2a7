"""Public (unauthenticated) view of shared weekly reports and viewer comments."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.db.session import get_db
from fittrack.schemas.report import CommentCreate, CommentOut, SharedReportView
from fittrack.services.report_sharing import (
    add_comment,
    comment_to_response,
    load_active_share,
    share_to_response,
)
from fittrack.services.weekly_report import build_weekly_report

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/shared", tags=["shared"])

NOT_FOUND_DETAIL = "Shared report not found or no longer active."


@router.get(
    "/{token}",
    response_model=SharedReportView,
    summary="View a shared weekly report",
    responses={404: {"description": "Unknown or inactive token"}},
)
async def view_shared_report(
    session: Annotated[AsyncSession, Depends(get_db)],
    token: str,
) -> dict:
    report = await load_active_share(session, token)
    if not report:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    data = await build_weekly_report(session, report.user_id, report.week_start_date)
    return {
        **data,
        "success": True,
        "report": share_to_response(report),
        "comments": [comment_to_response(c) for c in report.comments],
    }


@router.post(
    "/{token}/comments",
    response_model=CommentOut,
    status_code=201,
    summary="Comment on a shared weekly report",
    responses={404: {"description": "Unknown or inactive token"}},
)
async def comment_on_shared_report(
    session: Annotated[AsyncSession, Depends(get_db)],
    token: str,
    body: CommentCreate,
) -> dict:
    report = await load_active_share(session, token)
    if not report:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    comment = await add_comment(session, report, body.commenter_name, body.comment_text)
    logger.info("shared: comment on report_id=%s", report.id)
    return comment_to_response(comment)
