"""Weekly report API: report data, PDF export, share links."""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.api.deps import get_current_user
from fittrack.db.session import get_db
from fittrack.models.shared_report import SharedReport
from fittrack.models.user import User
from fittrack.schemas.report import (
    ShareCreateRequest,
    ShareCreateResponse,
    SharedReportWithComments,
    WeeklyPdfRequest,
    WeeklyReport,
)
from fittrack.services.audit import record_action
from fittrack.services.report_pdf import render_weekly_pdf, report_filename
from fittrack.services.report_sharing import create_share, load_user_shares, share_to_response, share_url
from fittrack.services.weekly_report import build_weekly_report, load_week

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/reports", tags=["reports"])


@router.get(
    "/weekly",
    response_model=WeeklyReport,
    summary="Weekly report data",
    responses={401: {"description": "Not authenticated"}},
)
async def get_weekly_report(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    week_start_date: date = Query(...),
) -> dict:
    """Workouts, progress photos and statistics for [week_start_date, week_start_date + 6]."""
    return await build_weekly_report(session, user.id, week_start_date)


@router.post(
    "/weekly/pdf",
    summary="Download the weekly report as PDF",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}, "description": "PDF report"},
        401: {"description": "Not authenticated"},
        500: {"description": "PDF generation failed"},
    },
)
async def weekly_report_pdf(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    body: WeeklyPdfRequest,
) -> Response:
    sessions, photos = await load_week(session, user.id, body.week_start_date)
    try:
        pdf = await render_weekly_pdf(body.week_start_date, sessions, photos)
    except Exception as e:
        logger.exception("PDF generation failed for user_id=%s week=%s", user.id, body.week_start_date)
        raise HTTPException(status_code=500, detail="Failed to generate PDF report") from e
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{report_filename(body.week_start_date)}"'},
    )


@router.post(
    "/share",
    response_model=ShareCreateResponse,
    status_code=201,
    summary="Create a public share link for a week",
    responses={401: {"description": "Not authenticated"}},
)
async def share_week(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    body: ShareCreateRequest,
) -> ShareCreateResponse:
    report = await create_share(session, user.id, body.week_start_date, body.title)
    await record_action(session, user.id, "share", "weekly_report", report.id)
    return ShareCreateResponse(share_token=report.share_token, share_url=share_url(report.share_token))


@router.get(
    "/share",
    response_model=list[SharedReportWithComments],
    summary="Active share links for a week, with comments",
    responses={401: {"description": "Not authenticated"}},
)
async def list_shares(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    week_start_date: date = Query(...),
) -> list[dict]:
    reports = await load_user_shares(session, user.id, week_start_date)
    return [share_to_response(r, with_comments=True) for r in reports]


@router.delete(
    "/share/{token}",
    status_code=204,
    summary="Deactivate a share link",
    responses={401: {"description": "Not authenticated"}, 404: {"description": "Share link not found"}},
)
async def deactivate_share(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    token: str,
) -> None:
    r = await session.execute(
        select(SharedReport).where(SharedReport.share_token == token, SharedReport.user_id == user.id)
    )
    report = r.scalar_one_or_none()
    if not report:
        raise HTTPException(status_code=404, detail="Share link not found.")
    report.is_active = False
    await session.flush()
    await record_action(session, user.id, "unshare", "weekly_report", report.id)
