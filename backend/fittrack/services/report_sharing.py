"""Share tokens for weekly reports and the comments viewers leave on them."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fittrack.config import settings
from fittrack.core.auth import create_share_token
from fittrack.models.shared_report import ReportComment, SharedReport

logger = logging.getLogger(__name__)


def share_url(token: str) -> str:
    return f"{settings.public_app_url.rstrip('/')}/share/{token}"


def default_share_title(week_start: date) -> str:
    return f"Weekly Progress - {week_start:%b} {week_start.day}, {week_start.year}"


async def create_share(
    session: AsyncSession, user_id: int, week_start: date, title: str | None = None
) -> SharedReport:
    report = SharedReport(
        user_id=user_id,
        share_token=create_share_token(),
        week_start_date=week_start,
        title=(title or "").strip() or default_share_title(week_start),
        is_active=True,
    )
    session.add(report)
    await session.flush()
    logger.info("report_sharing: user_id=%s shared week %s", user_id, week_start)
    return report


async def load_active_share(session: AsyncSession, token: str) -> SharedReport | None:
    r = await session.execute(
        select(SharedReport)
        .where(SharedReport.share_token == token, SharedReport.is_active.is_(True))
        .options(selectinload(SharedReport.comments))
        .execution_options(populate_existing=True)
    )
    return r.scalar_one_or_none()


async def load_user_shares(session: AsyncSession, user_id: int, week_start: date) -> Sequence[SharedReport]:
    r = await session.execute(
        select(SharedReport)
        .where(
            SharedReport.user_id == user_id,
            SharedReport.week_start_date == week_start,
            SharedReport.is_active.is_(True),
        )
        .options(selectinload(SharedReport.comments))
        .order_by(SharedReport.created_at.desc(), SharedReport.id.desc())
        .execution_options(populate_existing=True)
    )
    return r.scalars().all()


async def add_comment(session: AsyncSession, report: SharedReport, commenter_name: str, comment_text: str) -> ReportComment:
    comment = ReportComment(
        shared_report_id=report.id,
        commenter_name=commenter_name.strip(),
        comment_text=comment_text.strip(),
    )
    session.add(comment)
    await session.flush()
    return comment


def comment_to_response(row: ReportComment) -> dict:
    return {
        "id": row.id,
        "commenter_name": row.commenter_name,
        "comment_text": row.comment_text,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }


def share_to_response(row: SharedReport, with_comments: bool = False) -> dict:
    out = {
        "id": row.id,
        "share_token": row.share_token,
        "week_start_date": row.week_start_date.isoformat(),
        "title": row.title,
        "is_active": row.is_active,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }
    if with_comments:
        out["comments"] = [comment_to_response(c) for c in row.comments]
    return out
