"""Periodic housekeeping run by the app scheduler."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.models.refresh_token import RefreshToken

logger = logging.getLogger(__name__)


async def purge_expired_refresh_tokens(session: AsyncSession, now: datetime | None = None) -> int:
    """Delete refresh tokens past their expiry. Returns the number removed."""
    now = now or datetime.now(timezone.utc)
    r = await session.execute(delete(RefreshToken).where(RefreshToken.expires_at <= now))
    removed = r.rowcount or 0
    if removed:
        logger.info("maintenance: purged %d expired refresh tokens", removed)
    return removed
