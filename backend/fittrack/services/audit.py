"""Audit trail for account and data-destructive actions."""
from sqlalchemy.ext.asyncio import AsyncSession

from fittrack.models.audit_log import AuditLog


async def record_action(
    session: AsyncSession,
    user_id: int | None,
    action: str,
    resource: str,
    resource_id: int | str | None = None,
    details: dict | None = None,
    ip_address: str | None = None,
) -> None:
    """Add an audit row in the current transaction (e.g. action="delete", resource="workout_plan")."""
    session.add(
        AuditLog(
            user_id=user_id,
            action=action,
            resource=resource,
            resource_id=None if resource_id is None else str(resource_id),
            details=details,
            ip_address=ip_address,
        )
    )
    await session.flush()
