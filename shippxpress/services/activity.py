"""Activity log — who did what, for the admin dashboard feed."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shippxpress.models.activity_log import ActivityLog


def log_activity(
    db: AsyncSession,
    actor: str,
    action: str,
    description: str,
    metadata: dict | None = None,
) -> ActivityLog:
    """Stage an activity row; it commits with the operation it describes."""
    entry = ActivityLog(actor=actor, action=action, description=description, metadata_json=metadata or {})
    db.add(entry)
    return entry


async def recent_activity(db: AsyncSession, limit: int = 20) -> list[ActivityLog]:
    result = await db.execute(
        select(ActivityLog).order_by(ActivityLog.id.desc()).limit(limit)
    )
    return list(result.scalars().all())
