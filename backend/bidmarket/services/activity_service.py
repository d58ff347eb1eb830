"""Audit trail helpers."""

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bidmarket.models.activity_log import ActivityLog


def record_activity(
    db: AsyncSession,
    event_type: str,
    account_id: Optional[str],
    bid_request_id: Optional[str] = None,
    bid_id: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None,
) -> ActivityLog:
    """
    Stage an activity log row in the current unit of work.

    Nothing is flushed here; the row commits or rolls back together with
    the mutation it records.
    """
    activity = ActivityLog(
        event_type=event_type,
        account_id=account_id,
        bid_request_id=bid_request_id,
        bid_id=bid_id,
        data=data or {},
    )
    db.add(activity)
    return activity
