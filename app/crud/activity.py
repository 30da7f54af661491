"""
Activity log: append-only audit records.

Writes happen after the operation they describe has committed, in their own
transaction. A failed audit write is logged and does not undo or fail the
operation it describes.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import bindparam
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logging_config import tenant_extra
from app.core.tenancy import TenantContext
from app.crud.collection import ScopedCollection
from app.crud.live_query import LiveQuery
from app.models.activity import Activity, ActivityType
from app.models.common import utcnow

logger = logging.getLogger(__name__)

_DESCRIPTIONS = {
    ActivityType.JOB_CREATED: "Created job {job_title}",
    ActivityType.JOB_ARCHIVED: "Archived job {job_id} ({reason})",
    ActivityType.JOB_DELETED: "Deleted job {job_id} and {count} candidate links",
    ActivityType.JOB_STATUS_UPDATED: "Set job {id} to {status}",
    ActivityType.CANDIDATE_CREATED: "Added candidate {candidate_name}",
    ActivityType.CANDIDATE_ARCHIVED: "Archived candidate {candidate_id} ({reason})",
    ActivityType.CANDIDATE_DELETED: "Deleted candidate {candidate_id} and {count} job links",
    ActivityType.CANDIDATE_STATUS_UPDATED: "Set candidate {id} to {status}",
    ActivityType.STAGE_CHANGED: "Moved {candidate_name} to {new_stage}",
}


class _Missing(dict):
    def __missing__(self, key):
        return "?"


def describe_activity(activity_type: ActivityType, **params: Any) -> str:
    """Human-readable description for an activity, tolerant of missing params."""
    template = _DESCRIPTIONS.get(ActivityType(activity_type), "{type}")
    return template.format_map(_Missing({"type": ActivityType(activity_type).value, **params}))


def log_activity(
    db: Session,
    context: TenantContext,
    activity_type: ActivityType,
    metadata: Optional[Dict[str, Any]] = None,
    description: Optional[str] = None,
) -> Optional[Activity]:
    """
    Append one activity record for the caller.

    Returns the stored Activity, or None when the caller has no user/company
    or the write failed.
    """
    if not context.user_id or not context.company_id:
        logger.warning(
            f"Skipping {ActivityType(activity_type).value} activity: caller has no user or company",
            extra=tenant_extra(context),
        )
        return None

    metadata = metadata or {}
    activity = Activity(
        user_id=context.user_id,
        company_id=context.company_id,
        type=ActivityType(activity_type).value,
        description=description or describe_activity(activity_type, **metadata),
        details=metadata,
        timestamp=utcnow(),
    )

    try:
        db.add(activity)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to log {activity.type} activity: {e}", extra=tenant_extra(context))
        return None

    logger.debug(f"Logged activity {activity.type}", extra=tenant_extra(context))
    return activity


def _recent_filters(context: TenantContext, days: int) -> List[Any]:
    # Cutoff is computed on every execution so a long-lived feed keeps sliding
    since = bindparam(
        "since",
        callable_=lambda: utcnow() - timedelta(days=days),
        type_=Activity.timestamp.type,
    )
    return [Activity.user_id == context.user_id, Activity.timestamp >= since]


def list_recent_activities(
    db: Session,
    context: TenantContext,
    limit: int = None,
    days: int = None,
) -> List[Activity]:
    """The caller's own activities in their company, newest first."""
    if not context.user_id or not context.company_id:
        return []
    return ScopedCollection(db, Activity, context).query(
        *_recent_filters(context, days or settings.ACTIVITY_FEED_DAYS),
        order_by=(Activity.timestamp.desc(),),
        limit=limit or settings.ACTIVITY_FEED_LIMIT,
    )


def subscribe_recent_activities(
    db: Session,
    context: TenantContext,
    limit: int = None,
    days: int = None,
    on_change=None,
) -> LiveQuery:
    """Live version of list_recent_activities."""
    return ScopedCollection(db, Activity, context).subscribe(
        *_recent_filters(context, days or settings.ACTIVITY_FEED_DAYS),
        order_by=(Activity.timestamp.desc(),),
        limit=limit or settings.ACTIVITY_FEED_LIMIT,
        on_change=on_change,
    )
