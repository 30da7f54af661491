"""
CRUD operations for Job model.

All access goes through ScopedCollection so every read is tenant-filtered
and every write is ownership-checked.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.tenancy import TenantContext
from app.crud.activity import log_activity
from app.crud.collection import ScopedCollection
from app.crud.live_query import LiveQuery
from app.models.activity import ActivityType
from app.models.common import RecordStatus
from app.models.job import Job

logger = logging.getLogger(__name__)

JOB_THEMES = [
    {"color": "#4F46E5", "bgColor": "rgba(79, 70, 229, 0.04)", "borderColor": "rgba(79, 70, 229, 0.15)", "hoverBgColor": "rgba(79, 70, 229, 0.08)"},
    {"color": "#0891B2", "bgColor": "rgba(8, 145, 178, 0.04)", "borderColor": "rgba(8, 145, 178, 0.15)", "hoverBgColor": "rgba(8, 145, 178, 0.08)"},
    {"color": "#059669", "bgColor": "rgba(5, 150, 105, 0.04)", "borderColor": "rgba(5, 150, 105, 0.15)", "hoverBgColor": "rgba(5, 150, 105, 0.08)"},
    {"color": "#D97706", "bgColor": "rgba(217, 119, 6, 0.04)", "borderColor": "rgba(217, 119, 6, 0.15)", "hoverBgColor": "rgba(217, 119, 6, 0.08)"},
    {"color": "#DC2626", "bgColor": "rgba(220, 38, 38, 0.04)", "borderColor": "rgba(220, 38, 38, 0.15)", "hoverBgColor": "rgba(220, 38, 38, 0.08)"},
]


def jobs(db: Session, context: TenantContext) -> ScopedCollection[Job]:
    return ScopedCollection(db, Job, context)


def _next_theme(db: Session, context: TenantContext) -> Dict[str, str]:
    count = db.scalar(select(func.count()).select_from(Job).where(*jobs(db, context).tenant_filters())) or 0
    return JOB_THEMES[count % len(JOB_THEMES)]


def create(db: Session, context: TenantContext, data: Dict[str, Any]) -> Job:
    """
    Create a job for the caller's company and log ``job_created``.

    A colour theme is assigned round-robin when none is given.

    Raises:
        NotAuthenticatedError / MissingTenantContextError before anything is written
    """
    collection = jobs(db, context)
    payload = dict(data)
    collection.prepare(payload)  # tenant checks before the theme count query
    if not payload.get("theme"):
        payload["theme"] = _next_theme(db, context)

    job_id = collection.add(payload)
    job = db.get(Job, job_id)

    log_activity(db, context, ActivityType.JOB_CREATED, {
        "job_id": job_id,
        "job_title": job.title,
        "department": job.department,
    })
    return job


def get_by_id(db: Session, context: TenantContext, job_id: str) -> Optional[Job]:
    return jobs(db, context).get(job_id)


def get_multi(
    db: Session,
    context: TenantContext,
    skip: int = 0,
    limit: int = 100,
    status: Optional[RecordStatus] = None,
) -> List[Job]:
    """Jobs for the caller's company, newest first."""
    filters = [Job.status == status] if status else []
    stmt_order = (Job.created_at.desc(),)
    return jobs(db, context).query(*filters, order_by=stmt_order, limit=limit, offset=skip)


def subscribe(db: Session, context: TenantContext, status: Optional[RecordStatus] = None, on_change=None) -> LiveQuery:
    filters = [Job.status == status] if status else []
    return jobs(db, context).subscribe(*filters, order_by=(Job.created_at.desc(),), on_change=on_change)


def update(db: Session, context: TenantContext, job_id: str, changes: Dict[str, Any]) -> Job:
    return jobs(db, context).update(job_id, changes)
