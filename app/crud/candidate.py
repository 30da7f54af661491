"""
CRUD operations for Candidate model.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.tenancy import TenantContext
from app.crud.activity import log_activity
from app.crud.collection import ScopedCollection
from app.crud.live_query import LiveQuery
from app.models.activity import ActivityType
from app.models.candidate import Candidate, DEFAULT_SOURCE, DEFAULT_STAGE
from app.models.common import RecordStatus

logger = logging.getLogger(__name__)


def candidates(db: Session, context: TenantContext) -> ScopedCollection[Candidate]:
    return ScopedCollection(db, Candidate, context)


def create(db: Session, context: TenantContext, data: Dict[str, Any]) -> Candidate:
    """
    Create a candidate in the first pipeline stage and log ``candidate_created``.
    """
    payload = {
        **data,
        "source": data.get("source") or DEFAULT_SOURCE,
        "stage": DEFAULT_STAGE,
        "status": RecordStatus.ACTIVE,
    }
    candidate_id = candidates(db, context).add(payload)
    candidate = db.get(Candidate, candidate_id)

    log_activity(db, context, ActivityType.CANDIDATE_CREATED, {
        "candidate_id": candidate_id,
        "candidate_name": candidate.full_name,
        "position": candidate.position,
    })
    return candidate


def get_by_id(db: Session, context: TenantContext, candidate_id: str) -> Optional[Candidate]:
    return candidates(db, context).get(candidate_id)


def get_multi(
    db: Session,
    context: TenantContext,
    skip: int = 0,
    limit: int = 100,
    status: Optional[RecordStatus] = None,
    stage: Optional[str] = None,
) -> List[Candidate]:
    filters = []
    if status:
        filters.append(Candidate.status == status)
    if stage:
        filters.append(Candidate.stage == stage)
    return candidates(db, context).query(
        *filters, order_by=(Candidate.updated_at.desc(),), limit=limit, offset=skip
    )


def subscribe(db: Session, context: TenantContext, on_change=None) -> LiveQuery:
    return candidates(db, context).subscribe(order_by=(Candidate.updated_at.desc(),), on_change=on_change)


def update(db: Session, context: TenantContext, candidate_id: str, changes: Dict[str, Any]) -> Candidate:
    return candidates(db, context).update(candidate_id, changes)
