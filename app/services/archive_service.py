"""
Archive and cascading deletion of jobs and candidates.

Three distinct transitions:

    archive        parent -> ARCHIVED, every relationship -> INACTIVE   (one transaction)
    hard delete    parent and every relationship removed                (one transaction)
    status toggle  parent status/active only; relationships untouched

Archive and hard delete are all-or-nothing: a reader never sees the parent
changed while a relationship is not, or the reverse. The activity record is
appended after the commit.
"""

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional, Type, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    ArchiveFailedError,
    DataAccessError,
    ErrorCategory,
    MissingTenantContextError,
    NotAuthenticatedError,
    RecordNotFoundError,
    map_backend_error,
)
from app.core.logging_config import tenant_extra
from app.core.tenancy import TenantContext
from app.crud.activity import log_activity
from app.crud.collection import ScopedCollection
from app.models.activity import ActivityType
from app.models.candidate import Candidate
from app.models.candidate_job import CandidateJob, CandidateJobStatus
from app.models.common import (
    ArchiveReason,
    CANDIDATE_ARCHIVE_REASONS,
    JOB_ARCHIVE_REASONS,
    RecordStatus,
    utcnow,
)
from app.models.job import Job

logger = logging.getLogger(__name__)


class EntityType(str, enum.Enum):
    JOB = "job"
    CANDIDATE = "candidate"

    @property
    def model(self) -> Type[Union[Job, Candidate]]:
        return Job if self is EntityType.JOB else Candidate

    @property
    def relationship_column(self):
        return CandidateJob.job_id if self is EntityType.JOB else CandidateJob.candidate_id

    @property
    def allowed_reasons(self):
        return JOB_ARCHIVE_REASONS if self is EntityType.JOB else CANDIDATE_ARCHIVE_REASONS


_ARCHIVED_ACTIVITY = {
    EntityType.JOB: ActivityType.JOB_ARCHIVED,
    EntityType.CANDIDATE: ActivityType.CANDIDATE_ARCHIVED,
}
_DELETED_ACTIVITY = {
    EntityType.JOB: ActivityType.JOB_DELETED,
    EntityType.CANDIDATE: ActivityType.CANDIDATE_DELETED,
}
_STATUS_ACTIVITY = {
    EntityType.JOB: ActivityType.JOB_STATUS_UPDATED,
    EntityType.CANDIDATE: ActivityType.CANDIDATE_STATUS_UPDATED,
}


@dataclass
class ArchiveResult:
    entity_type: EntityType
    entity_id: str
    reason: ArchiveReason
    affected_relationships: int


@dataclass
class DeletionResult:
    """
    Outcome of a hard delete. Callers branch on ``success``; nothing is raised.
    """
    success: bool
    deleted_relationships: int = 0
    error: Optional[str] = None
    error_code: Optional[ErrorCategory] = None


def _require_writer(context: TenantContext) -> None:
    if not context.user_id:
        raise NotAuthenticatedError()
    if not context.company_id:
        raise MissingTenantContextError()


def _load_parent(db: Session, context: TenantContext, entity_type: EntityType, entity_id: str):
    collection = ScopedCollection(db, entity_type.model, context)
    parent = db.get(entity_type.model, entity_id)
    if parent is None:
        raise RecordNotFoundError(f"{entity_type.value} {entity_id} not found")
    collection.validate_access(parent)
    return parent


def _relationships(db: Session, parent, entity_type: EntityType) -> List[CandidateJob]:
    # Scoped to the parent's company, which is the caller's unless an admin acts
    stmt = select(CandidateJob).where(
        entity_type.relationship_column == parent.id,
        CandidateJob.company_id == parent.company_id,
    )
    return list(db.scalars(stmt).all())


def archive_entity(
    db: Session,
    context: TenantContext,
    entity_type: EntityType,
    entity_id: str,
    reason: ArchiveReason,
    notes: Optional[str] = None,
) -> ArchiveResult:
    """
    Archive a job or candidate and deactivate all of its relationships atomically.

    Raises:
        NotAuthenticatedError / MissingTenantContextError: before anything is read
        RecordNotFoundError / AccessDeniedError: parent missing or not the caller's
        ValueError: reason not valid for the entity type
        ArchiveFailedError: the batch did not commit; nothing changed
    """
    entity_type = EntityType(entity_type)
    reason = ArchiveReason(reason)
    _require_writer(context)
    if reason not in entity_type.allowed_reasons:
        raise ValueError(f"'{reason.value}' is not a valid archive reason for a {entity_type.value}")

    parent = _load_parent(db, context, entity_type, entity_id)
    relationships = _relationships(db, parent, entity_type)

    now = utcnow()
    parent.status = RecordStatus.ARCHIVED
    parent.active = False
    parent.archive_metadata = {
        "archived_at": now.isoformat(),
        "archived_by": context.user_id,
        "reason": reason.value,
        "notes": notes,
        "status": RecordStatus.ARCHIVED.value,
    }
    parent.updated_at = now
    for relationship in relationships:
        relationship.status = CandidateJobStatus.INACTIVE
        relationship.updated_at = now

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            f"Archiving {entity_type.value} {entity_id} failed, nothing was changed: {e}",
            extra=tenant_extra(context),
        )
        raise ArchiveFailedError(f"Failed to archive {entity_type.value}") from e

    count = len(relationships)
    logger.info(
        f"Archived {entity_type.value} {entity_id} ({reason.value}), {count} relationships deactivated",
        extra=tenant_extra(context),
    )

    log_activity(db, context, _ARCHIVED_ACTIVITY[entity_type], {
        f"{entity_type.value}_id": entity_id,
        "reason": reason.value,
        "notes": notes,
        "status": RecordStatus.ARCHIVED.value,
        "affected_relationships": count,
    })

    return ArchiveResult(entity_type, entity_id, reason, count)


def archive_job(db: Session, context: TenantContext, job_id: str, reason: ArchiveReason, notes: Optional[str] = None) -> ArchiveResult:
    return archive_entity(db, context, EntityType.JOB, job_id, reason, notes)


def archive_candidate(db: Session, context: TenantContext, candidate_id: str, reason: ArchiveReason, notes: Optional[str] = None) -> ArchiveResult:
    return archive_entity(db, context, EntityType.CANDIDATE, candidate_id, reason, notes)


def hard_delete_entity(
    db: Session,
    context: TenantContext,
    entity_type: EntityType,
    entity_id: str,
) -> DeletionResult:
    """
    Permanently delete a job or candidate together with every relationship
    that references it, in one transaction.

    Returns a DeletionResult; failures are reported in it, never raised.
    """
    entity_type = EntityType(entity_type)
    try:
        _require_writer(context)
        parent = _load_parent(db, context, entity_type, entity_id)
        # Every relationship referencing the parent goes, regardless of tenant
        relationships = list(db.scalars(
            select(CandidateJob).where(entity_type.relationship_column == entity_id)
        ).all())

        for relationship in relationships:
            db.delete(relationship)
        db.flush()
        db.delete(parent)
        db.commit()
    except DataAccessError as e:
        db.rollback()
        logger.warning(
            f"Refused to delete {entity_type.value} {entity_id}: {e.message}",
            extra=tenant_extra(context),
        )
        return DeletionResult(success=False, error=e.message, error_code=e.category)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Deleting {entity_type.value} {entity_id} failed: {e}", extra=tenant_extra(context))
        mapped = map_backend_error(e)
        return DeletionResult(success=False, error=mapped.message, error_code=mapped.category)

    count = len(relationships)
    logger.info(
        f"Deleted {entity_type.value} {entity_id} and {count} relationships",
        extra=tenant_extra(context),
    )
    log_activity(db, context, _DELETED_ACTIVITY[entity_type], {
        f"{entity_type.value}_id": entity_id,
        "count": count,
    })
    return DeletionResult(success=True, deleted_relationships=count)


def delete_job_and_associations(db: Session, context: TenantContext, job_id: str) -> DeletionResult:
    return hard_delete_entity(db, context, EntityType.JOB, job_id)


def delete_candidate_and_associations(db: Session, context: TenantContext, candidate_id: str) -> DeletionResult:
    return hard_delete_entity(db, context, EntityType.CANDIDATE, candidate_id)


def update_archive_status(
    db: Session,
    context: TenantContext,
    entity_type: EntityType,
    entity_id: str,
    status: RecordStatus,
):
    """
    Flip only the parent's status/active flag (used to un-archive).

    Relationships deactivated by an earlier archive stay INACTIVE.
    """
    entity_type = EntityType(entity_type)
    status = RecordStatus(status)
    _require_writer(context)

    parent = _load_parent(db, context, entity_type, entity_id)
    previous = RecordStatus(parent.status)

    metadata = dict(parent.archive_metadata or {})
    if metadata:
        metadata["status"] = status.value

    record = ScopedCollection(db, entity_type.model, context).update(entity_id, {
        "status": status,
        "active": status is RecordStatus.ACTIVE,
        "archive_metadata": metadata or None,
    })

    log_activity(db, context, _STATUS_ACTIVITY[entity_type], {
        "id": entity_id,
        "status": status.value,
        "previous_status": previous.value,
    })
    return record
