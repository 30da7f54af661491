"""
CRUD operations for CandidateJob relationships.

Uniqueness of (candidate_id, job_id) is checked before every insert and
backed by the uq_candidate_jobs_candidate_job constraint. The pre-check
alone is a check-then-act race under concurrent writers; the constraint
turns the losing insert into the same RelationshipExistsError.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.exceptions import (
    AccessDeniedError,
    RecordNotFoundError,
    RelationshipExistsError,
    map_backend_error,
)
from app.core.logging_config import tenant_extra
from app.core.tenancy import TenantContext
from app.crud.collection import ScopedCollection
from app.crud.live_query import LiveQuery
from app.models.candidate import Candidate
from app.models.candidate_job import CandidateJob, CandidateJobStatus
from app.models.job import Job

logger = logging.getLogger(__name__)


class CandidateJobStore:
    """Relationship store built on the tenant-scoped collection."""

    def __init__(self, db: Session, context: TenantContext, session_factory: Optional[sessionmaker] = None):
        self.db = db
        self.context = context
        self.collection = ScopedCollection(db, CandidateJob, context, session_factory=session_factory)

    def find_existing(self, candidate_id: str, job_id: str) -> Optional[CandidateJob]:
        """Look up a pair regardless of tenant: uniqueness is global."""
        stmt = select(CandidateJob).where(
            CandidateJob.candidate_id == candidate_id,
            CandidateJob.job_id == job_id,
        )
        return self.db.scalars(stmt).first()

    def _require_parent(self, model, record_id: str) -> None:
        parent = ScopedCollection(self.db, model, self.context).get(record_id)
        if parent is None:
            raise RecordNotFoundError(f"{model.__tablename__} record {record_id} not found")
        # Admin reads are unscoped; the link still has to stay inside one tenant
        if parent.company_id != self.context.company_id:
            raise AccessDeniedError("Invalid company access")

    def add_relationship(
        self,
        candidate_id: str,
        job_id: str,
        company_id: Optional[str] = None,
        status: Optional[CandidateJobStatus] = None,
        notes: Optional[str] = None,
    ) -> str:
        """
        Link a candidate to a job.

        Raises:
            MissingTenantContextError: no company in context
            AccessDeniedError: company_id given for another tenant
            RecordNotFoundError: candidate or job not visible to the caller
            RelationshipExistsError: the pair is already linked (nothing written)
        """
        # Fail on tenant problems before touching the store
        self.collection.prepare({})
        if company_id and company_id != self.context.company_id:
            raise AccessDeniedError("Invalid company access")

        self._require_parent(Candidate, candidate_id)
        self._require_parent(Job, job_id)

        if self.find_existing(candidate_id, job_id) is not None:
            logger.info(
                f"Relationship {candidate_id} -> {job_id} already exists",
                extra=tenant_extra(self.context),
            )
            raise RelationshipExistsError(candidate_id, job_id)

        record = self.collection.build({
            "candidate_id": candidate_id,
            "job_id": job_id,
            "status": status or CandidateJobStatus.IN_PROGRESS,
            "notes": notes,
        })
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(
                f"Concurrent insert for {candidate_id} -> {job_id} lost the race: {e}",
                extra=tenant_extra(self.context),
            )
            raise RelationshipExistsError(candidate_id, job_id) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to link {candidate_id} -> {job_id}: {e}", extra=tenant_extra(self.context))
            raise map_backend_error(e) from e

        logger.info(f"Linked candidate {candidate_id} to job {job_id}", extra=tenant_extra(self.context))
        return record.id

    def update_relationship_status(self, relationship_id: str, status: CandidateJobStatus) -> CandidateJob:
        return self.collection.update(relationship_id, {"status": CandidateJobStatus(status)})

    def remove_relationship(self, relationship_id: str) -> None:
        self.collection.remove(relationship_id)

    def list_relationships(self, candidate_id: Optional[str] = None, job_id: Optional[str] = None) -> List[CandidateJob]:
        return self.collection.query(
            *self._filters(candidate_id, job_id),
            order_by=(CandidateJob.updated_at.desc(),),
        )

    def jobs_for_candidate(self, candidate_id: str) -> List[CandidateJob]:
        return self.list_relationships(candidate_id=candidate_id)

    def candidates_for_job(self, job_id: str) -> List[CandidateJob]:
        return self.list_relationships(job_id=job_id)

    def subscribe(self, candidate_id: Optional[str] = None, job_id: Optional[str] = None, on_change=None) -> LiveQuery:
        """Live relationships for a candidate and/or job, newest update first."""
        return self.collection.subscribe(
            *self._filters(candidate_id, job_id),
            order_by=(CandidateJob.updated_at.desc(),),
            on_change=on_change,
        )

    @staticmethod
    def _filters(candidate_id: Optional[str], job_id: Optional[str]):
        filters = []
        if candidate_id:
            filters.append(CandidateJob.candidate_id == candidate_id)
        if job_id:
            filters.append(CandidateJob.job_id == job_id)
        return filters
