"""
CandidateJob join model.

Links one candidate to one job with its own status. company_id is copied
from the tenant context so relationship queries can be tenant-filtered
without a join.
"""

import enum
from sqlalchemy import Column, String, DateTime, Enum, Text, ForeignKey, UniqueConstraint
from app.core.database import Base
from app.models.common import enum_values, generate_id, utcnow


class CandidateJobStatus(str, enum.Enum):
    """
    - MATCHED: suggested or shortlisted for the job
    - IN_PROGRESS: actively being processed (default)
    - REJECTED: declined for this job
    - INACTIVE: a parent was archived
    """
    MATCHED = "matched"
    IN_PROGRESS = "in_progress"
    REJECTED = "rejected"
    INACTIVE = "inactive"


class CandidateJob(Base):
    __tablename__ = "candidate_jobs"

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    candidate_id = Column(String(36), ForeignKey("candidates.id"), nullable=False, index=True)
    job_id = Column(String(36), ForeignKey("jobs.id"), nullable=False, index=True)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=True)
    created_by = Column(String(36), nullable=True)

    status = Column(
        Enum(CandidateJobStatus, values_callable=enum_values, native_enum=False, length=16),
        default=CandidateJobStatus.IN_PROGRESS,
        nullable=False,
        index=True
    )
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    # At most one relationship per (candidate, job)
    __table_args__ = (
        UniqueConstraint("candidate_id", "job_id", name="uq_candidate_jobs_candidate_job"),
    )

    def __repr__(self):
        return f"<CandidateJob(candidate_id={self.candidate_id}, job_id={self.job_id}, status={self.status})>"
