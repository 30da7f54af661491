"""
Activity model: the append-only audit log.

Rows are written after state-changing operations and are never updated or
deleted by the application.
"""

import enum
from sqlalchemy import Column, String, DateTime, Text, JSON, Index
from app.core.database import Base
from app.models.common import generate_id, utcnow


class ActivityType(str, enum.Enum):
    JOB_CREATED = "job_created"
    JOB_ARCHIVED = "job_archived"
    JOB_DELETED = "job_deleted"
    JOB_STATUS_UPDATED = "job_status_updated"
    CANDIDATE_CREATED = "candidate_created"
    CANDIDATE_ARCHIVED = "candidate_archived"
    CANDIDATE_DELETED = "candidate_deleted"
    CANDIDATE_STATUS_UPDATED = "candidate_status_updated"
    STAGE_CHANGED = "stage_changed"


class Activity(Base):
    __tablename__ = "activities"

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    company_id = Column(String(36), nullable=False, index=True)
    type = Column(String(64), nullable=False, index=True)
    description = Column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_activities_company_user_timestamp", "company_id", "user_id", "timestamp"),
    )

    def __repr__(self):
        return f"<Activity(type='{self.type}', user_id={self.user_id}, company_id={self.company_id})>"
