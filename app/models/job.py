from sqlalchemy import Column, String, Boolean, DateTime, Enum, Text, JSON, ForeignKey
from app.core.database import Base
from app.models.common import RecordStatus, enum_values, generate_id, utcnow


class Job(Base):
    """
    A job opening owned by one company.

    company_id is the tenant key and never changes after creation.
    Archiving flips status to ARCHIVED and fills archive_metadata;
    hard delete removes the row together with its candidate_jobs.
    """
    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=True)
    created_by = Column(String(36), nullable=True)

    title = Column(String, nullable=False, index=True)
    company = Column(String, nullable=True)  # Display name of the hiring company
    department = Column(String, nullable=True)
    location = Column(String, nullable=True)
    employment_type = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    requirements = Column(JSON, nullable=False, default=list)

    # Board colour theme, assigned round-robin on creation
    theme = Column(JSON, nullable=True)

    # Lifecycle
    status = Column(
        Enum(RecordStatus, values_callable=enum_values, native_enum=False, length=16),
        default=RecordStatus.ACTIVE,
        nullable=False,
        index=True
    )
    active = Column(Boolean, default=True, nullable=False)
    # {archived_at, archived_by, reason, notes, status}
    archive_metadata = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    def __repr__(self):
        return f"<Job(id={self.id}, title='{self.title}', status={self.status})>"
