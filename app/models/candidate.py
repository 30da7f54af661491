"""
Candidate database model.

A candidate belongs to one company and sits in exactly one pipeline stage.
Jobs are linked through the candidate_jobs join table, not a foreign key.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Enum, Text, JSON, ForeignKey
from app.core.database import Base
from app.models.common import RecordStatus, enum_values, generate_id, utcnow

DEFAULT_STAGE = "new"
DEFAULT_SOURCE = "Manual Web"


class Candidate(Base):
    """
    A person moving through the hiring pipeline.

    ``stage`` is free text holding one of the pipeline stage ids; values
    outside the known stages are stored but never shown on the board.
    """
    __tablename__ = "candidates"

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=True)
    created_by = Column(String(36), nullable=True)

    name = Column(String, nullable=False)
    surname = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    position = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    source = Column(String, nullable=False, default=DEFAULT_SOURCE)

    # Pipeline position
    stage = Column(String, nullable=False, default=DEFAULT_STAGE, index=True)

    # Lifecycle (mirrors Job)
    status = Column(
        Enum(RecordStatus, values_callable=enum_values, native_enum=False, length=16),
        default=RecordStatus.ACTIVE,
        nullable=False,
        index=True
    )
    active = Column(Boolean, default=True, nullable=False)
    archive_metadata = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.name, self.surname) if part)

    def __repr__(self):
        return f"<Candidate(id={self.id}, name='{self.full_name}', stage='{self.stage}')>"
