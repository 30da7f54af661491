"""
Organization directory models.

Companies are the tenants. Both tables are tenant-exempt collections:
they are managed by admin screens and never carry a company filter.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey
from app.core.database import Base
from app.models.common import generate_id, utcnow


class Company(Base):
    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self):
        return f"<Company(id={self.id}, name='{self.name}')>"


class Team(Base):
    __tablename__ = "teams"

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self):
        return f"<Team(id={self.id}, company_id={self.company_id}, name='{self.name}')>"
