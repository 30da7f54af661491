"""
User and role-assignment models.

Users are owned by the session provider; this service only reads them to
build a TenantContext. A user may hold several role assignments, each
optionally scoped to a company and a team.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.common import generate_id, utcnow


class User(Base):
    """
    An authenticated account.

    The order of ``roles`` matters: the first role carrying a company_id
    decides the caller's tenant.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    roles = relationship(
        "UserRole",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserRole.id",
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


class UserRole(Base):
    """A single role assignment: {company_id?, team_id?, role}."""
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=True, index=True)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=True)
    role = Column(String, nullable=False, default="member")

    user = relationship("User", back_populates="roles")

    def __repr__(self):
        return f"<UserRole(user_id={self.user_id}, company_id={self.company_id}, role='{self.role}')>"
