"""
Column helpers and enums shared by the tenant-scoped models.
"""

import enum
import uuid
from datetime import datetime, timezone


def generate_id() -> str:
    """Document-style string id."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def enum_values(enum_cls):
    """values_callable for sqlalchemy.Enum: store the lowercase values, not member names."""
    return [e.value for e in enum_cls]


class RecordStatus(str, enum.Enum):
    """
    Lifecycle of a job or candidate.

    ACTIVE <-> ARCHIVED (archive / status toggle); hard delete removes the row.
    """
    ACTIVE = "active"
    ARCHIVED = "archived"


class ArchiveReason(str, enum.Enum):
    POSITION_FILLED = "position_filled"
    POSITION_CANCELLED = "position_cancelled"
    HIRED = "hired"
    REJECTED = "rejected"
    OTHER = "other"


JOB_ARCHIVE_REASONS = frozenset({
    ArchiveReason.POSITION_FILLED,
    ArchiveReason.POSITION_CANCELLED,
    ArchiveReason.OTHER,
})

CANDIDATE_ARCHIVE_REASONS = frozenset({
    ArchiveReason.HIRED,
    ArchiveReason.REJECTED,
    ArchiveReason.OTHER,
})
