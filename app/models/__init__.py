"""
Database models package.
"""

from app.models.common import RecordStatus, ArchiveReason
from app.models.company import Company, Team
from app.models.user import User, UserRole
from app.models.job import Job
from app.models.candidate import Candidate
from app.models.candidate_job import CandidateJob, CandidateJobStatus
from app.models.activity import Activity, ActivityType

__all__ = [
    "RecordStatus", "ArchiveReason",
    "Company", "Team",
    "User", "UserRole",
    "Job", "Candidate",
    "CandidateJob", "CandidateJobStatus",
    "Activity", "ActivityType",
]
