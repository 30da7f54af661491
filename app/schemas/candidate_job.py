from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.models.candidate_job import CandidateJobStatus


class CandidateJobCreateRequest(BaseModel):
    """
    Link a candidate to a job.

    company_id defaults to the caller's company; any other value is refused.
    """
    candidate_id: str
    job_id: str
    company_id: Optional[str] = None
    status: Optional[CandidateJobStatus] = None
    notes: Optional[str] = None


class CandidateJobStatusUpdate(BaseModel):
    status: CandidateJobStatus


class CandidateJobResponse(BaseModel):
    id: str
    candidate_id: str
    job_id: str
    company_id: str
    team_id: Optional[str] = None
    created_by: Optional[str] = None
    status: CandidateJobStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
