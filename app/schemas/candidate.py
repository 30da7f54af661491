from pydantic import BaseModel, Field
from typing import Optional, Dict
from datetime import datetime

from app.models.common import RecordStatus


class CandidateCreateRequest(BaseModel):
    """New candidates always start in the first pipeline stage"""
    name: str = Field(..., min_length=1, max_length=200)
    surname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    notes: Optional[str] = None
    source: Optional[str] = None


class CandidateUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    surname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    notes: Optional[str] = None
    source: Optional[str] = None
    company_id: Optional[str] = None


class CandidateResponse(BaseModel):
    id: str
    company_id: str
    team_id: Optional[str] = None
    created_by: Optional[str] = None
    name: str
    surname: Optional[str] = None
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    notes: Optional[str] = None
    source: str
    stage: str
    status: RecordStatus
    active: bool
    archive_metadata: Optional[Dict] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
