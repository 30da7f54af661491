from pydantic import BaseModel, Field
from typing import List, Optional, Dict
from datetime import datetime

from app.models.common import RecordStatus


class JobCreateRequest(BaseModel):
    """Schema for creating a new job"""
    title: str = Field(..., min_length=1, max_length=200)
    company: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    description: Optional[str] = None
    requirements: List[str] = Field(default_factory=list)
    theme: Optional[Dict[str, str]] = None


class JobUpdateRequest(BaseModel):
    """Partial update; only fields that are sent are written"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    company: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[List[str]] = None
    theme: Optional[Dict[str, str]] = None
    company_id: Optional[str] = None


class JobResponse(BaseModel):
    """Schema for job response"""
    id: str
    company_id: str
    team_id: Optional[str] = None
    created_by: Optional[str] = None
    title: str
    company: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    description: Optional[str] = None
    requirements: List[str] = Field(default_factory=list)
    theme: Optional[Dict[str, str]] = None
    status: RecordStatus
    active: bool
    archive_metadata: Optional[Dict] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True  # Allows conversion from SQLAlchemy models
