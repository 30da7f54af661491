from pydantic import BaseModel, Field
from typing import Optional

from app.models.common import ArchiveReason, RecordStatus


class ArchiveRequest(BaseModel):
    """Reason must suit the entity: position_filled/position_cancelled for jobs, hired/rejected for candidates"""
    reason: ArchiveReason
    notes: Optional[str] = Field(None, max_length=2000)


class ArchiveResponse(BaseModel):
    id: str
    status: RecordStatus
    reason: ArchiveReason
    affected_relationships: int


class StatusUpdateRequest(BaseModel):
    status: RecordStatus


class DeleteResponse(BaseModel):
    id: str
    deleted: bool
    deleted_relationships: int
