from pydantic import BaseModel, Field
from typing import List

from app.schemas.candidate import CandidateResponse


class StageColumn(BaseModel):
    id: str
    title: str
    candidates: List[CandidateResponse] = Field(default_factory=list)


class PipelineBoard(BaseModel):
    """Columns in stage order"""
    stages: List[StageColumn]


class StageMoveRequest(BaseModel):
    """A drop on the board: ``over_id`` is the column the card landed on"""
    candidate_id: str
    over_id: str = Field(..., min_length=1)


class StageMoveQueued(BaseModel):
    candidate_id: str
    stage: str
    task_id: str
    message: str
