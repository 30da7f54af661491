"""
Pipeline board endpoints.

The board is read synchronously. A drop on the board is queued to a Celery
worker and the request returns immediately: the client already shows the
card in its new column and picks up the committed stage on the next read.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_tenant_context
from app.core.tenancy import TenantContext
from app.schemas.candidate import CandidateResponse
from app.schemas.pipeline import PipelineBoard, StageColumn, StageMoveQueued, StageMoveRequest
from app.services.pipeline_service import PipelineStage, build_board, validate_stage
from app.tasks import pipeline_tasks

router = APIRouter(prefix="/pipeline", tags=["Pipeline"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=PipelineBoard)
def get_board(
    job_id: Optional[str] = None,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    Active candidates linked to at least one job, grouped by stage.

    Args:
        job_id: Only show candidates linked to this job
    """
    columns = build_board(db, context, job_id=job_id)
    return PipelineBoard(stages=[
        StageColumn(
            id=stage.value,
            title=stage.label,
            candidates=[CandidateResponse.model_validate(c) for c in columns[stage.value]],
        )
        for stage in PipelineStage
    ])


@router.post("/moves", status_code=status.HTTP_202_ACCEPTED, response_model=StageMoveQueued)
def move_candidate(
    request: StageMoveRequest,
    context: TenantContext = Depends(get_tenant_context)
):
    """
    Queue a stage move for a dropped card.

    The column id is checked here so a stale or malformed drop target is
    rejected with 422 instead of being written by the worker.
    """
    stage = validate_stage(request.over_id)

    # .delay() sends the task to Redis and returns immediately
    task = pipeline_tasks.move_candidate_stage_task.delay(
        request.candidate_id,
        stage.value,
        context.model_dump()
    )

    logger.info(f"Queued move of candidate {request.candidate_id} to {stage.value} | Celery task {task.id}")

    return StageMoveQueued(
        candidate_id=request.candidate_id,
        stage=stage.value,
        task_id=task.id,
        message=f"Stage move queued as task {task.id}"
    )
