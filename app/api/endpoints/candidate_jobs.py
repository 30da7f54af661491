import logging
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_tenant_context
from app.core.tenancy import TenantContext
from app.crud.candidate_job import CandidateJobStore
from app.schemas.candidate_job import (
    CandidateJobCreateRequest,
    CandidateJobResponse,
    CandidateJobStatusUpdate,
)

router = APIRouter(prefix="/candidate-jobs", tags=["Candidate Jobs"])
logger = logging.getLogger(__name__)


@router.post("/", status_code=201, response_model=CandidateJobResponse)
def create_candidate_job(
    request: CandidateJobCreateRequest,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    Link a candidate to a job.

    Raises:
        404: Candidate or job not visible to the caller
        409: The candidate is already linked to this job
    """
    store = CandidateJobStore(db, context)
    relationship_id = store.add_relationship(
        request.candidate_id,
        request.job_id,
        company_id=request.company_id,
        status=request.status,
        notes=request.notes,
    )
    return store.collection.get(relationship_id)


@router.get("/", response_model=list[CandidateJobResponse])
def list_candidate_jobs(
    candidate_id: Optional[str] = None,
    job_id: Optional[str] = None,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    List links for a candidate ("jobs for this candidate"), a job
    ("candidates for this job"), or all of the caller's links.
    """
    return CandidateJobStore(db, context).list_relationships(candidate_id=candidate_id, job_id=job_id)


@router.patch("/{relationship_id}", response_model=CandidateJobResponse)
def update_candidate_job_status(
    relationship_id: str,
    request: CandidateJobStatusUpdate,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    return CandidateJobStore(db, context).update_relationship_status(relationship_id, request.status)


@router.delete("/{relationship_id}", status_code=204)
def delete_candidate_job(
    relationship_id: str,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """Remove a single link; the candidate and the job are untouched."""
    CandidateJobStore(db, context).remove_relationship(relationship_id)
    logger.info(f"Removed candidate job {relationship_id}")
    return None
