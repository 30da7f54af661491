import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import CATEGORY_STATUS_CODES
from app.core.deps import get_tenant_context
from app.core.tenancy import TenantContext
from app.crud import job as job_crud
from app.models.common import RecordStatus
from app.schemas.archive import ArchiveRequest, ArchiveResponse, DeleteResponse, StatusUpdateRequest
from app.schemas.job import JobCreateRequest, JobResponse, JobUpdateRequest
from app.services import archive_service
from app.services.archive_service import EntityType

router = APIRouter(prefix="/jobs", tags=["Jobs"])
logger = logging.getLogger(__name__)


@router.post("/", status_code=201, response_model=JobResponse)
def create_job(
    request: JobCreateRequest,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    Create a job for the caller's company.

    The job is stamped with the caller's company, first team and user id,
    gets the next board colour theme, and a `job_created` activity is logged.

    Raises:
        400: No company selected
    """
    new_job = job_crud.create(db, context, request.model_dump())
    logger.info(f"Created job {new_job.id}: {new_job.title}")
    return new_job


@router.get("/", response_model=list[JobResponse])
def list_jobs(
    skip: int = 0,
    limit: int = 100,
    status: Optional[RecordStatus] = None,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    List the caller's jobs, newest first.

    Args:
        skip: Number of records to skip (default: 0)
        limit: Maximum number of records to return (default: 100, max: 100)
        status: Optional filter (active, archived)
    """
    if limit > 100:
        limit = 100

    return job_crud.get_multi(db, context, skip=skip, limit=limit, status=status)


@router.get("/{job_id}", response_model=JobResponse)
def get_job(
    job_id: str,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """Retrieve a job. Jobs of other companies are reported as not found."""
    job = job_crud.get_by_id(db, context, job_id)

    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    return job


@router.patch("/{job_id}", response_model=JobResponse)
def update_job(
    job_id: str,
    request: JobUpdateRequest,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    Partially update a job.

    Raises:
        403: The job belongs to another company/team, or company_id would change
        404: Job not found
    """
    return job_crud.update(db, context, job_id, request.model_dump(exclude_unset=True))


@router.delete("/{job_id}", response_model=DeleteResponse)
def delete_job(
    job_id: str,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    Permanently delete a job and every candidate link to it.

    Returns the number of relationships removed with the job.
    """
    result = archive_service.delete_job_and_associations(db, context, job_id)

    if not result.success:
        logger.warning(f"Delete of job {job_id} failed: {result.error}")
        raise HTTPException(status_code=CATEGORY_STATUS_CODES[result.error_code], detail=result.error)

    return DeleteResponse(id=job_id, deleted=True, deleted_relationships=result.deleted_relationships)


@router.post("/{job_id}/archive", response_model=ArchiveResponse)
def archive_job(
    job_id: str,
    request: ArchiveRequest,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    Archive a job and set all of its candidate links to inactive, atomically.

    Valid reasons: position_filled, position_cancelled, other.
    """
    try:
        result = archive_service.archive_job(db, context, job_id, request.reason, request.notes)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return ArchiveResponse(
        id=job_id,
        status=RecordStatus.ARCHIVED,
        reason=result.reason,
        affected_relationships=result.affected_relationships,
    )


@router.post("/{job_id}/status", response_model=JobResponse)
def update_job_status(
    job_id: str,
    request: StatusUpdateRequest,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    Set a job's status (e.g. restore an archived job).

    Candidate links deactivated by the archive stay inactive.
    """
    return archive_service.update_archive_status(db, context, EntityType.JOB, job_id, request.status)
