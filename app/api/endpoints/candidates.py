import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import CATEGORY_STATUS_CODES
from app.core.deps import get_tenant_context
from app.core.tenancy import TenantContext
from app.crud import candidate as candidate_crud
from app.models.common import RecordStatus
from app.schemas.archive import ArchiveRequest, ArchiveResponse, DeleteResponse, StatusUpdateRequest
from app.schemas.candidate import CandidateCreateRequest, CandidateResponse, CandidateUpdateRequest
from app.services import archive_service
from app.services.archive_service import EntityType

router = APIRouter(prefix="/candidates", tags=["Candidates"])
logger = logging.getLogger(__name__)


@router.post("/", status_code=201, response_model=CandidateResponse)
def create_candidate(
    request: CandidateCreateRequest,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    Add a candidate to the caller's company.

    New candidates start in the `new` stage; source defaults to "Manual Web".
    """
    candidate = candidate_crud.create(db, context, request.model_dump())
    logger.info(f"Created candidate {candidate.id}")
    return candidate


@router.get("/", response_model=list[CandidateResponse])
def list_candidates(
    skip: int = 0,
    limit: int = 100,
    status: Optional[RecordStatus] = None,
    stage: Optional[str] = None,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    List the caller's candidates, most recently updated first.

    Args:
        skip: Number of records to skip (default: 0)
        limit: Maximum number of records to return (default: 100, max: 100)
        status: Optional filter (active, archived)
        stage: Optional pipeline stage filter
    """
    if limit > 100:
        limit = 100

    return candidate_crud.get_multi(db, context, skip=skip, limit=limit, status=status, stage=stage)


@router.get("/{candidate_id}", response_model=CandidateResponse)
def get_candidate(
    candidate_id: str,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    candidate = candidate_crud.get_by_id(db, context, candidate_id)

    if not candidate:
        raise HTTPException(status_code=404, detail="Candidate not found")

    return candidate


@router.patch("/{candidate_id}", response_model=CandidateResponse)
def update_candidate(
    candidate_id: str,
    request: CandidateUpdateRequest,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    Partially update a candidate's details.

    Stage changes go through /pipeline/moves.
    """
    return candidate_crud.update(db, context, candidate_id, request.model_dump(exclude_unset=True))


@router.delete("/{candidate_id}", response_model=DeleteResponse)
def delete_candidate(
    candidate_id: str,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """Permanently delete a candidate and every job link to it."""
    result = archive_service.delete_candidate_and_associations(db, context, candidate_id)

    if not result.success:
        logger.warning(f"Delete of candidate {candidate_id} failed: {result.error}")
        raise HTTPException(status_code=CATEGORY_STATUS_CODES[result.error_code], detail=result.error)

    return DeleteResponse(id=candidate_id, deleted=True, deleted_relationships=result.deleted_relationships)


@router.post("/{candidate_id}/archive", response_model=ArchiveResponse)
def archive_candidate(
    candidate_id: str,
    request: ArchiveRequest,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    Archive a candidate and set all of their job links to inactive, atomically.

    Valid reasons: hired, rejected, other.
    """
    try:
        result = archive_service.archive_candidate(db, context, candidate_id, request.reason, request.notes)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return ArchiveResponse(
        id=candidate_id,
        status=RecordStatus.ARCHIVED,
        reason=result.reason,
        affected_relationships=result.affected_relationships,
    )


@router.post("/{candidate_id}/status", response_model=CandidateResponse)
def update_candidate_status(
    candidate_id: str,
    request: StatusUpdateRequest,
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """Set a candidate's status; job links stay as they are."""
    return archive_service.update_archive_status(db, context, EntityType.CANDIDATE, candidate_id, request.status)
