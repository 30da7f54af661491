import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.deps import get_tenant_context
from app.core.tenancy import TenantContext
from app.crud.activity import list_recent_activities
from app.schemas.activity import ActivityResponse

router = APIRouter(prefix="/activities", tags=["Activities"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=list[ActivityResponse])
def list_activities(
    limit: int = Query(settings.ACTIVITY_FEED_LIMIT, ge=1, le=100),
    days: int = Query(settings.ACTIVITY_FEED_DAYS, ge=1, le=365),
    db: Session = Depends(get_db),
    context: TenantContext = Depends(get_tenant_context)
):
    """
    The caller's own recent activity in their company, newest first.

    Args:
        limit: Maximum number of entries (default: 10)
        days: Look-back window in days (default: 30)
    """
    return list_recent_activities(db, context, limit=limit, days=days)
