"""
Celery tasks for the pipeline board.

A drop on the board is fire-and-forget: the API queues the move and returns
immediately, the worker applies it and logs the outcome.
"""

import logging
from typing import Any, Dict

from app.core.celery_app import celery_app
from app.core.database import SessionLocal
from app.core.exceptions import DataAccessError
from app.core.tenancy import TenantContext
from app.services.pipeline_service import move_candidate_stage

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.pipeline_tasks.move_candidate_stage_task", bind=True)
def move_candidate_stage_task(self, candidate_id: str, new_stage: str, context: Dict[str, Any]):
    """
    Apply a queued stage move.

    Args:
        self: Celery task instance (when bind=True)
        candidate_id: Candidate being moved
        new_stage: Target column id
        context: TenantContext of the caller, as a JSON dict

    Returns:
        dict: {"status": "success" | "failed" | "error", ...}
    """
    tenant = TenantContext(**context)
    logger.info(f"[Task {self.request.id}] Moving candidate {candidate_id} to {new_stage}")

    db = SessionLocal()

    try:
        candidate = move_candidate_stage(db, tenant, candidate_id, new_stage)
        return {"status": "success", "candidate_id": candidate.id, "stage": candidate.stage}

    except DataAccessError as e:
        logger.warning(f"[Task {self.request.id}] Stage move for {candidate_id} rejected: {e.message}")
        return {"status": "failed", "error": e.message, "error_code": e.category.value}

    except Exception as e:
        logger.error(f"[Task {self.request.id}] Unexpected error moving candidate {candidate_id}: {e}", exc_info=True)
        return {"status": "error", "error": str(e)}

    finally:
        db.close()
