"""
Pipeline board and stage transitions.

A drag gesture moves one candidate between board columns:

    idle --start(id)--> dragging(id) --end(id, over)--> idle   (+ stage write if over)
                                      --cancel()------> idle
                                      --timeout-------> idle

The stage write is fire-and-forget from the gesture's point of view: the
gesture is already idle when ``on_drop`` runs, and a failed write is logged
without touching gesture state.
"""

import enum
import logging
import threading
from collections import OrderedDict
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.core.exceptions import InvalidStageError, RecordNotFoundError
from app.core.logging_config import tenant_extra
from app.core.tenancy import TenantContext
from app.crud import candidate as crud_candidate
from app.crud.activity import log_activity
from app.crud.candidate_job import CandidateJobStore
from app.models.activity import ActivityType
from app.models.candidate import Candidate
from app.models.common import RecordStatus

logger = logging.getLogger(__name__)


class PipelineStage(str, enum.Enum):
    """Board columns, in display order."""
    NEW = "new"
    SCREENING = "screening"
    INTERVIEW = "interview"
    SUBMITTED = "submitted"
    HR = "hr"
    MANAGER = "manager"

    @property
    def label(self) -> str:
        return "HR" if self is PipelineStage.HR else self.value.capitalize()


STAGE_IDS = [stage.value for stage in PipelineStage]


def validate_stage(stage: str) -> PipelineStage:
    """
    Resolve a drop target id to a known stage.

    Raises:
        InvalidStageError: the id is not one of the board columns
    """
    try:
        return PipelineStage(stage)
    except ValueError:
        raise InvalidStageError(f"Unknown pipeline stage '{stage}'. Valid stages: {', '.join(STAGE_IDS)}") from None


def move_candidate_stage(
    db: Session,
    context: TenantContext,
    candidate_id: str,
    new_stage: str,
) -> Candidate:
    """
    Move a candidate to ``new_stage`` and log ``stage_changed``.

    Dropping a candidate on the column it is already in writes nothing.

    Raises:
        InvalidStageError: unknown stage id, checked before any read
        RecordNotFoundError: candidate missing
        AccessDeniedError: candidate owned by another company or team
    """
    stage = validate_stage(new_stage)

    # Unscoped read: another tenant's candidate is denied, not "not found"
    candidate = db.get(Candidate, candidate_id)
    if candidate is None:
        raise RecordNotFoundError(f"Candidate {candidate_id} not found")
    crud_candidate.candidates(db, context).validate_access(candidate)

    old_stage = candidate.stage
    if old_stage == stage.value:
        logger.debug(f"Candidate {candidate_id} already in {old_stage}", extra=tenant_extra(context))
        return candidate

    candidate = crud_candidate.update(db, context, candidate_id, {"stage": stage.value})
    logger.info(
        f"Moved candidate {candidate_id} from {old_stage} to {stage.value}",
        extra=tenant_extra(context),
    )

    log_activity(db, context, ActivityType.STAGE_CHANGED, {
        "candidate_id": candidate_id,
        "candidate_name": candidate.full_name,
        "old_stage": old_stage,
        "new_stage": stage.value,
    })
    return candidate


class DragState(str, enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class DragGesture:
    """
    State machine for one drag gesture at a time.

    Args:
        on_drop: Called as ``on_drop(candidate_id, stage_id)`` after a drop
            on a column. Exceptions are logged, never re-raised.
        timeout: Seconds after ``start`` before a stuck gesture is forced idle
    """

    def __init__(self, on_drop: Callable[[str, str], None], timeout: float = None):
        self.on_drop = on_drop
        self.timeout = settings.DRAG_TIMEOUT_SECONDS if timeout is None else timeout
        self._lock = threading.Lock()
        self._active_id: Optional[str] = None
        self._timer: Optional[threading.Timer] = None

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    @property
    def state(self) -> DragState:
        return DragState.DRAGGING if self._active_id else DragState.IDLE

    def _disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def start(self, candidate_id: str) -> None:
        timer = threading.Timer(self.timeout, self._expire, args=(candidate_id,))
        timer.daemon = True
        with self._lock:
            self._disarm()
            self._active_id = candidate_id
            self._timer = timer
        timer.start()

    def _expire(self, candidate_id: str) -> None:
        with self._lock:
            if self._active_id != candidate_id:
                return
            self._active_id = None
            self._timer = None
        logger.info(f"Drag of candidate {candidate_id} timed out after {self.timeout}s")

    def cancel(self) -> None:
        with self._lock:
            self._disarm()
            self._active_id = None

    def end(self, candidate_id: str, over_id: Optional[str]) -> bool:
        """
        Finish the gesture. Returns True when a drop was dispatched.

        A drag-end for a gesture that already timed out, or for a different
        candidate than the one being dragged, is ignored.
        """
        with self._lock:
            self._disarm()
            active = self._active_id
            self._active_id = None

        if active is None or active != candidate_id:
            logger.debug(f"Ignoring drag end for {candidate_id}: no matching drag in progress")
            return False
        if not over_id:
            return False

        try:
            self.on_drop(candidate_id, over_id)
        except Exception as e:
            logger.error(f"Failed to move candidate {candidate_id} to {over_id}: {e}")
        return True


class StageTransitionEngine:
    """
    Binds a DragGesture to the stage write for one caller.

    Each drop opens its own short-lived session, so the gesture can outlive
    the request that created it.
    """

    def __init__(self, session_factory: sessionmaker, context: TenantContext, timeout: float = None):
        self.session_factory = session_factory
        self.context = context
        self.gesture = DragGesture(self._apply, timeout=timeout)

    def _apply(self, candidate_id: str, stage_id: str) -> None:
        with self.session_factory() as db:
            move_candidate_stage(db, self.context, candidate_id, stage_id)

    def drag_start(self, candidate_id: str) -> None:
        self.gesture.start(candidate_id)

    def drag_end(self, candidate_id: str, over_id: Optional[str]) -> bool:
        return self.gesture.end(candidate_id, over_id)

    def drag_cancel(self) -> None:
        self.gesture.cancel()


def group_by_stage(candidates: Iterable[Candidate]) -> "OrderedDict[str, List[Candidate]]":
    """Board columns in stage order; candidates in unknown stages are left out."""
    columns: "OrderedDict[str, List[Candidate]]" = OrderedDict((stage_id, []) for stage_id in STAGE_IDS)
    for candidate in candidates:
        if candidate.stage in columns:
            columns[candidate.stage].append(candidate)
    return columns


def build_board(db: Session, context: TenantContext, job_id: Optional[str] = None) -> Dict[str, List[Candidate]]:
    """
    Active candidates attached to at least one job (or to ``job_id``),
    grouped into board columns.
    """
    store = CandidateJobStore(db, context)
    linked_ids = {rel.candidate_id for rel in store.list_relationships(job_id=job_id)}
    if not linked_ids:
        return group_by_stage([])

    candidates = crud_candidate.candidates(db, context).query(
        Candidate.id.in_(linked_ids),
        Candidate.status == RecordStatus.ACTIVE,
        order_by=(Candidate.updated_at.desc(),),
    )
    return group_by_stage(candidates)
