"""
Test suite for the pipeline board and stage transitions.

Tests cover:
- Stage validation and the stage_changed audit record
- The drag gesture state machine, including its timeout
- Board grouping
- The queued move endpoint and its Celery task
"""

import time
from types import SimpleNamespace

import pytest

from app.core.exceptions import AccessDeniedError, InvalidStageError, RecordNotFoundError
from app.crud import candidate as candidate_crud
from app.crud.candidate_job import CandidateJobStore
from app.models import Activity, ArchiveReason, Candidate
from app.services import archive_service
from app.services.pipeline_service import (
    DragGesture,
    DragState,
    PipelineStage,
    StageTransitionEngine,
    build_board,
    group_by_stage,
    move_candidate_stage,
    validate_stage,
)
from app.tasks.pipeline_tasks import move_candidate_stage_task


def _stage_changes(db):
    return db.query(Activity).filter_by(type="stage_changed").all()


class TestMoveCandidateStage:
    """Tests for the stage write and its audit record"""

    def test_validate_stage(self):
        assert validate_stage("interview") is PipelineStage.INTERVIEW
        with pytest.raises(InvalidStageError):
            validate_stage("offer-letter")

    def test_move_logs_old_and_new_stage(self, db_session, context_a, candidate_a):
        move_candidate_stage(db_session, context_a, candidate_a.id, "screening")

        moved = move_candidate_stage(db_session, context_a, candidate_a.id, "interview")

        assert moved.stage == "interview"
        changes = _stage_changes(db_session)
        assert len(changes) == 2
        last = [a for a in changes if a.details["new_stage"] == "interview"]
        assert len(last) == 1
        assert last[0].details["old_stage"] == "screening"
        assert last[0].details["candidate_name"] == "Grace Hopper"
        assert last[0].description == "Moved Grace Hopper to interview"

    def test_same_stage_is_a_no_op(self, db_session, context_a, candidate_a):
        before = candidate_a.updated_at

        move_candidate_stage(db_session, context_a, candidate_a.id, "new")

        assert db_session.get(Candidate, candidate_a.id).updated_at == before
        assert _stage_changes(db_session) == []

    def test_unknown_stage_writes_nothing(self, db_session, context_a, candidate_a):
        with pytest.raises(InvalidStageError):
            move_candidate_stage(db_session, context_a, candidate_a.id, "limbo")

        assert db_session.get(Candidate, candidate_a.id).stage == "new"
        assert _stage_changes(db_session) == []

    def test_other_company_candidate_is_denied(self, db_session, context_b, candidate_a):
        with pytest.raises(AccessDeniedError):
            move_candidate_stage(db_session, context_b, candidate_a.id, "screening")

        assert db_session.get(Candidate, candidate_a.id).stage == "new"
        assert _stage_changes(db_session) == []

    def test_missing_candidate_is_not_found(self, db_session, context_a):
        with pytest.raises(RecordNotFoundError):
            move_candidate_stage(db_session, context_a, "no-such-candidate", "screening")


class TestDragGesture:
    """Tests for the idle/dragging state machine"""

    def test_drop_on_column_dispatches_once(self):
        drops = []
        gesture = DragGesture(lambda cid, over: drops.append((cid, over)), timeout=5)

        gesture.start("c1")
        assert gesture.state == DragState.DRAGGING
        assert gesture.active_id == "c1"

        assert gesture.end("c1", "interview") is True
        assert gesture.state == DragState.IDLE
        assert drops == [("c1", "interview")]

    def test_drop_outside_columns_does_nothing(self):
        drops = []
        gesture = DragGesture(lambda cid, over: drops.append(over), timeout=5)

        gesture.start("c1")

        assert gesture.end("c1", None) is False
        assert gesture.state == DragState.IDLE
        assert drops == []

    def test_cancel_returns_to_idle(self):
        drops = []
        gesture = DragGesture(lambda cid, over: drops.append(over), timeout=5)

        gesture.start("c1")
        gesture.cancel()

        assert gesture.state == DragState.IDLE
        assert gesture.end("c1", "hr") is False
        assert drops == []

    def test_timeout_forces_idle_without_mutation(self):
        drops = []
        gesture = DragGesture(lambda cid, over: drops.append(over), timeout=0.05)

        gesture.start("c1")
        deadline = time.monotonic() + 2
        while gesture.state != DragState.IDLE and time.monotonic() < deadline:
            time.sleep(0.01)

        assert gesture.state == DragState.IDLE
        assert gesture.end("c1", "interview") is False
        assert drops == []

    def test_restart_replaces_previous_drag(self):
        gesture = DragGesture(lambda cid, over: None, timeout=5)

        gesture.start("c1")
        gesture.start("c2")

        assert gesture.active_id == "c2"
        assert gesture.end("c1", "hr") is False
        assert gesture.state == DragState.IDLE

    def test_failed_drop_is_swallowed_and_gesture_stays_idle(self):
        def fail(cid, over):
            raise RuntimeError("write failed")

        gesture = DragGesture(fail, timeout=5)
        gesture.start("c1")

        assert gesture.end("c1", "screening") is True
        assert gesture.state == DragState.IDLE

    def test_on_drop_runs_after_gesture_is_idle(self):
        seen = []
        gesture = DragGesture(lambda cid, over: seen.append(gesture.state), timeout=5)

        gesture.start("c1")
        gesture.end("c1", "hr")

        assert seen == [DragState.IDLE]


class TestStageTransitionEngine:
    """Drag gestures wired to the stage write"""

    def test_drop_moves_candidate(self, db_session, session_factory, context_a, candidate_a):
        engine = StageTransitionEngine(session_factory, context_a, timeout=5)

        engine.drag_start(candidate_a.id)
        engine.drag_end(candidate_a.id, "screening")

        db_session.expire_all()
        assert db_session.get(Candidate, candidate_a.id).stage == "screening"
        changes = _stage_changes(db_session)
        assert len(changes) == 1
        assert changes[0].details["old_stage"] == "new"

    def test_drop_outside_leaves_candidate_alone(self, db_session, session_factory, context_a, candidate_a):
        engine = StageTransitionEngine(session_factory, context_a, timeout=5)

        engine.drag_start(candidate_a.id)
        engine.drag_end(candidate_a.id, None)

        db_session.expire_all()
        assert db_session.get(Candidate, candidate_a.id).stage == "new"
        assert _stage_changes(db_session) == []

    def test_invalid_column_is_logged_not_raised(self, db_session, session_factory, context_a, candidate_a):
        engine = StageTransitionEngine(session_factory, context_a, timeout=5)

        engine.drag_start(candidate_a.id)
        engine.drag_end(candidate_a.id, "trash")

        db_session.expire_all()
        assert db_session.get(Candidate, candidate_a.id).stage == "new"
        assert engine.gesture.state == DragState.IDLE


class TestBoard:
    """Tests for grouping candidates into columns"""

    def test_group_by_stage_keeps_order_and_drops_unknown(self):
        cards = [
            SimpleNamespace(id="1", stage="hr"),
            SimpleNamespace(id="2", stage="new"),
            SimpleNamespace(id="3", stage="offer"),
            SimpleNamespace(id="4", stage="new"),
        ]

        columns = group_by_stage(cards)

        assert list(columns) == ["new", "screening", "interview", "submitted", "hr", "manager"]
        assert [c.id for c in columns["new"]] == ["2", "4"]
        assert [c.id for c in columns["hr"]] == ["1"]
        assert sum(len(v) for v in columns.values()) == 3

    def test_board_shows_only_linked_active_candidates(
        self, db_session, context_a, candidate_a, job_a, sample_candidate_data
    ):
        unlinked = candidate_crud.create(db_session, context_a, {**sample_candidate_data, "name": "Unlinked"})
        archived = candidate_crud.create(db_session, context_a, {**sample_candidate_data, "name": "Gone"})
        store = CandidateJobStore(db_session, context_a)
        store.add_relationship(candidate_a.id, job_a.id)
        store.add_relationship(archived.id, job_a.id)
        archive_service.archive_candidate(db_session, context_a, archived.id, ArchiveReason.REJECTED)

        columns = build_board(db_session, context_a)

        ids = [c.id for c in columns["new"]]
        assert ids == [candidate_a.id]
        assert unlinked.id not in ids


class TestPipelineEndpoints:
    """Tests for /pipeline"""

    def test_board_endpoint(self, client, db_session, headers_a, context_a, candidate_a, job_a):
        CandidateJobStore(db_session, context_a).add_relationship(candidate_a.id, job_a.id)

        response = client.get("/api/v1/pipeline/", headers=headers_a)

        assert response.status_code == 200
        stages = response.json()["stages"]
        assert [s["id"] for s in stages] == ["new", "screening", "interview", "submitted", "hr", "manager"]
        assert stages[4]["title"] == "HR"
        assert [c["id"] for c in stages[0]["candidates"]] == [candidate_a.id]

    def test_move_is_queued_and_applied(self, client, db_session, headers_a, candidate_a, mock_celery):
        response = client.post(
            "/api/v1/pipeline/moves",
            json={"candidate_id": candidate_a.id, "over_id": "interview"},
            headers=headers_a,
        )

        assert response.status_code == 202
        data = response.json()
        assert data["stage"] == "interview"
        assert data["task_id"]

        db_session.expire_all()
        assert db_session.get(Candidate, candidate_a.id).stage == "interview"
        assert len(_stage_changes(db_session)) == 1

    def test_unknown_column_is_422(self, client, headers_a, candidate_a, mock_celery):
        response = client.post(
            "/api/v1/pipeline/moves",
            json={"candidate_id": candidate_a.id, "over_id": "limbo"},
            headers=headers_a,
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "invalid_query"

    def test_board_requires_company(self, client, homeless_headers):
        response = client.get("/api/v1/pipeline/", headers=homeless_headers)

        assert response.status_code == 400
        assert response.json() == {
            "detail": "Please ensure you have selected a company",
            "error_code": "missing_tenant",
        }


class TestMoveTask:
    """Tests for the Celery task itself"""

    def test_task_reports_rejection(self, db_session, context_a):
        result = move_candidate_stage_task.apply(args=("missing", "hr", context_a.model_dump())).get()

        assert result["status"] == "failed"
        assert result["error_code"] == "not_found"

    def test_task_applies_move(self, db_session, context_a, candidate_a):
        result = move_candidate_stage_task.apply(args=(candidate_a.id, "submitted", context_a.model_dump())).get()

        assert result == {"status": "success", "candidate_id": candidate_a.id, "stage": "submitted"}
