"""
Test suite for the activity log.

Tests cover:
- Append-only writes and their skip/failure behaviour
- The caller's recent feed (own user, own company, 30 days, limit)
- The /activities endpoint
"""

from datetime import timedelta

from sqlalchemy.exc import OperationalError

from app.core.tenancy import TenantContext
from app.crud.activity import (
    describe_activity,
    list_recent_activities,
    log_activity,
    subscribe_recent_activities,
)
from app.models import Activity, ActivityType
from app.models.common import utcnow


def _failing_commit(*args, **kwargs):
    raise OperationalError("COMMIT", {}, Exception("disk full"))


class TestLogActivity:
    """Tests for the append-only sink"""

    def test_log_stores_record(self, db_session, context_a):
        activity = log_activity(
            db_session, context_a, ActivityType.STAGE_CHANGED,
            {"candidate_id": "c1", "candidate_name": "Ada Lovelace", "old_stage": "new", "new_stage": "hr"},
        )

        assert activity is not None
        stored = db_session.get(Activity, activity.id)
        assert stored.type == "stage_changed"
        assert stored.user_id == context_a.user_id
        assert stored.company_id == context_a.company_id
        assert stored.description == "Moved Ada Lovelace to hr"
        assert stored.details["old_stage"] == "new"

    def test_skipped_without_company(self, db_session, homeless_context):
        assert log_activity(db_session, homeless_context, ActivityType.JOB_CREATED, {"job_title": "x"}) is None
        assert db_session.query(Activity).count() == 0

    def test_skipped_without_user(self, db_session):
        context = TenantContext(company_id="c1")

        assert log_activity(db_session, context, ActivityType.JOB_CREATED) is None

    def test_failed_write_returns_none(self, db_session, context_a, monkeypatch):
        with monkeypatch.context() as m:
            m.setattr(db_session, "commit", _failing_commit)
            result = log_activity(db_session, context_a, ActivityType.JOB_DELETED, {"job_id": "j1", "count": 0})

        assert result is None
        assert db_session.query(Activity).count() == 0

    def test_description_tolerates_missing_params(self):
        assert describe_activity(ActivityType.STAGE_CHANGED, new_stage="interview") == "Moved ? to interview"


class TestRecentActivities:
    """Tests for the caller's feed"""

    def test_feed_is_own_user_newest_first(self, db_session, context_a, context_b, user_a, company_a):
        log_activity(db_session, context_a, ActivityType.JOB_CREATED, {"job_title": "First"})
        log_activity(db_session, context_a, ActivityType.JOB_CREATED, {"job_title": "Second"})
        log_activity(db_session, context_b, ActivityType.JOB_CREATED, {"job_title": "Other tenant"})
        teammate = TenantContext(company_id=company_a.id, user_id="someone-else")
        log_activity(db_session, teammate, ActivityType.JOB_CREATED, {"job_title": "Teammate"})

        feed = list_recent_activities(db_session, context_a)

        assert [a.details["job_title"] for a in feed] == ["Second", "First"]

    def test_feed_excludes_old_entries(self, db_session, context_a):
        db_session.add(Activity(
            user_id=context_a.user_id,
            company_id=context_a.company_id,
            type="job_created",
            description="Created job Ancient",
            details={"job_title": "Ancient"},
            timestamp=utcnow() - timedelta(days=45),
        ))
        db_session.commit()
        log_activity(db_session, context_a, ActivityType.JOB_CREATED, {"job_title": "Recent"})

        feed = list_recent_activities(db_session, context_a)

        assert [a.details["job_title"] for a in feed] == ["Recent"]

    def test_feed_is_limited(self, db_session, context_a):
        for i in range(12):
            log_activity(db_session, context_a, ActivityType.JOB_CREATED, {"job_title": f"Job {i}"})

        assert len(list_recent_activities(db_session, context_a)) == 10
        assert len(list_recent_activities(db_session, context_a, limit=3)) == 3

    def test_feed_without_company_is_empty(self, db_session, homeless_context):
        assert list_recent_activities(db_session, homeless_context) == []

    def test_live_feed_receives_new_entries(self, db_session, context_a):
        with subscribe_recent_activities(db_session, context_a) as live:
            assert live.data == []

            log_activity(db_session, context_a, ActivityType.CANDIDATE_CREATED, {"candidate_name": "Ada"})

            assert [a.description for a in live.data] == ["Added candidate Ada"]

    def test_live_feed_window_slides_on_refresh(self, db_session, context_a, monkeypatch):
        now = utcnow()
        db_session.add(Activity(
            user_id=context_a.user_id,
            company_id=context_a.company_id,
            type="job_created",
            description="Created job Aging",
            details={"job_title": "Aging"},
            timestamp=now - timedelta(days=29),
        ))
        db_session.commit()

        with subscribe_recent_activities(db_session, context_a) as live:
            assert [a.details["job_title"] for a in live.data] == ["Aging"]

            monkeypatch.setattr("app.crud.activity.utcnow", lambda: now + timedelta(days=2))
            live.refresh()

            assert live.data == []


class TestActivityEndpoint:
    """Tests for /activities"""

    def test_endpoint_returns_metadata(self, client, headers_a, candidate_a):
        response = client.get("/api/v1/activities/", headers=headers_a)

        assert response.status_code == 200
        entries = response.json()
        assert len(entries) == 1
        assert entries[0]["type"] == "candidate_created"
        assert entries[0]["metadata"]["candidate_id"] == candidate_a.id

    def test_limit_is_validated(self, client, headers_a):
        response = client.get("/api/v1/activities/?limit=0", headers=headers_a)

        assert response.status_code == 422
