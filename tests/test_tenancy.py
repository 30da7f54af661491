"""
Tests for tenant context resolution and bearer-token identity.
"""

import pytest
from pydantic import ValidationError

from app.core.tenancy import TenantContext, resolve_tenant_context


class TestResolveTenantContext:
    """Tests for deriving the caller's scope from role assignments"""

    def test_unauthenticated_profile_is_empty(self):
        context = resolve_tenant_context(None)

        assert context.company_id is None
        assert context.team_ids == []
        assert context.user_id is None
        assert context.is_admin is False
        assert not context.is_authenticated

    def test_first_role_with_company_wins(self):
        profile = {
            "id": "u1",
            "roles": [
                {"role": "viewer"},
                {"company_id": "c1", "team_id": "t1", "role": "recruiter"},
                {"company_id": "c2", "team_id": "t2", "role": "manager"},
            ],
        }

        context = resolve_tenant_context(profile)

        assert context.company_id == "c1"
        assert context.role == "recruiter"
        assert context.user_id == "u1"

    def test_team_ids_keep_order_and_duplicates(self):
        profile = {
            "id": "u1",
            "roles": [
                {"company_id": "c1", "team_id": "t2"},
                {"company_id": "c1", "team_id": "t1"},
                {"company_id": "c1"},
                {"company_id": "c1", "team_id": "t2"},
            ],
        }

        context = resolve_tenant_context(profile)

        assert context.team_ids == ["t2", "t1", "t2"]
        assert context.primary_team_id == "t2"

    def test_admin_flag_from_any_role(self):
        profile = {"id": "u1", "roles": [{"company_id": "c1", "role": "member"}, {"role": "admin"}]}

        assert resolve_tenant_context(profile).is_admin is True

    def test_no_company_is_a_valid_result(self):
        context = resolve_tenant_context({"id": "u1", "roles": []})

        assert context.is_authenticated
        assert context.company_id is None

    def test_resolves_from_orm_user(self, user_a, company_a, team_a):
        context = resolve_tenant_context(user_a)

        assert context.user_id == user_a.id
        assert context.company_id == company_a.id
        assert context.team_ids == [team_a.id]


class TestEnrich:
    """Tests for ownership stamping on new records"""

    def test_stamps_company_team_and_creator(self):
        context = TenantContext(company_id="c1", team_ids=["t1", "t2"], user_id="u1")

        data = context.enrich({"title": "Engineer"})

        assert data["title"] == "Engineer"
        assert data["company_id"] == "c1"
        assert data["team_id"] == "t1"
        assert data["created_by"] == "u1"
        assert data["created_at"] == data["updated_at"]

    def test_context_is_immutable(self):
        context = TenantContext(company_id="c1", user_id="u1")

        with pytest.raises(ValidationError):
            context.company_id = "c2"

        assert context.company_id == "c1"


class TestBearerIdentity:
    """Tests for the Authorization header dependency"""

    def test_missing_token_is_rejected(self, client):
        response = client.get("/api/v1/jobs/")

        assert response.status_code in (401, 403)

    def test_invalid_token_is_rejected(self, client):
        response = client.get("/api/v1/jobs/", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_valid_token_resolves_tenant(self, client, headers_a, job_a):
        response = client.get("/api/v1/jobs/", headers=headers_a)

        assert response.status_code == 200
        assert [j["id"] for j in response.json()] == [job_a.id]
