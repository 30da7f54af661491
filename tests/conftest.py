"""
Pytest configuration and fixtures for testing.

This file provides reusable test fixtures for:
- Database setup/teardown
- FastAPI test client
- Companies, teams and users with role assignments
- Bearer tokens and resolved tenant contexts
- Mock Celery tasks
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.core.security import create_access_token
from app.core.tenancy import resolve_tenant_context
from app.crud import candidate as candidate_crud
from app.crud import job as job_crud
from app.models import Company, Team, User, UserRole
from main import app


# Use in-memory SQLite for testing (fast, isolated)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def use_test_sessions(monkeypatch):
    """
    Point every short-lived session (live query refreshes, Celery tasks)
    at the test database.
    """
    monkeypatch.setattr("app.core.database.SessionLocal", TestingSessionLocal)
    monkeypatch.setattr("app.tasks.pipeline_tasks.SessionLocal", TestingSessionLocal)


@pytest.fixture
def db_session():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db_session):
    """Factory for extra sessions on the test database"""
    return TestingSessionLocal


@pytest.fixture
def client(db_session):
    """
    FastAPI test client with overridden database dependency.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def mock_celery(monkeypatch):
    """
    Mock Celery task execution for testing without Redis.
    Executes tasks synchronously in tests.
    """
    def mock_delay(self, *args, **kwargs):
        """Run the task eagerly; the EagerResult still carries an id"""
        return self.apply(args=args, kwargs=kwargs)

    monkeypatch.setattr("celery.Task.delay", mock_delay)
    return mock_delay


# ----------------------------------------------------------------------
# Tenants and users
# ----------------------------------------------------------------------

def _create_user(db, email, roles):
    user = User(email=email, full_name=email.split("@")[0].title())
    user.roles = [UserRole(**role) for role in roles]
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def company_a(db_session):
    company = Company(name="Acme Recruiting")
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture
def company_b(db_session):
    company = Company(name="Globex Talent")
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture
def team_a(db_session, company_a):
    team = Team(company_id=company_a.id, name="Engineering Hiring")
    db_session.add(team)
    db_session.commit()
    return team


@pytest.fixture
def user_a(db_session, company_a, team_a):
    """Recruiter in company A, team A"""
    return _create_user(db_session, "alice@acme.test", [
        {"company_id": company_a.id, "team_id": team_a.id, "role": "recruiter"},
    ])


@pytest.fixture
def user_b(db_session, company_b):
    """Recruiter in company B, no team"""
    return _create_user(db_session, "bob@globex.test", [
        {"company_id": company_b.id, "role": "recruiter"},
    ])


@pytest.fixture
def admin_user(db_session, company_b):
    return _create_user(db_session, "root@globex.test", [
        {"company_id": company_b.id, "role": "admin"},
    ])


@pytest.fixture
def homeless_user(db_session):
    """Authenticated, but no company selected"""
    return _create_user(db_session, "drifter@example.test", [])


@pytest.fixture
def context_a(user_a):
    return resolve_tenant_context(user_a)


@pytest.fixture
def context_b(user_b):
    return resolve_tenant_context(user_b)


@pytest.fixture
def admin_context(admin_user):
    return resolve_tenant_context(admin_user)


@pytest.fixture
def homeless_context(homeless_user):
    return resolve_tenant_context(homeless_user)


def bearer(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


@pytest.fixture
def headers_a(user_a):
    return bearer(user_a)


@pytest.fixture
def headers_b(user_b):
    return bearer(user_b)


@pytest.fixture
def homeless_headers(homeless_user):
    return bearer(homeless_user)


# ----------------------------------------------------------------------
# Domain data
# ----------------------------------------------------------------------

@pytest.fixture
def sample_job_data():
    """Sample job data for testing"""
    return {
        "title": "Senior Python Developer",
        "company": "Acme",
        "department": "Engineering",
        "location": "San Francisco, CA (Remote)",
        "employment_type": "full_time",
        "description": "Build and run the hiring platform backend.",
        "requirements": ["Python", "FastAPI", "PostgreSQL"],
    }


@pytest.fixture
def sample_candidate_data():
    return {
        "name": "Grace",
        "surname": "Hopper",
        "email": "grace@example.test",
        "phone": "+1 555 0100",
        "position": "Backend Engineer",
    }


@pytest.fixture
def job_a(db_session, context_a, sample_job_data):
    return job_crud.create(db_session, context_a, sample_job_data)


@pytest.fixture
def candidate_a(db_session, context_a, sample_candidate_data):
    return candidate_crud.create(db_session, context_a, sample_candidate_data)


@pytest.fixture
def job_b(db_session, context_b, sample_job_data):
    return job_crud.create(db_session, context_b, {**sample_job_data, "title": "Globex Data Engineer"})


@pytest.fixture
def candidate_b(db_session, context_b):
    return candidate_crud.create(db_session, context_b, {"name": "Hank", "surname": "Scorpio"})
