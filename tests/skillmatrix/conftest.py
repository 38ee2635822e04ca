"""Shared fixtures: in-memory database, API client and seed data."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from skillmatrix.database import Base, get_db
from skillmatrix.deps import get_identity_client
from skillmatrix.main import app
from skillmatrix.models.profile import Profile
from skillmatrix.models.taxonomy import Skill, SkillCategory, Subskill
from skillmatrix.services.identity_client import IdentityClient


# ---------------------------------------------------------------------------
# In-memory SQLite test database (shared via StaticPool)
# ---------------------------------------------------------------------------
SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Dependency override that uses the test in-memory database."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def setup_db():
    """Create and tear down tables around each test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def identity():
    """Identity client double; every admin call succeeds."""
    mock = AsyncMock(spec=IdentityClient)
    mock.create_user.return_value = "new-user-id"
    mock.update_user.return_value = {}
    mock.ban_user.return_value = {}
    mock.unban_user.return_value = {}
    mock.delete_user.return_value = None
    return mock


@pytest.fixture
def client(identity):
    """TestClient with the DB and identity dependencies overridden."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_client] = lambda: identity
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    """SQLAlchemy session for pre-populating test data."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_profile(db):
    """Factory creating committed profiles."""

    def _make(
        user_id: str,
        role: str = "employee",
        full_name: str | None = None,
        department: str | None = None,
        tech_lead_id: str | None = None,
        status: str = "active",
    ) -> Profile:
        profile = Profile(
            user_id=user_id,
            email=f"{user_id}@example.com",
            full_name=full_name or user_id.replace("-", " ").title(),
            role=role,
            status=status,
            department=department,
            tech_lead_id=tech_lead_id,
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    return _make


@pytest.fixture
def admin(make_profile):
    return make_profile("admin-1", role="admin", full_name="Ada Admin")


@pytest.fixture
def lead(make_profile):
    return make_profile("lead-1", role="tech_lead", full_name="Lee Lead", department="Engineering")


@pytest.fixture
def employee(make_profile, lead):
    return make_profile(
        "emp-1",
        full_name="Eve Employee",
        department="Engineering",
        tech_lead_id=lead.user_id,
    )


@pytest.fixture
def taxonomy(db):
    """
    Seed a small taxonomy.

    Programming: Python (subskills Django, FastAPI), Go (no subskills)
    Cloud: AWS (no subskills)
    """
    programming = SkillCategory(name="Programming", description="Languages")
    cloud = SkillCategory(name="Cloud", color="#10B981")
    db.add_all([programming, cloud])
    db.flush()

    python = Skill(category_id=programming.id, name="Python")
    go = Skill(category_id=programming.id, name="Go", description="Go language")
    aws = Skill(category_id=cloud.id, name="AWS")
    db.add_all([python, go, aws])
    db.flush()

    django = Subskill(skill_id=python.id, name="Django", description="Web framework")
    fastapi = Subskill(skill_id=python.id, name="FastAPI")
    db.add_all([django, fastapi])
    db.commit()

    return {
        "programming": programming.id,
        "cloud": cloud.id,
        "python": python.id,
        "go": go.id,
        "aws": aws.id,
        "django": django.id,
        "fastapi": fastapi.id,
    }
