"""Pytest fixtures: file-backed SQLite database per test and header-based identity."""
import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from fastapi import Header
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from nocarry.auth import Identity, get_identity
from nocarry.database import Base, get_db
from nocarry.errors import Unauthenticated
from nocarry.main import app

# Import all models so they register with Base.metadata
from nocarry.models.user import User, GlobalRole                    # noqa: F401
from nocarry.models.project import Project, ProjectMember, ProjectRole  # noqa: F401
from nocarry.models.task import Task                               # noqa: F401
from nocarry.models.invite import ProjectInvite                    # noqa: F401
from nocarry.models.activity_log import ActivityLog                # noqa: F401
from nocarry.models.project_file import ProjectFile                # noqa: F401
from nocarry.models.peer_review import PeerReview                  # noqa: F401

SQLITE_URL = "sqlite:///./test.db"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _fake_identity(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> Identity:
    """Stand-in for the identity provider: trust the test headers."""
    if not x_user_id or not x_user_email:
        raise Unauthenticated()
    return Identity(id=x_user_id, email=x_user_email)


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database and identity dependencies overridden."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_identity] = _fake_identity
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def auth(user: dict) -> dict:
    """Request headers that authenticate as ``user``."""
    return {"X-User-Id": user["user_id"], "X-User-Email": user["email"]}


def create_test_user(
    client: TestClient,
    name: str = "Test User",
    email: str | None = None,
    role: str = "STUDENT",
) -> dict:
    """Helper: register an account via the API and return response JSON."""
    user_id = str(uuid.uuid4())
    email = email or f"{name.lower().replace(' ', '.')}.{user_id[:8]}@school.edu"
    resp = client.post(
        "/api/auth/register",
        json={"name": name, "global_role": role},
        headers={"X-User-Id": user_id, "X-User-Email": email},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_project(client: TestClient, owner: dict, name: str = "Test Project", course_code: str | None = None) -> dict:
    """Helper: POST /api/projects and return response JSON."""
    resp = client.post(
        "/api/projects/",
        json={"name": name, "course_code": course_code},
        headers=auth(owner),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def add_member(client: TestClient, project: dict, inviter: dict, invitee: dict, role: str = "STUDENT") -> dict:
    """Helper: add an existing account to a project via the invite endpoint."""
    resp = client.post(
        f"/api/projects/{project['project_id']}/invite",
        json={"email": invitee["email"], "role": role},
        headers=auth(inviter),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def member_id_of(client: TestClient, project: dict, user: dict, caller: dict) -> str:
    resp = client.get(f"/api/projects/{project['project_id']}/members", headers=auth(caller))
    assert resp.status_code == 200, resp.text
    return next(m["member_id"] for m in resp.json() if m["user_id"] == user["user_id"])


def create_test_task(client: TestClient, project: dict, creator: dict, title: str = "Task", assignee: dict | None = None) -> dict:
    resp = client.post(
        f"/api/projects/{project['project_id']}/tasks",
        json={"title": title, "assignee_id": assignee["user_id"] if assignee else None},
        headers=auth(creator),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
