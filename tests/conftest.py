# ruff: noqa: E402
# File: /tests/conftest.py | Version: 2.0
import pathlib
import sys
from typing import Dict

# Make repo root importable as "app"
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.db.base_class import Base
from app.main import app
from app.models import User, Workspace

# One shared in-memory connection; crud functions commit, so every test gets
# a freshly created schema instead of an outer rolled-back transaction.
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@event.listens_for(engine, "connect")
def _sqlite_foreign_keys(dbapi_connection, _record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(autouse=True)
def _blank_seed_rows(monkeypatch):
    # Query tests write their own cell values into seeded rows
    monkeypatch.setattr(settings, "TABLE_SEED_FAKE_DATA", False)


@pytest.fixture()
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session):
    from app.db.session import get_db  # late import to avoid circulars

    def _override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------
# Helpers
# ---------------------------


def login_headers(client: TestClient, email: str, password: str = "secret123") -> Dict[str, str]:
    client.post("/auth/register", json={"email": email, "password": password})
    r = client.post("/auth/token", data={"username": email, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def create_table(client: TestClient, headers: Dict[str, str], name: str = "T", seed_rows: int = 0) -> dict:
    """Workspace -> base -> table for the logged-in user; returns the table-created payload."""
    wid = client.get("/workspaces/", headers=headers).json()[0]["id"]
    bid = client.post(f"/workspaces/{wid}/bases", json={"name": "B"}, headers=headers).json()["id"]
    r = client.post(
        f"/bases/{bid}/tables", json={"name": name, "seed_rows": seed_rows}, headers=headers
    )
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture()
def auth_headers(client) -> Dict[str, str]:
    return login_headers(client, "owner@example.com")


@pytest.fixture()
def owner(db_session) -> User:
    """A user with one workspace, created directly through the session."""
    user = User(email="direct@example.com", hashed_password="x", is_active=True)
    db_session.add(user)
    db_session.flush()
    db_session.add(Workspace(name="W", owner_id=user.id))
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def login(client):
    def _login(email: str, password: str = "secret123") -> Dict[str, str]:
        return login_headers(client, email, password)

    return _login


@pytest.fixture()
def make_table(client, auth_headers):
    def _make(name: str = "T", seed_rows: int = 0, headers: Dict[str, str] = None) -> dict:
        return create_table(client, headers or auth_headers, name=name, seed_rows=seed_rows)

    return _make
