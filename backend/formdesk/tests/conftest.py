import os
os.environ["TESTING"] = "1"
os.environ.setdefault("SECRET_KEY", "test-secret")
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import sys
from pathlib import Path

import uuid

sys.path.append(str(Path(__file__).resolve().parents[2]))

from formdesk.main import app
from formdesk.database import Base, enable_sqlite_foreign_keys, get_db
from formdesk import models, schemas
from formdesk.auth import get_password_hash

SQLALCHEMY_DATABASE_URL = "sqlite:///./formdesk_test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def make_tenant(session, name: str | None = None) -> models.Tenant:
    tenant = models.Tenant(name=name or f"tenant-{uuid.uuid4().hex[:8]}")
    session.add(tenant)
    session.flush()
    return tenant


def make_user(session, tenant: models.Tenant, *, role: str = models.ROLE_EDITOR) -> models.User:
    user = models.User(
        tenant_id=tenant.id,
        email=f"user-{uuid.uuid4()}@example.com",
        name="Test User",
        hashed_password=get_password_hash("secret"),
        role=role,
    )
    session.add(user)
    session.flush()
    return user


def form_payload(title: str = "Feedback", **overrides) -> schemas.FormCreate:
    data = {
        "title": title,
        "description": "How did it go?",
        "is_published": True,
        "is_public": True,
        "questions": [
            {"label": "Rate the food", "type": "Rating", "options": "1-5"},
            {"label": "Track", "type": "Dropdown", "options": "Backend,Frontend,Design"},
        ],
    }
    data.update(overrides)
    return schemas.FormCreate(**data)


def edit_payload(title: str = "Feedback v2", **overrides) -> schemas.FormEdit:
    return schemas.FormEdit(**form_payload(title, **overrides).model_dump())


def register(client, *, name: str = "Tester", email: str | None = None, password: str = "secret"):
    """
    Register a fresh account through the API and return (headers, token body).
    """

    normalized_email = email or f"user-{uuid.uuid4()}@example.com"
    resp = client.post(
        "/api/auth/register",
        json={"name": name, "email": normalized_email, "password": password},
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    return {"Authorization": f"Bearer {data['access_token']}"}, data
