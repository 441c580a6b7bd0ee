import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from formdesk import models
from formdesk.auth import verify_password
from formdesk.cli import seed
from formdesk.database import Base, enable_sqlite_foreign_keys


@pytest.fixture
def empty_db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def test_seed_demo_data_is_idempotent(empty_db):
    admins = seed.seed_demo_data(empty_db, password="demo-pass")
    assert [a.email for a in admins] == ["ali@nb.com", "sarah@zain.com", "ahmed@cbi.com"]
    assert all(a.role == models.ROLE_ADMIN for a in admins)
    assert verify_password("demo-pass", admins[0].hashed_password)

    forms = empty_db.query(models.FormVersion).all()
    assert [f.title for f in forms] == ["Hackathon Feedback Survey"]
    assert forms[0].tenant_id == admins[0].tenant_id
    assert forms[0].is_published and forms[0].is_public
    assert [q.type for q in forms[0].questions] == ["Rating", "Dropdown"]

    assert seed.seed_demo_data(empty_db) == []
    assert empty_db.query(models.Tenant).count() == 3
