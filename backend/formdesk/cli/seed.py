"""CLI utilities for seeding demo tenants, admins, and a sample survey."""

# purpose: give local environments a ready-to-use tenant with a published form
# status: active
# depends_on: backend.formdesk.database, backend.formdesk.services.form_versions

from __future__ import annotations

import logging

import typer
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_password_hash
from ..database import Base, SessionLocal, engine
from ..logging_setup import configure_logging
from ..services import form_versions

app = typer.Typer(help="Demo data maintenance commands")
logger = logging.getLogger(__name__)

DEMO_TENANTS: list[tuple[str, str, str]] = [
    ("National Bank of Iraq", "Ali (Bank Admin)", "ali@nb.com"),
    ("Zain", "Sarah (Zain Admin)", "sarah@zain.com"),
    ("CBI", "Ahmed (CBI Admin)", "ahmed@cbi.com"),
]

DEMO_SURVEY = schemas.FormCreate(
    title="Hackathon Feedback Survey",
    description="Tell us about your experience!",
    is_published=True,
    is_public=True,
    questions=[
        schemas.QuestionPayload(label="How was the food?", type=schemas.QuestionType.RATING, options="1-5"),
        schemas.QuestionPayload(
            label="Which track are you in?",
            type=schemas.QuestionType.DROPDOWN,
            options="Backend,Frontend,Design",
        ),
    ],
)


def seed_demo_data(session: Session, password: str = "password") -> list[models.User]:
    """Create demo tenants with one admin each; the first tenant gets the survey.

    Does nothing when any tenant already exists.
    """

    if session.query(models.Tenant).first() is not None:
        logger.info("seed_skipped reason=tenants_exist")
        return []

    admins: list[models.User] = []
    for tenant_name, admin_name, email in DEMO_TENANTS:
        tenant = models.Tenant(name=tenant_name)
        session.add(tenant)
        session.flush()
        admin = models.User(
            tenant_id=tenant.id,
            name=admin_name,
            email=email,
            hashed_password=get_password_hash(password),
            role=models.ROLE_ADMIN,
        )
        session.add(admin)
        session.flush()
        admins.append(admin)

    first_admin = admins[0]
    form_versions.create_lineage(
        session,
        tenant_id=first_admin.tenant_id,
        created_by=first_admin.id,
        content=DEMO_SURVEY,
    )
    logger.info("seed_completed tenants=%d", len(admins))
    return admins


@app.command()
def seed(
    password: str = typer.Option("password", help="Password assigned to every demo admin"),
    create_tables: bool = typer.Option(True, help="Create missing tables before seeding"),
) -> None:
    """Seed demo tenants, admin accounts, and the feedback survey."""

    configure_logging()
    if create_tables:
        Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        admins = seed_demo_data(session, password=password)
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
    if not admins:
        typer.echo("Tenants already present; nothing seeded")
        return
    for admin in admins:
        typer.echo(f"{admin.email} -> tenant {admin.tenant_id}")


if __name__ == "__main__":
    app()
