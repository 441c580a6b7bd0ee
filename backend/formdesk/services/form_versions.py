"""Form version persistence and lineage helpers."""

# purpose: create form lineages and read versions, lineages, and their ordering
# status: active
# depends_on: backend.formdesk.models, backend.formdesk.services.question_sets

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .. import models
from ..schemas import FormContent, LineageItem, LineageOut
from . import question_sets
from .errors import FormNotFound

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (as SQLite returns them) as UTC."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_storage(value: datetime | None) -> datetime | None:
    normalised = as_utc(value)
    return normalised.replace(tzinfo=None) if normalised else None


def apply_content(form: models.FormVersion, content: FormContent) -> None:
    """Overwrite the editable content fields of a version (questions excluded)."""

    form.title = content.title
    form.description = content.description
    form.is_published = content.is_published
    form.is_public = content.is_public
    form.start_at = _to_storage(content.start_at)
    form.end_at = _to_storage(content.end_at)
    form.one_submission_per_user = content.one_submission_per_user


def create_lineage(
    db: Session,
    *,
    tenant_id: UUID,
    created_by: UUID | None,
    content: FormContent,
) -> models.FormVersion:
    """Create version 1 of a new lineage.

    The lineage id is minted before insert and doubles as the first
    version's id, so the root is self-referential from the first flush.
    """

    lineage_id = uuid.uuid4()
    now = _utcnow()
    form = models.FormVersion(
        id=lineage_id,
        lineage_root=lineage_id,
        version=1,
        tenant_id=tenant_id,
        created_by=created_by,
        created_at=now,
        updated_at=now,
    )
    apply_content(form, content)
    form.questions = question_sets.build_questions(content.questions)
    db.add(form)
    db.flush()
    logger.info("form_lineage_created form_id=%s tenant_id=%s", form.id, tenant_id)
    return form


def get_version(db: Session, version_id: UUID, *, include_deleted: bool = True) -> models.FormVersion:
    form = db.get(models.FormVersion, version_id)
    if form is None or (form.deleted and not include_deleted):
        raise FormNotFound(f"form {version_id} not found")
    return form


def lock_version(db: Session, version_id: UUID) -> models.FormVersion | None:
    """Load a version with a row lock held until the transaction ends.

    The row is re-read even if already in the session so the caller decides
    on committed state. Dialects without `FOR UPDATE` (SQLite) serialise
    writers per database instead.
    """

    return db.get(models.FormVersion, version_id, with_for_update=True, populate_existing=True)


def lineage_root_of(form: models.FormVersion) -> UUID:
    # rows persisted before lineage tracking point at themselves
    return form.lineage_root or form.id


def max_version_in_lineage(
    db: Session, form: models.FormVersion, *, include_deleted: bool = True
) -> int:
    root = lineage_root_of(form)
    stmt = select(sa.func.max(models.FormVersion.version)).where(
        sa.or_(models.FormVersion.lineage_root == root, models.FormVersion.id == root)
    )
    if not include_deleted:
        stmt = stmt.where(models.FormVersion.deleted.is_(False))
    return int(db.scalar(stmt) or form.version)


def list_lineage(db: Session, version_id: UUID) -> LineageOut:
    """Return every version sharing the lineage of `version_id`, oldest first."""

    form = get_version(db, version_id)
    root = lineage_root_of(form)
    stmt = (
        select(models.FormVersion)
        .where(sa.or_(models.FormVersion.lineage_root == root, models.FormVersion.id == root))
        .order_by(models.FormVersion.version.asc())
    )
    versions = db.scalars(stmt).all()
    return LineageOut(
        lineage_root=root,
        items=[LineageItem.model_validate(version) for version in versions],
    )


def get_with_questions(db: Session, version_id: UUID) -> models.FormVersion:
    stmt = (
        select(models.FormVersion)
        .options(selectinload(models.FormVersion.questions))
        .where(models.FormVersion.id == version_id)
    )
    form = db.scalars(stmt).first()
    if form is None:
        raise FormNotFound(f"form {version_id} not found")
    return form
