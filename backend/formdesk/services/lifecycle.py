"""Soft-delete, restore, and permanent-delete state machine for form versions."""

# purpose: move form versions between Active and Deleted and destroy them with their history
# status: active
# depends_on: backend.formdesk.models, backend.formdesk.audit

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .. import audit, models
from .errors import AlreadyDeleted, ConcurrencyConflict, NotDeleted
from .form_versions import get_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurgeCounts:
    form_id: UUID
    submissions_deleted: int
    answers_deleted: int
    questions_deleted: int


def _flush(db: Session, form_id: UUID) -> None:
    try:
        db.flush()
    except StaleDataError as exc:
        raise ConcurrencyConflict(f"form {form_id} was modified concurrently") from exc


def soft_delete(db: Session, version_id: UUID, *, caller_id: UUID | None) -> models.FormVersion:
    form = get_version(db, version_id)
    if form.deleted:
        raise AlreadyDeleted(f"form {version_id} is already deleted")
    form.deleted = True
    form.deleted_at = datetime.now(timezone.utc).replace(tzinfo=None)
    form.deleted_by = caller_id
    _flush(db, form.id)
    audit.log_action(db, caller_id, "form.soft_delete", "form_version", form.id, tenant_id=form.tenant_id)
    logger.info("form_soft_deleted form_id=%s by=%s", form.id, caller_id)
    return form


def restore(db: Session, version_id: UUID, *, caller_id: UUID | None = None) -> models.FormVersion:
    form = get_version(db, version_id)
    if not form.deleted:
        raise NotDeleted(f"form {version_id} is not deleted")
    form.deleted = False
    form.deleted_at = None
    form.deleted_by = None
    _flush(db, form.id)
    audit.log_action(db, caller_id, "form.restore", "form_version", form.id, tenant_id=form.tenant_id)
    logger.info("form_restored form_id=%s", form.id)
    return form


def permanent_delete(db: Session, version_id: UUID, *, caller_id: UUID | None = None) -> PurgeCounts:
    """Destroy a version with its questions, submissions, and answers.

    Allowed from either state. Children are removed first so no answer or
    question outlives its parent, and the version row delete is guarded by its
    revision so a concurrent edit aborts the whole cascade.
    """

    form = get_version(db, version_id)
    tenant_id = form.tenant_id
    revision = form.revision
    submission_ids = select(models.Submission.id).where(models.Submission.form_version_id == form.id)

    answers_deleted = db.execute(
        sa.delete(models.Answer)
        .where(models.Answer.submission_id.in_(submission_ids))
        .execution_options(synchronize_session=False)
    ).rowcount
    submissions_deleted = db.execute(
        sa.delete(models.Submission)
        .where(models.Submission.form_version_id == form.id)
        .execution_options(synchronize_session=False)
    ).rowcount
    questions_deleted = db.execute(
        sa.delete(models.Question)
        .where(models.Question.form_version_id == form.id)
        .execution_options(synchronize_session=False)
    ).rowcount
    removed = db.execute(
        sa.delete(models.FormVersion)
        .where(models.FormVersion.id == form.id, models.FormVersion.revision == revision)
        .execution_options(synchronize_session=False)
    ).rowcount
    if removed != 1:
        raise ConcurrencyConflict(f"form {version_id} was modified concurrently")
    db.expunge(form)

    audit.log_action(
        db,
        caller_id,
        "form.permanent_delete",
        "form_version",
        version_id,
        details={
            "submissions_deleted": submissions_deleted,
            "answers_deleted": answers_deleted,
            "questions_deleted": questions_deleted,
        },
        tenant_id=tenant_id,
    )
    logger.info(
        "form_purged form_id=%s submissions=%d answers=%d questions=%d",
        version_id,
        submissions_deleted,
        answers_deleted,
        questions_deleted,
    )
    return PurgeCounts(
        form_id=version_id,
        submissions_deleted=submissions_deleted,
        answers_deleted=answers_deleted,
        questions_deleted=questions_deleted,
    )


def list_trash(db: Session, tenant_id: UUID) -> list[models.FormVersion]:
    stmt = (
        select(models.FormVersion)
        .where(models.FormVersion.tenant_id == tenant_id, models.FormVersion.deleted.is_(True))
        .order_by(models.FormVersion.deleted_at.desc())
    )
    return list(db.scalars(stmt).all())
