"""Submission ledger for form versions."""

# purpose: record immutable answer sets against one specific form version
# status: active
# depends_on: backend.formdesk.models, backend.formdesk.services.form_versions

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.attributes import set_committed_value

from .. import models
from ..schemas import SubmissionCreate
from .errors import (
    DuplicateSubmission,
    FormNotFound,
    QuestionNotFound,
    SubmissionNotFound,
    SubmissionUnauthorized,
    WindowClosed,
    WindowNotOpen,
)
from .form_versions import as_utc, lock_version

logger = logging.getLogger(__name__)


def has_submissions(db: Session, version_id: UUID) -> bool:
    stmt = select(models.Submission.id).where(models.Submission.form_version_id == version_id).limit(1)
    return db.scalar(stmt) is not None


def count_submissions(db: Session, version_id: UUID) -> int:
    stmt = select(sa.func.count(models.Submission.id)).where(
        models.Submission.form_version_id == version_id
    )
    return int(db.scalar(stmt) or 0)


def _has_submitted(db: Session, version_id: UUID, submitter_id: UUID) -> bool:
    stmt = (
        select(models.Submission.id)
        .where(
            models.Submission.form_version_id == version_id,
            models.Submission.submitter_id == submitter_id,
        )
        .limit(1)
    )
    return db.scalar(stmt) is not None


def check_can_submit(
    db: Session,
    form: models.FormVersion | None,
    submitter_id: UUID | None,
    now: datetime,
) -> None:
    """Run the ordered submission checks; the first failure wins."""

    if form is None or form.deleted:
        raise FormNotFound("form not found")
    start_at = as_utc(form.start_at)
    end_at = as_utc(form.end_at)
    if start_at is not None and now < start_at:
        raise WindowNotOpen(f"form opens at {start_at.isoformat()}")
    if end_at is not None and now > end_at:
        raise WindowClosed(f"form closed at {end_at.isoformat()}")
    if not form.is_public and submitter_id is None:
        raise SubmissionUnauthorized("form requires an authenticated submitter")
    if form.one_submission_per_user and submitter_id is not None:
        if _has_submitted(db, form.id, submitter_id):
            raise DuplicateSubmission("submitter already answered this form")


def submit(
    db: Session,
    version_id: UUID,
    payload: SubmissionCreate,
    *,
    submitter_id: UUID | None,
    now: datetime | None = None,
) -> models.Submission:
    """Validate and record a submission with its answers as one unit of work."""

    now = as_utc(now) if now else datetime.now(timezone.utc)
    form = lock_version(db, version_id)
    check_can_submit(db, form, submitter_id, now)

    question_ids = {question.id for question in form.questions}
    for answer in payload.answers:
        if answer.question_id not in question_ids:
            raise QuestionNotFound(f"question {answer.question_id} is not part of form {version_id}")

    stamped = now.replace(tzinfo=None)
    submission = models.Submission(
        form_version_id=form.id,
        submitter_id=submitter_id,
        unique_submitter_id=submitter_id if form.one_submission_per_user else None,
        submitted_at=stamped,
        answers=[
            models.Answer(question_id=answer.question_id, value=answer.value)
            for answer in payload.answers
        ],
    )
    db.add(submission)
    try:
        db.flush()
    except IntegrityError as exc:
        if form.one_submission_per_user and submitter_id is not None:
            raise DuplicateSubmission("submitter already answered this form") from exc
        raise

    # plain table update: concurrent submissions must not bump the revision
    # that guards edits against each other
    versions = models.FormVersion.__table__
    db.execute(
        versions.update().where(versions.c.id == form.id).values(last_submission_at=stamped)
    )
    set_committed_value(form, "last_submission_at", stamped)

    logger.info(
        "submission_recorded form_id=%s submission_id=%s guest=%s answers=%d",
        form.id,
        submission.id,
        submitter_id is None,
        len(submission.answers),
    )
    return submission


def list_submissions(db: Session, version_id: UUID) -> list[models.Submission]:
    if db.get(models.FormVersion, version_id) is None:
        raise FormNotFound(f"form {version_id} not found")
    stmt = (
        select(models.Submission)
        .options(selectinload(models.Submission.answers))
        .where(models.Submission.form_version_id == version_id)
        .order_by(models.Submission.submitted_at.asc())
    )
    return list(db.scalars(stmt).all())


def get_submission(db: Session, submission_id: UUID) -> models.Submission:
    submission = db.get(models.Submission, submission_id)
    if submission is None:
        raise SubmissionNotFound(f"submission {submission_id} not found")
    return submission
