"""Versioning policy for form edits.

An edit either mutates a form version in place or forks a new immutable
version into the same lineage. The decision is governed by the submission
ledger: a version nobody has answered yet has no history to protect, so its
content and questions are replaced destructively; a version with at least one
submission is frozen and superseded by a fork.

Edits and submissions both lock the version row before reading the
submission ledger, so an edit never decides on a ledger that changes under
it. Every edit also writes the existing row (content on the in-place path,
`superseded_at` on the fork path) and the row's `revision` column is the
mapper's version counter, so two edits that read the same revision cannot
both commit. The loser surfaces as `ConcurrencyConflict` and may retry the
whole operation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .. import models
from ..schemas import FormEdit
from . import form_versions, question_sets, submissions
from .errors import ConcurrencyConflict, FormNotFound, VersionDeleted

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditOutcome:
    version: models.FormVersion
    previous_version_id: UUID
    forked: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _edit_in_place(form: models.FormVersion, edit: FormEdit) -> models.FormVersion:
    form_versions.apply_content(form, edit)
    # old question rows are orphaned and deleted on flush
    form.questions = question_sets.build_questions(edit.questions)
    # audit counter only; the row itself is reused
    form.version = form.version + 1
    form.updated_at = _utcnow()
    return form


def _fork(db: Session, existing: models.FormVersion, edit: FormEdit) -> models.FormVersion:
    now = _utcnow()
    root = form_versions.lineage_root_of(existing)
    if existing.lineage_root is None:
        existing.lineage_root = root
    fork = models.FormVersion(
        tenant_id=existing.tenant_id,
        created_by=existing.created_by,
        version=existing.version + 1,
        lineage_root=root,
        created_at=now,
        updated_at=now,
    )
    form_versions.apply_content(fork, edit)
    fork.questions = question_sets.build_questions(edit.questions)
    db.add(fork)
    existing.superseded_at = now
    return fork


def apply_edit(db: Session, version_id: UUID, edit: FormEdit) -> EditOutcome:
    """Apply an edit request to a form version, forking when it has submissions."""

    existing = form_versions.lock_version(db, version_id)
    if existing is None:
        raise FormNotFound(f"form {version_id} not found")
    if existing.deleted:
        raise VersionDeleted(f"form {version_id} is deleted")

    latest = form_versions.max_version_in_lineage(db, existing)
    if latest > existing.version:
        logger.info(
            "form_edit_stale form_id=%s version=%s latest=%s",
            existing.id,
            existing.version,
            latest,
        )
        latest_active = form_versions.max_version_in_lineage(db, existing, include_deleted=False)
        if latest_active <= existing.version:
            raise ConcurrencyConflict(
                f"form {version_id} is version {existing.version} but deleted version {latest} "
                "supersedes it; restore or permanently delete that version first"
            )
        raise ConcurrencyConflict(
            f"form {version_id} is version {existing.version} but version {latest} already exists"
        )

    forked = submissions.has_submissions(db, existing.id)
    try:
        if forked:
            result = _fork(db, existing, edit)
        else:
            result = _edit_in_place(existing, edit)
        db.flush()
    except (StaleDataError, IntegrityError) as exc:
        logger.warning("form_edit_conflict form_id=%s error=%s", version_id, exc)
        raise ConcurrencyConflict(f"form {version_id} was modified concurrently") from exc

    # the flush holds the write lock, so a submission that landed after the
    # first read is visible here and the destructive edit must not commit
    if not forked and submissions.has_submissions(db, existing.id):
        logger.warning("form_edit_conflict form_id=%s error=answered_during_edit", version_id)
        raise ConcurrencyConflict(f"form {version_id} received a submission during the edit")

    if forked:
        logger.info(
            "form_forked from_id=%s to_id=%s version=%s lineage_root=%s",
            existing.id,
            result.id,
            result.version,
            result.lineage_root,
        )
    else:
        logger.info("form_edited_in_place form_id=%s version=%s", result.id, result.version)
    return EditOutcome(version=result, previous_version_id=existing.id, forked=forked)
