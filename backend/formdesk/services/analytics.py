"""Answer distribution statistics for a form version."""

from __future__ import annotations

from uuid import UUID

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.orm import Session

from .. import models
from ..schemas import DistributionEntry, FormStats
from .errors import FormNotFound
from .submissions import count_submissions


def compute_stats(db: Session, version_id: UUID) -> FormStats:
    """Count submissions and group answers by raw (question, value) pairs."""

    form = db.get(models.FormVersion, version_id)
    if form is None:
        raise FormNotFound(f"form {version_id} not found")

    stmt = (
        select(
            models.Answer.question_id,
            models.Answer.value,
            sa.func.count(models.Answer.id),
        )
        .join(models.Submission, models.Submission.id == models.Answer.submission_id)
        .where(models.Submission.form_version_id == version_id)
        .group_by(models.Answer.question_id, models.Answer.value)
    )
    distribution = [
        DistributionEntry(question_id=question_id, value=value, count=int(count))
        for question_id, value, count in db.execute(stmt).all()
    ]
    return FormStats(
        form_id=form.id,
        title=form.title,
        total_submissions=count_submissions(db, version_id),
        distribution=distribution,
    )
