import uuid

import pytest

from formdesk import schemas
from formdesk.services import analytics, form_versions, submissions
from formdesk.services.errors import FormNotFound

from formdesk.tests.conftest import form_payload, make_tenant, make_user


def _submit(db, form, rating, track):
    rating_q, track_q = form.questions
    submissions.submit(
        db,
        form.id,
        schemas.SubmissionCreate(
            answers=[
                {"question_id": rating_q.id, "value": rating},
                {"question_id": track_q.id, "value": track},
            ]
        ),
        submitter_id=None,
    )


def test_distribution_groups_raw_values(db):
    tenant = make_tenant(db)
    owner = make_user(db, tenant)
    form = form_versions.create_lineage(
        db, tenant_id=tenant.id, created_by=owner.id, content=form_payload()
    )
    rating_q, track_q = form.questions
    _submit(db, form, "5", "Backend")
    _submit(db, form, "5", "Frontend")
    _submit(db, form, "3", "Backend")

    stats = analytics.compute_stats(db, form.id)

    assert stats.form_id == form.id
    assert stats.title == "Feedback"
    assert stats.total_submissions == 3
    assert {(e.question_id, e.value, e.count) for e in stats.distribution} == {
        (rating_q.id, "5", 2),
        (rating_q.id, "3", 1),
        (track_q.id, "Backend", 2),
        (track_q.id, "Frontend", 1),
    }


def test_empty_form_has_no_distribution(db):
    tenant = make_tenant(db)
    form = form_versions.create_lineage(
        db, tenant_id=tenant.id, created_by=None, content=form_payload()
    )
    stats = analytics.compute_stats(db, form.id)
    assert stats.total_submissions == 0
    assert stats.distribution == []


def test_stats_only_count_the_requested_version(db):
    tenant = make_tenant(db)
    first = form_versions.create_lineage(
        db, tenant_id=tenant.id, created_by=None, content=form_payload("A")
    )
    second = form_versions.create_lineage(
        db, tenant_id=tenant.id, created_by=None, content=form_payload("B")
    )
    _submit(db, first, "4", "Design")
    _submit(db, second, "4", "Design")
    _submit(db, second, "2", "Design")

    assert analytics.compute_stats(db, first.id).total_submissions == 1
    assert analytics.compute_stats(db, second.id).total_submissions == 2


def test_unknown_form(db):
    with pytest.raises(FormNotFound):
        analytics.compute_stats(db, uuid.uuid4())


def test_two_submissions_sharing_a_rating(db):
    tenant = make_tenant(db)
    form = form_versions.create_lineage(
        db, tenant_id=tenant.id, created_by=None, content=form_payload()
    )
    q1, q2 = form.questions
    _submit(db, form, "4", "Backend")
    _submit(db, form, "4", "Design")

    stats = analytics.compute_stats(db, form.id)

    assert stats.total_submissions == 2
    counts = {(e.question_id, e.value): e.count for e in stats.distribution}
    assert counts == {(q1.id, "4"): 2, (q2.id, "Backend"): 1, (q2.id, "Design"): 1}
