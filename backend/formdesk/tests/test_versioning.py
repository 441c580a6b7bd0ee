import pytest

from formdesk import models, schemas
from formdesk.services import form_versions, submissions, versioning, lifecycle
from formdesk.services.errors import ConcurrencyConflict, FormNotFound, VersionDeleted

from formdesk.tests.conftest import (
    TestingSessionLocal,
    edit_payload,
    form_payload,
    make_tenant,
    make_user,
)


def _answer_all(db, form, value="4"):
    payload = schemas.SubmissionCreate(
        answers=[{"question_id": q.id, "value": value} for q in form.questions]
    )
    return submissions.submit(db, form.id, payload, submitter_id=None)


def _lineage(db):
    tenant = make_tenant(db)
    user = make_user(db, tenant)
    form = form_versions.create_lineage(
        db, tenant_id=tenant.id, created_by=user.id, content=form_payload()
    )
    return tenant, user, form


def test_create_lineage_is_version_one_rooted_at_itself(db):
    _, user, form = _lineage(db)
    assert form.version == 1
    assert form.lineage_root == form.id
    assert form.created_by == user.id
    assert [q.label for q in form.questions] == ["Rate the food", "Track"]
    assert [q.position for q in form.questions] == [0, 1]


def test_edit_without_submissions_mutates_in_place(db):
    _, _, form = _lineage(db)
    old_question_ids = {q.id for q in form.questions}

    outcome = versioning.apply_edit(
        db,
        form.id,
        edit_payload("Renamed", questions=[{"label": "Anything else?", "type": "TextArea"}]),
    )

    assert outcome.forked is False
    assert outcome.version.id == form.id
    assert outcome.version.version == 2
    assert outcome.version.title == "Renamed"
    assert [q.label for q in outcome.version.questions] == ["Anything else?"]
    assert not old_question_ids & {q.id for q in outcome.version.questions}
    remaining = db.query(models.Question).filter(models.Question.id.in_(old_question_ids)).count()
    assert remaining == 0


def test_edit_with_submissions_forks_and_preserves_history(db):
    tenant, user, form = _lineage(db)
    submission = _answer_all(db, form)
    old_title = form.title
    old_question_ids = [q.id for q in form.questions]

    outcome = versioning.apply_edit(db, form.id, edit_payload("Second edition", is_public=False))

    fork = outcome.version
    assert outcome.forked is True
    assert fork.id != form.id
    assert fork.version == form.version + 1
    assert fork.lineage_root == form.lineage_root == form.id
    assert fork.tenant_id == tenant.id
    assert fork.created_by == user.id
    assert fork.title == "Second edition"
    assert fork.is_public is False
    assert not set(old_question_ids) & {q.id for q in fork.questions}

    db.expire_all()
    original = db.get(models.FormVersion, form.id)
    assert original.title == old_title
    assert [q.id for q in original.questions] == old_question_ids
    assert original.superseded_at is not None
    assert [s.id for s in submissions.list_submissions(db, form.id)] == [submission.id]
    assert submissions.count_submissions(db, fork.id) == 0


def test_lineage_versions_are_contiguous_across_forks(db):
    _, _, form = _lineage(db)
    current = form
    for n in range(3):
        _answer_all(db, current)
        current = versioning.apply_edit(db, current.id, edit_payload(f"Edition {n + 2}")).version

    lineage = form_versions.list_lineage(db, current.id)
    assert lineage.lineage_root == form.id
    assert [item.version for item in lineage.items] == [1, 2, 3, 4]
    rows = db.query(models.FormVersion).filter(models.FormVersion.lineage_root == form.id).all()
    assert {row.lineage_root for row in rows} == {form.id}


def test_fork_result_outranks_every_version_in_lineage(db):
    _, _, form = _lineage(db)
    _answer_all(db, form)
    fork = versioning.apply_edit(db, form.id, edit_payload()).version
    versions = [item.version for item in form_versions.list_lineage(db, form.id).items]
    assert fork.version == max(versions)
    assert versions.count(fork.version) == 1


def test_fork_self_heals_legacy_row_without_lineage_root(db):
    tenant = make_tenant(db)
    legacy = models.FormVersion(
        tenant_id=tenant.id,
        created_by=None,
        version=3,
        lineage_root=None,
        title="Legacy",
    )
    db.add(legacy)
    db.flush()
    _answer_all(db, legacy)

    fork = versioning.apply_edit(db, legacy.id, edit_payload("Modern")).version

    assert fork.lineage_root == legacy.id
    assert fork.version == 4
    assert fork.created_by is None
    assert legacy.lineage_root == legacy.id


def test_editing_soft_deleted_version_fails(db):
    _, user, form = _lineage(db)
    lifecycle.soft_delete(db, form.id, caller_id=user.id)
    with pytest.raises(VersionDeleted):
        versioning.apply_edit(db, form.id, edit_payload())


def test_editing_missing_version_fails(db):
    import uuid

    with pytest.raises(FormNotFound):
        versioning.apply_edit(db, uuid.uuid4(), edit_payload())


def test_editing_superseded_version_is_a_conflict(db):
    _, _, form = _lineage(db)
    _answer_all(db, form)
    versioning.apply_edit(db, form.id, edit_payload("v2"))

    with pytest.raises(ConcurrencyConflict):
        versioning.apply_edit(db, form.id, edit_payload("v2 again"))


def test_edit_rereads_committed_state_under_lock():
    setup = TestingSessionLocal()
    try:
        _, user, form = _lineage(setup)
        setup.commit()
        form_id, user_id = form.id, user.id
    finally:
        setup.close()

    stale = TestingSessionLocal()
    other = TestingSessionLocal()
    try:
        form_versions.get_version(stale, form_id)

        lifecycle.soft_delete(other, form_id, caller_id=user_id)
        other.commit()

        with pytest.raises(VersionDeleted):
            versioning.apply_edit(stale, form_id, edit_payload("Lost update"))
        stale.rollback()
    finally:
        stale.close()
        other.close()

    check = TestingSessionLocal()
    try:
        stored = check.get(models.FormVersion, form_id)
        assert stored.title == "Feedback"
        assert stored.deleted is True
    finally:
        check.close()


def test_submission_landing_during_in_place_edit_conflicts(monkeypatch):
    setup = TestingSessionLocal()
    try:
        _, _, form = _lineage(setup)
        setup.commit()
        form_id = form.id
    finally:
        setup.close()

    respondent = TestingSessionLocal()
    try:
        _answer_all(respondent, form_versions.get_version(respondent, form_id))
        respondent.commit()
    finally:
        respondent.close()

    real_has_submissions = submissions.has_submissions
    calls = []

    def ledger_read_before_submission(db, version_id):
        calls.append(version_id)
        if len(calls) == 1:
            return False
        return real_has_submissions(db, version_id)

    monkeypatch.setattr(submissions, "has_submissions", ledger_read_before_submission)

    editor = TestingSessionLocal()
    try:
        with pytest.raises(ConcurrencyConflict):
            versioning.apply_edit(editor, form_id, edit_payload("Too late"))
        editor.rollback()
    finally:
        editor.close()

    check = TestingSessionLocal()
    try:
        stored = check.get(models.FormVersion, form_id)
        assert stored.title == "Feedback"
        assert stored.version == 1
        assert len(stored.questions) == 2
        assert len(calls) == 2
    finally:
        check.close()


def test_deleted_newer_version_blocks_edit_until_purged(db):
    _, user, form = _lineage(db)
    _answer_all(db, form)
    fork = versioning.apply_edit(db, form.id, edit_payload("v2")).version
    lifecycle.soft_delete(db, fork.id, caller_id=user.id)

    with pytest.raises(ConcurrencyConflict, match="restore or permanently delete"):
        versioning.apply_edit(db, form.id, edit_payload("v2 again"))

    lifecycle.permanent_delete(db, fork.id, caller_id=user.id)
    outcome = versioning.apply_edit(db, form.id, edit_payload("v2 again"))

    assert outcome.forked is True
    assert outcome.version.version == 2
    assert outcome.version.title == "v2 again"


def test_racing_forks_only_one_wins():
    setup = TestingSessionLocal()
    try:
        _, _, form = _lineage(setup)
        _answer_all(setup, form)
        setup.commit()
        form_id = form.id
    finally:
        setup.close()

    first = TestingSessionLocal()
    second = TestingSessionLocal()
    try:
        form_versions.get_version(second, form_id)

        winner = versioning.apply_edit(first, form_id, edit_payload("Winner")).version
        first.commit()

        with pytest.raises(ConcurrencyConflict):
            versioning.apply_edit(second, form_id, edit_payload("Loser"))
        second.rollback()

        lineage = form_versions.list_lineage(first, form_id)
        assert [item.version for item in lineage.items] == [1, 2]
        assert lineage.items[-1].id == winner.id
    finally:
        first.close()
        second.close()
