"""Form authoring, versioning, lifecycle, and analytics API routes."""

# purpose: expose lineage creation, versioned edits, submissions, stats, and trash endpoints
# status: active
# depends_on: backend.formdesk.services

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, get_optional_user
from ..database import get_db
from ..rbac import ensure_can_manage
from ..services import access, analytics, form_versions, lifecycle, submissions, versioning
from ..services import errors

router = APIRouter(prefix="/api/forms", tags=["forms"])
public_router = APIRouter(prefix="/api/public/forms", tags=["forms"])

_ERROR_STATUS: list[tuple[type[errors.FormsError], int]] = [
    (errors.FormNotFound, status.HTTP_404_NOT_FOUND),
    (errors.QuestionNotFound, status.HTTP_404_NOT_FOUND),
    (errors.SubmissionNotFound, status.HTTP_404_NOT_FOUND),
    (errors.VersionDeleted, status.HTTP_410_GONE),
    (errors.WindowNotOpen, status.HTTP_400_BAD_REQUEST),
    (errors.WindowClosed, status.HTTP_400_BAD_REQUEST),
    (errors.SubmissionUnauthorized, status.HTTP_401_UNAUTHORIZED),
    (errors.DuplicateSubmission, status.HTTP_409_CONFLICT),
    (errors.AlreadyDeleted, status.HTTP_409_CONFLICT),
    (errors.NotDeleted, status.HTTP_409_CONFLICT),
    (errors.ConcurrencyConflict, status.HTTP_409_CONFLICT),
]


def _http_error(db: Session, exc: errors.FormsError) -> HTTPException:
    db.rollback()
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    # unmapped error types are server bugs
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _load_managed(db: Session, form_id: UUID, user: models.User) -> models.FormVersion:
    try:
        form = form_versions.get_version(db, form_id)
    except errors.FormNotFound as exc:
        raise _http_error(db, exc) from exc
    ensure_can_manage(user, form)
    return form


@router.post("", response_model=schemas.FormOut, status_code=status.HTTP_201_CREATED)
def create_form(
    payload: schemas.FormCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    """Create version 1 of a new form lineage."""

    form = form_versions.create_lineage(
        db,
        tenant_id=user.tenant_id,
        created_by=user.id,
        content=payload,
    )
    db.commit()
    db.refresh(form)
    return form


@router.get("", response_model=list[schemas.FormSummary])
def list_forms(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return access.list_visible(db, tenant_id=user.tenant_id, caller_id=user.id, caller_role=user.role)


@router.get("/trash", response_model=list[schemas.FormSummary])
def list_trash(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    forms = lifecycle.list_trash(db, user.tenant_id)
    if user.is_admin:
        return forms
    return [form for form in forms if form.created_by in (None, user.id)]


@router.get("/{form_id}", response_model=schemas.FormOut)
def get_form(
    form_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return _load_managed(db, form_id, user)


@router.put("/{form_id}", response_model=schemas.FormEditResult)
def edit_form(
    form_id: UUID,
    payload: schemas.FormEdit,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    """Edit in place while unanswered; otherwise fork a new version."""

    _load_managed(db, form_id, user)
    try:
        outcome = versioning.apply_edit(db, form_id, payload)
        db.commit()
    except errors.FormsError as exc:
        raise _http_error(db, exc) from exc
    db.refresh(outcome.version)
    body = schemas.FormOut.model_validate(outcome.version).model_dump()
    return schemas.FormEditResult(
        **body,
        forked=outcome.forked,
        previous_version_id=outcome.previous_version_id,
    )


@router.get("/{form_id}/versions", response_model=schemas.LineageOut)
def list_form_versions(
    form_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    _load_managed(db, form_id, user)
    return form_versions.list_lineage(db, form_id)


@router.post(
    "/{form_id}/submissions",
    response_model=schemas.SubmissionOut,
    status_code=status.HTTP_201_CREATED,
)
def submit_form(
    form_id: UUID,
    payload: schemas.SubmissionCreate,
    db: Session = Depends(get_db),
    user: models.User | None = Depends(get_optional_user),
):
    """Record a submission; guests submit without a bearer token."""

    try:
        submission = submissions.submit(
            db,
            form_id,
            payload,
            submitter_id=user.id if user else None,
        )
        db.commit()
    except errors.FormsError as exc:
        raise _http_error(db, exc) from exc
    db.refresh(submission)
    return submission


@router.get("/{form_id}/submissions", response_model=list[schemas.SubmissionOut])
def list_form_submissions(
    form_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    _load_managed(db, form_id, user)
    return submissions.list_submissions(db, form_id)


@router.get("/{form_id}/stats", response_model=schemas.FormStats)
def form_stats(
    form_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    _load_managed(db, form_id, user)
    return analytics.compute_stats(db, form_id)


@router.delete("/{form_id}", response_model=schemas.FormSummary)
def soft_delete_form(
    form_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    _load_managed(db, form_id, user)
    try:
        form = lifecycle.soft_delete(db, form_id, caller_id=user.id)
        db.commit()
    except errors.FormsError as exc:
        raise _http_error(db, exc) from exc
    db.refresh(form)
    return form


@router.post("/{form_id}/restore", response_model=schemas.FormSummary)
def restore_form(
    form_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    _load_managed(db, form_id, user)
    try:
        form = lifecycle.restore(db, form_id, caller_id=user.id)
        db.commit()
    except errors.FormsError as exc:
        raise _http_error(db, exc) from exc
    db.refresh(form)
    return form


@router.delete("/{form_id}/permanent", response_model=schemas.PermanentDeleteResult)
def permanently_delete_form(
    form_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    """Irreversibly remove a version with its questions, submissions, and answers."""

    _load_managed(db, form_id, user)
    try:
        counts = lifecycle.permanent_delete(db, form_id, caller_id=user.id)
        db.commit()
    except errors.FormsError as exc:
        raise _http_error(db, exc) from exc
    return schemas.PermanentDeleteResult(
        form_id=counts.form_id,
        submissions_deleted=counts.submissions_deleted,
        answers_deleted=counts.answers_deleted,
        questions_deleted=counts.questions_deleted,
    )


@public_router.get("/{form_id}", response_model=schemas.FormOut)
def get_public_form(
    form_id: UUID,
    db: Session = Depends(get_db),
    user: models.User | None = Depends(get_optional_user),
):
    """Render a published form for respondents, guests included when it is public."""

    try:
        form = form_versions.get_with_questions(db, form_id)
    except errors.FormNotFound as exc:
        raise _http_error(db, exc) from exc
    if form.deleted or not form.is_published:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found")
    if not form.is_public and user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return form


@router.get("/submissions/{submission_id}", response_model=schemas.SubmissionOut)
def get_submission(
    submission_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    try:
        submission = submissions.get_submission(db, submission_id)
    except errors.FormsError as exc:
        raise _http_error(db, exc) from exc
    _load_managed(db, submission.form_version_id, user)
    return submission
