from __future__ import annotations

from fastapi import HTTPException, status

from . import models

# purpose: centralize tenant isolation and ownership checks for form routes
# status: active


def require_admin(user: models.User) -> None:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")


def ensure_same_tenant(user: models.User, form: models.FormVersion) -> None:
    """Hide forms of other tenants behind a 404 rather than leaking existence."""

    if form.tenant_id != user.tenant_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found")


def can_manage(user: models.User, form: models.FormVersion) -> bool:
    """Return True if the user may edit, delete, or read submissions of a form.

    Admins manage every form in their tenant. Editors manage forms they
    created plus legacy forms with no recorded creator.
    """

    if form.tenant_id != user.tenant_id:
        return False
    if user.is_admin:
        return True
    return form.created_by is None or form.created_by == user.id


def ensure_can_manage(user: models.User, form: models.FormVersion) -> None:
    ensure_same_tenant(user, form)
    if not can_manage(user, form):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
