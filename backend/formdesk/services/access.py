"""Tenant-scoped form listing with ownership filtering."""

# purpose: decide which non-deleted form versions a caller may see in listings
# status: active

from __future__ import annotations

from uuid import UUID

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.orm import Session

from .. import models


def list_visible(
    db: Session,
    *,
    tenant_id: UUID,
    caller_id: UUID,
    caller_role: str,
) -> list[models.FormVersion]:
    """Return the tenant's non-deleted versions visible to the caller.

    Admins see every version. Other roles see their own versions plus legacy
    versions without a recorded creator.
    """

    stmt = select(models.FormVersion).where(
        models.FormVersion.tenant_id == tenant_id,
        models.FormVersion.deleted.is_(False),
    )
    if caller_role != models.ROLE_ADMIN:
        # TODO: legacy unowned forms are visible to every editor; decide whether to assign them an owner
        stmt = stmt.where(
            sa.or_(
                models.FormVersion.created_by == caller_id,
                models.FormVersion.created_by.is_(None),
            )
        )
    stmt = stmt.order_by(models.FormVersion.created_at.desc())
    return list(db.scalars(stmt).all())
