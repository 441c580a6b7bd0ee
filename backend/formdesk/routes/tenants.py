from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth import get_current_user
from ..rbac import require_admin
from .. import models, schemas, audit

router = APIRouter(prefix="/api/tenants", tags=["tenants"])


@router.get("/me", response_model=schemas.TenantOut)
async def read_tenant(current_user: models.User = Depends(get_current_user)):
    return current_user.tenant


@router.patch("/me", response_model=schemas.TenantOut)
async def update_tenant(
    update: schemas.TenantUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Only the display name and logo of a tenant may change."""

    require_admin(current_user)
    tenant = current_user.tenant
    changes = update.model_dump(exclude_none=True)
    for field, value in changes.items():
        setattr(tenant, field, value)
    audit.log_action(db, current_user.id, "tenant.update", "tenant", tenant.id, details=changes, tenant_id=tenant.id)
    db.commit()
    db.refresh(tenant)
    return tenant
