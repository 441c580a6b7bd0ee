from datetime import datetime
from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends
from ..database import get_db
from ..auth import get_current_user
from ..rbac import require_admin
from .. import models, schemas, audit

router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("/", response_model=list[schemas.AuditLogOut])
async def list_logs(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    require_admin(current_user)
    return audit.list_for_tenant(db, current_user.tenant_id)


@router.get("/report")
async def audit_report(
    start: datetime,
    end: datetime,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    require_admin(current_user)
    return audit.generate_report(db, current_user.tenant_id, start, end)
