from datetime import datetime, timezone
from uuid import UUID
from sqlalchemy.orm import Session
from sqlalchemy import func
from . import models


def log_action(
    db: Session,
    user_id: str | UUID | None,
    action: str,
    target_type: str | None = None,
    target_id: str | UUID | None = None,
    details: dict | None = None,
    tenant_id: str | UUID | None = None,
):
    """Stage an audit row in the caller's unit of work.

    The row commits or rolls back together with the change it describes.
    """

    log = models.AuditLog(
        tenant_id=UUID(str(tenant_id)) if tenant_id else None,
        user_id=UUID(str(user_id)) if user_id else None,
        action=action,
        target_type=target_type,
        target_id=UUID(str(target_id)) if target_id else None,
        details=details or {},
        created_at=datetime.now(timezone.utc),
    )
    db.add(log)
    db.flush()
    return log


def list_for_tenant(db: Session, tenant_id: UUID, limit: int = 100):
    return (
        db.query(models.AuditLog)
        .filter(models.AuditLog.tenant_id == tenant_id)
        .order_by(models.AuditLog.created_at.desc())
        .limit(limit)
        .all()
    )


def generate_report(db: Session, tenant_id: UUID, start: datetime, end: datetime):
    rows = (
        db.query(models.AuditLog.action, func.count(models.AuditLog.id))
        .filter(
            models.AuditLog.tenant_id == tenant_id,
            models.AuditLog.created_at >= start,
            models.AuditLog.created_at <= end,
        )
        .group_by(models.AuditLog.action)
        .all()
    )
    return [{"action": r[0], "count": r[1]} for r in rows]
