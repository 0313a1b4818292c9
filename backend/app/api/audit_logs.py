from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select, col, func
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel
from app.api.deps import get_db, admin_required
from app.models.user import User
from app.models.audit_log import AuditLog

router = APIRouter(prefix="/api/admin/audit-logs", tags=["admin-audit-logs"])


class AuditLogResponse(BaseModel):
    id: int
    action: str
    details: Optional[str] = None
    performed_by_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AuditLogListResponse(BaseModel):
    items: List[AuditLogResponse]
    total: int
    page: int
    page_size: int


@router.get("/", response_model=AuditLogListResponse)
def list_audit_logs(
    action: Optional[str] = Query(None, description="Action prefix, e.g. PRODUCT_"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    stmt = select(AuditLog)
    if action:
        stmt = stmt.where(col(AuditLog.action).startswith(action.upper(), autoescape=True))

    total = db.exec(select(func.count()).select_from(stmt.subquery())).one()
    logs = db.exec(
        stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset((page - 1) * page_size).limit(page_size)
    ).all()

    return AuditLogListResponse(
        items=[AuditLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        page_size=page_size
    )
