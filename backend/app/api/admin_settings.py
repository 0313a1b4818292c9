from fastapi import APIRouter, Depends, Body
from sqlmodel import Session
from typing import Any, Dict
from app.api.deps import get_db, admin_required
from app.models.user import User
from app.services.audit import log_admin_action
from app.services.settings import load_settings, update_settings

router = APIRouter(prefix="/api/admin/settings", tags=["admin-settings"])


@router.get("/")
def get_settings(
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
) -> Dict[str, Any]:
    return load_settings(db)


@router.patch("/")
def patch_settings(
    updates: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
) -> Dict[str, Any]:
    """Partial update: nested sections merge, other values replace"""
    log_admin_action(db, "SETTINGS_UPDATE", f"Updated sections: {', '.join(sorted(updates))}", admin.id)
    return update_settings(db, updates)
