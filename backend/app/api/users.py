from fastapi import APIRouter, Depends, HTTPException, Response, Query
from sqlmodel import Session, select, col
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from app.api.deps import get_db, get_current_user, admin_required, access_security
from app.models.user import User, UserRole
from app.schemas.common import reject_null
from app.services.audit import log_admin_action

router = APIRouter(prefix="/api/users", tags=["users"])


# === Schemas ===

class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str]
    phone: Optional[str]
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None


class AdminUserUpdate(BaseModel):
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator("role", "is_active")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


# === Self ===

@router.patch("/me", response_model=UserResponse)
def update_me(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(current_user, key, value)

    current_user.updated_at = datetime.utcnow()
    db.add(current_user)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.delete("/me")
def deactivate_me(
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Deactivate the account and end the session"""
    current_user.is_active = False
    current_user.updated_at = datetime.utcnow()
    db.add(current_user)
    db.commit()
    access_security.unset_access_cookie(response)
    return {"message": "Account deactivated"}


# === Admin ===

@router.get("/", response_model=List[UserResponse])
def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    q: Optional[str] = Query(None, description="Search by email or name"),
    role: Optional[UserRole] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    stmt = select(User)
    if q:
        search = f"%{q}%"
        stmt = stmt.where(col(User.email).ilike(search) | col(User.name).ilike(search))
    if role:
        stmt = stmt.where(User.role == role)
    return db.exec(stmt.order_by(User.id).offset(skip).limit(limit)).all()


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    data: AdminUserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    update_data = data.model_dump(exclude_unset=True)
    if user.id == admin.id and (
        update_data.get("is_active") is False
        or update_data.get("role", UserRole.ADMIN) != UserRole.ADMIN
    ):
        raise HTTPException(status_code=400, detail="Admins cannot demote or deactivate themselves")

    for key, value in update_data.items():
        setattr(user, key, value)

    user.updated_at = datetime.utcnow()
    db.add(user)
    changes = ", ".join(f"{key}={getattr(value, 'value', value)}" for key, value in update_data.items())
    log_admin_action(db, "USER_UPDATE", f"Updated user {user.email}: {changes}", admin.id)
    db.commit()
    db.refresh(user)
    return user
