from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select, func
from typing import Optional
from math import ceil
from app.api.deps import get_db, admin_required
from app.models.user import User
from app.models.vendor_application import VendorApplication, VendorApplicationStatus
from app.schemas.vendor import (
    VendorApplicationResponse, VendorApplicationListResponse, VendorApplicationAction,
    VendorApplicationActionResponse, ApplicationStats, Pagination
)
from app.services.vendor_applications import process_application

router = APIRouter(prefix="/api/admin/vendor-applications", tags=["admin-vendor-applications"])


def application_stats(db: Session) -> ApplicationStats:
    counts = dict(db.exec(
        select(VendorApplication.status, func.count(VendorApplication.id)).group_by(VendorApplication.status)
    ).all())
    return ApplicationStats(
        total=sum(counts.values()),
        pending=counts.get(VendorApplicationStatus.PENDING, 0),
        under_review=counts.get(VendorApplicationStatus.UNDER_REVIEW, 0),
        approved=counts.get(VendorApplicationStatus.APPROVED, 0),
        rejected=counts.get(VendorApplicationStatus.REJECTED, 0),
    )


@router.get("/", response_model=VendorApplicationListResponse)
def list_applications(
    status: Optional[str] = Query("all", description="Status or 'all'"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    stmt = select(VendorApplication)
    if status and status.lower() != "all":
        try:
            stmt = stmt.where(VendorApplication.status == VendorApplicationStatus(status.upper()))
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid status filter")

    total = db.exec(select(func.count()).select_from(stmt.subquery())).one()
    applications = db.exec(
        stmt.order_by(VendorApplication.submitted_at.desc(), VendorApplication.id.desc())
        .offset((page - 1) * page_size).limit(page_size)
    ).all()

    return VendorApplicationListResponse(
        applications=[VendorApplicationResponse.model_validate(a) for a in applications],
        pagination=Pagination(
            page=page,
            page_size=page_size,
            total_count=total,
            total_pages=ceil(total / page_size) if total > 0 else 1
        ),
        stats=application_stats(db)
    )


@router.get("/{application_id}", response_model=VendorApplicationResponse)
def get_application(
    application_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    application = db.get(VendorApplication, application_id)
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")
    return application


@router.patch("/{application_id}", response_model=VendorApplicationActionResponse)
def act_on_application(
    application_id: int,
    data: VendorApplicationAction,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    """Approve, reject or mark an application as under review"""
    application = db.get(VendorApplication, application_id)
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")

    application, message = process_application(db, application, data.action, admin, data.rejection_reason)
    return VendorApplicationActionResponse(
        success=True,
        message=message,
        application=VendorApplicationResponse.model_validate(application)
    )
