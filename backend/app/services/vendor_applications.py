import logging
from datetime import datetime
from typing import Optional
from fastapi import HTTPException
from sqlmodel import Session
from app.models.user import User, UserRole
from app.models.vendor_application import VendorApplication, VendorApplicationStatus
from app.services.audit import log_admin_action

logger = logging.getLogger(__name__)

ACTION_STATUS = {
    "approve": VendorApplicationStatus.APPROVED,
    "reject": VendorApplicationStatus.REJECTED,
    "review": VendorApplicationStatus.UNDER_REVIEW,
}

OPEN_STATUSES = (VendorApplicationStatus.PENDING, VendorApplicationStatus.UNDER_REVIEW)


def notify_applicant(application: VendorApplication, status: VendorApplicationStatus, reason: Optional[str]) -> None:
    """Tell the applicant about a decision"""
    logger.info(
        "vendor application %s for %s is now %s%s",
        application.id, application.business_name, status.value,
        f" ({reason})" if reason else ""
    )


def process_application(
    db: Session,
    application: VendorApplication,
    action: str,
    admin: User,
    rejection_reason: Optional[str] = None,
) -> tuple[VendorApplication, str]:
    """Apply an admin decision; approving promotes the applicant to vendor"""
    if action not in ACTION_STATUS:
        raise HTTPException(status_code=400, detail="Invalid action")

    if application.status not in OPEN_STATUSES:
        raise HTTPException(status_code=400, detail="Application has already been processed")

    if action == "reject" and not rejection_reason:
        raise HTTPException(status_code=400, detail="Rejection reason is required")

    new_status = ACTION_STATUS[action]
    application.status = new_status
    application.reviewed_at = datetime.utcnow()
    application.rejection_reason = rejection_reason if action == "reject" else None
    db.add(application)

    applicant = db.get(User, application.user_id)
    if action == "approve" and applicant:
        applicant.role = UserRole.VENDOR
        applicant.updated_at = datetime.utcnow()
        db.add(applicant)

    if action == "approve":
        summary = "Approved"
    elif action == "reject":
        summary = "Rejected"
    else:
        summary = "Set to review"
    details = f"{summary} vendor application for {application.business_name}"
    if action == "reject":
        details += f" - Reason: {rejection_reason}"
    log_admin_action(db, f"VENDOR_APPLICATION_{action.upper()}", details, admin.id)

    db.commit()
    db.refresh(application)

    try:
        notify_applicant(application, new_status, rejection_reason)
    except Exception:
        logger.exception("failed to notify applicant of application %s", application.id)

    applicant_name = (applicant.name or applicant.email) if applicant else "applicant"
    if action == "approve":
        message = f"Vendor application approved. User {applicant_name} is now a vendor."
    elif action == "reject":
        message = "Vendor application rejected."
    else:
        message = "Vendor application set to under review."
    return application, message
