import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select, func
from typing import Optional
from datetime import datetime
from math import ceil
from app.api.deps import get_db, get_current_user, get_current_user_optional, admin_required
from app.models.user import User, UserRole
from app.models.product import Product
from app.models.review import Review, ReviewStatus
from app.schemas.review import (
    ReviewResponse, ReviewListResponse, AdminReviewResponse, AdminReviewListResponse,
    ReviewCreate, ReviewUpdate, ReviewModeration, ReviewEligibility
)
from app.services.audit import log_admin_action
from app.services.reviews import (
    average_rating, check_eligibility, find_delivered_purchase, find_user_review, moderation_action
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["reviews"])
admin_router = APIRouter(prefix="/api/admin/reviews", tags=["admin-reviews"])


def build_admin_review(review: Review) -> AdminReviewResponse:
    return AdminReviewResponse(
        **ReviewResponse.model_validate(review).model_dump(),
        product_name=review.product.name if review.product else None,
        user_email=review.user.email if review.user else None,
    )


def describe(review: Review) -> str:
    author = (review.user.name or review.user.email) if review.user else f"user {review.user_id}"
    product = review.product.name if review.product else f"product {review.product_id}"
    return f'review for "{product}" by {author}'


# === Storefront ===

@router.get("/", response_model=ReviewListResponse)
def list_reviews(
    product_id: int = Query(...),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db)
):
    """Approved reviews of a product, newest first"""
    stmt = select(Review).where(Review.product_id == product_id, Review.status == ReviewStatus.APPROVED)
    total = db.exec(select(func.count()).select_from(stmt.subquery())).one()
    reviews = db.exec(
        stmt.order_by(Review.created_at.desc(), Review.id.desc())
        .offset((page - 1) * page_size).limit(page_size)
    ).all()

    return ReviewListResponse(
        items=[ReviewResponse.model_validate(r) for r in reviews],
        total=total,
        page=page,
        page_size=page_size,
        pages=ceil(total / page_size) if total else 0,
        average_rating=average_rating(db, product_id),
    )


@router.get("/can-review", response_model=ReviewEligibility)
def can_review(
    product_id: int = Query(...),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    return check_eligibility(db, current_user.id if current_user else None, product_id)


@router.post("/", response_model=ReviewResponse, status_code=201)
def create_review(
    data: ReviewCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if find_user_review(db, current_user.id, data.product_id):
        raise HTTPException(status_code=400, detail="You have already reviewed this product")

    if not db.get(Product, data.product_id):
        raise HTTPException(status_code=404, detail="Product not found")

    if not find_delivered_purchase(db, current_user.id, data.product_id):
        raise HTTPException(
            status_code=400,
            detail="You can only review products you have purchased and received"
        )

    review = Review(**data.model_dump(), user_id=current_user.id, is_verified=True)
    db.add(review)
    db.commit()
    db.refresh(review)
    logger.info("review %s submitted for product %s", review.id, review.product_id)
    return review


@router.get("/{review_id}", response_model=ReviewResponse)
def get_review(
    review_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    review = db.get(Review, review_id)
    # Unmoderated reviews are visible to their author only
    visible = review and (
        review.status == ReviewStatus.APPROVED
        or (current_user and (current_user.id == review.user_id or current_user.role == UserRole.ADMIN))
    )
    if not visible:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


@router.put("/{review_id}", response_model=ReviewResponse)
def update_review(
    review_id: int,
    data: ReviewUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    review = db.get(Review, review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    if review.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="You can only edit your own reviews")

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(review, key, value)

    # Edited reviews go back to moderation
    review.status = ReviewStatus.PENDING
    review.updated_at = datetime.utcnow()
    db.add(review)
    db.commit()
    db.refresh(review)
    return review


@router.delete("/{review_id}")
def delete_review(
    review_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    review = db.get(Review, review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    if review.user_id != current_user.id and current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="You can only delete your own reviews")

    db.delete(review)
    db.commit()
    return {"message": "Review deleted"}


# === Moderation ===

@admin_router.get("/", response_model=AdminReviewListResponse)
def list_all_reviews(
    status: Optional[ReviewStatus] = None,
    product_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    stmt = select(Review)
    if status:
        stmt = stmt.where(Review.status == status)
    if product_id:
        stmt = stmt.where(Review.product_id == product_id)

    total = db.exec(select(func.count()).select_from(stmt.subquery())).one()
    reviews = db.exec(
        stmt.order_by(Review.created_at.desc(), Review.id.desc())
        .offset((page - 1) * page_size).limit(page_size)
    ).all()

    return AdminReviewListResponse(
        items=[build_admin_review(r) for r in reviews],
        total=total,
        page=page,
        page_size=page_size,
        pages=ceil(total / page_size) if total else 0,
    )


@admin_router.get("/{review_id}", response_model=AdminReviewResponse)
def get_review_admin(
    review_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    review = db.get(Review, review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    return build_admin_review(review)


@admin_router.patch("/{review_id}", response_model=AdminReviewResponse)
def moderate_review(
    review_id: int,
    data: ReviewModeration,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    review = db.get(Review, review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")

    update_data = data.model_dump(exclude_unset=True)
    responding = bool(update_data.get("admin_response"))
    action, verb = moderation_action(review, update_data.get("status"), responding)

    if responding and not review.admin_response:
        review.admin_response_date = datetime.utcnow()
    for key, value in update_data.items():
        setattr(review, key, value)

    review.updated_at = datetime.utcnow()
    db.add(review)
    log_admin_action(db, action, f"{verb} {describe(review)}", admin.id)
    db.commit()
    db.refresh(review)
    return build_admin_review(review)


@admin_router.delete("/{review_id}")
def delete_review_admin(
    review_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    review = db.get(Review, review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")

    details = f"Deleted {describe(review)}"
    db.delete(review)
    log_admin_action(db, "REVIEW_DELETE", details, admin.id)
    db.commit()
    return {"message": "Review deleted"}
