import logging
from typing import Optional, Tuple
from sqlmodel import Session, select, func
from app.models.order import Order, OrderItem, OrderStatus
from app.models.product import Product
from app.models.review import Review, ReviewStatus

logger = logging.getLogger(__name__)


def find_delivered_purchase(db: Session, user_id: int, product_id: int) -> Optional[Order]:
    """Most recent delivered order of this user containing the product"""
    return db.exec(
        select(Order)
        .join(OrderItem, OrderItem.order_id == Order.id)
        .where(
            Order.user_id == user_id,
            Order.status == OrderStatus.DELIVERED,
            OrderItem.product_id == product_id,
        )
        .order_by(Order.created_at.desc())
    ).first()


def find_user_review(db: Session, user_id: int, product_id: int) -> Optional[Review]:
    return db.exec(
        select(Review).where(Review.user_id == user_id, Review.product_id == product_id)
    ).first()


def check_eligibility(db: Session, user_id: Optional[int], product_id: int) -> dict:
    if user_id is None:
        return {
            "can_review": False,
            "reason": "AUTHENTICATION_REQUIRED",
            "message": "You must be logged in to write reviews",
        }

    if not db.get(Product, product_id):
        return {"can_review": False, "reason": "PRODUCT_NOT_FOUND", "message": "Product not found"}

    existing = find_user_review(db, user_id, product_id)
    if existing:
        return {
            "can_review": False,
            "reason": "ALREADY_REVIEWED",
            "message": "You have already reviewed this product",
            "existing_review": existing,
        }

    order = find_delivered_purchase(db, user_id, product_id)
    if not order:
        return {
            "can_review": False,
            "reason": "NOT_PURCHASED",
            "message": "You can only review products you have purchased and received",
        }

    return {
        "can_review": True,
        "reason": "ELIGIBLE",
        "message": "You can write a review for this product",
        "order_number": order.order_number,
    }


def average_rating(db: Session, product_id: int) -> Optional[float]:
    value = db.exec(
        select(func.avg(Review.rating)).where(
            Review.product_id == product_id, Review.status == ReviewStatus.APPROVED
        )
    ).one()
    return round(float(value), 2) if value is not None else None


def moderation_action(review: Review, new_status: Optional[ReviewStatus], responding: bool) -> Tuple[str, str]:
    """Audit action and verb for a moderation change"""
    if new_status == ReviewStatus.APPROVED and review.status != ReviewStatus.APPROVED:
        return "REVIEW_APPROVE", "Approved"
    if new_status == ReviewStatus.REJECTED and review.status != ReviewStatus.REJECTED:
        return "REVIEW_REJECT", "Rejected"
    if responding and not review.admin_response:
        return "REVIEW_RESPOND", "Responded to"
    return "REVIEW_UPDATE", "Updated"
