import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence
from sqlmodel import Session, select, col
from app.models.coupon import Coupon, CouponUsage, DiscountType
from app.models.product import Product

logger = logging.getLogger(__name__)


class CouponError(Exception):
    """A coupon that exists but cannot be applied to this cart"""


@dataclass
class CartLine:
    product_id: int
    price: Decimal
    quantity: int

    @property
    def total(self) -> Decimal:
        return self.price * self.quantity


@dataclass
class CouponQuote:
    coupon: Coupon
    discount_amount: Decimal
    applicable: List[CartLine] = field(default_factory=list)
    applied_to: str = "all"


def normalize_code(code: str) -> str:
    return code.strip().upper()


def is_currently_valid(coupon: Coupon, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    return coupon.is_active and coupon.start_date <= now <= coupon.end_date


def get_coupon_by_code(db: Session, code: str) -> Coupon | None:
    return db.exec(select(Coupon).where(Coupon.code == normalize_code(code))).first()


def get_valid_coupon(db: Session, code: str) -> Coupon | None:
    """Active coupon inside its date window"""
    now = datetime.utcnow()
    stmt = select(Coupon).where(
        Coupon.code == normalize_code(code),
        Coupon.is_active == True,
        Coupon.start_date <= now,
        Coupon.end_date >= now,
    )
    return db.exec(stmt).first()


def list_banner_coupons(db: Session) -> List[Coupon]:
    now = datetime.utcnow()
    stmt = select(Coupon).where(
        Coupon.is_active == True,
        Coupon.show_on_banner == True,
        Coupon.start_date <= now,
        Coupon.end_date >= now,
    ).order_by(Coupon.end_date)
    return list(db.exec(stmt).all())


def calculate_discount(coupon: Coupon, subtotal: Decimal) -> Decimal:
    """Discount for an eligible subtotal, capped by the coupon's maximum"""
    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = min(subtotal * coupon.discount_value / 100, subtotal)
    else:
        discount = min(coupon.discount_value, subtotal)

    if coupon.maximum_discount is not None:
        discount = min(discount, coupon.maximum_discount)

    return max(discount, Decimal("0")).quantize(Decimal("0.01"))


def restricted_lines(db: Session, coupon: Coupon, lines: Sequence[CartLine]) -> List[CartLine]:
    """Cart lines the coupon applies to; all of them when it is unrestricted"""
    product_ids = {p.id for p in coupon.products}
    category_ids = {c.id for c in coupon.categories}
    if not product_ids and not category_ids:
        return list(lines)

    cart_ids = [line.product_id for line in lines]
    categories_by_product = {
        pid: cid for pid, cid in db.exec(
            select(Product.id, Product.category_id).where(col(Product.id).in_(cart_ids))
        ).all()
    }

    matching = []
    for line in lines:
        if line.product_id not in categories_by_product:
            continue
        if line.product_id in product_ids or categories_by_product[line.product_id] in category_ids:
            matching.append(line)
    return matching


def quote_coupon(db: Session, coupon: Coupon, user_id: int, lines: Sequence[CartLine]) -> CouponQuote:
    """
    Check every redemption rule for a valid coupon and price the discount.

    Rules run in order: usage limit, one use per user, minimum purchase
    over the whole cart, product/category restriction. The discount is
    computed over the matching lines only. Raises CouponError with a
    customer-facing message on the first rule that fails.
    """
    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        raise CouponError("This coupon has reached its usage limit")

    used = db.exec(
        select(CouponUsage).where(CouponUsage.coupon_id == coupon.id, CouponUsage.user_id == user_id)
    ).first()
    if used:
        raise CouponError("You have already used this coupon")

    subtotal = sum((line.total for line in lines), Decimal("0"))
    if coupon.minimum_purchase and subtotal < coupon.minimum_purchase:
        raise CouponError(
            f"This coupon requires a minimum purchase of ${coupon.minimum_purchase:.2f}"
        )

    applicable = restricted_lines(db, coupon, lines)
    if not applicable:
        raise CouponError("This coupon is not applicable to items in your cart")

    applicable_subtotal = sum((line.total for line in applicable), Decimal("0"))
    return CouponQuote(
        coupon=coupon,
        discount_amount=calculate_discount(coupon, applicable_subtotal),
        applicable=applicable,
        applied_to="all" if len(applicable) == len(lines) else "some",
    )


def redeem_coupon(db: Session, coupon: Coupon, user_id: int, order_id: Optional[int] = None) -> CouponUsage:
    """Count one use of the coupon; the caller owns the commit"""
    coupon.usage_count += 1
    coupon.updated_at = datetime.utcnow()
    usage = CouponUsage(coupon_id=coupon.id, user_id=user_id, order_id=order_id)
    db.add(coupon)
    db.add(usage)
    logger.info("coupon %s redeemed by user %s (order %s)", coupon.code, user_id, order_id)
    return usage
