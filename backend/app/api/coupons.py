from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select, col
from typing import List, Optional
from datetime import datetime
from app.api.deps import get_db, get_current_user, admin_required
from app.models.user import User
from app.models.coupon import Coupon, DiscountType
from app.models.product import Product
from app.models.category import Category
from app.schemas.coupon import (
    CouponResponse, CouponDetailResponse, CouponCreate, CouponUpdate,
    CouponValidateRequest, CouponValidateResponse, AppliedCoupon
)
from app.services.audit import log_admin_action
from app.services.coupons import (
    CartLine, CouponError, normalize_code, get_coupon_by_code, get_valid_coupon,
    list_banner_coupons, quote_coupon
)

router = APIRouter(prefix="/api/coupons", tags=["coupons"])
admin_router = APIRouter(prefix="/api/admin/coupons", tags=["admin-coupons"])


def build_coupon_detail(coupon: Coupon) -> CouponDetailResponse:
    return CouponDetailResponse(
        **CouponResponse.model_validate(coupon).model_dump(),
        product_ids=[p.id for p in coupon.products],
        category_ids=[c.id for c in coupon.categories],
    )


def resolve_restrictions(db: Session, coupon: Coupon, product_ids: Optional[List[int]], category_ids: Optional[List[int]]):
    """Replace the coupon's restriction sets with the given ids; None leaves a set untouched"""
    if product_ids is not None:
        products = db.exec(select(Product).where(col(Product.id).in_(product_ids))).all() if product_ids else []
        if len(products) != len(set(product_ids)):
            raise HTTPException(status_code=400, detail="Some products not found")
        coupon.products = list(products)

    if category_ids is not None:
        categories = db.exec(select(Category).where(col(Category.id).in_(category_ids))).all() if category_ids else []
        if len(categories) != len(set(category_ids)):
            raise HTTPException(status_code=400, detail="Some categories not found")
        coupon.categories = list(categories)


# === Public ===

@router.get("/", response_model=CouponResponse)
def get_coupon(code: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    coupon = get_coupon_by_code(db, code)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


@router.get("/banner", response_model=List[CouponResponse])
def banner_coupons(db: Session = Depends(get_db)):
    """Currently valid coupons flagged for the promo banner"""
    return list_banner_coupons(db)


@router.post("/validate", response_model=CouponValidateResponse)
def validate_coupon(
    data: CouponValidateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if not data.code or not data.code.strip():
        raise HTTPException(status_code=400, detail="Coupon code is required")
    if not data.cart_items:
        raise HTTPException(status_code=400, detail="Cart items are required")

    coupon = get_valid_coupon(db, data.code)
    if not coupon:
        raise HTTPException(status_code=400, detail="Invalid or expired coupon code")

    lines = [CartLine(product_id=i.product_id, price=i.price, quantity=i.quantity) for i in data.cart_items]
    try:
        quote = quote_coupon(db, coupon, current_user.id, lines)
    except CouponError as e:
        return CouponValidateResponse(valid=False, error=str(e))

    return CouponValidateResponse(
        valid=True,
        coupon=AppliedCoupon(
            id=coupon.id,
            code=coupon.code,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
        ),
        discount_amount=quote.discount_amount,
        applied_to=quote.applied_to,
    )


# === Admin ===

@admin_router.get("/", response_model=List[CouponResponse])
def list_coupons(
    q: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    stmt = select(Coupon)
    if q:
        stmt = stmt.where(col(Coupon.code).ilike(f"%{q}%"))
    if is_active is not None:
        stmt = stmt.where(Coupon.is_active == is_active)
    return db.exec(stmt.order_by(Coupon.created_at.desc())).all()


@admin_router.get("/{coupon_id}", response_model=CouponDetailResponse)
def get_coupon_admin(
    coupon_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    coupon = db.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return build_coupon_detail(coupon)


@admin_router.post("/", response_model=CouponDetailResponse, status_code=201)
def create_coupon(
    data: CouponCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    code = normalize_code(data.code)
    if get_coupon_by_code(db, code):
        raise HTTPException(status_code=400, detail="Coupon code already exists")

    coupon = Coupon(**data.model_dump(exclude={"code", "product_ids", "category_ids"}), code=code)
    resolve_restrictions(db, coupon, data.product_ids, data.category_ids)

    db.add(coupon)
    log_admin_action(db, "COUPON_CREATE", f"Created coupon {code}", admin.id)
    db.commit()
    db.refresh(coupon)
    return build_coupon_detail(coupon)


@admin_router.put("/{coupon_id}", response_model=CouponDetailResponse)
def update_coupon(
    coupon_id: int,
    data: CouponUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    coupon = db.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")

    update_data = data.model_dump(exclude_unset=True, exclude={"product_ids", "category_ids"})

    if "code" in update_data:
        update_data["code"] = normalize_code(update_data["code"])
        existing = get_coupon_by_code(db, update_data["code"])
        if existing and existing.id != coupon_id:
            raise HTTPException(status_code=400, detail="Coupon code already exists")

    start = update_data.get("start_date", coupon.start_date)
    end = update_data.get("end_date", coupon.end_date)
    if end <= start:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")

    discount_type = update_data.get("discount_type", coupon.discount_type)
    discount_value = update_data.get("discount_value", coupon.discount_value)
    if discount_type == DiscountType.PERCENTAGE and discount_value > 100:
        raise HTTPException(status_code=400, detail="Percentage discount cannot exceed 100")

    for key, value in update_data.items():
        setattr(coupon, key, value)

    resolve_restrictions(db, coupon, data.product_ids, data.category_ids)

    coupon.updated_at = datetime.utcnow()
    db.add(coupon)
    log_admin_action(db, "COUPON_UPDATE", f"Updated coupon {coupon.code}", admin.id)
    db.commit()
    db.refresh(coupon)
    return build_coupon_detail(coupon)


@admin_router.delete("/{coupon_id}")
def delete_coupon(
    coupon_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    coupon = db.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")

    code = coupon.code
    coupon.products = []
    coupon.categories = []
    for usage in coupon.usages:
        db.delete(usage)
    db.delete(coupon)
    log_admin_action(db, "COUPON_DELETE", f"Deleted coupon {code}", admin.id)
    db.commit()
    return {"message": "Coupon deleted"}
