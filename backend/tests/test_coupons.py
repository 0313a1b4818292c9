from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlmodel import select

from app.models import AuditLog, Coupon, CouponUsage, DiscountType
from app.services.coupons import calculate_discount
from conftest import make_product


def make_coupon(session, code="SAVE10", **kwargs):
    now = datetime.utcnow()
    values = {
        "code": code,
        "discount_type": DiscountType.PERCENTAGE,
        "discount_value": Decimal("10"),
        "start_date": now - timedelta(days=1),
        "end_date": now + timedelta(days=1),
    }
    values.update(kwargs)
    coupon = Coupon(**values)
    session.add(coupon)
    session.commit()
    session.refresh(coupon)
    return coupon


def cart(*lines):
    return [{"product_id": pid, "price": price, "quantity": qty} for pid, price, qty in lines]


# === Discount maths ===

@pytest.mark.parametrize("discount_type, value, maximum, subtotal, expected", [
    (DiscountType.PERCENTAGE, "10", None, "59.99", "6.00"),
    (DiscountType.PERCENTAGE, "50", "20", "100", "20.00"),
    (DiscountType.PERCENTAGE, "150", None, "100", "100.00"),
    (DiscountType.FIXED_AMOUNT, "25", None, "10", "10.00"),
    (DiscountType.FIXED_AMOUNT, "5", None, "10", "5.00"),
])
def test_calculate_discount(discount_type, value, maximum, subtotal, expected):
    coupon = Coupon(
        code="X", discount_type=discount_type, discount_value=Decimal(value),
        maximum_discount=Decimal(maximum) if maximum else None,
        start_date=datetime.utcnow(), end_date=datetime.utcnow(),
    )
    assert calculate_discount(coupon, Decimal(subtotal)) == Decimal(expected)


# === Public endpoints ===

def test_get_coupon_by_code(client, session):
    make_coupon(session)
    response = client.get("/api/coupons/", params={"code": "save10"})
    assert response.status_code == 200
    assert response.json()["code"] == "SAVE10"

    assert client.get("/api/coupons/", params={"code": "nope"}).status_code == 404


def test_banner_lists_current_flagged_coupons(client, session):
    make_coupon(session, "BANNER", show_on_banner=True)
    make_coupon(session, "QUIET")
    make_coupon(session, "OLD", show_on_banner=True, end_date=datetime.utcnow() - timedelta(hours=1))
    make_coupon(session, "OFF", show_on_banner=True, is_active=False)

    codes = [c["code"] for c in client.get("/api/coupons/banner").json()]
    assert codes == ["BANNER"]


def test_validate_requires_login(client, session):
    make_coupon(session)
    response = client.post("/api/coupons/validate", json={"code": "SAVE10", "cart_items": cart((1, "10", 1))})
    assert response.status_code == 401


def test_validate_requires_code_and_cart(customer_client):
    assert customer_client.post("/api/coupons/validate", json={"cart_items": cart((1, "10", 1))}).status_code == 400
    assert customer_client.post("/api/coupons/validate", json={"code": "SAVE10"}).status_code == 400


def test_validate_unknown_or_expired(customer_client, session):
    make_coupon(session, "LATE", end_date=datetime.utcnow() - timedelta(minutes=1))

    for code in ("NOPE", "LATE"):
        response = customer_client.post("/api/coupons/validate", json={"code": code, "cart_items": cart((1, "10", 1))})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired coupon code"


def test_validate_applies_to_whole_cart(customer_client, session):
    a = make_product(session, "Shirt")
    b = make_product(session, "Socks")
    make_coupon(session)

    response = customer_client.post("/api/coupons/validate", json={
        "code": " save10 ",
        "cart_items": cart((a.id, "40.00", 1), (b.id, "5.00", 2)),
    })

    body = response.json()
    assert body["valid"] is True
    assert body["coupon"]["code"] == "SAVE10"
    assert float(body["discount_amount"]) == 5.0
    assert body["applied_to"] == "all"


def test_validate_usage_limit(customer_client, session):
    make_coupon(session, usage_limit=1, usage_count=1)
    body = customer_client.post("/api/coupons/validate", json={"code": "SAVE10", "cart_items": cart((1, "10", 1))}).json()
    assert body == {
        "valid": False, "coupon": None, "discount_amount": None, "applied_to": None,
        "error": "This coupon has reached its usage limit",
    }


def test_validate_one_use_per_customer(customer_client, session, customer):
    coupon = make_coupon(session)
    session.add(CouponUsage(coupon_id=coupon.id, user_id=customer.id))
    session.commit()

    body = customer_client.post("/api/coupons/validate", json={"code": "SAVE10", "cart_items": cart((1, "10", 1))}).json()
    assert body["valid"] is False
    assert body["error"] == "You have already used this coupon"


def test_validate_minimum_purchase(customer_client, session):
    make_coupon(session, minimum_purchase=Decimal("50"))
    body = customer_client.post("/api/coupons/validate", json={"code": "SAVE10", "cart_items": cart((1, "20", 2))}).json()
    assert body["error"] == "This coupon requires a minimum purchase of $50.00"


def test_validate_restricted_coupon(customer_client, session, category):
    shoes = make_product(session, "Shoes", category_id=category.id)
    hat = make_product(session, "Hat")
    coupon = make_coupon(session, "SHOES", discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("100"))
    coupon.categories = [category]
    session.add(coupon)
    session.commit()

    body = customer_client.post("/api/coupons/validate", json={
        "code": "SHOES", "cart_items": cart((shoes.id, "30", 1), (hat.id, "20", 1)),
    }).json()
    assert body["valid"] is True
    assert float(body["discount_amount"]) == 30.0
    assert body["applied_to"] == "some"

    body = customer_client.post("/api/coupons/validate", json={
        "code": "SHOES", "cart_items": cart((hat.id, "20", 1)),
    }).json()
    assert body["valid"] is False
    assert body["error"] == "This coupon is not applicable to items in your cart"


# === Admin ===

def coupon_payload(**overrides):
    now = datetime.utcnow()
    payload = {
        "code": "spring",
        "discount_type": "PERCENTAGE",
        "discount_value": "15",
        "start_date": now.isoformat(),
        "end_date": (now + timedelta(days=30)).isoformat(),
    }
    payload.update(overrides)
    return payload


def test_admin_create_update_delete(admin_client, session):
    product = make_product(session, "Kite")

    created = admin_client.post("/api/admin/coupons/", json=coupon_payload(product_ids=[product.id]))
    assert created.status_code == 201
    body = created.json()
    assert body["code"] == "SPRING"
    assert body["product_ids"] == [product.id]

    assert admin_client.post("/api/admin/coupons/", json=coupon_payload(code="Spring")).status_code == 400

    updated = admin_client.put(f"/api/admin/coupons/{body['id']}", json={"product_ids": [], "description": "Kites"})
    assert updated.status_code == 200
    assert updated.json()["product_ids"] == []
    assert updated.json()["description"] == "Kites"

    assert admin_client.delete(f"/api/admin/coupons/{body['id']}").status_code == 200
    assert admin_client.get(f"/api/admin/coupons/{body['id']}").status_code == 404

    actions = [log.action for log in session.exec(select(AuditLog).order_by(AuditLog.id)).all()]
    assert actions == ["COUPON_CREATE", "COUPON_UPDATE", "COUPON_DELETE"]


def test_admin_create_validates_dates_and_percent(admin_client):
    now = datetime.utcnow()
    response = admin_client.post("/api/admin/coupons/", json=coupon_payload(
        end_date=(now - timedelta(days=1)).isoformat()
    ))
    assert response.status_code == 422

    response = admin_client.post("/api/admin/coupons/", json=coupon_payload(discount_value="150"))
    assert response.status_code == 422


def test_admin_update_rejects_inverted_dates(admin_client, session):
    coupon = make_coupon(session)
    response = admin_client.put(f"/api/admin/coupons/{coupon.id}", json={
        "end_date": (coupon.start_date - timedelta(days=1)).isoformat()
    })
    assert response.status_code == 400


def test_admin_update_keeps_percentage_in_bounds(admin_client, session):
    percent = make_coupon(session)
    response = admin_client.put(f"/api/admin/coupons/{percent.id}", json={"discount_value": "150"})
    assert response.status_code == 400

    fixed = make_coupon(session, "FLAT500", discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("500"))
    response = admin_client.put(f"/api/admin/coupons/{fixed.id}", json={"discount_type": "PERCENTAGE"})
    assert response.status_code == 400

    session.expire_all()
    assert session.get(Coupon, percent.id).discount_value == Decimal("10")
    assert session.get(Coupon, fixed.id).discount_type == DiscountType.FIXED_AMOUNT


@pytest.mark.parametrize("field", ["start_date", "end_date", "discount_type", "discount_value", "is_active", "code"])
def test_admin_update_rejects_null_for_required_fields(admin_client, session, field):
    coupon = make_coupon(session)
    response = admin_client.put(f"/api/admin/coupons/{coupon.id}", json={field: None})
    assert response.status_code == 422


def test_admin_update_can_clear_optional_fields(admin_client, session):
    coupon = make_coupon(session, description="Old", usage_limit=3)
    response = admin_client.put(f"/api/admin/coupons/{coupon.id}", json={"description": None, "usage_limit": None})
    assert response.status_code == 200
    assert response.json()["description"] is None
    assert response.json()["usage_limit"] is None


def test_admin_coupons_require_admin(customer_client):
    assert customer_client.get("/api/admin/coupons/").status_code == 401
