import logging
import secrets
from collections import Counter
from decimal import Decimal
from datetime import datetime
from sqlmodel import Session
from fastapi import HTTPException
from app.models.order import Order, OrderItem, OrderStatus
from app.models.product import Product
from app.models.user import User
from app.schemas.order import OrderCreate
from app.services.catalog import quantize
from app.services.coupons import CartLine, CouponError, get_valid_coupon, quote_coupon, redeem_coupon

logger = logging.getLogger(__name__)


def generate_order_number() -> str:
    timestamp = datetime.utcnow().strftime("%y%m%d")
    random_part = secrets.token_hex(3).upper()
    return f"UQ-{timestamp}-{random_part}"


def create_order(db: Session, data: OrderCreate, user: User) -> Order:
    """Create an order from cart items, applying and redeeming an optional coupon"""
    order_items = []
    lines = []
    subtotal = Decimal("0")

    # Repeated lines for one product draw on the same stock
    requested = Counter()
    for item_data in data.items:
        requested[item_data.product_id] += item_data.quantity

    for item_data in data.items:
        product = db.get(Product, item_data.product_id)

        if not product or not product.is_published:
            raise HTTPException(status_code=400, detail=f"Product {item_data.product_id} not found")

        if product.stock < requested[product.id]:
            raise HTTPException(
                status_code=400,
                detail=f"Product {product.name} is out of stock"
            )

        item_total = product.price * item_data.quantity
        order_items.append((product, {
            "product_id": product.id,
            "product_name": product.name,
            "product_sku": product.sku,
            "quantity": item_data.quantity,
            "price": product.price,
            "total": item_total,
        }))
        lines.append(CartLine(product_id=product.id, price=product.price, quantity=item_data.quantity))
        subtotal += item_total

    coupon = None
    discount = Decimal("0")
    if data.coupon_code:
        coupon = get_valid_coupon(db, data.coupon_code)
        if not coupon:
            raise HTTPException(status_code=400, detail="Invalid or expired coupon code")
        try:
            quote = quote_coupon(db, coupon, user.id, lines)
        except CouponError as e:
            raise HTTPException(status_code=400, detail=str(e))
        discount = quote.discount_amount

    order = Order(
        order_number=generate_order_number(),
        user_id=user.id,
        shipping_name=data.shipping_name,
        shipping_phone=data.shipping_phone,
        shipping_address=data.shipping_address,
        shipping_city=data.shipping_city,
        shipping_postal_code=data.shipping_postal_code,
        shipping_country=data.shipping_country,
        subtotal=quantize(subtotal),
        discount=discount,
        total=quantize(subtotal - discount),
        coupon_code=coupon.code if coupon else None,
        status=OrderStatus.PENDING,
        notes=data.notes,
    )
    db.add(order)
    db.flush()

    for product, item_data in order_items:
        db.add(OrderItem(order_id=order.id, **item_data))
        product.stock -= item_data["quantity"]
        product.updated_at = datetime.utcnow()
        db.add(product)

    if coupon:
        redeem_coupon(db, coupon, user.id, order.id)

    db.commit()
    db.refresh(order)
    logger.info("order %s created for user %s, total %s", order.order_number, user.id, order.total)
    return order


def cancel_order(db: Session, order: Order) -> Order:
    """Cancel a pending order and put its items back in stock"""
    if order.status != OrderStatus.PENDING:
        raise HTTPException(status_code=400, detail="Only pending orders can be cancelled")

    for item in order.items:
        product = item.product
        if product:
            product.stock += item.quantity
            db.add(product)

    order.status = OrderStatus.CANCELLED
    order.updated_at = datetime.utcnow()
    db.add(order)
    db.commit()
    db.refresh(order)
    return order
