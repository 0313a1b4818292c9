from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select, col, func
from typing import Optional, List
from datetime import datetime, date
from app.api.deps import get_db, get_current_user, admin_required
from app.models.user import User
from app.models.order import Order, OrderStatus
from app.schemas.order import OrderCreate, OrderResponse, OrderListResponse, OrderStatusUpdate, OrderItemResponse
from app.services.audit import log_admin_action
from app.services.catalog import primary_image_url
from app.services.orders import create_order, cancel_order

router = APIRouter(tags=["orders"])


def build_order_response(order: Order) -> OrderResponse:
    """Order with the current image of each ordered product"""
    items = []
    for item in order.items:
        item_dict = item.model_dump()
        item_dict["product_image"] = primary_image_url(item.product) if item.product else None
        items.append(OrderItemResponse(**item_dict))

    order_dict = order.model_dump()
    order_dict["items"] = items
    return OrderResponse(**order_dict)


def get_own_order(db: Session, order_id: int, user: User) -> Order:
    order = db.get(Order, order_id)
    if not order or order.user_id != user.id:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


# === Checkout ===

@router.post("/api/orders", response_model=OrderResponse, status_code=201)
def create_new_order(
    data: OrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    order = create_order(db, data, current_user)
    return build_order_response(order)


# === User: own orders ===

@router.get("/api/users/orders", response_model=List[OrderResponse])
def get_my_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    stmt = select(Order).where(Order.user_id == current_user.id).order_by(Order.created_at.desc(), Order.id.desc())
    return [build_order_response(order) for order in db.exec(stmt).all()]


@router.get("/api/users/orders/{order_id}", response_model=OrderResponse)
def get_my_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return build_order_response(get_own_order(db, order_id, current_user))


@router.post("/api/users/orders/{order_id}/cancel", response_model=OrderResponse)
def cancel_my_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Cancel a pending order; stock is restored"""
    order = cancel_order(db, get_own_order(db, order_id, current_user))
    return build_order_response(order)


# === Admin ===

@router.get("/api/admin/orders", response_model=OrderListResponse)
def admin_list_orders(
    status: Optional[OrderStatus] = Query(None),
    q: Optional[str] = Query(None, description="Order number or customer name"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    stmt = select(Order)

    if status:
        stmt = stmt.where(Order.status == status)

    if q:
        stmt = stmt.where(
            (col(Order.order_number).contains(q)) |
            (col(Order.shipping_name).ilike(f"%{q}%"))
        )

    if date_from:
        stmt = stmt.where(Order.created_at >= datetime.combine(date_from, datetime.min.time()))

    if date_to:
        stmt = stmt.where(Order.created_at <= datetime.combine(date_to, datetime.max.time()))

    total = db.exec(select(func.count()).select_from(stmt.subquery())).one()
    orders = db.exec(
        stmt.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * page_size).limit(page_size)
    ).all()

    return OrderListResponse(
        items=[build_order_response(order) for order in orders],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/api/admin/orders/{order_id}", response_model=OrderResponse)
def admin_get_order(
    order_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    order = db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return build_order_response(order)


@router.patch("/api/admin/orders/{order_id}", response_model=OrderResponse)
def admin_update_order(
    order_id: int,
    data: OrderStatusUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    order = db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    if data.status == OrderStatus.CANCELLED and order.status == OrderStatus.PENDING:
        order = cancel_order(db, order)
    else:
        order.status = data.status
        order.updated_at = datetime.utcnow()
        db.add(order)

    log_admin_action(db, "ORDER_STATUS", f"Order {order.order_number} -> {data.status.value}", admin.id)
    db.commit()
    db.refresh(order)
    return build_order_response(order)
