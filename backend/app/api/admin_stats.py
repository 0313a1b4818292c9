from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select, func, and_
from datetime import datetime, timedelta, date as date_type
from typing import List
from pydantic import BaseModel
from app.api.deps import get_db, admin_required
from app.models.user import User, UserRole
from app.models.order import Order, OrderStatus
from app.models.product import Product
from app.models.vendor_application import VendorApplication, VendorApplicationStatus

router = APIRouter(prefix="/api/admin/stats", tags=["admin-stats"])

# Cancelled orders do not count towards revenue
REVENUE_STATUSES = [
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]


class LowStockProduct(BaseModel):
    id: int
    name: str
    stock: int


class SalesByDay(BaseModel):
    date: str
    revenue: float


class StatsResponse(BaseModel):
    total_products: int
    total_customers: int
    total_orders: int
    orders_today: int
    revenue_today: float
    revenue_month: float
    pending_vendor_applications: int
    low_stock_products: List[LowStockProduct]
    sales_by_day: List[SalesByDay]


def revenue_between(db: Session, start: datetime, end: datetime) -> float:
    result = db.exec(
        select(func.sum(Order.total)).where(
            and_(
                Order.created_at >= start,
                Order.created_at <= end,
                Order.status.in_(REVENUE_STATUSES)
            )
        )
    ).one()
    return float(result) if result else 0.0


@router.get("/", response_model=StatsResponse)
def get_stats(
    low_stock_threshold: int = Query(5, ge=0),
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    """Dashboard counters for the admin back-office"""
    today = datetime.utcnow().date()
    today_start = datetime.combine(today, datetime.min.time())
    today_end = datetime.combine(today, datetime.max.time())
    month_start = datetime(today.year, today.month, 1)

    total_products = db.exec(select(func.count(Product.id))).one()
    total_customers = db.exec(select(func.count(User.id)).where(User.role == UserRole.CUSTOMER)).one()
    total_orders = db.exec(select(func.count(Order.id))).one()
    orders_today = db.exec(
        select(func.count(Order.id)).where(
            Order.created_at >= today_start,
            Order.created_at <= today_end,
            Order.status.in_(REVENUE_STATUSES)
        )
    ).one()

    pending_applications = db.exec(
        select(func.count(VendorApplication.id)).where(
            VendorApplication.status.in_([VendorApplicationStatus.PENDING, VendorApplicationStatus.UNDER_REVIEW])
        )
    ).one()

    low_stock = db.exec(
        select(Product)
        .where(Product.stock <= low_stock_threshold)
        .order_by(Product.stock, Product.id)
        .limit(10)
    ).all()

    # Last 7 days including today, for the chart
    sales_by_day = []
    for i in range(6, -1, -1):
        day: date_type = today - timedelta(days=i)
        sales_by_day.append(SalesByDay(
            date=day.isoformat(),
            revenue=revenue_between(
                db,
                datetime.combine(day, datetime.min.time()),
                datetime.combine(day, datetime.max.time())
            )
        ))

    return StatsResponse(
        total_products=total_products,
        total_customers=total_customers,
        total_orders=total_orders,
        orders_today=orders_today,
        revenue_today=revenue_between(db, today_start, today_end),
        revenue_month=revenue_between(db, month_start, today_end),
        pending_vendor_applications=pending_applications,
        low_stock_products=[LowStockProduct(id=p.id, name=p.name, stock=p.stock) for p in low_stock],
        sales_by_day=sales_by_day
    )
