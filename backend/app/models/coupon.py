from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from decimal import Decimal
from enum import Enum

if TYPE_CHECKING:
    from .product import Product
    from .category import Category


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class CouponProductLink(SQLModel, table=True):
    __tablename__ = "coupon_products"

    coupon_id: Optional[int] = Field(default=None, foreign_key="coupons.id", primary_key=True)
    product_id: Optional[int] = Field(default=None, foreign_key="products.id", primary_key=True)


class CouponCategoryLink(SQLModel, table=True):
    __tablename__ = "coupon_categories"

    coupon_id: Optional[int] = Field(default=None, foreign_key="coupons.id", primary_key=True)
    category_id: Optional[int] = Field(default=None, foreign_key="categories.id", primary_key=True)


class Coupon(SQLModel, table=True):
    __tablename__ = "coupons"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(unique=True, index=True)  # always upper-case
    description: Optional[str] = None

    discount_type: DiscountType
    discount_value: Decimal = Field(max_digits=10, decimal_places=2)
    minimum_purchase: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    maximum_discount: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)

    usage_limit: Optional[int] = None
    usage_count: int = Field(default=0)

    is_active: bool = Field(default=True)
    show_on_banner: bool = Field(default=False)
    start_date: datetime
    end_date: datetime

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    products: List["Product"] = Relationship(link_model=CouponProductLink)
    categories: List["Category"] = Relationship(link_model=CouponCategoryLink)
    usages: List["CouponUsage"] = Relationship(back_populates="coupon")


class CouponUsage(SQLModel, table=True):
    __tablename__ = "coupon_usages"

    id: Optional[int] = Field(default=None, primary_key=True)
    coupon_id: int = Field(foreign_key="coupons.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    order_id: Optional[int] = Field(default=None, foreign_key="orders.id")
    used_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    coupon: Optional["Coupon"] = Relationship(back_populates="usages")
