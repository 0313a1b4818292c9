from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from app.models.order import OrderStatus


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)


class OrderCreate(BaseModel):
    items: List[OrderItemCreate] = Field(min_length=1)

    shipping_name: str = Field(min_length=1)
    shipping_phone: Optional[str] = None
    shipping_address: str = Field(min_length=1)
    shipping_city: str = Field(min_length=1)
    shipping_postal_code: Optional[str] = None
    shipping_country: str = "US"

    coupon_code: Optional[str] = None
    notes: Optional[str] = None


class OrderItemResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    product_sku: Optional[str] = None
    quantity: int
    price: Decimal
    total: Decimal
    product_image: Optional[str] = None

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    order_number: str
    user_id: int

    shipping_name: str
    shipping_phone: Optional[str] = None
    shipping_address: str
    shipping_city: str
    shipping_postal_code: Optional[str] = None
    shipping_country: str

    subtotal: Decimal
    discount: Decimal
    total: Decimal
    coupon_code: Optional[str] = None

    status: OrderStatus
    notes: Optional[str] = None

    created_at: datetime
    items: List[OrderItemResponse] = []

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
