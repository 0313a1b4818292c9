from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from app.models.coupon import DiscountType
from app.schemas.common import UTCDateTime, reject_null


class CouponResponse(BaseModel):
    id: int
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal
    minimum_purchase: Optional[Decimal] = None
    maximum_discount: Optional[Decimal] = None
    usage_limit: Optional[int] = None
    usage_count: int
    is_active: bool
    show_on_banner: bool
    start_date: datetime
    end_date: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class CouponDetailResponse(CouponResponse):
    product_ids: List[int] = []
    category_ids: List[int] = []


class CouponCreate(BaseModel):
    code: str = Field(min_length=3, max_length=32)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal = Field(gt=0)
    minimum_purchase: Optional[Decimal] = Field(default=None, ge=0)
    maximum_discount: Optional[Decimal] = Field(default=None, gt=0)
    usage_limit: Optional[int] = Field(default=None, ge=1)
    is_active: bool = True
    show_on_banner: bool = False
    start_date: UTCDateTime
    end_date: UTCDateTime
    product_ids: Optional[List[int]] = None
    category_ids: Optional[List[int]] = None

    @model_validator(mode="after")
    def check_values(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class CouponUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=3, max_length=32)
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(default=None, gt=0)
    minimum_purchase: Optional[Decimal] = Field(default=None, ge=0)
    maximum_discount: Optional[Decimal] = Field(default=None, gt=0)
    usage_limit: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None
    show_on_banner: Optional[bool] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    product_ids: Optional[List[int]] = None
    category_ids: Optional[List[int]] = None

    @field_validator(
        "code", "discount_type", "discount_value", "is_active", "show_on_banner", "start_date", "end_date"
    )
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class CartItemIn(BaseModel):
    product_id: int
    price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1)


class CouponValidateRequest(BaseModel):
    code: Optional[str] = None
    cart_items: Optional[List[CartItemIn]] = None


class AppliedCoupon(BaseModel):
    id: int
    code: str
    discount_type: DiscountType
    discount_value: Decimal


class CouponValidateResponse(BaseModel):
    valid: bool
    coupon: Optional[AppliedCoupon] = None
    discount_amount: Optional[Decimal] = None
    applied_to: Optional[str] = None
    error: Optional[str] = None
