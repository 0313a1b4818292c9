from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime
from decimal import Decimal
from app.schemas.common import reject_null


class ProductImageResponse(BaseModel):
    id: int
    url: str
    alt: Optional[str] = None
    is_primary: bool
    sort_order: int

    class Config:
        from_attributes = True


class ProductResponse(BaseModel):
    """Product card in listings"""
    id: int
    name: str
    slug: str
    brand: Optional[str] = None
    sku: Optional[str] = None

    price: Decimal
    compare_at_price: Optional[Decimal] = None
    discount_percent: Optional[int] = None

    stock: int
    in_stock: bool
    is_featured: bool
    is_published: bool = True

    category_id: Optional[int] = None
    category_name: Optional[str] = None
    supplier_id: Optional[int] = None
    vendor_id: Optional[int] = None
    primary_image: Optional[str] = None

    class Config:
        from_attributes = True


class ProductDetailResponse(ProductResponse):
    description: Optional[str] = None
    supplier_source: Optional[str] = None
    images: List[ProductImageResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductListResponse(BaseModel):
    items: List[ProductResponse]
    total: int
    page: int
    page_size: int
    pages: int
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None


class ProductSuggestion(BaseModel):
    id: int
    name: str
    slug: str
    price: Decimal
    image: Optional[str] = None
    category: str


class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(ge=0)
    compare_at_price: Optional[Decimal] = Field(default=None, ge=0)
    stock: int = Field(default=0, ge=0)
    sku: Optional[str] = None
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    brand: Optional[str] = None
    is_published: bool = True
    is_featured: bool = False


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    slug: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    compare_at_price: Optional[Decimal] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)
    sku: Optional[str] = None
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    brand: Optional[str] = None
    is_published: Optional[bool] = None
    is_featured: Optional[bool] = None

    @field_validator("name", "slug", "price", "stock", "is_published", "is_featured")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class VendorProductCreate(BaseModel):
    """Vendors cannot publish or feature their own products"""
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(ge=0)
    compare_at_price: Optional[Decimal] = Field(default=None, ge=0)
    stock: int = Field(default=0, ge=0)
    sku: Optional[str] = None
    category_id: Optional[int] = None
    brand: Optional[str] = None


class VendorProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    compare_at_price: Optional[Decimal] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[int] = None
    brand: Optional[str] = None

    @field_validator("name", "price", "stock")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class ProductImageUpdate(BaseModel):
    alt: Optional[str] = None
    sort_order: Optional[int] = None
    is_primary: Optional[bool] = None

    @field_validator("sort_order", "is_primary")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


# Bulk operations
class BulkPriceUpdate(BaseModel):
    scope: Literal["all", "category", "product_ids"]
    category_id: Optional[int] = None
    product_ids: Optional[List[int]] = None
    operation: Literal["increase", "decrease", "set"]
    value_type: Literal["percent", "fixed"]
    value: Decimal = Field(ge=0)


class BulkPublishUpdate(BaseModel):
    product_ids: List[int]
    is_published: bool


class StockUpdate(BaseModel):
    product_id: int
    stock: int = Field(ge=0)


class BulkStockUpdate(BaseModel):
    updates: List[StockUpdate]


class BulkDelete(BaseModel):
    product_ids: List[int] = Field(min_length=1)
