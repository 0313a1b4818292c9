from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime
from app.models.supplier import SupplierStatus


class SupplierResponse(BaseModel):
    """Supplier as shown to admins; the API key is never echoed"""
    id: int
    name: str
    description: Optional[str] = None
    website: Optional[str] = None
    api_key: Optional[str] = None
    api_endpoint: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    average_shipping: Optional[int] = None
    status: SupplierStatus
    products_count: int = 0
    created_at: datetime
    updated_at: datetime


class SupplierProductSummary(BaseModel):
    id: int
    name: str
    stock: int


class SupplierDetailResponse(SupplierResponse):
    recent_products: List[SupplierProductSummary] = []


class SupplierWrite(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    website: Optional[str] = None
    api_key: Optional[str] = None
    api_endpoint: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    average_shipping: Optional[int] = Field(default=None, ge=0)
    status: Optional[SupplierStatus] = None


class SupplierStatusUpdate(BaseModel):
    status: SupplierStatus


class ConnectionTestRequest(BaseModel):
    api_endpoint: Optional[str] = None
    api_key: Optional[str] = None
    api_secret: Optional[str] = None
    api_username: Optional[str] = None
    api_password: Optional[str] = None
    api_header_auth: Optional[str] = None


class ConnectionTestResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    supplier_name: Optional[str] = None
