from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, ValidationError, field_validator
from typing import Optional, List, Literal
from datetime import datetime
from app.models.vendor_application import VendorApplicationStatus

_url_adapter = TypeAdapter(HttpUrl)


class VendorApplicationCreate(BaseModel):
    business_name: str = Field(min_length=1)
    business_type: str = Field(min_length=1)
    business_description: str = Field(min_length=10)
    business_address: str = Field(min_length=1)
    business_phone: str = Field(min_length=1)
    business_website: Optional[str] = None
    tax_id: str = Field(min_length=1)
    bank_account: str = Field(min_length=1)
    expected_monthly_volume: str = Field(min_length=1)
    product_categories: List[str] = Field(min_length=1)
    has_business_license: bool
    agrees_to_terms: bool
    agree_to_commission: bool

    @field_validator("business_website")
    @classmethod
    def website_is_url(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            _url_adapter.validate_python(value)
        except ValidationError:
            raise ValueError("Valid website URL required")
        return value

    @field_validator("has_business_license", "agrees_to_terms", "agree_to_commission")
    @classmethod
    def must_be_true(cls, value: bool, info) -> bool:
        if value is not True:
            raise ValueError(f"{info.field_name} must be accepted")
        return value


class ApplicantSummary(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    created_at: datetime

    class Config:
        from_attributes = True


class VendorApplicationResponse(BaseModel):
    id: int
    user_id: int
    business_name: str
    business_type: str
    business_description: str
    business_address: str
    business_phone: str
    business_website: Optional[str] = None
    tax_id: str
    expected_monthly_volume: str
    product_categories: List[str]
    status: VendorApplicationStatus
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    user: Optional[ApplicantSummary] = None

    class Config:
        from_attributes = True


class VendorApplicationStatusView(BaseModel):
    id: int
    business_name: str
    status: VendorApplicationStatus
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    class Config:
        from_attributes = True


class MyApplicationResponse(BaseModel):
    has_application: bool
    application: Optional[VendorApplicationStatusView] = None


class ApplicationStats(BaseModel):
    total: int
    pending: int
    under_review: int
    approved: int
    rejected: int


class Pagination(BaseModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int


class VendorApplicationListResponse(BaseModel):
    applications: List[VendorApplicationResponse]
    pagination: Pagination
    stats: ApplicationStats


class VendorApplicationAction(BaseModel):
    action: Literal["approve", "reject", "review"]
    rejection_reason: Optional[str] = None


class VendorApplicationActionResponse(BaseModel):
    success: bool
    message: str
    application: VendorApplicationResponse


class VendorDashboardResponse(BaseModel):
    business_name: Optional[str] = None
    total_products: int
    published_products: int
    pending_products: int
    out_of_stock_products: int
