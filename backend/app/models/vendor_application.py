from sqlmodel import SQLModel, Field, Relationship, Column, JSON
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from enum import Enum

if TYPE_CHECKING:
    from .user import User


class VendorApplicationStatus(str, Enum):
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class VendorApplication(SQLModel, table=True):
    __tablename__ = "vendor_applications"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)

    business_name: str
    business_type: str
    business_description: str
    business_address: str
    business_phone: str
    business_website: Optional[str] = None
    tax_id: str
    bank_account: str
    expected_monthly_volume: str
    product_categories: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    has_business_license: bool = Field(default=False)
    agrees_to_terms: bool = Field(default=False)
    agree_to_commission: bool = Field(default=False)

    status: VendorApplicationStatus = Field(default=VendorApplicationStatus.PENDING, index=True)
    submitted_at: datetime = Field(default_factory=datetime.utcnow)
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    # Relationships
    user: Optional["User"] = Relationship(back_populates="vendor_application")
