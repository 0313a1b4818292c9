from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from enum import Enum

if TYPE_CHECKING:
    from .user import User
    from .product import Product


class ReviewStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Review(SQLModel, table=True):
    """Customer review of a purchased product; shown publicly once approved"""
    __tablename__ = "reviews"

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)

    rating: int
    title: Optional[str] = None
    content: Optional[str] = None

    status: ReviewStatus = Field(default=ReviewStatus.PENDING, index=True)
    is_verified: bool = Field(default=False)

    admin_response: Optional[str] = None
    admin_response_date: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    product: Optional["Product"] = Relationship()
    user: Optional["User"] = Relationship()
