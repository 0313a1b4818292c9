from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from app.models.review import ReviewStatus
from app.schemas.common import reject_null


class ReviewAuthor(BaseModel):
    id: int
    name: Optional[str] = None

    class Config:
        from_attributes = True


class ReviewResponse(BaseModel):
    id: int
    product_id: int
    rating: int
    title: Optional[str] = None
    content: Optional[str] = None
    status: ReviewStatus
    is_verified: bool
    admin_response: Optional[str] = None
    admin_response_date: Optional[datetime] = None
    created_at: datetime
    user: Optional[ReviewAuthor] = None

    class Config:
        from_attributes = True


class ReviewListResponse(BaseModel):
    items: List[ReviewResponse]
    total: int
    page: int
    page_size: int
    pages: int
    average_rating: Optional[float] = None


class AdminReviewResponse(ReviewResponse):
    product_name: Optional[str] = None
    user_email: Optional[str] = None


class AdminReviewListResponse(BaseModel):
    items: List[AdminReviewResponse]
    total: int
    page: int
    page_size: int
    pages: int


class ReviewCreate(BaseModel):
    product_id: int
    rating: int = Field(ge=1, le=5)
    title: Optional[str] = None
    content: Optional[str] = None


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    title: Optional[str] = None
    content: Optional[str] = None

    @field_validator("rating")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class ReviewModeration(BaseModel):
    status: Optional[ReviewStatus] = None
    admin_response: Optional[str] = None
    is_verified: Optional[bool] = None

    @field_validator("status", "is_verified")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class ReviewEligibility(BaseModel):
    can_review: bool
    reason: str
    message: str
    existing_review: Optional[ReviewResponse] = None
    order_number: Optional[str] = None
