from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from app.schemas.common import UTCDateTime, reject_null

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class BlogCategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class BlogCategoryCreate(BaseModel):
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1, pattern=SLUG_PATTERN)
    description: Optional[str] = None


class BlogCategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    slug: Optional[str] = Field(default=None, min_length=1, pattern=SLUG_PATTERN)
    description: Optional[str] = None

    @field_validator("name", "slug")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class BlogPostResponse(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: str
    cover_image: Optional[str] = None
    is_published: bool
    published_at: Optional[datetime] = None
    author_id: Optional[int] = None
    author_name: Optional[str] = None
    meta_title: Optional[str] = None
    meta_desc: Optional[str] = None
    tags: List[str] = []
    categories: List[BlogCategoryResponse] = []
    created_at: datetime
    updated_at: datetime


class BlogPostListResponse(BaseModel):
    items: List[BlogPostResponse]
    total: int
    take: int
    skip: int
    has_more: bool


class BlogPostCreate(BaseModel):
    title: str = Field(min_length=1)
    slug: str = Field(min_length=1, pattern=SLUG_PATTERN)
    content: str = Field(min_length=1)
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    is_published: bool = False
    published_at: Optional[UTCDateTime] = None
    meta_title: Optional[str] = Field(default=None, max_length=70)
    meta_desc: Optional[str] = Field(default=None, max_length=160)
    tags: List[str] = []
    category_ids: List[int] = []


class BlogPostUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    slug: Optional[str] = Field(default=None, min_length=1, pattern=SLUG_PATTERN)
    content: Optional[str] = Field(default=None, min_length=1)
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    is_published: Optional[bool] = None
    published_at: Optional[UTCDateTime] = None
    meta_title: Optional[str] = Field(default=None, max_length=70)
    meta_desc: Optional[str] = Field(default=None, max_length=160)
    tags: Optional[List[str]] = None
    category_ids: Optional[List[int]] = None

    @field_validator("title", "slug", "content", "is_published")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)
