from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from .user import User


class BlogPostCategoryLink(SQLModel, table=True):
    __tablename__ = "blog_post_categories"

    post_id: Optional[int] = Field(default=None, foreign_key="blog_posts.id", primary_key=True)
    category_id: Optional[int] = Field(default=None, foreign_key="blog_categories.id", primary_key=True)


class BlogCategory(SQLModel, table=True):
    __tablename__ = "blog_categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(unique=True, index=True)
    description: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    posts: List["BlogPost"] = Relationship(back_populates="categories", link_model=BlogPostCategoryLink)


class BlogPost(SQLModel, table=True):
    __tablename__ = "blog_posts"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    slug: str = Field(unique=True, index=True)
    excerpt: Optional[str] = None
    content: str
    cover_image: Optional[str] = None

    is_published: bool = Field(default=False)
    published_at: Optional[datetime] = None
    author_id: Optional[int] = Field(default=None, foreign_key="users.id")

    # SEO
    meta_title: Optional[str] = None
    meta_desc: Optional[str] = None
    tags: Optional[str] = None  # comma-separated

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    author: Optional["User"] = Relationship()
    categories: List["BlogCategory"] = Relationship(back_populates="posts", link_model=BlogPostCategoryLink)
