from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select, col, func
from typing import Optional, List
from datetime import datetime
from app.api.deps import get_db, admin_required
from app.models.user import User
from app.models.blog import BlogPost, BlogCategory, BlogPostCategoryLink
from app.schemas.blog import (
    BlogPostResponse, BlogPostListResponse, BlogPostCreate, BlogPostUpdate,
    BlogCategoryResponse, BlogCategoryCreate, BlogCategoryUpdate
)
from app.services.audit import log_admin_action
from app.services.blog import build_post_response, join_tags, resolve_blog_categories

router = APIRouter(prefix="/api/admin/blog", tags=["admin-blog"])


# === Posts ===

@router.get("/posts", response_model=BlogPostListResponse)
def list_posts(
    take: int = Query(20, ge=1, le=100),
    skip: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    is_published: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    stmt = select(BlogPost)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            (col(BlogPost.title).ilike(pattern)) |
            (col(BlogPost.content).ilike(pattern)) |
            (col(BlogPost.tags).ilike(pattern))
        )
    if is_published is not None:
        stmt = stmt.where(BlogPost.is_published == is_published)

    total = db.exec(select(func.count()).select_from(stmt.subquery())).one()
    posts = db.exec(stmt.order_by(BlogPost.created_at.desc(), BlogPost.id.desc()).offset(skip).limit(take)).all()

    return BlogPostListResponse(
        items=[build_post_response(p) for p in posts],
        total=total,
        take=take,
        skip=skip,
        has_more=skip + len(posts) < total
    )


@router.get("/posts/{post_id}", response_model=BlogPostResponse)
def get_post(
    post_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    post = db.get(BlogPost, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return build_post_response(post)


@router.post("/posts", response_model=BlogPostResponse, status_code=201)
def create_post(
    data: BlogPostCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    if db.exec(select(BlogPost).where(BlogPost.slug == data.slug)).first():
        raise HTTPException(status_code=400, detail="Slug already exists")

    post = BlogPost(
        **data.model_dump(exclude={"tags", "category_ids"}),
        tags=join_tags(data.tags),
        author_id=admin.id,
    )
    if post.is_published and not post.published_at:
        post.published_at = datetime.utcnow()
    post.categories = resolve_blog_categories(db, data.category_ids)

    db.add(post)
    log_admin_action(db, "BLOG_POST_CREATE", f"Created post {post.slug}", admin.id)
    db.commit()
    db.refresh(post)
    return build_post_response(post)


@router.put("/posts/{post_id}", response_model=BlogPostResponse)
def update_post(
    post_id: int,
    data: BlogPostUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    post = db.get(BlogPost, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")

    update_data = data.model_dump(exclude_unset=True, exclude={"tags", "category_ids"})

    if "slug" in update_data:
        existing = db.exec(
            select(BlogPost).where(BlogPost.slug == update_data["slug"], BlogPost.id != post_id)
        ).first()
        if existing:
            raise HTTPException(status_code=400, detail="Slug already exists")

    for key, value in update_data.items():
        setattr(post, key, value)

    if data.tags is not None:
        post.tags = join_tags(data.tags)
    if data.category_ids is not None:
        post.categories = resolve_blog_categories(db, data.category_ids)

    if post.is_published and not post.published_at:
        post.published_at = datetime.utcnow()

    post.updated_at = datetime.utcnow()
    db.add(post)
    log_admin_action(db, "BLOG_POST_UPDATE", f"Updated post {post.slug}", admin.id)
    db.commit()
    db.refresh(post)
    return build_post_response(post)


@router.delete("/posts/{post_id}")
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    post = db.get(BlogPost, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")

    slug = post.slug
    post.categories = []
    db.delete(post)
    log_admin_action(db, "BLOG_POST_DELETE", f"Deleted post {slug}", admin.id)
    db.commit()
    return {"message": "Post deleted"}


# === Categories ===

@router.get("/categories", response_model=List[BlogCategoryResponse])
def list_categories(
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    return db.exec(select(BlogCategory).order_by(BlogCategory.name)).all()


@router.post("/categories", response_model=BlogCategoryResponse, status_code=201)
def create_category(
    data: BlogCategoryCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    if db.exec(select(BlogCategory).where(BlogCategory.slug == data.slug)).first():
        raise HTTPException(status_code=400, detail="Slug already exists")

    category = BlogCategory(**data.model_dump())
    db.add(category)
    log_admin_action(db, "BLOG_CATEGORY_CREATE", f"Created blog category {category.slug}", admin.id)
    db.commit()
    db.refresh(category)
    return category


@router.put("/categories/{category_id}", response_model=BlogCategoryResponse)
def update_category(
    category_id: int,
    data: BlogCategoryUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    category = db.get(BlogCategory, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    update_data = data.model_dump(exclude_unset=True)
    if "slug" in update_data:
        existing = db.exec(
            select(BlogCategory).where(BlogCategory.slug == update_data["slug"], BlogCategory.id != category_id)
        ).first()
        if existing:
            raise HTTPException(status_code=400, detail="Slug already exists")

    for key, value in update_data.items():
        setattr(category, key, value)

    db.add(category)
    log_admin_action(db, "BLOG_CATEGORY_UPDATE", f"Updated blog category {category.slug}", admin.id)
    db.commit()
    db.refresh(category)
    return category


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    category = db.get(BlogCategory, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    linked = db.exec(
        select(func.count()).select_from(BlogPostCategoryLink).where(BlogPostCategoryLink.category_id == category_id)
    ).one()
    if linked:
        raise HTTPException(status_code=400, detail="Cannot delete category with associated posts")

    slug = category.slug
    db.delete(category)
    log_admin_action(db, "BLOG_CATEGORY_DELETE", f"Deleted blog category {slug}", admin.id)
    db.commit()
    return {"message": "Category deleted"}
