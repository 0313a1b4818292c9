from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select, col, func
from typing import Optional, List
from app.api.deps import get_db
from app.models.blog import BlogPost, BlogCategory, BlogPostCategoryLink
from app.schemas.blog import BlogPostResponse, BlogPostListResponse, BlogCategoryResponse
from app.services.blog import build_post_response

router = APIRouter(prefix="/api/blog", tags=["blog"])


@router.get("/posts", response_model=BlogPostListResponse)
def list_posts(
    category: Optional[str] = Query(None, description="Blog category slug"),
    tag: Optional[str] = Query(None),
    take: int = Query(10, ge=1, le=50),
    skip: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    stmt = select(BlogPost).where(BlogPost.is_published == True)

    if category:
        stmt = stmt.where(
            col(BlogPost.id).in_(
                select(BlogPostCategoryLink.post_id)
                .join(BlogCategory, BlogCategory.id == BlogPostCategoryLink.category_id)
                .where(BlogCategory.slug == category)
            )
        )

    if tag:
        # Tags are stored comma-separated; match a whole tag
        stmt = stmt.where(
            ("," + func.coalesce(BlogPost.tags, "") + ",").contains(f",{tag.strip()},")
        )

    total = db.exec(select(func.count()).select_from(stmt.subquery())).one()
    posts = db.exec(
        stmt.order_by(col(BlogPost.published_at).desc(), BlogPost.id.desc()).offset(skip).limit(take)
    ).all()

    return BlogPostListResponse(
        items=[build_post_response(p) for p in posts],
        total=total,
        take=take,
        skip=skip,
        has_more=skip + len(posts) < total
    )


@router.get("/posts/{slug}", response_model=BlogPostResponse)
def get_post(slug: str, db: Session = Depends(get_db)):
    post = db.exec(
        select(BlogPost).where(BlogPost.slug == slug, BlogPost.is_published == True)
    ).first()
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return build_post_response(post)


@router.get("/categories", response_model=List[BlogCategoryResponse])
def list_blog_categories(db: Session = Depends(get_db)):
    return db.exec(select(BlogCategory).order_by(BlogCategory.name)).all()
