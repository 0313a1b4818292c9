from typing import List, Optional
from fastapi import HTTPException
from sqlmodel import Session, select, col
from app.models.blog import BlogCategory, BlogPost


def split_tags(tags: Optional[str]) -> List[str]:
    if not tags:
        return []
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


def join_tags(tags: List[str]) -> Optional[str]:
    """Tags as stored: trimmed, de-duplicated, comma-separated"""
    cleaned = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return ",".join(cleaned) or None


def resolve_blog_categories(db: Session, category_ids: List[int]) -> List[BlogCategory]:
    if not category_ids:
        return []
    categories = db.exec(select(BlogCategory).where(col(BlogCategory.id).in_(category_ids))).all()
    if len(categories) != len(set(category_ids)):
        raise HTTPException(status_code=400, detail="Some blog categories not found")
    return list(categories)


def build_post_response(post: BlogPost) -> dict:
    return {
        "id": post.id,
        "title": post.title,
        "slug": post.slug,
        "excerpt": post.excerpt,
        "content": post.content,
        "cover_image": post.cover_image,
        "is_published": post.is_published,
        "published_at": post.published_at,
        "author_id": post.author_id,
        "author_name": post.author.name if post.author else None,
        "meta_title": post.meta_title,
        "meta_desc": post.meta_desc,
        "tags": split_tags(post.tags),
        "categories": [
            {"id": c.id, "name": c.name, "slug": c.slug, "description": c.description}
            for c in post.categories
        ],
        "created_at": post.created_at,
        "updated_at": post.updated_at,
    }
