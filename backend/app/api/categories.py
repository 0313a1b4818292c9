from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from typing import List
from app.api.deps import get_db
from app.models.category import Category
from app.schemas.category import CategoryResponse

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("/", response_model=List[CategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    """Active categories in display order"""
    stmt = select(Category).where(Category.is_active == True).order_by(Category.sort_order, Category.name)
    return db.exec(stmt).all()


@router.get("/{slug}", response_model=CategoryResponse)
def get_category(slug: str, db: Session = Depends(get_db)):
    category = db.exec(
        select(Category).where(Category.slug == slug, Category.is_active == True)
    ).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category
