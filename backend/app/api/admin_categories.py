from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select, func
from typing import List
from datetime import datetime
from app.api.deps import get_db, admin_required
from app.models.user import User
from app.models.category import Category
from app.models.product import Product
from app.schemas.category import CategoryResponse, AdminCategoryResponse, CategoryCreate, CategoryUpdate
from app.services.audit import log_admin_action

router = APIRouter(prefix="/api/admin/categories", tags=["admin-categories"])


def is_descendant(category: Category, ancestor_id: int) -> bool:
    """True when `category` sits somewhere below `ancestor_id`"""
    seen = set()
    current = category.parent
    while current is not None and current.id not in seen:
        if current.id == ancestor_id:
            return True
        seen.add(current.id)
        current = current.parent
    return False


@router.get("/", response_model=List[AdminCategoryResponse])
def list_categories(
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    """All categories with product counts"""
    counts = dict(db.exec(
        select(Product.category_id, func.count(Product.id)).group_by(Product.category_id)
    ).all())

    categories = db.exec(select(Category).order_by(Category.sort_order, Category.name)).all()
    return [
        AdminCategoryResponse(
            **CategoryResponse.model_validate(cat).model_dump(),
            products_count=counts.get(cat.id, 0)
        )
        for cat in categories
    ]


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    category = db.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.post("/", response_model=CategoryResponse, status_code=201)
def create_category(
    data: CategoryCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    existing = db.exec(select(Category).where(Category.slug == data.slug)).first()
    if existing:
        raise HTTPException(status_code=400, detail="Slug already exists")

    if data.parent_id and not db.get(Category, data.parent_id):
        raise HTTPException(status_code=400, detail="Parent category not found")

    category = Category(**data.model_dump())
    db.add(category)
    log_admin_action(db, "CATEGORY_CREATE", f"Created category {category.name}", admin.id)
    db.commit()
    db.refresh(category)
    return category


@router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    data: CategoryUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    category = db.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    update_data = data.model_dump(exclude_unset=True)
    parent_id = update_data.get("parent_id")

    if parent_id == category_id:
        raise HTTPException(status_code=400, detail="Category cannot be its own parent")

    if parent_id:
        parent = db.get(Category, parent_id)
        if not parent:
            raise HTTPException(status_code=400, detail="Parent category not found")
        if is_descendant(parent, category_id):
            raise HTTPException(status_code=400, detail="Cannot set a descendant category as parent")

    if "slug" in update_data:
        existing = db.exec(
            select(Category).where(Category.slug == update_data["slug"], Category.id != category_id)
        ).first()
        if existing:
            raise HTTPException(status_code=400, detail="Slug already exists")

    for key, value in update_data.items():
        setattr(category, key, value)

    category.updated_at = datetime.utcnow()
    db.add(category)
    log_admin_action(db, "CATEGORY_UPDATE", f"Updated category {category.name}", admin.id)
    db.commit()
    db.refresh(category)
    return category


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    category = db.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    in_use = db.exec(select(func.count(Product.id)).where(Product.category_id == category_id)).one()
    if in_use:
        raise HTTPException(status_code=400, detail="Category still has products")

    # Children move up to the deleted category's parent
    for child in list(category.children):
        child.parent = category.parent
        db.add(child)

    db.delete(category)
    log_admin_action(db, "CATEGORY_DELETE", f"Deleted category {category.name}", admin.id)
    db.commit()
    return {"message": "Category deleted"}
