from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from typing import List
from pydantic import BaseModel
from app.api.deps import get_db, get_current_user
from app.models.user import User
from app.models.wishlist import WishlistItem
from app.models.product import Product
from app.schemas.product import ProductResponse
from app.services.catalog import build_product_response

router = APIRouter(prefix="/api/users/wishlist", tags=["wishlist"])


class WishlistAdd(BaseModel):
    product_id: int


@router.get("/", response_model=List[ProductResponse])
def get_wishlist(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Wishlisted products that are still on sale"""
    items = db.exec(
        select(WishlistItem).where(WishlistItem.user_id == current_user.id).order_by(WishlistItem.created_at.desc())
    ).all()
    return [
        build_product_response(item.product)
        for item in items
        if item.product and item.product.is_published
    ]


@router.post("/", response_model=ProductResponse)
def add_to_wishlist(
    data: WishlistAdd,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    product = db.get(Product, data.product_id)
    if not product or not product.is_published:
        raise HTTPException(status_code=404, detail="Product not found")

    existing = db.exec(
        select(WishlistItem).where(
            WishlistItem.user_id == current_user.id,
            WishlistItem.product_id == data.product_id
        )
    ).first()

    if not existing:
        db.add(WishlistItem(user_id=current_user.id, product_id=data.product_id))
        db.commit()

    return build_product_response(product)


@router.delete("/{product_id}")
def remove_from_wishlist(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    item = db.exec(
        select(WishlistItem).where(
            WishlistItem.user_id == current_user.id,
            WishlistItem.product_id == product_id
        )
    ).first()

    if not item:
        raise HTTPException(status_code=404, detail="Product not in wishlist")

    db.delete(item)
    db.commit()
    return {"message": "Removed from wishlist"}
