from decimal import Decimal
from typing import Optional, Set
from sqlmodel import Session, select
from app.models.category import Category
from app.models.product import Product


def discount_percent(product: Product) -> Optional[int]:
    """Percent saved against the compare-at price, if the product is marked down"""
    if product.compare_at_price and product.compare_at_price > product.price:
        return int(((product.compare_at_price - product.price) / product.compare_at_price) * 100)
    return None


def primary_image_url(product: Product) -> Optional[str]:
    for img in product.images:
        if img.is_primary:
            return img.url
    if product.images:
        return product.images[0].url
    return None


def collect_category_ids(db: Session, root_ids: Set[int]) -> Set[int]:
    """Category ids plus all of their descendants"""
    result = set(root_ids)
    frontier = list(root_ids)
    while frontier:
        children = db.exec(select(Category.id).where(Category.parent_id.in_(frontier))).all()
        frontier = [cid for cid in children if cid not in result]
        result.update(frontier)
    return result


def build_product_response(product: Product) -> dict:
    """Product card with computed fields"""
    return {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "brand": product.brand,
        "sku": product.sku,
        "price": product.price,
        "compare_at_price": product.compare_at_price,
        "discount_percent": discount_percent(product),
        "stock": product.stock,
        "in_stock": product.in_stock,
        "is_featured": product.is_featured,
        "is_published": product.is_published,
        "category_id": product.category_id,
        "category_name": product.category.name if product.category else None,
        "supplier_id": product.supplier_id,
        "vendor_id": product.vendor_id,
        "primary_image": primary_image_url(product),
    }


def build_product_detail_response(product: Product) -> dict:
    base = build_product_response(product)
    base.update({
        "description": product.description,
        "supplier_source": product.supplier_source,
        "images": [
            {
                "id": img.id,
                "url": img.url,
                "alt": img.alt,
                "is_primary": img.is_primary,
                "sort_order": img.sort_order,
            }
            for img in sorted(product.images, key=lambda x: (not x.is_primary, x.sort_order))
        ],
        "created_at": product.created_at,
        "updated_at": product.updated_at,
    })
    return base


def quantize(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"))
