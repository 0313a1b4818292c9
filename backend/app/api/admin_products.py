import logging
import os
import uuid
from decimal import Decimal
from datetime import datetime
from math import ceil
from io import BytesIO
from typing import Optional, Tuple
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form, Query
from sqlmodel import Session, select, col, func
from PIL import Image, ImageOps, UnidentifiedImageError
from app.api.deps import get_db, admin_required
from app.core.config import settings
from app.models.user import User
from app.models.category import Category
from app.models.product import Product, ProductImage
from app.models.supplier import Supplier
from app.models.wishlist import WishlistItem
from app.models.coupon import CouponProductLink
from app.models.order import OrderItem
from app.models.review import Review
from app.schemas.product import (
    ProductDetailResponse, ProductCreate, ProductUpdate,
    ProductImageResponse, ProductImageUpdate,
    BulkPriceUpdate, BulkPublishUpdate, BulkStockUpdate, BulkDelete,
    ProductListResponse
)
from app.services.audit import log_admin_action
from app.services.catalog import build_product_response, build_product_detail_response, quantize
from app.services.search import suggestion_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/products", tags=["admin-products"])

MAX_IMAGE_SIZE = 2000
JPEG_QUALITY = 85


def process_uploaded_image(content: bytes, filename: Optional[str]) -> Tuple[bytes, str]:
    """
    Normalise an uploaded image:
    - apply the EXIF orientation
    - flatten transparency onto white, convert to RGB
    - shrink to MAX_IMAGE_SIZE on the longest side
    - re-encode as JPEG
    Files Pillow cannot read are stored as uploaded.
    """
    try:
        image = Image.open(BytesIO(content))
        image = ImageOps.exif_transpose(image)

        if image.mode in ('RGBA', 'LA', 'P'):
            if image.mode == 'P':
                image = image.convert('RGBA')
            background = Image.new('RGB', image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[-1])
            image = background
        elif image.mode != 'RGB':
            image = image.convert('RGB')

        image.thumbnail((MAX_IMAGE_SIZE, MAX_IMAGE_SIZE), Image.Resampling.LANCZOS)

        output = BytesIO()
        image.save(output, format='JPEG', quality=JPEG_QUALITY, optimize=True)
        return output.getvalue(), '.jpg'
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("storing %s unprocessed: %s", filename, e)
        return content, os.path.splitext(filename)[1] if filename else '.jpg'


def image_path(url: str) -> str:
    return os.path.join(settings.UPLOAD_DIR, os.path.basename(url))


def remove_image_file(url: str) -> None:
    path = image_path(url)
    if os.path.exists(path):
        os.remove(path)


def check_references(db: Session, category_id: Optional[int], supplier_id: Optional[int]) -> None:
    if category_id is not None and not db.get(Category, category_id):
        raise HTTPException(status_code=400, detail="Category not found")
    if supplier_id is not None and not db.get(Supplier, supplier_id):
        raise HTTPException(status_code=400, detail="Supplier not found")


def delete_product_rows(db: Session, product: Product) -> None:
    """Delete a product with its images, reviews and wishlist rows; past order lines keep their snapshot"""
    for img in product.images:
        remove_image_file(img.url)
        db.delete(img)
    for item in product.wishlist_items:
        db.delete(item)
    for review in db.exec(select(Review).where(Review.product_id == product.id)).all():
        db.delete(review)
    for link in db.exec(select(CouponProductLink).where(CouponProductLink.product_id == product.id)).all():
        db.delete(link)
    for line in db.exec(select(OrderItem).where(OrderItem.product_id == product.id)).all():
        line.product_id = None
        db.add(line)
    db.flush()
    db.delete(product)


# === CRUD Products ===

@router.get("/", response_model=ProductListResponse)
def list_products(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    q: Optional[str] = Query(None, description="Search query"),
    category_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
    in_stock: Optional[bool] = Query(None),
    is_published: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    stmt = select(Product)

    if q:
        search = f"%{q}%"
        stmt = stmt.where(
            (col(Product.name).ilike(search)) |
            (col(Product.sku).ilike(search)) |
            (col(Product.brand).ilike(search))
        )
    if category_id:
        stmt = stmt.where(Product.category_id == category_id)
    if supplier_id:
        stmt = stmt.where(Product.supplier_id == supplier_id)
    if in_stock is not None:
        stmt = stmt.where(Product.stock > 0 if in_stock else Product.stock <= 0)
    if is_published is not None:
        stmt = stmt.where(Product.is_published == is_published)

    total = db.exec(select(func.count()).select_from(stmt.subquery())).one()
    products = db.exec(
        stmt.order_by(Product.id.desc()).offset((page - 1) * page_size).limit(page_size)
    ).all()

    return ProductListResponse(
        items=[build_product_response(p) for p in products],
        total=total,
        page=page,
        page_size=page_size,
        pages=ceil(total / page_size) if total > 0 else 1
    )


@router.get("/{product_id}", response_model=ProductDetailResponse)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return build_product_detail_response(product)


@router.post("/", response_model=ProductDetailResponse, status_code=201)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    if db.exec(select(Product).where(Product.slug == data.slug)).first():
        raise HTTPException(status_code=400, detail="Slug already exists")

    if data.sku and db.exec(select(Product).where(Product.sku == data.sku)).first():
        raise HTTPException(status_code=400, detail="SKU already exists")

    check_references(db, data.category_id, data.supplier_id)

    product = Product(**data.model_dump())
    db.add(product)
    log_admin_action(db, "PRODUCT_CREATE", f"Created product {product.name}", admin.id)
    db.commit()
    db.refresh(product)
    suggestion_cache.clear()
    return build_product_detail_response(product)


@router.patch("/{product_id}", response_model=ProductDetailResponse)
def update_product(
    product_id: int,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    update_data = data.model_dump(exclude_unset=True)

    if "slug" in update_data:
        existing = db.exec(
            select(Product).where(Product.slug == update_data["slug"], Product.id != product_id)
        ).first()
        if existing:
            raise HTTPException(status_code=400, detail="Slug already exists")

    if update_data.get("sku"):
        existing_sku = db.exec(
            select(Product).where(Product.sku == update_data["sku"], Product.id != product_id)
        ).first()
        if existing_sku:
            raise HTTPException(status_code=400, detail="SKU already exists")

    check_references(db, update_data.get("category_id"), update_data.get("supplier_id"))

    for key, value in update_data.items():
        setattr(product, key, value)

    product.updated_at = datetime.utcnow()
    db.add(product)
    log_admin_action(db, "PRODUCT_UPDATE", f"Updated product {product.name}", admin.id)
    db.commit()
    db.refresh(product)
    suggestion_cache.clear()
    return build_product_detail_response(product)


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    name = product.name
    delete_product_rows(db, product)
    log_admin_action(db, "PRODUCT_DELETE", f"Deleted product {name}", admin.id)
    db.commit()
    suggestion_cache.clear()
    return {"message": "Product deleted"}


# === Images ===

@router.post("/{product_id}/images", response_model=ProductImageResponse, status_code=201)
async def upload_image(
    product_id: int,
    file: UploadFile = File(...),
    alt: Optional[str] = Form(None),
    sort_order: int = Form(0),
    is_primary: bool = Form(False),
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    if file.content_type and not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")

    content = await file.read()
    processed_image, ext = process_uploaded_image(content, file.filename)

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    filename = f"{uuid.uuid4().hex}{ext}"
    try:
        with open(os.path.join(settings.UPLOAD_DIR, filename), "wb") as buffer:
            buffer.write(processed_image)
    except OSError as e:
        logger.exception("failed to save upload for product %s", product_id)
        raise HTTPException(status_code=500, detail=f"Error saving image: {e}")

    # The first image of a product becomes its primary image
    if is_primary or not product.images:
        is_primary = True
        for img in product.images:
            img.is_primary = False
            db.add(img)

    image = ProductImage(
        product_id=product_id,
        url=f"{settings.UPLOAD_URL_PREFIX}/{filename}",
        alt=alt,
        sort_order=sort_order,
        is_primary=is_primary
    )
    db.add(image)
    db.commit()
    db.refresh(image)
    suggestion_cache.clear()
    return image


@router.patch("/{product_id}/images/{image_id}", response_model=ProductImageResponse)
def update_image(
    product_id: int,
    image_id: int,
    data: ProductImageUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    image = db.get(ProductImage, image_id)
    if not image or image.product_id != product_id:
        raise HTTPException(status_code=404, detail="Image not found")

    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("is_primary"):
        for img in image.product.images:
            if img.id != image_id:
                img.is_primary = False
                db.add(img)

    for key, value in update_data.items():
        setattr(image, key, value)

    db.add(image)
    db.commit()
    db.refresh(image)
    suggestion_cache.clear()
    return image


@router.delete("/{product_id}/images/{image_id}")
def delete_image(
    product_id: int,
    image_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    image = db.get(ProductImage, image_id)
    if not image or image.product_id != product_id:
        raise HTTPException(status_code=404, detail="Image not found")

    product = image.product
    was_primary = image.is_primary
    remove_image_file(image.url)
    db.delete(image)
    db.flush()

    # Promote the next image so the product keeps a primary one
    if was_primary:
        remaining = sorted((img for img in product.images if img.id != image_id), key=lambda x: x.sort_order)
        if remaining:
            remaining[0].is_primary = True
            db.add(remaining[0])

    db.commit()
    suggestion_cache.clear()
    return {"message": "Image deleted"}


# === Bulk Operations ===

def apply_price_change(price: Decimal, operation: str, value_type: str, value: Decimal) -> Decimal:
    """New price for one bulk price operation; never below zero"""
    if operation == "set":
        new_price = value
    elif value_type == "percent":
        factor = value / 100
        new_price = price * (1 + factor) if operation == "increase" else price * (1 - factor)
    else:
        new_price = price + value if operation == "increase" else price - value
    return quantize(max(new_price, Decimal("0")))


@router.post("/bulk-price")
def bulk_price_update(
    data: BulkPriceUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    if data.operation == "set" and data.value_type == "percent":
        raise HTTPException(status_code=400, detail="A percentage cannot be set as a price")

    stmt = select(Product)
    if data.scope == "category":
        if not data.category_id:
            raise HTTPException(status_code=400, detail="category_id is required")
        stmt = stmt.where(Product.category_id == data.category_id)
    elif data.scope == "product_ids":
        if not data.product_ids:
            raise HTTPException(status_code=400, detail="product_ids is required")
        stmt = stmt.where(col(Product.id).in_(data.product_ids))

    products = db.exec(stmt).all()
    for product in products:
        product.price = apply_price_change(product.price, data.operation, data.value_type, data.value)
        product.updated_at = datetime.utcnow()
        db.add(product)

    log_admin_action(
        db, "PRODUCT_BULK_PRICE",
        f"{data.operation} {data.value} ({data.value_type}) on {len(products)} products", admin.id
    )
    db.commit()
    suggestion_cache.clear()
    return {"message": f"Updated {len(products)} products", "updated": len(products)}


@router.post("/bulk-publish")
def bulk_publish_update(
    data: BulkPublishUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    products = db.exec(select(Product).where(col(Product.id).in_(data.product_ids))).all()

    for product in products:
        product.is_published = data.is_published
        product.updated_at = datetime.utcnow()
        db.add(product)

    state = "Published" if data.is_published else "Unpublished"
    log_admin_action(db, "PRODUCT_BULK_PUBLISH", f"{state} {len(products)} products", admin.id)
    db.commit()
    suggestion_cache.clear()
    return {"message": f"Updated {len(products)} products", "updated": len(products)}


@router.post("/bulk-stock")
def bulk_stock_update(
    data: BulkStockUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    updated = 0
    for item in data.updates:
        product = db.get(Product, item.product_id)
        if product:
            product.stock = item.stock
            product.updated_at = datetime.utcnow()
            db.add(product)
            updated += 1

    log_admin_action(db, "PRODUCT_BULK_STOCK", f"Updated stock for {updated} products", admin.id)
    db.commit()
    suggestion_cache.clear()
    return {"message": f"Updated {updated} products", "updated": updated}


@router.post("/bulk-delete")
def bulk_delete(
    data: BulkDelete,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    products = db.exec(select(Product).where(col(Product.id).in_(data.product_ids))).all()
    for product in products:
        delete_product_rows(db, product)

    log_admin_action(db, "PRODUCT_BULK_DELETE", f"Deleted {len(products)} products", admin.id)
    db.commit()
    suggestion_cache.clear()
    return {"message": f"Deleted {len(products)} products", "deleted": len(products)}
