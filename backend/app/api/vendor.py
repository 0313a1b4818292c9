import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select, func
from typing import List
from datetime import datetime
from app.api.deps import get_db, get_current_user, vendor_required
from app.models.user import User, UserRole
from app.models.product import Product
from app.models.category import Category
from app.models.vendor_application import VendorApplication
from app.schemas.vendor import (
    VendorApplicationCreate, VendorApplicationStatusView, MyApplicationResponse, VendorDashboardResponse
)
from app.schemas.product import ProductResponse, ProductDetailResponse, VendorProductCreate, VendorProductUpdate
from app.services.catalog import build_product_response, build_product_detail_response
from app.services.search import suggestion_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vendor", tags=["vendor"])


# === Application ===

@router.post("/apply", response_model=VendorApplicationStatusView, status_code=201)
def apply(
    data: VendorApplicationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if current_user.role == UserRole.VENDOR:
        raise HTTPException(status_code=400, detail="You are already a vendor")

    existing = db.exec(
        select(VendorApplication).where(VendorApplication.user_id == current_user.id)
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail="You have already submitted an application")

    application = VendorApplication(**data.model_dump(), user_id=current_user.id)
    db.add(application)
    db.commit()
    db.refresh(application)
    logger.info("vendor application %s submitted by user %s", application.id, current_user.id)
    return application


@router.get("/apply", response_model=MyApplicationResponse)
def my_application(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    application = db.exec(
        select(VendorApplication).where(VendorApplication.user_id == current_user.id)
    ).first()
    return MyApplicationResponse(
        has_application=application is not None,
        application=VendorApplicationStatusView.model_validate(application) if application else None
    )


# === Dashboard ===

@router.get("/dashboard", response_model=VendorDashboardResponse)
def dashboard(
    db: Session = Depends(get_db),
    vendor: User = Depends(vendor_required)
):
    def count(*conditions) -> int:
        return db.exec(
            select(func.count(Product.id)).where(Product.vendor_id == vendor.id, *conditions)
        ).one()

    application = vendor.vendor_application
    return VendorDashboardResponse(
        business_name=application.business_name if application else None,
        total_products=count(),
        published_products=count(Product.is_published == True),
        pending_products=count(Product.is_published == False),
        out_of_stock_products=count(Product.stock <= 0),
    )


# === Own products ===

def get_own_product(db: Session, product_id: int, vendor: User) -> Product:
    product = db.get(Product, product_id)
    if not product or product.vendor_id != vendor.id:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/products", response_model=List[ProductResponse])
def list_my_products(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    vendor: User = Depends(vendor_required)
):
    products = db.exec(
        select(Product).where(Product.vendor_id == vendor.id)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .offset(skip).limit(limit)
    ).all()
    return [build_product_response(p) for p in products]


@router.post("/products", response_model=ProductDetailResponse, status_code=201)
def create_my_product(
    data: VendorProductCreate,
    db: Session = Depends(get_db),
    vendor: User = Depends(vendor_required)
):
    """New vendor products wait unpublished for admin review"""
    if db.exec(select(Product).where(Product.slug == data.slug)).first():
        raise HTTPException(status_code=400, detail="Slug already exists")

    if data.sku and db.exec(select(Product).where(Product.sku == data.sku)).first():
        raise HTTPException(status_code=400, detail="SKU already exists")

    if data.category_id is not None and not db.get(Category, data.category_id):
        raise HTTPException(status_code=400, detail="Category not found")

    product = Product(**data.model_dump(), vendor_id=vendor.id, is_published=False, is_featured=False)
    db.add(product)
    db.commit()
    db.refresh(product)
    suggestion_cache.clear()
    logger.info("vendor %s created product %s", vendor.id, product.id)
    return build_product_detail_response(product)


@router.patch("/products/{product_id}", response_model=ProductDetailResponse)
def update_my_product(
    product_id: int,
    data: VendorProductUpdate,
    db: Session = Depends(get_db),
    vendor: User = Depends(vendor_required)
):
    product = get_own_product(db, product_id, vendor)

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("category_id") is not None and not db.get(Category, update_data["category_id"]):
        raise HTTPException(status_code=400, detail="Category not found")

    for key, value in update_data.items():
        setattr(product, key, value)

    product.updated_at = datetime.utcnow()
    db.add(product)
    db.commit()
    db.refresh(product)
    suggestion_cache.clear()
    return build_product_detail_response(product)
