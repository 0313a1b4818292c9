from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlmodel import Session, select, col, func
from typing import Optional, Literal, List
from decimal import Decimal
from math import ceil
from app.api.deps import get_db
from app.models.product import Product
from app.models.category import Category
from app.schemas.product import ProductListResponse, ProductDetailResponse, ProductSuggestion
from app.services.catalog import build_product_response, build_product_detail_response, collect_category_ids
from app.services.search import suggest_products

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("/", response_model=ProductListResponse)
def list_products(
    request: Request,
    q: Optional[str] = Query(None, description="Search query"),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    in_stock: Optional[bool] = Query(None),
    featured: Optional[bool] = Query(None),
    on_sale: Optional[bool] = Query(None),
    sort: Literal["price_asc", "price_desc", "newest", "name"] = Query("newest"),
    page: int = Query(1, ge=1),
    page_size: int = Query(12, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Published products with filters; `category` may repeat"""
    stmt = select(Product).where(Product.is_published == True)

    category_slugs = request.query_params.getlist("category")
    if category_slugs:
        roots = db.exec(select(Category.id).where(col(Category.slug).in_(category_slugs))).all()
        # Unknown slugs filter everything out rather than being ignored
        category_ids = collect_category_ids(db, set(roots))
        stmt = stmt.where(col(Product.category_id).in_(list(category_ids)))

    if q:
        search = f"%{q}%"
        stmt = stmt.where(
            (col(Product.name).ilike(search)) |
            (col(Product.brand).ilike(search)) |
            (col(Product.description).ilike(search))
        )

    if min_price is not None:
        stmt = stmt.where(Product.price >= min_price)
    if max_price is not None:
        stmt = stmt.where(Product.price <= max_price)
    if in_stock is True:
        stmt = stmt.where(Product.stock > 0)
    if featured is True:
        stmt = stmt.where(Product.is_featured == True)
    if on_sale is True:
        stmt = stmt.where(Product.compare_at_price != None, Product.compare_at_price > Product.price)

    if sort == "price_asc":
        stmt = stmt.order_by(Product.price.asc(), Product.id)
    elif sort == "price_desc":
        stmt = stmt.order_by(Product.price.desc(), Product.id)
    elif sort == "name":
        stmt = stmt.order_by(Product.name.asc(), Product.id)
    else:
        stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc())

    # Price bounds of the whole published catalogue, for the price slider
    min_price_db, max_price_db = db.exec(
        select(func.min(Product.price), func.max(Product.price)).where(Product.is_published == True)
    ).one()

    total = db.exec(select(func.count()).select_from(stmt.subquery())).one()
    products = db.exec(stmt.offset((page - 1) * page_size).limit(page_size)).all()

    return ProductListResponse(
        items=[build_product_response(p) for p in products],
        total=total,
        page=page,
        page_size=page_size,
        pages=ceil(total / page_size) if total > 0 else 1,
        min_price=min_price_db,
        max_price=max_price_db
    )


@router.get("/suggestions", response_model=List[ProductSuggestion])
def product_suggestions(
    query: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Search-as-you-type suggestions for the header search box"""
    return suggest_products(db, query)


@router.get("/{slug}", response_model=ProductDetailResponse)
def get_product(slug: str, db: Session = Depends(get_db)):
    product = db.exec(
        select(Product).where(Product.slug == slug, Product.is_published == True)
    ).first()

    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    return build_product_detail_response(product)
