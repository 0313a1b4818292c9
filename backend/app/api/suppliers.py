from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select, col, func
from typing import Optional, List
from datetime import datetime
from app.api.deps import get_db, admin_required
from app.models.user import User
from app.models.supplier import Supplier, SupplierStatus
from app.models.product import Product
from app.schemas.supplier import (
    SupplierResponse, SupplierDetailResponse, SupplierProductSummary, SupplierWrite,
    SupplierStatusUpdate, ConnectionTestRequest, ConnectionTestResponse
)
from app.services.audit import log_admin_action
from app.services.suppliers import (
    ConnectionConfigError, ConnectionSettings, SupplierConnectionTester,
    get_connection_tester, mask_api_key
)

router = APIRouter(prefix="/api/admin/suppliers", tags=["admin-suppliers"])

RECENT_PRODUCTS_LIMIT = 10


def build_supplier_response(supplier: Supplier, products_count: int) -> dict:
    data = supplier.model_dump()
    data["api_key"] = mask_api_key(supplier.api_key)
    data["products_count"] = products_count
    return data


def count_products(db: Session, supplier_id: int) -> int:
    return db.exec(select(func.count(Product.id)).where(Product.supplier_id == supplier_id)).one()


def get_supplier_or_404(db: Session, supplier_id: int) -> Supplier:
    supplier = db.get(Supplier, supplier_id)
    if not supplier:
        raise HTTPException(status_code=404, detail="Supplier not found")
    return supplier


@router.get("/", response_model=List[SupplierResponse])
def list_suppliers(
    q: Optional[str] = Query(None),
    status: Optional[SupplierStatus] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    stmt = select(Supplier)
    if q:
        stmt = stmt.where(col(Supplier.name).ilike(f"%{q}%"))
    if status:
        stmt = stmt.where(Supplier.status == status)
    suppliers = db.exec(stmt.order_by(Supplier.name)).all()

    counts = dict(db.exec(
        select(Product.supplier_id, func.count(Product.id))
        .where(Product.supplier_id != None)
        .group_by(Product.supplier_id)
    ).all())

    return [build_supplier_response(s, counts.get(s.id, 0)) for s in suppliers]


@router.post("/test-connection", response_model=ConnectionTestResponse)
async def test_connection(
    data: ConnectionTestRequest,
    tester: SupplierConnectionTester = Depends(get_connection_tester),
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    """Probe a supplier API with unsaved credentials"""
    conn = ConnectionSettings(**data.model_dump())
    try:
        result = await tester.test(conn)
    except ConnectionConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    outcome = "succeeded" if result["success"] else "failed"
    log_admin_action(db, "SUPPLIER_API_TEST", f"Connection test {outcome} for {conn.api_endpoint}", admin.id)
    db.commit()
    return result


@router.get("/{supplier_id}", response_model=SupplierDetailResponse)
def get_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(admin_required)
):
    supplier = get_supplier_or_404(db, supplier_id)
    recent = db.exec(
        select(Product)
        .where(Product.supplier_id == supplier_id)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .limit(RECENT_PRODUCTS_LIMIT)
    ).all()

    data = build_supplier_response(supplier, count_products(db, supplier_id))
    data["recent_products"] = [
        SupplierProductSummary(id=p.id, name=p.name, stock=p.stock) for p in recent
    ]
    return data


@router.post("/", response_model=SupplierResponse, status_code=201)
def create_supplier(
    data: SupplierWrite,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    values = data.model_dump()
    if values["status"] is None:
        values.pop("status")
    supplier = Supplier(**values)
    db.add(supplier)
    log_admin_action(db, "SUPPLIER_CREATE", f"Created supplier {supplier.name}", admin.id)
    db.commit()
    db.refresh(supplier)
    return build_supplier_response(supplier, 0)


@router.put("/{supplier_id}", response_model=SupplierResponse)
def update_supplier(
    supplier_id: int,
    data: SupplierWrite,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    supplier = get_supplier_or_404(db, supplier_id)

    update_data = data.model_dump(exclude_unset=True)
    # The masked key coming back from the form means "unchanged"
    if update_data.get("api_key") == mask_api_key("x"):
        update_data.pop("api_key")
    if update_data.get("status", supplier.status) is None:
        update_data.pop("status")

    for key, value in update_data.items():
        setattr(supplier, key, value)

    supplier.updated_at = datetime.utcnow()
    db.add(supplier)
    log_admin_action(db, "SUPPLIER_UPDATE", f"Updated supplier {supplier.name}", admin.id)
    db.commit()
    db.refresh(supplier)
    return build_supplier_response(supplier, count_products(db, supplier_id))


@router.patch("/{supplier_id}/status", response_model=SupplierResponse)
def update_supplier_status(
    supplier_id: int,
    data: SupplierStatusUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    supplier = get_supplier_or_404(db, supplier_id)
    supplier.status = data.status
    supplier.updated_at = datetime.utcnow()
    db.add(supplier)
    log_admin_action(db, "SUPPLIER_STATUS", f"Supplier {supplier.name} -> {data.status.value}", admin.id)
    db.commit()
    db.refresh(supplier)
    return build_supplier_response(supplier, count_products(db, supplier_id))


@router.delete("/{supplier_id}")
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required)
):
    """Delete a supplier; its products stay, remembering where they came from"""
    supplier = get_supplier_or_404(db, supplier_id)

    products = db.exec(select(Product).where(Product.supplier_id == supplier_id)).all()
    for product in products:
        product.supplier_id = None
        product.supplier_source = supplier.name
        product.updated_at = datetime.utcnow()
        db.add(product)

    name = supplier.name
    db.delete(supplier)
    log_admin_action(
        db, "SUPPLIER_DELETE", f"Deleted supplier {name}, detached {len(products)} products", admin.id
    )
    db.commit()
    return {"message": "Supplier deleted", "detached_products": len(products)}
