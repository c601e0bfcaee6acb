"""Motorcycles: USD-priced stock, CRUD only."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from arbati.api.deps import get_db, require_permission
from arbati.core.audit import AuditLog
from arbati.core.exceptions import BusinessError
from arbati.core.pagination import PageParams, apply_sort, paginate
from arbati.core.permissions import INVOICES_VIEW, PRODUCTS_CREATE, PRODUCTS_DELETE, PRODUCTS_EDIT, PRODUCTS_VIEW
from arbati.models.invoice import InvoiceItem
from arbati.models.motorcycle import Motorcycle, MotorcycleStatus
from arbati.models.user import User
from arbati.schemas.product import MotorcycleCreate, MotorcycleUpdate
from arbati.services.invoice_service import item_history

router = APIRouter()

SORT_COLUMNS = {
    "name": Motorcycle.name,
    "sku": Motorcycle.sku,
    "usdRetailPrice": Motorcycle.usd_retail_price,
    "usdWholesalePrice": Motorcycle.usd_wholesale_price,
    "stockQuantity": Motorcycle.stock_quantity,
    "createdAt": Motorcycle.created_at,
}


def serialize_motorcycle(m: Motorcycle) -> dict:
    return {
        "id": m.id,
        "name": m.name,
        "sku": m.sku,
        "usdRetailPrice": float(m.usd_retail_price or 0),
        "usdWholesalePrice": float(m.usd_wholesale_price or 0),
        "rmbPrice": float(m.rmb_price) if m.rmb_price is not None else None,
        "stockQuantity": m.stock_quantity,
        "lowStockThreshold": m.low_stock_threshold,
        "status": m.status.value,
        "image": m.image,
        "notes": m.notes,
    }


def _load(db: Session, motorcycle_id: int) -> Motorcycle:
    motorcycle = db.query(Motorcycle).filter(Motorcycle.id == motorcycle_id).first()
    if not motorcycle:
        raise BusinessError.not_found("Motorcycle")
    return motorcycle


@router.get("")
def list_motorcycles(
    params: PageParams = Depends(),
    status: MotorcycleStatus | None = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_VIEW)),
):
    q = db.query(Motorcycle)
    if params.search:
        term = f"%{params.search}%"
        q = q.filter(or_(Motorcycle.name.ilike(term), Motorcycle.sku.ilike(term)))
    if status:
        q = q.filter(Motorcycle.status == status)
    q = apply_sort(q, params, SORT_COLUMNS, default="createdAt", default_order="desc")
    rows, pagination = paginate(q, params)
    return {"motorcycles": [serialize_motorcycle(m) for m in rows], "pagination": pagination}


@router.post("", status_code=201)
def create_motorcycle(
    data: MotorcycleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_CREATE)),
):
    if db.query(Motorcycle).filter(Motorcycle.sku == data.sku).first():
        raise BusinessError.conflict("SKU already exists")
    motorcycle = Motorcycle(**data.model_dump(exclude={"status"}))
    if data.status:
        motorcycle.status = data.status
    else:
        motorcycle.refresh_status()
    db.add(motorcycle)
    db.commit()
    db.refresh(motorcycle)
    AuditLog.log_action("create", "motorcycle", motorcycle.id, current_user)
    return serialize_motorcycle(motorcycle)


@router.get("/{motorcycle_id}")
def get_motorcycle(
    motorcycle_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_VIEW)),
):
    return serialize_motorcycle(_load(db, motorcycle_id))


@router.get("/{motorcycle_id}/invoices")
def motorcycle_invoices(
    motorcycle_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(INVOICES_VIEW)),
):
    """Last 100 invoice lines that sold this motorcycle."""
    _load(db, motorcycle_id)
    return {"invoices": item_history(db, motorcycle_id=motorcycle_id)}


@router.put("/{motorcycle_id}")
def update_motorcycle(
    motorcycle_id: int,
    data: MotorcycleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_EDIT)),
):
    motorcycle = _load(db, motorcycle_id)
    changes = data.model_dump(exclude_unset=True)
    if "sku" in changes and changes["sku"] != motorcycle.sku:
        if db.query(Motorcycle).filter(Motorcycle.sku == changes["sku"]).first():
            raise BusinessError.conflict("SKU already exists")
    for field, value in changes.items():
        setattr(motorcycle, field, value)
    if "stock_quantity" in changes and "status" not in changes:
        motorcycle.refresh_status()
    db.commit()
    db.refresh(motorcycle)
    AuditLog.log_action("update", "motorcycle", motorcycle.id, current_user, changes=changes)
    return serialize_motorcycle(motorcycle)


@router.delete("/{motorcycle_id}")
def delete_motorcycle(
    motorcycle_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_DELETE)),
):
    motorcycle = _load(db, motorcycle_id)
    if db.query(InvoiceItem).filter(InvoiceItem.motorcycle_id == motorcycle_id).first():
        raise BusinessError.bad_request("Motorcycle is used on invoices and cannot be deleted")
    db.delete(motorcycle)
    db.commit()
    AuditLog.log_action("delete", "motorcycle", motorcycle_id, current_user)
    return {"message": "Motorcycle deleted"}
