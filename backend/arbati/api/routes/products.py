"""Products: CRUD and the print/PDF/XLSX export."""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, Response
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from arbati.api.deps import get_db, require_permission
from arbati.core.audit import AuditLog
from arbati.core.exceptions import BusinessError
from arbati.core.pagination import PageParams, apply_sort, paginate
from arbati.core.permissions import (
    has_permission, permissions_for_role, INVOICES_VIEW,
    PRICES_EDIT, PRODUCTS_CREATE, PRODUCTS_DELETE, PRODUCTS_EDIT, PRODUCTS_VIEW, REPORTS_EXPORT,
)
from arbati.models.invoice import InvoiceItem
from arbati.models.product import Product
from arbati.models.user import User
from arbati.schemas.export import ProductExportRequest
from arbati.schemas.product import ProductCreate, ProductUpdate
from arbati.services import export_service
from arbati.services.images import load_images
from arbati.services.invoice_service import item_history

logger = logging.getLogger(__name__)

router = APIRouter()

SORT_COLUMNS = {
    "name": Product.name,
    "sku": Product.sku,
    "mufradPrice": Product.mufrad_price,
    "jumlaPrice": Product.jumla_price,
    "stockQuantity": Product.stock_quantity,
    "createdAt": Product.created_at,
}
PRICE_FIELDS = {"purchase_price", "mufrad_price", "jumla_price", "rmb_price"}


def serialize_product(p: Product) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "nameAr": p.name_ar,
        "nameKu": p.name_ku,
        "sku": p.sku,
        "barcode": p.barcode,
        "description": p.description,
        "purchasePrice": float(p.purchase_price or 0),
        "mufradPrice": float(p.mufrad_price or 0),
        "jumlaPrice": float(p.jumla_price or 0),
        "rmbPrice": float(p.rmb_price) if p.rmb_price is not None else None,
        "defaultTaxRate": float(p.default_tax_rate or 0),
        "stockQuantity": p.stock_quantity,
        "lowStockThreshold": p.low_stock_threshold,
        "image": p.image,
        "isActive": p.is_active,
        "categoryId": p.category_id,
        "category": p.category.name if p.category else None,
    }


def _load(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise BusinessError.not_found("Product")
    return product


@router.get("")
def list_products(
    params: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_VIEW)),
):
    q = db.query(Product).options(selectinload(Product.category))
    if params.search:
        term = f"%{params.search}%"
        q = q.filter(or_(
            Product.name.ilike(term),
            Product.name_ar.ilike(term),
            Product.name_ku.ilike(term),
            Product.sku.ilike(term),
            Product.barcode.ilike(term),
        ))
    q = apply_sort(q, params, SORT_COLUMNS, default="createdAt", default_order="desc")
    rows, pagination = paginate(q, params)
    return {"products": [serialize_product(p) for p in rows], "pagination": pagination}


@router.post("", status_code=201)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_CREATE)),
):
    if db.query(Product).filter(Product.sku == data.sku).first():
        raise BusinessError.conflict("SKU already exists")
    product = Product(**data.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)
    AuditLog.log_action("create", "product", product.id, current_user)
    return serialize_product(product)


@router.get("/{product_id}")
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_VIEW)),
):
    return serialize_product(_load(db, product_id))


@router.get("/{product_id}/invoices")
def product_invoices(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(INVOICES_VIEW)),
):
    """Last 100 invoice lines that sold this product."""
    _load(db, product_id)
    return {"invoices": item_history(db, product_id=product_id)}


@router.put("/{product_id}")
def update_product(
    product_id: int,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_EDIT)),
):
    product = _load(db, product_id)
    changes = data.model_dump(exclude_unset=True)
    if PRICE_FIELDS & changes.keys():
        # price changes need their own permission
        if not has_permission(permissions_for_role(current_user.role), PRICES_EDIT):
            raise BusinessError.forbidden(f"user {current_user.id} lacks {PRICES_EDIT}")
    if "sku" in changes and changes["sku"] != product.sku:
        if db.query(Product).filter(Product.sku == changes["sku"]).first():
            raise BusinessError.conflict("SKU already exists")
    for field, value in changes.items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    AuditLog.log_action("update", "product", product.id, current_user, changes=changes)
    return serialize_product(product)


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_DELETE)),
):
    product = _load(db, product_id)
    if db.query(InvoiceItem).filter(InvoiceItem.product_id == product_id).first():
        raise BusinessError.bad_request("Product is used on invoices and cannot be deleted")
    db.delete(product)
    db.commit()
    AuditLog.log_action("delete", "product", product_id, current_user)
    return {"message": "Product deleted"}


@router.post("/export")
async def export_products(
    data: ProductExportRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(REPORTS_EXPORT)),
):
    """
    Export products as print HTML, PDF or XLSX.

    scope "current" exports only the given ids (the rows on screen), in the
    order given; "all" exports the whole catalogue by name.
    """
    try:
        columns = export_service.ColumnSelection(selected=data.columns)
    except ValueError as e:
        raise BusinessError.bad_request(str(e))

    q = db.query(Product).options(selectinload(Product.category))
    if data.scope == "current":
        by_id = {p.id: p for p in q.filter(Product.id.in_(data.ids)).all()}
        products = [by_id[i] for i in data.ids if i in by_id]
    else:
        products = q.order_by(Product.name.asc()).all()

    options = data.options
    try:
        images = {}
        if data.format != "xlsx" and columns.is_selected("image"):
            images = await load_images(p.image for p in products)

        if data.format == "html":
            body = export_service.render_products_html(products, columns, options, images)
            result = HTMLResponse(body, headers={"Content-Security-Policy": export_service.PRINT_PAGE_CSP})
        elif data.format == "pdf":
            body = export_service.render_products_pdf(products, columns, options, images)
            result = Response(body, media_type="application/pdf", headers={
                "Content-Disposition": export_service.content_disposition(export_service.export_filename("products", "pdf")),
            })
        else:
            body = export_service.render_products_xlsx(products, columns, options)
            result = Response(
                body,
                media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                headers={
                    "Content-Disposition": export_service.content_disposition(export_service.export_filename("products", "xlsx")),
                },
            )
    except Exception as e:
        raise BusinessError.server_error(e)

    AuditLog.log_action("export", "product", None, current_user,
                        changes={"format": data.format, "count": len(products)})
    return result
