"""Invoices: list with status/type filters, create, cancel and the PDF download."""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from arbati.api.deps import get_db, require_permission
from arbati.core.audit import AuditLog
from arbati.core.exceptions import BusinessError, InvoiceError, RecordNotFound
from arbati.core.pagination import PageParams, apply_sort, paginate
from arbati.core.permissions import INVOICES_CANCEL, INVOICES_CREATE, INVOICES_VIEW
from arbati.models.customer import Customer
from arbati.models.invoice import Invoice, InvoiceKind, InvoiceStatus
from arbati.models.user import User
from arbati.schemas.invoice import InvoiceCancel, InvoiceCreate
from arbati.services.export_service import content_disposition, export_filename
from arbati.services.invoice_service import cancel_invoice, create_invoice, serialize_invoice
from arbati.services.pdf_service import generate_invoice_pdf

router = APIRouter()

SORT_COLUMNS = {
    "invoiceDate": Invoice.invoice_date,
    "invoiceNumber": Invoice.invoice_number,
    "total": Invoice.total,
    "amountDue": Invoice.amount_due,
    "status": Invoice.status,
}


def _load(db: Session, invoice_id: int) -> Invoice:
    invoice = (
        db.query(Invoice)
        .options(selectinload(Invoice.items), selectinload(Invoice.customer), selectinload(Invoice.sale))
        .filter(Invoice.id == invoice_id)
        .first()
    )
    if not invoice:
        raise BusinessError.not_found("Invoice")
    return invoice


@router.get("")
def list_invoices(
    params: PageParams = Depends(),
    status: InvoiceStatus | None = Query(None),
    type: str | None = Query(None, description="e.g. wholesale-motorcycle, retail-product, payment"),
    customer_id: int | None = Query(None, alias="customerId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(INVOICES_VIEW)),
):
    """Filtering by type reads the stored invoice kind."""
    q = db.query(Invoice).options(selectinload(Invoice.customer), selectinload(Invoice.sale))
    if status:
        q = q.filter(Invoice.status == status)
    if type:
        try:
            kind = InvoiceKind.from_slug(type)
        except ValueError:
            raise BusinessError.bad_request(f"Unknown invoice type: {type}")
        q = q.filter(Invoice.kind == kind)
    if customer_id is not None:
        q = q.filter(Invoice.customer_id == customer_id)
    if params.search:
        term = f"%{params.search}%"
        q = q.outerjoin(Customer, Invoice.customer_id == Customer.id).filter(or_(
            Invoice.invoice_number.ilike(term),
            Customer.name.ilike(term),
            Customer.sku.ilike(term),
        ))
    q = apply_sort(q, params, SORT_COLUMNS, default="invoiceDate", default_order="desc")
    rows, pagination = paginate(q, params)
    return {"invoices": [serialize_invoice(inv) for inv in rows], "pagination": pagination}


@router.post("", status_code=201)
def create(
    data: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(INVOICES_CREATE)),
):
    try:
        invoice = create_invoice(db, data, current_user)
    except (InvoiceError, RecordNotFound) as e:
        db.rollback()
        raise BusinessError.from_domain(e)
    AuditLog.log_action("create", "invoice", invoice.id, current_user, changes={
        "invoice_number": invoice.invoice_number, "total": invoice.total, "currency": invoice.currency.value,
    })
    return serialize_invoice(invoice, with_items=True)


@router.get("/{invoice_id}")
def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(INVOICES_VIEW)),
):
    return serialize_invoice(_load(db, invoice_id), with_items=True)


@router.post("/{invoice_id}/cancel")
def cancel(
    invoice_id: int,
    data: InvoiceCancel | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(INVOICES_CANCEL)),
):
    invoice = _load(db, invoice_id)
    reason = data.reason if data else None
    try:
        invoice = cancel_invoice(db, invoice, reason)
    except InvoiceError as e:
        db.rollback()
        raise BusinessError.from_domain(e)
    AuditLog.log_action("cancel", "invoice", invoice.id, current_user, changes={"reason": reason})
    return serialize_invoice(invoice, with_items=True)


@router.get("/{invoice_id}/pdf")
def download_pdf(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(INVOICES_VIEW)),
):
    invoice = _load(db, invoice_id)
    try:
        buffer = generate_invoice_pdf(invoice)
    except Exception as e:
        raise BusinessError.server_error(e)
    filename = export_filename(f"invoice-{invoice.invoice_number}", "pdf")
    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": content_disposition(filename)},
    )
