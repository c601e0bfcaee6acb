"""Customers: CRUD, invoices, payments, balance history and the activity statement."""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from sqlalchemy import or_
from sqlalchemy.orm import Session, sessionmaker

from arbati.api.deps import get_db, get_session_factory, require_permission
from arbati.core.audit import AuditLog
from arbati.core.exceptions import BusinessError, CustomerInUse, PaymentError, RecordNotFound
from arbati.core.i18n import get_locale
from arbati.core.pagination import PageParams, apply_sort, paginate
from arbati.core.permissions import (
    CUSTOMERS_CREATE, CUSTOMERS_DELETE, CUSTOMERS_EDIT, CUSTOMERS_VIEW,
    INVOICES_VIEW, SALES_CREATE,
)
from arbati.models.customer import Customer
from arbati.models.invoice import Invoice
from arbati.models.ledger import CustomerBalance
from arbati.models.payment import CustomerPayment
from arbati.models.user import User
from arbati.schemas.customer import CustomerCreate, CustomerUpdate
from arbati.schemas.export import ExportOptions
from arbati.schemas.invoice import PaymentCreate
from arbati.services import customer_service
from arbati.services.export_service import PRINT_PAGE_CSP, render_statement_html
from arbati.services.invoice_service import serialize_invoice
from arbati.services.ledger_service import build_customer_activity, make_default_loaders
from arbati.services.payment_service import record_payment, serialize_payment

router = APIRouter()

SORT_COLUMNS = {
    "name": Customer.name,
    "sku": Customer.sku,
    "createdAt": Customer.created_at,
    "debtIqd": Customer.debt_iqd,
    "debtUsd": Customer.debt_usd,
    "daysOverdue": Customer.days_overdue,
}
INVOICE_SORT_COLUMNS = {
    "invoiceDate": Invoice.invoice_date,
    "total": Invoice.total,
    "invoiceNumber": Invoice.invoice_number,
}


def _load(db: Session, customer_id: int) -> Customer:
    try:
        return customer_service.get_customer(db, customer_id)
    except RecordNotFound as e:
        raise BusinessError.from_domain(e)


@router.get("")
def list_customers(
    params: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(CUSTOMERS_VIEW)),
):
    q = db.query(Customer)
    if params.search:
        term = f"%{params.search}%"
        q = q.filter(or_(
            Customer.name.ilike(term),
            Customer.name_ar.ilike(term),
            Customer.sku.ilike(term),
            Customer.phone.ilike(term),
        ))
    q = apply_sort(q, params, SORT_COLUMNS, default="createdAt", default_order="desc")
    rows, pagination = paginate(q, params)
    customer_service.refresh_days_overdue(db, rows)
    return {"customers": [customer_service.serialize_customer(c) for c in rows], "pagination": pagination}


@router.post("", status_code=201)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(CUSTOMERS_CREATE)),
):
    if db.query(Customer).filter(Customer.sku == data.sku).first():
        raise BusinessError.conflict("Customer code already exists")
    customer = customer_service.create_customer(db, data, current_user)
    AuditLog.log_action("create", "customer", customer.id, current_user)
    return customer_service.serialize_customer(customer)


@router.get("/{customer_id}")
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(CUSTOMERS_VIEW)),
):
    customer = _load(db, customer_id)
    customer_service.refresh_days_overdue(db, [customer])
    return customer_service.serialize_customer(customer)


@router.put("/{customer_id}")
def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(CUSTOMERS_EDIT)),
):
    customer = _load(db, customer_id)
    if data.sku and data.sku != customer.sku:
        if db.query(Customer).filter(Customer.sku == data.sku).first():
            raise BusinessError.conflict("Customer code already exists")
    customer = customer_service.update_customer(db, customer, data)
    AuditLog.log_action("update", "customer", customer.id, current_user,
                        changes=data.model_dump(exclude_unset=True))
    return customer_service.serialize_customer(customer)


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(CUSTOMERS_DELETE)),
):
    customer = _load(db, customer_id)
    try:
        customer_service.delete_customer(db, customer)
    except CustomerInUse as e:
        raise BusinessError.from_domain(e)
    AuditLog.log_action("delete", "customer", customer_id, current_user)
    return {"message": "Customer deleted"}


@router.get("/{customer_id}/invoices")
def customer_invoices(
    customer_id: int,
    params: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(INVOICES_VIEW)),
):
    _load(db, customer_id)
    q = db.query(Invoice).filter(Invoice.customer_id == customer_id)
    q = apply_sort(q, params, INVOICE_SORT_COLUMNS, default="invoiceDate", default_order="desc")
    rows, pagination = paginate(q, params)
    return {"invoices": [serialize_invoice(inv, with_items=True) for inv in rows], "pagination": pagination}


@router.get("/{customer_id}/payments")
def customer_payments(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(CUSTOMERS_VIEW)),
):
    _load(db, customer_id)
    rows = (
        db.query(CustomerPayment)
        .filter(CustomerPayment.customer_id == customer_id)
        .order_by(CustomerPayment.payment_date.desc())
        .all()
    )
    return {"payments": [serialize_payment(p) for p in rows]}


@router.post("/{customer_id}/payments", status_code=201)
def create_payment(
    customer_id: int,
    data: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(SALES_CREATE)),
):
    customer = _load(db, customer_id)
    try:
        payment = record_payment(db, customer, data, current_user)
    except (PaymentError, RecordNotFound) as e:
        db.rollback()
        raise BusinessError.from_domain(e)
    AuditLog.log_action("payment", "customer", customer_id, current_user, changes={
        "amount_iqd": data.amount_iqd, "amount_usd": data.amount_usd, "invoice_id": payment.invoice_id,
    })
    db.refresh(customer)
    return {"payment": serialize_payment(payment), "customer": customer_service.serialize_customer(customer)}


@router.get("/{customer_id}/balance")
def customer_balance(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(CUSTOMERS_VIEW)),
):
    customer = _load(db, customer_id)
    rows = (
        db.query(CustomerBalance)
        .filter(CustomerBalance.customer_id == customer_id)
        .order_by(CustomerBalance.created_at.desc(), CustomerBalance.id.desc())
        .all()
    )
    invoice_numbers = dict(
        db.query(Invoice.id, Invoice.invoice_number)
        .filter(Invoice.id.in_([r.invoice_id for r in rows if r.invoice_id]))
        .all()
    )
    return {
        "currentBalance": float(customer.current_balance or 0),
        "debtIqd": float(customer.debt_iqd or 0),
        "debtUsd": float(customer.debt_usd or 0),
        "history": [
            {
                "id": r.id,
                "type": r.entry_type,
                "amount": float(r.amount),
                "balance": float(r.balance),
                "description": r.description,
                "date": r.created_at.isoformat() if r.created_at else None,
                "reference": invoice_numbers.get(r.invoice_id),
            }
            for r in rows
        ],
    }


@router.get("/{customer_id}/activity")
async def customer_activity(
    customer_id: int,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    current_user: User = Depends(require_permission(CUSTOMERS_VIEW)),
):
    """Invoices, payments and balance adjustments merged newest first."""
    customer = _load(db, customer_id)
    activity = await build_customer_activity(
        customer_id,
        make_default_loaders(session_factory),
        customer_name=customer.name,
        customer_sku=customer.sku,
    )
    return {"activities": [entry.to_dict() for entry in activity]}


@router.get("/{customer_id}/statement/print", response_class=HTMLResponse)
async def print_statement(
    customer_id: int,
    locale: str | None = Query(None),
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    current_user: User = Depends(require_permission(CUSTOMERS_VIEW)),
):
    customer = _load(db, customer_id)
    activity = await build_customer_activity(
        customer_id,
        make_default_loaders(session_factory),
        customer_name=customer.name,
        customer_sku=customer.sku,
    )
    options = ExportOptions(language=get_locale(locale), orientation="portrait")
    return HTMLResponse(
        render_statement_html(customer, activity, options),
        headers={"Content-Security-Policy": PRINT_PAGE_CSP},
    )
