"""Customer records: creation with opening balances, overdue days, delete guard, serialization."""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from arbati.core.exceptions import CustomerInUse, RecordNotFound
from arbati.models.customer import Customer
from arbati.models.invoice import Invoice
from arbati.models.user import User
from arbati.schemas.customer import CustomerCreate, CustomerUpdate
from arbati.services.invoice_service import to_money
from arbati.services.ledger_service import record_balance_change

logger = logging.getLogger(__name__)


def days_overdue(customer: Customer, now: Optional[datetime] = None) -> int:
    """Whole days since the last payment while the customer owes anything; 0 otherwise."""
    has_debt = to_money(customer.debt_iqd) > 0 or to_money(customer.debt_usd) > 0
    since = customer.last_payment_date or customer.created_at
    if not has_debt or since is None:
        return 0
    now = now or datetime.utcnow()
    return max(0, (now - since).days)


def refresh_days_overdue(db: Session, customers: Iterable[Customer]) -> None:
    changed = False
    for customer in customers:
        days = days_overdue(customer)
        if customer.days_overdue != days:
            customer.days_overdue = days
            changed = True
    if changed:
        db.commit()


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise RecordNotFound("Customer", customer_id)
    return customer


def create_customer(db: Session, data: CustomerCreate, user: Optional[User] = None) -> Customer:
    """Create a customer. An opening IQD debt is written to balance history as an adjustment."""
    fields = data.model_dump(exclude={"attachments", "debt_iqd", "debt_usd"})
    customer = Customer(**fields, created_by_id=user.id if user else None)
    customer.attachments = data.attachments
    customer.debt_iqd = to_money(data.debt_iqd)
    customer.debt_usd = to_money(data.debt_usd)
    customer.current_balance = Decimal("0")
    db.add(customer)
    db.flush()
    if customer.debt_iqd > 0:
        record_balance_change(db, customer, customer.debt_iqd, description="Opening balance")
    db.commit()
    db.refresh(customer)
    return customer


def update_customer(db: Session, customer: Customer, data: CustomerUpdate) -> Customer:
    changes = data.model_dump(exclude_unset=True)
    attachments = changes.pop("attachments", None)
    for field, value in changes.items():
        setattr(customer, field, value)
    if attachments is not None:
        customer.attachments = attachments
    db.commit()
    db.refresh(customer)
    return customer


def delete_customer(db: Session, customer: Customer) -> None:
    invoice_count = db.query(Invoice).filter(Invoice.customer_id == customer.id).count()
    if invoice_count:
        raise CustomerInUse(f"Customer has {invoice_count} invoice(s) and cannot be deleted")
    db.delete(customer)
    db.commit()


def serialize_customer(customer: Customer) -> dict:
    return {
        "id": customer.id,
        "name": customer.name,
        "nameAr": customer.name_ar,
        "sku": customer.sku,
        "type": customer.type.value,
        "phone": customer.phone,
        "email": customer.email,
        "city": customer.city,
        "addressId": customer.address_id,
        "address": customer.address.name if customer.address else None,
        "image": customer.image,
        "attachments": customer.attachments,
        "notes": customer.notes,
        "debtIqd": float(customer.debt_iqd or 0),
        "debtUsd": float(customer.debt_usd or 0),
        "currentBalance": float(customer.current_balance or 0),
        "lastPaymentDate": customer.last_payment_date.isoformat() if customer.last_payment_date else None,
        "daysOverdue": customer.days_overdue or 0,
        "notificationDays": customer.notification_days,
        "notificationType": customer.notification_type,
        "createdAt": customer.created_at.isoformat() if customer.created_at else None,
    }
