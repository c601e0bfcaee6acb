"""Customer payments: a paid JUMLA sale and invoice, the payment row and the balance update in one commit."""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from arbati.core.exceptions import PaymentError, RecordNotFound
from arbati.models.customer import Customer
from arbati.models.invoice import Currency, Invoice, InvoiceItem, InvoiceKind, InvoiceStatus
from arbati.models.payment import CustomerPayment
from arbati.models.sale import Sale, SaleStatus, SaleType
from arbati.models.user import User
from arbati.schemas.invoice import PaymentCreate
from arbati.services.invoice_service import to_money, generate_invoice_number
from arbati.services.ledger_service import record_balance_change

logger = logging.getLogger(__name__)


def validate_payment(customer: Customer, amount_iqd: Decimal, amount_usd: Decimal) -> None:
    if amount_iqd < 0 or amount_usd < 0:
        raise PaymentError("Payment amounts cannot be negative")
    if amount_iqd <= 0 and amount_usd <= 0:
        raise PaymentError("Payment amount must be greater than zero")
    if amount_iqd > to_money(customer.current_balance):
        raise PaymentError(
            f"IQD payment ({amount_iqd:,.0f}) exceeds current balance ({to_money(customer.current_balance):,.0f})"
        )
    if amount_usd > to_money(customer.debt_usd):
        raise PaymentError(
            f"USD payment ({amount_usd:,.2f}) exceeds USD debt ({to_money(customer.debt_usd):,.2f})"
        )


def record_payment(db: Session, customer: Customer, data: PaymentCreate, user: Optional[User] = None) -> CustomerPayment:
    """
    Record a customer payment.

    Creates a JUMLA sale with a PAID invoice holding one "PAYMENT: ..."
    item, the CustomerPayment, and a negative balance-history row linked
    to that invoice. Debts are floored at zero and the overdue counter is
    reset.

    Raises:
        PaymentError: No amount, an amount larger than the matching debt,
            or a linked invoice that belongs to another customer.
        RecordNotFound: Linked invoice does not exist.
    """
    amount_iqd = to_money(data.amount_iqd)
    amount_usd = to_money(data.amount_usd)
    validate_payment(customer, amount_iqd, amount_usd)
    if data.invoice_id is not None:
        linked = db.query(Invoice).filter(Invoice.id == data.invoice_id).first()
        if not linked:
            raise RecordNotFound("Invoice", data.invoice_id)
        if linked.customer_id != customer.id:
            raise PaymentError("Invoice belongs to another customer")

    currency = Currency.USD if amount_usd > 0 else Currency.IQD
    amount = amount_usd if currency == Currency.USD else amount_iqd
    method = data.payment_method.value
    description = data.description or f"Payment - {method}"
    now = datetime.utcnow()

    sale = Sale(
        type=SaleType.JUMLA,
        status=SaleStatus.COMPLETED,
        customer_id=customer.id,
        subtotal=amount,
        total=amount,
        payment_method=method,
        amount_paid=amount,
        amount_due=0,
        created_by_id=user.id if user else None,
    )
    db.add(sale)
    db.flush()

    invoice = Invoice(
        invoice_number=generate_invoice_number(customer.name, now),
        status=InvoiceStatus.PAID,
        kind=InvoiceKind.PAYMENT,
        currency=currency,
        customer_id=customer.id,
        sale_id=sale.id,
        subtotal=amount,
        total=amount,
        amount_paid=amount,
        amount_due=0,
        invoice_date=now,
        due_date=now,
        paid_at=now,
        notes=f"Payment invoice - {method}",
        created_by_id=user.id if user else None,
        items=[
            InvoiceItem(
                quantity=1,
                unit_price=amount,
                line_total=amount,
                notes=f"PAYMENT: {description}",
                order=0,
            )
        ],
    )
    db.add(invoice)
    db.flush()

    payment = CustomerPayment(
        customer_id=customer.id,
        invoice_id=invoice.id if data.invoice_id is None else data.invoice_id,
        amount_iqd=amount_iqd,
        amount_usd=amount_usd,
        payment_method=data.payment_method,
        payment_date=now,
        description=data.description,
        created_by_id=user.id if user else None,
    )
    db.add(payment)

    if amount_iqd > 0:
        record_balance_change(
            db, customer, -amount_iqd,
            description=f"Payment: {description}",
            invoice_id=invoice.id, sale_id=sale.id,
        )
        customer.debt_iqd = max(Decimal("0"), to_money(customer.debt_iqd) - amount_iqd)
    if amount_usd > 0:
        customer.debt_usd = max(Decimal("0"), to_money(customer.debt_usd) - amount_usd)
    if to_money(customer.current_balance) < 0:
        customer.current_balance = Decimal("0")

    customer.last_payment_date = now
    customer.days_overdue = 0

    db.commit()
    db.refresh(payment)
    logger.info(f"Payment recorded for customer {customer.id}: IQD {amount_iqd} USD {amount_usd}")
    return payment


def serialize_payment(payment: CustomerPayment) -> dict:
    return {
        "id": payment.id,
        "customerId": payment.customer_id,
        "invoiceId": payment.invoice_id,
        "amountIqd": float(payment.amount_iqd or 0),
        "amountUsd": float(payment.amount_usd or 0),
        "paymentMethod": payment.payment_method.value,
        "paymentDate": payment.payment_date.isoformat() if payment.payment_date else None,
        "description": payment.description,
    }
