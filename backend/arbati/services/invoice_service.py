"""Invoice creation and cancellation. Kind and currency are fixed here, at write time."""
import logging
import secrets
import string
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.orm import Session

from arbati.core.exceptions import InvoiceError, RecordNotFound
from arbati.models.customer import Customer
from arbati.models.invoice import Currency, Invoice, InvoiceItem, InvoiceKind, InvoiceStatus
from arbati.models.motorcycle import Motorcycle
from arbati.models.product import Product
from arbati.models.sale import Sale, SaleStatus, SaleType
from arbati.models.user import User
from arbati.schemas.invoice import InvoiceCreate
from arbati.services.invoice_classifier import classify_invoice
from arbati.services.ledger_service import record_balance_change

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
PAID_TOLERANCE = Decimal("0.01")
DUE_DAYS = 30
SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def to_money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def generate_invoice_number(customer_name: Optional[str], when: Optional[datetime] = None) -> str:
    """<customer name>-YYYY-MM-DD-XXXXXX, or INVOICE-YYYY-MM-DD-XXXXXX without a customer."""
    when = when or datetime.utcnow()
    prefix = (customer_name or "").strip() or "INVOICE"
    suffix = "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(6))
    return f"{prefix}-{when.strftime('%Y-%m-%d')}-{suffix}"


def calculate_line_total(quantity: int, unit_price, discount_pct=0, tax_rate_pct=0) -> Decimal:
    """qty x price, less the discount percent, plus the tax percent."""
    base = Decimal(quantity) * Decimal(str(unit_price))
    discounted = base * (1 - Decimal(str(discount_pct or 0)) / 100)
    taxed = discounted * (1 + Decimal(str(tax_rate_pct or 0)) / 100)
    return taxed.quantize(CENT, rounding=ROUND_HALF_UP)


def status_for(total: Decimal, amount_paid: Decimal) -> InvoiceStatus:
    if amount_paid + PAID_TOLERANCE >= total:
        return InvoiceStatus.PAID
    return InvoiceStatus.PARTIALLY_PAID


def apply_customer_debt(db: Session, customer: Customer, amount: Decimal, currency: Currency,
                        description: str, invoice_id: int | None = None, sale_id: int | None = None) -> None:
    """
    Move customer debt by a signed amount in the invoice currency. IQD also writes balance history.

    A reduction never goes below zero: an invoice the customer already paid
    off by separate payments has nothing left to take back. The IQD balance
    moves by the same capped amount as debt_iqd.
    """
    if currency == Currency.USD:
        if amount < 0:
            amount = max(amount, -to_money(customer.debt_usd))
        if amount:
            customer.debt_usd = to_money(customer.debt_usd) + amount
        return
    if amount < 0:
        amount = max(amount, -to_money(customer.debt_iqd), -max(Decimal("0"), to_money(customer.current_balance)))
    if not amount:
        return
    customer.debt_iqd = to_money(customer.debt_iqd) + amount
    record_balance_change(db, customer, amount, description=description, invoice_id=invoice_id, sale_id=sale_id)


def create_invoice(db: Session, data: InvoiceCreate, user: Optional[User] = None) -> Invoice:
    """
    Create a sale and its invoice from line items.

    Wholesale (JUMLA) sales need a customer. Unit prices default to the
    catalog price for the sale type: mufrad/jumla for products, USD
    retail/wholesale for motorcycles. Stock is decremented for every item
    and any unpaid amount is added to the customer's debt. Commits.

    Raises:
        InvoiceError: Wholesale without customer, insufficient stock.
        RecordNotFound: Unknown customer, product or motorcycle.
    """
    customer = None
    if data.customer_id is not None:
        customer = db.query(Customer).filter(Customer.id == data.customer_id).first()
        if not customer:
            raise RecordNotFound("Customer", data.customer_id)
    if data.sale_type == SaleType.JUMLA and customer is None:
        raise InvoiceError("Wholesale sales require a customer")

    wholesale = data.sale_type == SaleType.JUMLA
    items = []
    subtotal = Decimal("0")
    tax_amount = Decimal("0")

    for order, line in enumerate(data.items):
        item = InvoiceItem(quantity=line.quantity, discount=to_money(line.discount), order=order, notes=line.notes)
        if line.product_id is not None:
            product = db.query(Product).filter(Product.id == line.product_id).first()
            if not product:
                raise RecordNotFound("Product", line.product_id)
            if product.stock_quantity < line.quantity:
                raise InvoiceError(f"Insufficient stock for {product.name}")
            catalog_price = product.jumla_price if wholesale else product.mufrad_price
            tax_rate = line.tax_rate if line.tax_rate is not None else product.default_tax_rate
            item.product = product
            item.product_id = product.id
            product.stock_quantity -= line.quantity
        else:
            motorcycle = db.query(Motorcycle).filter(Motorcycle.id == line.motorcycle_id).first()
            if not motorcycle:
                raise RecordNotFound("Motorcycle", line.motorcycle_id)
            if motorcycle.stock_quantity < line.quantity:
                raise InvoiceError(f"Insufficient stock for {motorcycle.name}")
            catalog_price = motorcycle.usd_wholesale_price if wholesale else motorcycle.usd_retail_price
            tax_rate = line.tax_rate or 0
            item.motorcycle = motorcycle
            item.motorcycle_id = motorcycle.id
            item.notes = f"MOTORCYCLE:{motorcycle.id}"
            motorcycle.stock_quantity -= line.quantity
            motorcycle.refresh_status()

        unit_price = line.unit_price if line.unit_price is not None else catalog_price
        item.unit_price = to_money(unit_price)
        item.tax_rate = to_money(tax_rate)
        item.line_total = calculate_line_total(line.quantity, unit_price, line.discount, tax_rate)

        pre_tax = calculate_line_total(line.quantity, unit_price, line.discount, 0)
        subtotal += pre_tax
        tax_amount += item.line_total - pre_tax
        items.append(item)

    discount = to_money(data.discount)
    total = max(Decimal("0"), subtotal + tax_amount - discount)
    amount_paid = min(to_money(data.amount_paid), total)
    amount_due = total - amount_paid

    sale = Sale(
        type=data.sale_type,
        status=SaleStatus.COMPLETED,
        customer_id=customer.id if customer else None,
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount=discount,
        total=total,
        payment_method=data.payment_method.value,
        amount_paid=amount_paid,
        amount_due=amount_due,
        created_by_id=user.id if user else None,
    )
    db.add(sale)
    db.flush()

    now = datetime.utcnow()
    invoice_status = status_for(total, amount_paid)
    invoice = Invoice(
        invoice_number=generate_invoice_number(customer.name if customer else None, now),
        status=invoice_status,
        customer_id=customer.id if customer else None,
        sale_id=sale.id,
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount=discount,
        total=total,
        amount_paid=amount_paid,
        amount_due=amount_due,
        invoice_date=now,
        due_date=now + timedelta(days=DUE_DAYS),
        paid_at=now if invoice_status == InvoiceStatus.PAID else None,
        notes=data.notes,
        created_by_id=user.id if user else None,
    )
    invoice.sale = sale
    invoice.items = items

    classification = classify_invoice(invoice)
    invoice.kind = classification.kind
    invoice.currency = data.currency or classification.currency
    db.add(invoice)
    db.flush()

    if customer is not None and amount_due > 0:
        apply_customer_debt(
            db, customer, amount_due, invoice.currency,
            description=f"Invoice {invoice.invoice_number}",
            invoice_id=invoice.id, sale_id=sale.id,
        )

    db.commit()
    db.refresh(invoice)
    logger.info(f"Invoice {invoice.invoice_number} created: {invoice.kind.value} {invoice.total} {invoice.currency.value}")
    return invoice


def cancel_invoice(db: Session, invoice: Invoice, reason: Optional[str] = None) -> Invoice:
    """Cancel, restock items and take the outstanding amount off the customer's debt. Commits."""
    if invoice.status == InvoiceStatus.CANCELLED:
        raise InvoiceError("Invoice is already cancelled")
    if invoice.kind == InvoiceKind.PAYMENT:
        raise InvoiceError("Payment invoices cannot be cancelled")

    now = datetime.utcnow()
    invoice.status = InvoiceStatus.CANCELLED
    invoice.cancellation_reason = reason
    invoice.cancelled_at = now
    if invoice.sale is not None:
        invoice.sale.status = SaleStatus.CANCELLED
        invoice.sale.cancelled_at = now

    for item in invoice.items:
        if item.product is not None:
            item.product.stock_quantity += item.quantity
        elif item.motorcycle is not None:
            item.motorcycle.stock_quantity += item.quantity
            item.motorcycle.refresh_status()

    outstanding = to_money(invoice.amount_due)
    if invoice.customer is not None and outstanding > 0:
        apply_customer_debt(
            db, invoice.customer, -outstanding, invoice.currency,
            description=f"Cancelled invoice {invoice.invoice_number}",
        )

    db.commit()
    db.refresh(invoice)
    logger.info(f"Invoice {invoice.invoice_number} cancelled")
    return invoice


def serialize_invoice(invoice: Invoice, with_items: bool = False) -> dict:
    data = {
        "id": invoice.id,
        "invoiceNumber": invoice.invoice_number,
        "status": invoice.status.value,
        "type": invoice.kind.slug,
        "currency": invoice.currency.value,
        "customerId": invoice.customer_id,
        "customerName": invoice.customer.name if invoice.customer else None,
        "saleId": invoice.sale_id,
        "saleType": invoice.sale.type.value if invoice.sale else None,
        "subtotal": float(invoice.subtotal or 0),
        "taxAmount": float(invoice.tax_amount or 0),
        "discount": float(invoice.discount or 0),
        "total": float(invoice.total or 0),
        "amountPaid": float(invoice.amount_paid or 0),
        "amountDue": float(invoice.amount_due or 0),
        "invoiceDate": invoice.invoice_date.isoformat() if invoice.invoice_date else None,
        "dueDate": invoice.due_date.isoformat() if invoice.due_date else None,
        "paidAt": invoice.paid_at.isoformat() if invoice.paid_at else None,
        "notes": invoice.notes,
        "cancellationReason": invoice.cancellation_reason,
        "cancelledAt": invoice.cancelled_at.isoformat() if invoice.cancelled_at else None,
    }
    if with_items:
        data["items"] = [
            {
                "id": item.id,
                "productId": item.product_id,
                "motorcycleId": item.motorcycle_id,
                "name": item_name(item),
                "quantity": item.quantity,
                "unitPrice": float(item.unit_price or 0),
                "discount": float(item.discount or 0),
                "taxRate": float(item.tax_rate or 0),
                "lineTotal": float(item.line_total or 0),
                "notes": item.notes,
            }
            for item in invoice.items
        ]
    return data


def item_name(item: InvoiceItem) -> str:
    if item.product is not None:
        return item.product.name
    if item.motorcycle is not None:
        return item.motorcycle.name
    return item.notes or ""


def item_history(db: Session, product_id: int | None = None, motorcycle_id: int | None = None,
                 limit: int = 100) -> list:
    """Invoice lines for one product or motorcycle, newest invoice first."""
    q = db.query(InvoiceItem).join(Invoice, Invoice.id == InvoiceItem.invoice_id)
    if product_id is not None:
        q = q.filter(InvoiceItem.product_id == product_id)
    else:
        q = q.filter(InvoiceItem.motorcycle_id == motorcycle_id)
    rows = q.order_by(Invoice.invoice_date.desc(), InvoiceItem.id.desc()).limit(limit).all()
    return [
        {
            "invoiceId": item.invoice.id,
            "invoiceNumber": item.invoice.invoice_number,
            "status": item.invoice.status.value,
            "invoiceDate": item.invoice.invoice_date.isoformat() if item.invoice.invoice_date else None,
            "customerName": item.invoice.customer.name if item.invoice.customer else None,
            "currency": item.invoice.currency.value,
            "quantity": item.quantity,
            "unitPrice": float(item.unit_price or 0),
            "lineTotal": float(item.line_total or 0),
        }
        for item in rows
    ]
