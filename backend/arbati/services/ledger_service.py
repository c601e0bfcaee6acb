"""
Customer balance history and the merged activity feed.

record_balance_change appends balance-history rows as invoices and payments
move a customer's IQD balance. build_customer_activity rebuilds the
customer's full history from invoices, payments and balance history,
fetched concurrently.
"""
import asyncio
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload, sessionmaker

from arbati.db.session import SessionLocal
from arbati.models.customer import Customer
from arbati.models.invoice import Invoice, InvoiceKind
from arbati.models.ledger import CustomerBalance
from arbati.models.payment import CustomerPayment
from arbati.services.invoice_classifier import classify_invoice

logger = logging.getLogger(__name__)

Loader = Callable[[int], List[dict]]


def record_balance_change(
    db: Session,
    customer: Customer,
    amount: Decimal | float,
    description: str | None = None,
    invoice_id: int | None = None,
    sale_id: int | None = None,
    auto_commit: bool = False,
) -> CustomerBalance:
    """Move the customer's IQD balance by amount and append a history row. Caller commits by default."""
    amount = Decimal(str(amount))
    customer.current_balance = Decimal(str(customer.current_balance or 0)) + amount
    entry = CustomerBalance(
        customer_id=customer.id,
        invoice_id=invoice_id,
        sale_id=sale_id,
        amount=amount,
        balance=customer.current_balance,
        description=description,
    )
    db.add(entry)
    if auto_commit:
        db.commit()
        db.refresh(entry)
    else:
        db.flush()
    return entry


@dataclass
class ActivityEntry:
    id: str
    type: str  # invoice, payment, balance
    date: datetime
    amount: float
    currency: str
    description: str
    reference: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["date"] = self.date.isoformat() if self.date else None
        return data


def _get(row: Any, name: str, default: Any = None) -> Any:
    if isinstance(row, dict):
        return row.get(name, default)
    return getattr(row, name, default)


def _naive(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.min
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _currency_of(invoice: Any) -> str:
    currency = _get(invoice, "currency")
    kind = _get(invoice, "kind")
    if currency and kind not in (None, InvoiceKind.UNKNOWN, InvoiceKind.UNKNOWN.value):
        return getattr(currency, "value", currency)
    return classify_invoice(invoice).currency.value


def merge_activity(
    invoices: List[Any],
    payments: List[Any],
    balances: List[Any],
    customer_name: str = "",
    customer_sku: str = "",
) -> List[ActivityEntry]:
    """
    Merge the three sources into one list, newest first.

    Balance rows already represented by an invoice or payment are skipped,
    so the result holds every invoice, every payment and the remaining
    balance rows.
    """
    entries: List[ActivityEntry] = []

    for inv in invoices:
        entries.append(ActivityEntry(
            id=f"invoice-{_get(inv, 'id')}",
            type="invoice",
            date=_naive(_get(inv, "invoice_date") or _get(inv, "created_at")),
            amount=abs(float(_get(inv, "total") or 0)),
            currency=_currency_of(inv),
            description=f"Invoice for {customer_name} ({customer_sku})",
            reference=_get(inv, "invoice_number"),
        ))

    for pay in payments:
        amount_usd = float(_get(pay, "amount_usd") or 0)
        amount_iqd = float(_get(pay, "amount_iqd") or 0)
        is_usd = amount_usd > 0
        entries.append(ActivityEntry(
            id=f"payment-{_get(pay, 'id')}",
            type="payment",
            date=_naive(_get(pay, "payment_date") or _get(pay, "created_at")),
            amount=-abs(amount_usd if is_usd else amount_iqd),
            currency="USD" if is_usd else "IQD",
            description=_get(pay, "description") or "Payment",
            reference=str(_get(pay, "id")),
        ))

    for row in balances:
        entry_type = _get(row, "entry_type") or _get(row, "type")
        if entry_type in ("invoice", "payment"):
            continue
        entries.append(ActivityEntry(
            id=f"balance-{_get(row, 'id')}",
            type="balance",
            date=_naive(_get(row, "created_at")),
            amount=float(_get(row, "amount") or 0),
            currency="IQD",
            description=_get(row, "description") or "Balance adjustment",
        ))

    # sorted() is stable, so ties keep source order
    return sorted(entries, key=lambda e: e.date, reverse=True)


def _invoice_snapshot(inv: Invoice) -> dict:
    snapshot = {
        "id": inv.id,
        "invoice_number": inv.invoice_number,
        "invoice_date": inv.invoice_date,
        "created_at": inv.created_at,
        "total": inv.total,
        "kind": inv.kind,
        "currency": inv.currency,
    }
    if inv.kind in (None, InvoiceKind.UNKNOWN):
        # Not backfilled yet: classify while relationships can still load
        classification = classify_invoice(inv)
        snapshot["kind"] = classification.kind
        snapshot["currency"] = classification.currency
    return snapshot


def make_default_loaders(session_factory: sessionmaker = SessionLocal) -> Dict[str, Loader]:
    """Loaders for the three sources. Each opens its own session since they run in worker threads."""

    def load_invoices(customer_id: int) -> List[dict]:
        db = session_factory()
        try:
            rows = (
                db.query(Invoice)
                .options(selectinload(Invoice.items), selectinload(Invoice.sale))
                .filter(Invoice.customer_id == customer_id)
                .all()
            )
            return [_invoice_snapshot(inv) for inv in rows]
        finally:
            db.close()

    def load_payments(customer_id: int) -> List[dict]:
        db = session_factory()
        try:
            rows = db.query(CustomerPayment).filter(CustomerPayment.customer_id == customer_id).all()
            return [
                {
                    "id": p.id,
                    "amount_iqd": p.amount_iqd,
                    "amount_usd": p.amount_usd,
                    "payment_date": p.payment_date,
                    "created_at": p.created_at,
                    "description": p.description,
                }
                for p in rows
            ]
        finally:
            db.close()

    def load_balances(customer_id: int) -> List[dict]:
        db = session_factory()
        try:
            rows = db.query(CustomerBalance).filter(CustomerBalance.customer_id == customer_id).all()
            return [
                {
                    "id": b.id,
                    "amount": b.amount,
                    "entry_type": b.entry_type,
                    "description": b.description,
                    "created_at": b.created_at,
                }
                for b in rows
            ]
        finally:
            db.close()

    return {"invoices": load_invoices, "payments": load_payments, "balances": load_balances}


async def build_customer_activity(
    customer_id: int,
    loaders: Dict[str, Loader],
    customer_name: str = "",
    customer_sku: str = "",
) -> List[ActivityEntry]:
    """Run the loaders concurrently and merge. A failing loader contributes an empty list."""
    names = ("invoices", "payments", "balances")
    results = await asyncio.gather(
        *(asyncio.to_thread(loaders[name], customer_id) for name in names),
        return_exceptions=True,
    )

    sources = {}
    for name, result in zip(names, results):
        if isinstance(result, Exception):
            logger.error(f"Failed to load {name} for customer {customer_id}: {result}")
            sources[name] = []
        else:
            sources[name] = result

    return merge_activity(
        sources["invoices"],
        sources["payments"],
        sources["balances"],
        customer_name=customer_name,
        customer_sku=customer_sku,
    )
