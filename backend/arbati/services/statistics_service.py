"""
Dashboard figures, the sales chart and the notification bell.

Revenue is summed per stored invoice currency, so IQD and USD are never
added together. Payment invoices record money collected against earlier
sales and are excluded from revenue and customer rankings.
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from arbati.models.customer import Customer
from arbati.models.invoice import Currency, Invoice, InvoiceItem, InvoiceKind, InvoiceStatus
from arbati.models.motorcycle import Motorcycle, MotorcycleStatus
from arbati.models.payment import CustomerPayment
from arbati.models.product import Product
from arbati.services.customer_service import days_overdue

REVENUE_STATUSES = (InvoiceStatus.PAID, InvoiceStatus.PARTIALLY_PAID)
CHART_RANGES = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_NOTIFICATION_DAYS = 1
NOTIFICATION_STOCK_LIMIT = 20


def growth_rate(current: int, previous: int) -> float:
    """Percent change vs the previous period, 1 decimal. 100 when starting from zero."""
    if previous > 0:
        rate = (current - previous) / previous * 100
    else:
        rate = 100.0 if current > 0 else 0.0
    return round(rate, 1)


def dashboard(db: Session, now: datetime | None = None) -> dict:
    now = now or datetime.utcnow()
    thirty_days_ago = now - timedelta(days=30)
    sixty_days_ago = now - timedelta(days=60)

    revenue_rows = (
        db.query(Invoice.currency, func.sum(Invoice.total))
        .filter(Invoice.status.in_(REVENUE_STATUSES), Invoice.kind != InvoiceKind.PAYMENT)
        .group_by(Invoice.currency)
        .all()
    )
    revenue = {currency: Decimal(str(total or 0)) for currency, total in revenue_rows}

    new_customers = db.query(func.count(Customer.id)).filter(Customer.created_at >= thirty_days_ago).scalar() or 0
    previous_customers = db.query(func.count(Customer.id)).filter(
        Customer.created_at >= sixty_days_ago,
        Customer.created_at < thirty_days_ago,
    ).scalar() or 0
    active_accounts = db.query(func.count(func.distinct(Invoice.customer_id))).filter(
        Invoice.customer_id.isnot(None)
    ).scalar() or 0

    return {
        "totalRevenueIqd": float(revenue.get(Currency.IQD, 0)),
        "totalRevenueUsd": float(revenue.get(Currency.USD, 0)),
        "newCustomers": new_customers,
        "totalCustomers": db.query(func.count(Customer.id)).scalar() or 0,
        "activeAccounts": active_accounts,
        "growthRate": growth_rate(new_customers, previous_customers),
        "totalProducts": db.query(func.count(Product.id)).scalar() or 0,
        "totalMotorcycles": db.query(func.count(Motorcycle.id)).scalar() or 0,
        "totalInvoices": db.query(func.count(Invoice.id)).filter(
            Invoice.status != InvoiceStatus.CANCELLED
        ).scalar() or 0,
    }


def low_stock(db: Session) -> dict:
    products = (
        db.query(Product)
        .filter(Product.stock_quantity <= Product.low_stock_threshold)
        .order_by(Product.stock_quantity.asc())
        .all()
    )
    motorcycles = (
        db.query(Motorcycle)
        .filter(Motorcycle.stock_quantity <= Motorcycle.low_stock_threshold)
        .order_by(Motorcycle.stock_quantity.asc())
        .all()
    )
    return {
        "products": [
            {"id": p.id, "name": p.name, "sku": p.sku, "stockQuantity": p.stock_quantity,
             "lowStockThreshold": p.low_stock_threshold}
            for p in products
        ],
        "motorcycles": [
            {"id": m.id, "name": m.name, "sku": m.sku, "stockQuantity": m.stock_quantity,
             "lowStockThreshold": m.low_stock_threshold}
            for m in motorcycles
        ],
    }


def top_customers(db: Session, limit: int = 10) -> List[dict]:
    rows = (
        db.query(Invoice.customer_id, Invoice.currency, func.count(Invoice.id), func.sum(Invoice.total))
        .filter(
            Invoice.customer_id.isnot(None),
            Invoice.status != InvoiceStatus.CANCELLED,
            Invoice.kind != InvoiceKind.PAYMENT,
        )
        .group_by(Invoice.customer_id, Invoice.currency)
        .all()
    )

    totals: dict = {}
    for customer_id, currency, count, total in rows:
        entry = totals.setdefault(customer_id, {"orders": 0, Currency.IQD: 0.0, Currency.USD: 0.0})
        entry["orders"] += count
        entry[currency] += float(total or 0)

    ranked = sorted(totals.items(), key=lambda kv: (kv[1]["orders"], kv[1][Currency.IQD]), reverse=True)[:limit]
    customers = {
        c.id: c for c in db.query(Customer).filter(Customer.id.in_([cid for cid, _ in ranked])).all()
    }
    return [
        {
            "id": cid,
            "name": customers[cid].name,
            "sku": customers[cid].sku,
            "image": customers[cid].image,
            "totalOrders": entry["orders"],
            "totalIqd": entry[Currency.IQD],
            "totalUsd": entry[Currency.USD],
        }
        for cid, entry in ranked
        if cid in customers
    ]


def _stock_alert(kind: str, record) -> dict:
    return {
        "type": kind,
        "id": record.id,
        "name": record.name,
        "sku": record.sku,
        "image": record.image,
        "stockQuantity": record.stock_quantity,
        "lowStockThreshold": record.low_stock_threshold,
    }


def overdue_customers(db: Session, now: datetime | None = None) -> List[dict]:
    """
    Customers with debt whose days overdue reached their notification_days
    (1 when unset), most overdue first.
    """
    now = now or datetime.utcnow()
    debtors = db.query(Customer).filter((Customer.debt_iqd > 0) | (Customer.debt_usd > 0)).all()
    flagged = []
    for customer in debtors:
        days = days_overdue(customer, now)
        threshold = customer.notification_days if customer.notification_days is not None else DEFAULT_NOTIFICATION_DAYS
        if days >= threshold:
            flagged.append((days, customer))
    flagged.sort(key=lambda pair: pair[0], reverse=True)
    return [
        {
            "type": "customer",
            "id": c.id,
            "name": c.name,
            "sku": c.sku,
            "phone": c.phone,
            "email": c.email,
            "image": c.image,
            "debtIqd": float(c.debt_iqd or 0),
            "debtUsd": float(c.debt_usd or 0),
            "daysOverdue": days,
            "notificationDays": c.notification_days,
            "notificationType": c.notification_type,
            "lastPaymentDate": c.last_payment_date.isoformat() if c.last_payment_date else None,
        }
        for days, c in flagged
    ]


def notifications(db: Session, now: datetime | None = None) -> dict:
    """
    Header bell: low-stock alerts and overdue customers.

    Only active products and motorcycles still for sale (in stock or
    reserved) with a non-zero threshold raise stock alerts. `items` merges
    both lists by stock ascending and keeps the first 20.
    """
    products = [
        _stock_alert("product", p)
        for p in db.query(Product)
        .filter(
            Product.is_active.is_(True),
            Product.low_stock_threshold > 0,
            Product.stock_quantity <= Product.low_stock_threshold,
        )
        .order_by(Product.stock_quantity.asc())
        .all()
    ]
    motorcycles = [
        _stock_alert("motorcycle", m)
        for m in db.query(Motorcycle)
        .filter(
            Motorcycle.status.in_((MotorcycleStatus.IN_STOCK, MotorcycleStatus.RESERVED)),
            Motorcycle.low_stock_threshold > 0,
            Motorcycle.stock_quantity <= Motorcycle.low_stock_threshold,
        )
        .order_by(Motorcycle.stock_quantity.asc())
        .all()
    ]
    items = sorted(products + motorcycles, key=lambda a: a["stockQuantity"])[:NOTIFICATION_STOCK_LIMIT]
    customers = overdue_customers(db, now)
    return {
        "products": products,
        "motorcycles": motorcycles,
        "items": items,
        "customers": customers,
        "totalCount": len(items) + len(customers),
    }


def sales_chart(db: Session, time_range: str = "90d", currency: str = "all", now: datetime | None = None) -> List[dict]:
    """
    Daily series for the dashboard chart, oldest day first.

    iqd/usd are the totals of paid and partially paid sale invoices in their
    stored currency; collectedIqd/collectedUsd are customer payments taken
    that day. A currency filter zeroes the other currency out.
    """
    now = now or datetime.utcnow()
    start = now - timedelta(days=CHART_RANGES.get(time_range, CHART_RANGES["90d"]))
    days: Dict[str, Dict[str, float]] = {}

    def bucket(when: datetime) -> Dict[str, float]:
        return days.setdefault(when.date().isoformat(), {"iqd": 0.0, "usd": 0.0, "collectedIqd": 0.0, "collectedUsd": 0.0})

    invoices = (
        db.query(Invoice.invoice_date, Invoice.currency, Invoice.total)
        .filter(
            Invoice.invoice_date >= start,
            Invoice.invoice_date <= now,
            Invoice.status.in_(REVENUE_STATUSES),
            Invoice.kind != InvoiceKind.PAYMENT,
        )
        .all()
    )
    for invoice_date, invoice_currency, total in invoices:
        if currency != "all" and invoice_currency.value != currency:
            continue
        key = "usd" if invoice_currency == Currency.USD else "iqd"
        bucket(invoice_date)[key] += float(total or 0)

    payments = (
        db.query(CustomerPayment.payment_date, CustomerPayment.amount_iqd, CustomerPayment.amount_usd)
        .filter(CustomerPayment.payment_date >= start, CustomerPayment.payment_date <= now)
        .all()
    )
    for payment_date, amount_iqd, amount_usd in payments:
        iqd = float(amount_iqd or 0) if currency in ("all", "IQD") else 0.0
        usd = float(amount_usd or 0) if currency in ("all", "USD") else 0.0
        if not iqd and not usd:
            continue
        entry = bucket(payment_date)
        entry["collectedIqd"] += iqd
        entry["collectedUsd"] += usd

    return [
        {"date": day, **{k: round(v, 2) for k, v in values.items()}}
        for day, values in sorted(days.items())
    ]


def most_sold(db: Session, limit: int = 10) -> List[dict]:
    """Products by quantity sold on non-cancelled invoices."""
    rows = (
        db.query(Product, func.sum(InvoiceItem.quantity).label("sold"))
        .join(InvoiceItem, InvoiceItem.product_id == Product.id)
        .join(Invoice, Invoice.id == InvoiceItem.invoice_id)
        .filter(Invoice.status != InvoiceStatus.CANCELLED)
        .group_by(Product.id)
        .order_by(func.sum(InvoiceItem.quantity).desc(), Product.name.asc())
        .limit(limit)
        .all()
    )
    return [
        {"id": p.id, "name": p.name, "sku": p.sku, "image": p.image, "totalSold": int(sold or 0)}
        for p, sold in rows
    ]
