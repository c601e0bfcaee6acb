"""
Invoice type and currency classification from free-text markers.

Older invoices carry their type only as substrings in the invoice and item
notes. classify_invoice reads those markers. Services call it once when an
invoice is written, and the backfill command calls it for rows still
stored as UNKNOWN. Read paths use the stored kind and currency instead.
"""
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from arbati.models.invoice import Currency, InvoiceKind

PAYMENT_MARKERS = ("PAYMENT", "PAYMENT INVOICE")
PAYMENT_ITEM_PREFIX = "PAYMENT:"
MOTORCYCLE_ITEM_PREFIX = "MOTORCYCLE:"
INVOICE_TYPE_TAG = "[INVOICE_TYPE:"
WHOLESALE_SALE_TYPE = "JUMLA"


@dataclass(frozen=True)
class InvoiceClassification:
    kind: InvoiceKind
    currency: Currency

    @property
    def is_payment(self) -> bool:
        return self.kind == InvoiceKind.PAYMENT

    @property
    def is_motorcycle(self) -> bool:
        return self.kind in (InvoiceKind.WHOLESALE_MOTORCYCLE, InvoiceKind.RETAIL_MOTORCYCLE)

    @property
    def is_wholesale(self) -> bool:
        return self.kind in (InvoiceKind.WHOLESALE_MOTORCYCLE, InvoiceKind.WHOLESALE_PRODUCT)


def _get(obj: Any, name: str, default: Any = None) -> Any:
    """Attribute or key access, so ORM rows and plain dicts classify alike."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _text(value: Any) -> str:
    if value is None:
        return ""
    # str-Enums compare by value
    return str(getattr(value, "value", value))


def _item_notes(item: Any) -> str:
    return _text(_get(item, "notes")).strip().upper()


def _has_product(item: Any) -> bool:
    return _get(item, "product_id") is not None or _get(item, "product") is not None


def is_payment_invoice(notes: Optional[str], items: Iterable[Any]) -> bool:
    upper = _text(notes).upper()
    if any(marker in upper for marker in PAYMENT_MARKERS):
        return True
    return any(_item_notes(item).startswith(PAYMENT_ITEM_PREFIX) for item in items)


def is_motorcycle_invoice(notes: Optional[str], items: Iterable[Any]) -> bool:
    upper = _text(notes).upper()
    if INVOICE_TYPE_TAG in upper and "MOTORCYCLE" in upper:
        return True

    items = list(items)
    for item in items:
        if not _has_product(item) and _item_notes(item).startswith(MOTORCYCLE_ITEM_PREFIX):
            return True

    for item in items:
        product_name = _text(_get(_get(item, "product"), "name")).lower()
        notes_lower = _text(_get(item, "notes")).lower()
        if "motorcycle" in product_name or "motorcycle" in notes_lower:
            return True
    return False


def sale_type_of(invoice: Any) -> Optional[str]:
    sale = _get(invoice, "sale")
    sale_type = _get(sale, "type") if sale is not None else _get(invoice, "sale_type")
    return _text(sale_type).upper() or None


def classify_invoice(invoice: Any) -> InvoiceClassification:
    """
    Classify an invoice (ORM object or mapping) by its notes, items and sale type.

    Rules apply in order, first match wins: payment markers, an
    [INVOICE_TYPE:...MOTORCYCLE] tag, a product-less item noted
    MOTORCYCLE:<id>, then any item whose product name or notes mention a
    motorcycle. Anything else is a product invoice. Wholesale only for a
    JUMLA sale; missing or unrecognised sale types are retail.
    """
    notes = _get(invoice, "notes")
    items = list(_get(invoice, "items") or [])

    if is_payment_invoice(notes, items):
        return InvoiceClassification(InvoiceKind.PAYMENT, Currency.IQD)

    wholesale = sale_type_of(invoice) == WHOLESALE_SALE_TYPE
    if is_motorcycle_invoice(notes, items):
        kind = InvoiceKind.WHOLESALE_MOTORCYCLE if wholesale else InvoiceKind.RETAIL_MOTORCYCLE
        return InvoiceClassification(kind, Currency.USD)

    kind = InvoiceKind.WHOLESALE_PRODUCT if wholesale else InvoiceKind.RETAIL_PRODUCT
    return InvoiceClassification(kind, Currency.IQD)
