from arbati.db.backfill import backfill_invoice_kinds, main
from arbati.models.invoice import Currency, Invoice, InvoiceItem, InvoiceKind
from arbati.models.sale import Sale, SaleType


def _legacy_invoice(db, number, notes=None, item_notes=None, sale_type=None, product=None):
    sale = None
    if sale_type is not None:
        sale = Sale(type=sale_type)
        db.add(sale)
        db.flush()
    invoice = Invoice(
        invoice_number=number,
        notes=notes,
        sale_id=sale.id if sale else None,
        items=[InvoiceItem(quantity=1, unit_price=1, line_total=1, notes=item_notes,
                           product_id=product.id if product else None)],
    )
    db.add(invoice)
    db.commit()
    return invoice.id


def test_backfill_classifies_unknown_rows(db, product):
    ids = {
        "moto": _legacy_invoice(db, "L-1", notes="[INVOICE_TYPE:wholesale-motorcycle]", sale_type=SaleType.JUMLA),
        "item_moto": _legacy_invoice(db, "L-2", item_notes="MOTORCYCLE:7"),
        "payment": _legacy_invoice(db, "L-3", notes="Payment invoice - CASH"),
        "product": _legacy_invoice(db, "L-4", sale_type=SaleType.JUMLA, product=product),
    }
    assert db.query(Invoice).filter(Invoice.kind == InvoiceKind.UNKNOWN).count() == 4

    counts = backfill_invoice_kinds(db)
    assert sum(counts.values()) == 4

    db.expire_all()
    assert db.get(Invoice, ids["moto"]).kind == InvoiceKind.WHOLESALE_MOTORCYCLE
    assert db.get(Invoice, ids["moto"]).currency == Currency.USD
    assert db.get(Invoice, ids["item_moto"]).kind == InvoiceKind.RETAIL_MOTORCYCLE
    assert db.get(Invoice, ids["payment"]).kind == InvoiceKind.PAYMENT
    assert db.get(Invoice, ids["product"]).kind == InvoiceKind.WHOLESALE_PRODUCT
    assert db.get(Invoice, ids["product"]).currency == Currency.IQD

    # nothing left to do on a second run
    assert backfill_invoice_kinds(db) == {}


def test_backfill_leaves_classified_rows_alone(client, admin_headers, db, motorcycle):
    created = client.post("/invoices", json={"items": [{"motorcycle_id": motorcycle.id, "quantity": 1}]},
                          headers=admin_headers).json()
    assert backfill_invoice_kinds(db) == {}
    assert db.get(Invoice, created["id"]).kind == InvoiceKind.RETAIL_MOTORCYCLE


def test_dry_run_writes_nothing(db):
    invoice_id = _legacy_invoice(db, "L-9", item_notes="MOTORCYCLE:1")
    counts = backfill_invoice_kinds(db, dry_run=True)
    assert counts == {"RETAIL_MOTORCYCLE": 1}
    db.expire_all()
    assert db.get(Invoice, invoice_id).kind == InvoiceKind.UNKNOWN


def test_command_line_entry_point(db):
    invoice_id = _legacy_invoice(db, "L-10", item_notes="MOTORCYCLE:1")
    assert main([]) == 0
    db.expire_all()
    assert db.get(Invoice, invoice_id).kind == InvoiceKind.RETAIL_MOTORCYCLE
