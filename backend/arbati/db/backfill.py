"""
Classify invoices stored before kind/currency columns existed.

Usage:
    arbati-backfill              # classify every UNKNOWN invoice
    arbati-backfill --dry-run    # report what would change
"""
import argparse
import logging
from collections import Counter

from sqlalchemy.orm import Session, selectinload

from arbati.core.logging_config import configure_logging
from arbati.db.base import Base
from arbati.db.session import SessionLocal, engine
from arbati.models.invoice import Invoice, InvoiceItem, InvoiceKind
from arbati.services.invoice_classifier import classify_invoice

logger = logging.getLogger(__name__)

BATCH_SIZE = 500


def backfill_invoice_kinds(db: Session, dry_run: bool = False) -> Counter:
    """Set kind and currency on every UNKNOWN invoice. Returns counts per new kind."""
    counts: Counter = Counter()
    last_id = 0
    while True:
        batch = (
            db.query(Invoice)
            .options(selectinload(Invoice.items).selectinload(InvoiceItem.product), selectinload(Invoice.sale))
            .filter(Invoice.kind == InvoiceKind.UNKNOWN, Invoice.id > last_id)
            .order_by(Invoice.id.asc())
            .limit(BATCH_SIZE)
            .all()
        )
        if not batch:
            break
        for invoice in batch:
            classification = classify_invoice(invoice)
            counts[classification.kind.value] += 1
            if not dry_run:
                invoice.kind = classification.kind
                invoice.currency = classification.currency
        last_id = batch[-1].id
        if dry_run:
            db.rollback()
        else:
            db.commit()
    return counts


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Classify invoices that have no stored kind yet.")
    parser.add_argument("--dry-run", action="store_true", help="report without writing")
    args = parser.parse_args(argv)

    configure_logging()
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        counts = backfill_invoice_kinds(db, dry_run=args.dry_run)
    finally:
        db.close()

    total = sum(counts.values())
    verb = "Would classify" if args.dry_run else "Classified"
    logger.info(f"{verb} {total} invoice(s)")
    for kind, count in sorted(counts.items()):
        logger.info(f"  {kind}: {count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
