# services/billing_service.py
"""
Bills deduct from the referenced production record's remaining quantity.

createBill and deleteBill treat their second step differently:
- create: the bill is kept and reported even if the deduction fails (logged only)
- delete: a failed reversal fails the whole call, although the bill row is gone
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import Bill, ProductionRecord
from services.errors import InventorySyncError, LedgerError, NotFound, ValidationFailed

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass
class DeleteBillResult:
    deleted_bill_id: int
    updated_production_record: Optional[ProductionRecord]


@dataclass
class InvoiceResult:
    invoice_no: str
    bills: list = field(default_factory=list)
    failed: list = field(default_factory=list)


def list_bills(db: Session) -> list[Bill]:
    return db.query(Bill).order_by(Bill.id.asc()).all()


def get_bill(db: Session, bill_id: int) -> Bill:
    b = db.get(Bill, bill_id)
    if not b:
        raise NotFound("Bill", bill_id)
    return b


def _apply_production_delta(db: Session, production_id: int, delta: int) -> Optional[ProductionRecord]:
    """Add delta to the record's remaining quantity, floored at zero. None if the record is gone."""
    rec = db.get(ProductionRecord, production_id)
    if rec is None:
        return None
    rec.quantity = max(0, (rec.quantity or 0) + delta)
    db.commit()
    db.refresh(rec)
    return rec


def _checked_amount(amount) -> Decimal:
    """The amount column holds cents; anything finer would be rounded on insert."""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationFailed(f"amount {amount!r} is not a number")
    if not value.is_finite() or value < 0:
        raise ValidationFailed("amount must be a non-negative number")
    if value.normalize().as_tuple().exponent < -2:
        raise ValidationFailed(f"amount {value} has more than 2 decimal places")
    return value


def create_bill(
    db: Session,
    *,
    invoice_no: str,
    production_id: int,
    quantity: int,
    amount: Decimal,
    customer_id: Optional[int] = None,
    billed_at: Optional[datetime] = None,
) -> Bill:
    """amount is the line total (unit rate x quantity) and is stored as given."""
    if not (invoice_no or "").strip():
        raise ValidationFailed("invoice_no is required")
    if quantity is None or quantity <= 0:
        raise ValidationFailed("quantity must be > 0")
    amount = _checked_amount(amount)

    bill = Bill(
        invoice_no=invoice_no.strip(),
        customer_id=customer_id,
        production_id=production_id,
        quantity=quantity,
        amount=amount,
        date=billed_at or datetime.now(timezone.utc),
    )
    try:
        db.add(bill); db.commit(); db.refresh(bill)
    except SQLAlchemyError:
        db.rollback()
        raise

    try:
        rec = _apply_production_delta(db, production_id, -quantity)
        if rec is None:
            logger.warning("Bill %s references missing production record %s; nothing deducted", bill.id, production_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Bill %s created but production record %s was not deducted", bill.id, production_id)

    return bill


def delete_bill(db: Session, bill_id: int) -> DeleteBillResult:
    bill = get_bill(db, bill_id)
    production_id, quantity = bill.production_id, bill.quantity

    try:
        db.delete(bill); db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    try:
        rec = _apply_production_delta(db, production_id, quantity)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Bill %s deleted but production record %s was not restored by %s: %s",
                     bill_id, production_id, quantity, e)
        raise InventorySyncError(
            f"Bill {bill_id} was deleted but production record {production_id} "
            f"could not be restored by {quantity}; re-fetch before retrying"
        ) from e

    if rec is None:
        logger.info("Bill %s deleted; production record %s no longer exists", bill_id, production_id)
    return DeleteBillResult(deleted_bill_id=bill_id, updated_production_record=rec)


def line_amount(unit_rate: Decimal, quantity: int) -> Decimal:
    return (Decimal(str(unit_rate)) * quantity).quantize(CENT, rounding=ROUND_HALF_UP)


def create_invoice(
    db: Session,
    *,
    invoice_no: str,
    lines: list[dict],
    customer_id: Optional[int] = None,
    billed_at: Optional[datetime] = None,
) -> InvoiceResult:
    """
    One createBill per line under a shared invoice_no. Lines are independent:
    earlier lines stay committed when a later one fails.
    """
    result = InvoiceResult(invoice_no=invoice_no)
    when = billed_at or datetime.now(timezone.utc)
    for n, line in enumerate(lines, start=1):
        try:
            bill = create_bill(
                db,
                invoice_no=invoice_no,
                production_id=line["production_id"],
                quantity=line["quantity"],
                amount=line_amount(line["unit_rate"], line["quantity"]),
                customer_id=customer_id,
                billed_at=when,
            )
            result.bills.append(bill)
        except (LedgerError, SQLAlchemyError) as e:
            logger.warning("Invoice %s line %s failed: %s", invoice_no, n, e)
            result.failed.append({"line": n, "production_id": line["production_id"], "detail": str(e)})
    return result


# ===============================
# Invoice views
# ===============================

def unit_rate(bill: Bill) -> Decimal:
    if not bill.quantity:
        return Decimal("0")
    return (Decimal(bill.amount) / bill.quantity).quantize(CENT, rounding=ROUND_HALF_UP)


def _summarize(invoice_no: str, bills: list[Bill]) -> dict:
    first = bills[0]
    return {
        "invoice_no": invoice_no,
        "customer_id": first.customer_id,
        "date": first.date,
        "lines": [
            {
                "bill_id": b.id,
                "production_id": b.production_id,
                "quantity": b.quantity,
                "unit_rate": unit_rate(b),
                "amount": Decimal(b.amount),
            }
            for b in bills
        ],
        "total_quantity": sum(b.quantity or 0 for b in bills),
        "total_amount": sum((Decimal(b.amount) for b in bills), Decimal("0")),
    }


def list_invoices(db: Session) -> list[dict]:
    grouped: "OrderedDict[str, list[Bill]]" = OrderedDict()
    for b in list_bills(db):
        grouped.setdefault(b.invoice_no, []).append(b)
    return [_summarize(no, bills) for no, bills in grouped.items()]


def get_invoice(db: Session, invoice_no: str) -> dict:
    bills = db.query(Bill).filter(Bill.invoice_no == invoice_no).order_by(Bill.id.asc()).all()
    if not bills:
        raise NotFound("Invoice", invoice_no)
    return _summarize(invoice_no, bills)
