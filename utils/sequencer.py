# utils/sequencer.py
from sqlalchemy import func
from sqlalchemy.orm import Session

from models import ConrodDefinition, DocCounter
from services.errors import SerialCollision

CONROD_DOC_TYPE = "CONROD"


def high_water(db: Session, doc_type: str = CONROD_DOC_TYPE) -> int:
    row = db.get(DocCounter, doc_type)
    return row.seq if row else 0


def current_max(db: Session, doc_type: str = CONROD_DOC_TYPE) -> int:
    """Highest srNo ever issued: the counter, or the table if it holds more."""
    max_existing = db.query(func.max(ConrodDefinition.sr_no)).scalar() or 0
    return max(high_water(db, doc_type), max_existing)


def next_serial(db: Session, doc_type: str = CONROD_DOC_TYPE) -> int:
    """
    Next conrod srNo: current max + 1, 1 on an empty catalog.

    The high-water counter keeps a deleted top serial from being handed out again.
    Check-then-act, not a lock: a concurrent insert between the check and the
    caller's insert is caught by the unique constraint on sr_no.
    """
    sr_no = current_max(db, doc_type) + 1

    taken = db.query(ConrodDefinition.id).filter(ConrodDefinition.sr_no == sr_no).first()
    if taken:
        raise SerialCollision(sr_no)
    return sr_no


def mark_issued(db: Session, sr_no: int, doc_type: str = CONROD_DOC_TYPE) -> None:
    """Raise the high-water mark to sr_no (flushed with the caller's commit)."""
    row = db.get(DocCounter, doc_type)
    if row is None:
        db.add(DocCounter(doc_type=doc_type, seq=sr_no))
    elif sr_no > row.seq:
        row.seq = sr_no
