# services/conrod_service.py
import csv
import io
import logging
import math
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models import ConrodDefinition
from services.errors import LedgerError, NotFound, SerialCollision, ValidationFailed
from utils.sequencer import mark_issued, next_serial

logger = logging.getLogger(__name__)

SERIAL_ATTEMPTS = 3

CSV_REQUIRED_COLUMNS = [
    "name", "smallenddiameter", "bigenddiameter", "centerdistance", "pin", "ballbearing",
]


def list_conrods(db: Session) -> list[ConrodDefinition]:
    return db.query(ConrodDefinition).order_by(ConrodDefinition.sr_no.asc()).all()


def get_conrod(db: Session, conrod_id: int) -> ConrodDefinition:
    c = db.get(ConrodDefinition, conrod_id)
    if not c:
        raise NotFound("Conrod", conrod_id)
    return c


def _finite(value):
    # nan/inf are not valid JSON
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _clean_dimensions(dimensions: Optional[dict]) -> dict:
    d = dimensions or {}
    return {
        "smallEndDiameter": _finite(d.get("smallEndDiameter")),
        "bigEndDiameter": _finite(d.get("bigEndDiameter")),
        "centerDistance": _finite(d.get("centerDistance")),
    }


def _insert_with_serial(db: Session, *, name: str, dimensions: dict, pin: str, ball_bearing: str) -> ConrodDefinition:
    sr_no = next_serial(db)
    c = ConrodDefinition(
        sr_no=sr_no,
        name=name,
        dimensions=dimensions,
        pin=pin,
        ball_bearing=ball_bearing,
    )
    try:
        db.add(c)
        mark_issued(db, sr_no)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise SerialCollision(sr_no)
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(c)
    return c


def create_conrod(
    db: Session,
    *,
    name: str,
    dimensions: Optional[dict] = None,
    pin: str,
    ball_bearing: str,
) -> ConrodDefinition:
    """Create a catalog entry with the next srNo, re-allocating on collision."""
    name, pin, ball_bearing = (name or "").strip(), (pin or "").strip(), (ball_bearing or "").strip()
    if not name or not pin or not ball_bearing:
        raise ValidationFailed("name, pin and ball_bearing are required")

    dims = _clean_dimensions(dimensions)
    for attempt in range(1, SERIAL_ATTEMPTS + 1):
        try:
            return _insert_with_serial(db, name=name, dimensions=dims, pin=pin, ball_bearing=ball_bearing)
        except SerialCollision as e:
            logger.warning("srNo %s collided (attempt %s/%s)", e.sr_no, attempt, SERIAL_ATTEMPTS)
            if attempt == SERIAL_ATTEMPTS:
                raise


def update_conrod(
    db: Session,
    conrod_id: int,
    *,
    name: str,
    dimensions: Optional[dict] = None,
    pin: str,
    ball_bearing: str,
) -> ConrodDefinition:
    """Edit name/dimensions/components. srNo never changes."""
    c = get_conrod(db, conrod_id)
    name, pin, ball_bearing = (name or "").strip(), (pin or "").strip(), (ball_bearing or "").strip()
    if not name or not pin or not ball_bearing:
        raise ValidationFailed("name, pin and ball_bearing are required")
    c.name = name
    c.dimensions = _clean_dimensions(dimensions)
    c.pin = pin
    c.ball_bearing = ball_bearing
    try:
        db.commit(); db.refresh(c)
    except SQLAlchemyError:
        db.rollback()
        raise
    return c


def delete_conrod(db: Session, conrod_id: int) -> int:
    """Production records that point at this definition are left as they are."""
    c = db.get(ConrodDefinition, conrod_id)
    if not c:
        logger.debug("delete_conrod: %s already gone", conrod_id)
        return conrod_id
    try:
        db.delete(c); db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return conrod_id


# ===============================
# Batch import
# ===============================

def import_conrods(db: Session, rows: list[dict], *, first_row_no: int = 1) -> tuple[list[ConrodDefinition], list[dict]]:
    """
    Create rows strictly one after another so each sees the previous srNo.
    A failing row is reported and the import carries on.
    """
    created: list[ConrodDefinition] = []
    errors: list[dict] = []
    for offset, row in enumerate(rows):
        row_no = row.get("_row", first_row_no + offset)
        try:
            c = create_conrod(
                db,
                name=row.get("name"),
                dimensions=row.get("dimensions"),
                pin=row.get("pin"),
                ball_bearing=row.get("ball_bearing"),
            )
            created.append(c)
        except (LedgerError, SQLAlchemyError) as e:
            logger.warning("Conrod import row %s failed: %s", row_no, e)
            errors.append({"row": row_no, "message": str(e)})
    return created, errors


def _to_float(value: str) -> Optional[float]:
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return _finite(f)


def parse_conrod_csv(csv_text: str) -> tuple[list[dict], list[dict]]:
    """
    Parse "name, smallEndDiameter, bigEndDiameter, centerDistance, pin, ballBearing".
    Headers are matched case/space-insensitively. Returns (rows, row_errors).
    Blank lines are dropped before numbering, so a row number counts non-blank
    lines (header = 1) and drifts from the file line after a blank line.
    """
    lines = [ln for ln in (csv_text or "").splitlines() if ln.strip()]
    if len(lines) <= 1:
        raise ValidationFailed("CSV file is empty or contains only headers.")

    reader = csv.reader(io.StringIO("\n".join(lines)))
    headers = ["".join(h.split()).lower() for h in next(reader)]
    missing = [col for col in CSV_REQUIRED_COLUMNS if col not in headers]
    if missing:
        raise ValidationFailed(f"Missing required columns: {', '.join(missing)}")
    idx = {col: headers.index(col) for col in CSV_REQUIRED_COLUMNS}

    rows: list[dict] = []
    errors: list[dict] = []
    for line_no, values in enumerate(reader, start=2):
        values = [v.strip() for v in values]
        if len(values) != len(headers):
            errors.append({"row": line_no, "message": "Incorrect number of columns"})
            continue
        row = {
            "_row": line_no,
            "name": values[idx["name"]],
            "dimensions": {
                "smallEndDiameter": _to_float(values[idx["smallenddiameter"]]),
                "bigEndDiameter": _to_float(values[idx["bigenddiameter"]]),
                "centerDistance": _to_float(values[idx["centerdistance"]]),
            },
            "pin": values[idx["pin"]],
            "ball_bearing": values[idx["ballbearing"]],
        }
        if not row["name"] or not row["pin"] or not row["ball_bearing"]:
            errors.append({"row": line_no, "message": f"Invalid data in row {line_no}"})
            continue
        rows.append(row)
    return rows, errors


def import_conrods_csv(db: Session, csv_text: str) -> tuple[list[ConrodDefinition], list[dict]]:
    rows, parse_errors = parse_conrod_csv(csv_text)
    created, create_errors = import_conrods(db, rows)
    errors = sorted(parse_errors + create_errors, key=lambda e: e["row"])
    return created, errors
