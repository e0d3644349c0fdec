# services/production_service.py
"""
Production assembly: validate component stock, record the batch, deduct stock.

Each step commits on its own. A failure after the record is created is raised
to the caller, but the record stays; nothing is rolled back across steps.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import ConrodDefinition, Product, ProductionRecord
from services.component_resolver import ProductType, find_component, find_conrod_stock
from services.errors import (
    ComponentUnavailable,
    InsufficientStock,
    InventorySyncError,
    NotFound,
    ValidationFailed,
)

logger = logging.getLogger(__name__)


@dataclass
class ComponentCheck:
    role: str
    required_name: str
    product: Optional[Product]
    requested: int

    @property
    def found(self) -> bool:
        return self.product is not None

    @property
    def available(self) -> int:
        return self.product.quantity if self.product else 0

    @property
    def sufficient(self) -> bool:
        return self.found and self.available >= self.requested


@dataclass
class AssemblyCheck:
    conrod: ConrodDefinition
    quantity: int
    pin: ComponentCheck
    ball_bearing: ComponentCheck
    conrod_stock: Optional[Product]

    @property
    def can_assemble(self) -> bool:
        return self.quantity > 0 and self.pin.sufficient and self.ball_bearing.sufficient

    def raise_for_problems(self) -> None:
        for comp in (self.pin, self.ball_bearing):
            if not comp.found:
                raise ComponentUnavailable(comp.role, comp.required_name)
        for comp in (self.pin, self.ball_bearing):
            if not comp.sufficient:
                raise InsufficientStock(comp.role, comp.product.product_name, comp.available, comp.requested)


def list_production(db: Session) -> list[ProductionRecord]:
    return db.query(ProductionRecord).order_by(ProductionRecord.id.asc()).all()


def get_production(db: Session, record_id: int) -> ProductionRecord:
    rec = db.get(ProductionRecord, record_id)
    if not rec:
        raise NotFound("Production record", record_id)
    return rec


def check_components(db: Session, conrod_id: int, quantity: int) -> AssemblyCheck:
    conrod = db.get(ConrodDefinition, conrod_id)
    if not conrod:
        raise NotFound("Conrod", conrod_id)

    return AssemblyCheck(
        conrod=conrod,
        quantity=quantity,
        pin=ComponentCheck("pin", conrod.pin, find_component(db, conrod.pin, ProductType.PIN), quantity),
        ball_bearing=ComponentCheck(
            "ball bearing",
            conrod.ball_bearing,
            find_component(db, conrod.ball_bearing, ProductType.BALL_BEARING),
            quantity,
        ),
        conrod_stock=find_conrod_stock(db, conrod.name),
    )


def _deduct_stock(db: Session, record: ProductionRecord, product: Product, quantity: int, role: str) -> None:
    try:
        product.quantity = max(0, (product.quantity or 0) - quantity)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            "Production record %s created but %s stock %s was not deducted: %s",
            record.id, role, product.id, e,
        )
        raise InventorySyncError(
            f"Production record {record.id} was created but {role} stock "
            f"'{product.product_name}' could not be deducted; reconcile manually"
        ) from e


def assemble_production(
    db: Session,
    *,
    conrod_id: int,
    quantity: int,
    size: Optional[str] = None,
    on_date: Optional[date] = None,
) -> ProductionRecord:
    if quantity is None or quantity <= 0:
        raise ValidationFailed("quantity must be > 0")

    check = check_components(db, conrod_id, quantity)
    check.raise_for_problems()
    pin, ball_bearing = check.pin.product, check.ball_bearing.product

    # 1) record: quantity = units available for billing
    rec = ProductionRecord(
        conrod_id=conrod_id,
        quantity=quantity,
        size=size or None,
        date=on_date or date.today(),
    )
    try:
        db.add(rec); db.commit(); db.refresh(rec)
    except SQLAlchemyError:
        db.rollback()
        raise

    # 2) pin, then 3) ball bearing, each after the previous commit
    _deduct_stock(db, rec, pin, quantity, "pin")
    _deduct_stock(db, rec, ball_bearing, quantity, "ball bearing")

    # 4) same-named finished conrod stock, only if present
    if check.conrod_stock is not None:
        _deduct_stock(db, rec, check.conrod_stock, quantity, "conrod")
    else:
        logger.debug("No conrod stock named %r to deduct", check.conrod.name)

    logger.info(
        "Assembled %s x %s (record %s): pin %s -> %s, ball bearing %s -> %s",
        quantity, check.conrod.name, rec.id,
        pin.id, pin.quantity, ball_bearing.id, ball_bearing.quantity,
    )
    db.refresh(rec)
    return rec


def update_production_quantity(
    db: Session,
    record_id: int,
    quantity: int,
    size: Optional[str] = None,
) -> ProductionRecord:
    """Overwrite remaining quantity (and size when given). Callers clamp at zero."""
    rec = get_production(db, record_id)
    try:
        rec.quantity = quantity
        if size is not None:
            rec.size = size
        db.commit(); db.refresh(rec)
    except SQLAlchemyError:
        db.rollback()
        raise
    return rec


def delete_production(db: Session, record_id: int) -> int:
    """Removes the record only. Consumed pin/ball bearing/conrod stock is not restored."""
    rec = get_production(db, record_id)
    try:
        db.delete(rec); db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return record_id
