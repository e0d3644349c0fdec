# services/inventory_service.py
import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import Product
from services.component_resolver import normalize_name, normalize_product_type
from services.errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)


def list_products(db: Session) -> list[Product]:
    return db.query(Product).order_by(Product.id.asc()).all()


def get_product(db: Session, product_id: int) -> Product:
    p = db.get(Product, product_id)
    if not p:
        raise NotFound("Product", product_id)
    return p


def find_duplicate(db: Session, product_name: str, product_type: str) -> Optional[Product]:
    """Existing row with the same trimmed/lowercased name and normalized type."""
    wanted_name = normalize_name(product_name)
    wanted_type = normalize_product_type(product_type)
    for p in db.query(Product).order_by(Product.id.asc()).all():
        if normalize_name(p.product_name) == wanted_name and normalize_product_type(p.product_type) == wanted_type:
            return p
    return None


def create_product(
    db: Session,
    *,
    product_name: str,
    product_type: str,
    dimensions: Optional[dict] = None,
    quantity: int = 0,
    on_date: Optional[date] = None,
) -> tuple[Product, bool]:
    """
    Add stock. A row with the same normalized name+type absorbs the quantity
    instead of a duplicate being created. Returns (product, merged).
    """
    if quantity < 0:
        raise ValidationFailed("quantity must be >= 0")
    if not normalize_name(product_name):
        raise ValidationFailed("product_name is required")

    existing = find_duplicate(db, product_name, product_type)
    try:
        if existing:
            existing.quantity = (existing.quantity or 0) + quantity
            db.commit(); db.refresh(existing)
            logger.info("Merged %s into product %s (qty now %s)", quantity, existing.id, existing.quantity)
            return existing, True

        p = Product(
            product_name=product_name.strip(),
            product_type=normalize_product_type(product_type).value,
            dimensions=dict(dimensions or {}),
            quantity=quantity,
            date=on_date or date.today(),
        )
        db.add(p); db.commit(); db.refresh(p)
        return p, False
    except SQLAlchemyError:
        db.rollback()
        raise


def update_product_quantity(db: Session, product_id: int, quantity: int) -> Product:
    """Overwrite stock on hand. Stored quantity is never negative."""
    p = get_product(db, product_id)
    try:
        p.quantity = max(0, quantity)
        db.commit(); db.refresh(p)
    except SQLAlchemyError:
        db.rollback()
        raise
    return p


def delete_product(db: Session, product_id: int) -> int:
    """Idempotent: deleting an unknown id is acknowledged. No cascade."""
    p = db.get(Product, product_id)
    if not p:
        logger.debug("delete_product: %s already gone", product_id)
        return product_id
    try:
        db.delete(p); db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return product_id
