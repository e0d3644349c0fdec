# services/component_resolver.py
"""
Find the stock row that satisfies a conrod definition's component name.

Matching is case-insensitive: exact name first, then substring containment in
either direction. Candidates are scanned in store insertion order (ascending id)
and the first fuzzy hit wins, there is no ranking.
"""
from enum import Enum
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from models import Product


class ProductType(str, Enum):
    BALL_BEARING = "BallBearing"
    PIN = "Pin"
    CONROD = "Conrod"


def normalize_name(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def normalize_product_type(value: Optional[str]) -> ProductType:
    """Free-text type -> ProductType. 'ball' wins over 'pin'; anything else is a conrod."""
    v = (value or "").lower()
    if "ball" in v:
        return ProductType.BALL_BEARING
    if "pin" in v:
        return ProductType.PIN
    return ProductType.CONROD


def resolve_component(
    products: Iterable[Product],
    required_name: str,
    required_type: ProductType,
) -> Optional[Product]:
    wanted = normalize_name(required_name)
    candidates = [p for p in products if normalize_product_type(p.product_type) == required_type]

    for p in candidates:
        if normalize_name(p.product_name) == wanted:
            return p

    # an empty name would "contain" every candidate
    if not wanted:
        return None

    for p in candidates:
        have = normalize_name(p.product_name)
        if have and (wanted in have or have in wanted):
            return p
    return None


def find_component(db: Session, required_name: str, required_type: ProductType) -> Optional[Product]:
    products = db.query(Product).order_by(Product.id.asc()).all()
    return resolve_component(products, required_name, required_type)


def find_conrod_stock(db: Session, conrod_name: str) -> Optional[Product]:
    """Conrod-type stock row whose name equals the definition name (case-insensitive)."""
    wanted = (conrod_name or "").lower()
    rows = (
        db.query(Product)
        .filter(Product.product_type == ProductType.CONROD.value)
        .order_by(Product.id.asc())
        .all()
    )
    for p in rows:
        if (p.product_name or "").lower() == wanted:
            return p
    return None
