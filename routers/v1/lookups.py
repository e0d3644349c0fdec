# routers/lookups.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models import ConrodDefinition
from schemas import NamesOut
from services.component_resolver import ProductType, normalize_product_type

lookups = APIRouter(prefix="/lookups", tags=["lookups"])

_FIELD_BY_TYPE = {
    ProductType.PIN: ConrodDefinition.pin,
    ProductType.BALL_BEARING: ConrodDefinition.ball_bearing,
    ProductType.CONROD: ConrodDefinition.name,
}


@lookups.get("/component-names", response_model=NamesOut)
def component_names(
    product_type: str = Query(..., description="Pin / Ball Bearing / Conrod (free text)"),
    db: Session = Depends(get_db),
):
    """Names the catalog asks for, so new stock rows resolve when assembling."""
    col = _FIELD_BY_TYPE[normalize_product_type(product_type)]
    names = {(v or "").strip() for (v,) in db.query(col).all()}
    return {"items": sorted(n for n in names if n)}
