# routers/production.py
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from schemas import (
    ProductionCreate, ProductionUpdate, ProductionOut,
    AssemblyCheckOut, ComponentStatus, ProductOut,
)
from services import production_service

router = APIRouter(prefix="/production", tags=["production"])


def _status(comp) -> ComponentStatus:
    return ComponentStatus(
        role=comp.role,
        required_name=comp.required_name,
        product=ProductOut.model_validate(comp.product) if comp.product else None,
        found=comp.found,
        sufficient=comp.sufficient,
        available=comp.available,
    )


@router.get("", response_model=List[ProductionOut])
def list_production(db: Session = Depends(get_db)):
    return production_service.list_production(db)


# ---------- availability preview (must sit above /{record_id}) ----------
@router.get("/check", response_model=AssemblyCheckOut)
def check_assembly(
    conrod_id: int = Query(...),
    quantity: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    chk = production_service.check_components(db, conrod_id, quantity)
    return AssemblyCheckOut(
        conrod_id=conrod_id,
        quantity=quantity,
        pin=_status(chk.pin),
        ball_bearing=_status(chk.ball_bearing),
        conrod_stock=ProductOut.model_validate(chk.conrod_stock) if chk.conrod_stock else None,
        can_assemble=chk.can_assemble,
    )


@router.post("", response_model=ProductionOut, status_code=status.HTTP_201_CREATED)
def assemble_production(payload: ProductionCreate, db: Session = Depends(get_db)):
    return production_service.assemble_production(
        db,
        conrod_id=payload.conrod_id,
        quantity=payload.quantity,
        size=payload.size,
        on_date=payload.date,
    )


@router.get("/{record_id}", response_model=ProductionOut)
def get_production(record_id: int, db: Session = Depends(get_db)):
    return production_service.get_production(db, record_id)


@router.patch("/{record_id}", response_model=ProductionOut)
def update_production(record_id: int, payload: ProductionUpdate, db: Session = Depends(get_db)):
    return production_service.update_production_quantity(db, record_id, payload.quantity, payload.size)


@router.delete("/{record_id}")
def delete_production(record_id: int, db: Session = Depends(get_db)):
    return {"id": production_service.delete_production(db, record_id)}
