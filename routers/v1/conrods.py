# routers/conrods.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from schemas import (
    ConrodCreate, ConrodUpdate, ConrodOut,
    ConrodImportIn, ConrodCsvImportIn, ConrodImportOut,
)
from services import conrod_service

router = APIRouter(prefix="/conrods", tags=["conrods"])


def _import_out(created, errors) -> dict:
    return {
        "created": [ConrodOut.model_validate(c) for c in created],
        "errors": errors,
    }


@router.get("", response_model=List[ConrodOut])
def list_conrods(db: Session = Depends(get_db)):
    return conrod_service.list_conrods(db)


@router.post("", response_model=ConrodOut, status_code=status.HTTP_201_CREATED)
def create_conrod(payload: ConrodCreate, db: Session = Depends(get_db)):
    return conrod_service.create_conrod(
        db,
        name=payload.name,
        dimensions=payload.dimensions.model_dump(),
        pin=payload.pin,
        ball_bearing=payload.ball_bearing,
    )


# ---------- import (must sit above /{conrod_id}) ----------
@router.post("/import", response_model=ConrodImportOut)
def import_conrods(payload: ConrodImportIn, db: Session = Depends(get_db)):
    rows = [
        {**r.model_dump(), "dimensions": r.dimensions.model_dump()}
        for r in payload.rows
    ]
    created, errors = conrod_service.import_conrods(db, rows)
    return _import_out(created, errors)


@router.post("/import/csv", response_model=ConrodImportOut)
def import_conrods_csv(payload: ConrodCsvImportIn, db: Session = Depends(get_db)):
    created, errors = conrod_service.import_conrods_csv(db, payload.csv_text)
    return _import_out(created, errors)


@router.get("/{conrod_id}", response_model=ConrodOut)
def get_conrod(conrod_id: int, db: Session = Depends(get_db)):
    return conrod_service.get_conrod(db, conrod_id)


@router.patch("/{conrod_id}", response_model=ConrodOut)
def update_conrod(conrod_id: int, payload: ConrodUpdate, db: Session = Depends(get_db)):
    return conrod_service.update_conrod(
        db,
        conrod_id,
        name=payload.name,
        dimensions=payload.dimensions.model_dump(),
        pin=payload.pin,
        ball_bearing=payload.ball_bearing,
    )


@router.delete("/{conrod_id}")
def delete_conrod(conrod_id: int, db: Session = Depends(get_db)):
    return {"id": conrod_service.delete_conrod(db, conrod_id)}
