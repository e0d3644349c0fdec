# routers/products.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from schemas import ProductCreate, ProductCreateOut, ProductOut, ProductQuantityUpdate
from services import inventory_service

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=List[ProductOut])
def list_products(db: Session = Depends(get_db)):
    return inventory_service.list_products(db)


@router.post("", response_model=ProductCreateOut, status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    """Same name + type (trimmed, case-insensitive) adds to the existing row."""
    p, merged = inventory_service.create_product(
        db,
        product_name=payload.product_name,
        product_type=payload.product_type,
        dimensions=payload.dimensions,
        quantity=payload.quantity,
        on_date=payload.date,
    )
    out = ProductCreateOut.model_validate(p)
    out.merged = merged
    return out


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return inventory_service.get_product(db, product_id)


@router.patch("/{product_id}", response_model=ProductOut)
def update_product_quantity(product_id: int, payload: ProductQuantityUpdate, db: Session = Depends(get_db)):
    return inventory_service.update_product_quantity(db, product_id, payload.quantity)


@router.delete("/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db)):
    return {"id": inventory_service.delete_product(db, product_id)}
