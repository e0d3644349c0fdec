# routers/bills.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from schemas import (
    BillCreate, BillOut, BillDeleteOut,
    InvoiceCreate, InvoiceCreateOut, InvoiceSummaryOut, ProductionOut,
)
from services import billing_service

router = APIRouter(prefix="/bills", tags=["bills"])


@router.get("", response_model=List[BillOut])
def list_bills(db: Session = Depends(get_db)):
    return billing_service.list_bills(db)


@router.post("", response_model=BillOut, status_code=status.HTTP_201_CREATED)
def create_bill(payload: BillCreate, db: Session = Depends(get_db)):
    return billing_service.create_bill(
        db,
        invoice_no=payload.invoice_no,
        customer_id=payload.customer_id,
        production_id=payload.production_id,
        quantity=payload.quantity,
        amount=payload.amount,
        billed_at=payload.date,
    )


# ---------- invoices (must sit above /{bill_id}) ----------
@router.post("/invoice", response_model=InvoiceCreateOut)
def create_invoice(payload: InvoiceCreate, db: Session = Depends(get_db)):
    res = billing_service.create_invoice(
        db,
        invoice_no=payload.invoice_no,
        customer_id=payload.customer_id,
        billed_at=payload.date,
        lines=[ln.model_dump() for ln in payload.lines],
    )
    return {
        "invoice_no": res.invoice_no,
        "bills": [BillOut.model_validate(b) for b in res.bills],
        "failed": res.failed,
    }


@router.get("/invoices", response_model=List[InvoiceSummaryOut])
def list_invoices(db: Session = Depends(get_db)):
    return billing_service.list_invoices(db)


@router.get("/invoices/{invoice_no}", response_model=InvoiceSummaryOut)
def get_invoice(invoice_no: str, db: Session = Depends(get_db)):
    return billing_service.get_invoice(db, invoice_no)


@router.get("/{bill_id}", response_model=BillOut)
def get_bill(bill_id: int, db: Session = Depends(get_db)):
    return billing_service.get_bill(db, bill_id)


@router.delete("/{bill_id}", response_model=BillDeleteOut)
def delete_bill(bill_id: int, db: Session = Depends(get_db)):
    res = billing_service.delete_bill(db, bill_id)
    rec = res.updated_production_record
    return {
        "deleted_bill_id": res.deleted_bill_id,
        "updated_production_record": ProductionOut.model_validate(rec) if rec else None,
    }
