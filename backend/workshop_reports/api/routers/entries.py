from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from workshop_reports.core.deps import get_db
from workshop_reports.crud.entries import create_invoice, upsert_kpi
from workshop_reports.crud.workshops import get_workshop
from workshop_reports.schemas.entries import KpiIn, InvoiceIn
from workshop_reports.schemas.invoices import InvoiceOut

router = APIRouter()

def _require_workshop(db: Session, workshop_id: int):
    if not get_workshop(db, workshop_id):
        raise HTTPException(status_code=404, detail="Workshop not found")

@router.post("/kpi")
def post_kpi(data: KpiIn, db: Session = Depends(get_db)):
    _require_workshop(db, data.workshop_id)
    row = upsert_kpi(db, data)
    return {"status": "ok", "id": row.id}

@router.post("/invoice", response_model=InvoiceOut)
def post_invoice(data: InvoiceIn, db: Session = Depends(get_db)):
    _require_workshop(db, data.workshop_id)
    return create_invoice(db, data)
