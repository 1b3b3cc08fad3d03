import datetime as dt
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from workshop_reports.api.routers.reports import load_invoice_records
from workshop_reports.core.deps import get_bus, get_db, get_store
from workshop_reports.crud.workshops import get_workshop
from workshop_reports.db.models.invoice import Invoice
from workshop_reports.schemas.invoices import CollectedIn, InvoiceOut, MutationOut
from workshop_reports.services.reports.billing import InvoiceListFilter, apply_listing_filter
from workshop_reports.services.store import RecordStore
from workshop_reports.services.sync.bus import MutationBroadcastBus
from workshop_reports.services.sync.mutations import InvoiceMutations

router = APIRouter()

@router.get("", response_model=list[InvoiceOut])
def get_invoices(
    workshop_id: int = Query(...),
    client: str | None = Query(None),
    concept: str | None = Query(None),
    date_from: dt.date | None = Query(None),
    date_to: dt.date | None = Query(None),
    collected: bool | None = Query(None),
    db: Session = Depends(get_db),
    store: RecordStore = Depends(get_store),
):
    if not get_workshop(db, workshop_id):
        raise HTTPException(status_code=404, detail="Workshop not found")
    flt = InvoiceListFilter(client=client, concept=concept, date_from=date_from, date_to=date_to, collected=collected)
    return apply_listing_filter(load_invoice_records(store, workshop_id), flt)

@router.post("/{invoice_id}/collected", response_model=MutationOut)
def post_collected(
    invoice_id: str,
    data: CollectedIn,
    db: Session = Depends(get_db),
    store: RecordStore = Depends(get_store),
    bus: MutationBroadcastBus = Depends(get_bus),
):
    if db.get(Invoice, invoice_id) is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return InvoiceMutations(store, bus).set_collected(invoice_id, data.collected)
