import datetime as dt
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from workshop_reports.core.deps import get_db, get_store
from workshop_reports.core.errors import AggregationFailure, InvalidFilter, StoreError
from workshop_reports.crud.workshops import get_workshop
from workshop_reports.schemas.reports import AnnualBillingOut, BillingSummaryOut, IndicatorsOut
from workshop_reports.services.reports.billing import (
    InvoiceRecord,
    annual_collected_billing,
    billing_period_for,
    current_billing_period,
    summarize,
)
from workshop_reports.services.reports.filters import (
    FilterState,
    MonthYearFilter,
    RangeFilter,
    build_filter_state,
    resolve,
)
from workshop_reports.services.reports.indicators import IndicatorsResult
from workshop_reports.services.reports.kpi import KpiAggregationEngine
from workshop_reports.services.reports.ratios import compute_ratios
from workshop_reports.services.store import RecordStore
from workshop_reports.services.sync.mutations import INVOICE_TABLE

router = APIRouter()

def filters_payload(state: FilterState) -> dict:
    t = state.temporal
    out = {"workshop_id": state.workshop_id, "mode": state.mode}
    if isinstance(t, RangeFilter):
        out.update(date_from=t.date_from, date_to=t.date_to)
    elif isinstance(t, MonthYearFilter):
        out.update(month=t.month, year=t.year)
    return out

def indicators_payload(result: IndicatorsResult) -> dict:
    return {
        "filters": filters_payload(result.filters),
        "window": (
            {"date_from": result.window.date_from, "date_to": result.window.date_to}
            if result.window else None
        ),
        "data": result.data.as_dict() if result.data else None,
        "ratios": result.ratios.as_dict() if result.ratios else None,
        "loading": result.loading,
        "error": result.error,
    }

def _require_workshop(db: Session, workshop_id: int):
    if not get_workshop(db, workshop_id):
        raise HTTPException(status_code=404, detail="Workshop not found")

def load_invoice_records(store: RecordStore, workshop_id: int) -> list[InvoiceRecord]:
    try:
        rows = store.find(INVOICE_TABLE, equals={"workshop_id": workshop_id})
    except StoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return [InvoiceRecord.from_row(r) for r in rows]

@router.get("/kpi", response_model=IndicatorsOut)
def kpi(
    workshop_id: int = Query(...),
    date_from: dt.date | None = Query(None),
    date_to: dt.date | None = Query(None),
    month: int | None = Query(None, ge=0, le=11),
    year: int | None = Query(None),
    db: Session = Depends(get_db),
    store: RecordStore = Depends(get_store),
):
    _require_workshop(db, workshop_id)
    try:
        state = build_filter_state(workshop_id, date_from, date_to, month, year)
        window = resolve(state)
    except InvalidFilter as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        data = KpiAggregationEngine(store).aggregate(workshop_id, window)
    except AggregationFailure as e:
        return indicators_payload(IndicatorsResult(state, window, None, None, error=e.message))
    return indicators_payload(IndicatorsResult(state, window, data, compute_ratios(data)))

@router.get("/billing/summary", response_model=BillingSummaryOut)
def billing_summary(
    workshop_id: int = Query(...),
    year: int | None = Query(None),
    month: int | None = Query(None, ge=0, le=11),
    db: Session = Depends(get_db),
    store: RecordStore = Depends(get_store),
):
    _require_workshop(db, workshop_id)
    if (year is None) != (month is None):
        raise HTTPException(status_code=422, detail="year and month must be given together")
    period = current_billing_period(dt.datetime.now()) if year is None else billing_period_for(year, month + 1)
    s = summarize(load_invoice_records(store, workshop_id), period.start, period.end)
    return {"period_start": period.start, "period_end": period.end, **s.as_dict()}

@router.get("/billing/annual", response_model=AnnualBillingOut)
def billing_annual(
    workshop_id: int = Query(...),
    year: int | None = Query(None),
    db: Session = Depends(get_db),
    store: RecordStore = Depends(get_store),
):
    _require_workshop(db, workshop_id)
    year = year or dt.date.today().year
    months = annual_collected_billing(load_invoice_records(store, workshop_id), year)
    return {
        "workshop_id": workshop_id,
        "year": year,
        "months": months,
        "collected_total": sum(m["collected_total"] for m in months),
    }
