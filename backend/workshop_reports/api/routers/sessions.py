import datetime as dt
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from workshop_reports.api.routers.reports import indicators_payload
from workshop_reports.core.deps import get_bus, get_db, get_registry, get_store
from workshop_reports.core.errors import InvalidFilter
from workshop_reports.crud.workshops import get_workshop
from workshop_reports.schemas.invoices import CollectedIn, MutationOut
from workshop_reports.schemas.reports import BillingStatisticsOut, BillingSummaryOut, IndicatorsOut
from workshop_reports.schemas.sessions import (
    FilterChangeIn,
    ListingOut,
    RefreshOut,
    SessionCreate,
    SessionOut,
)
from workshop_reports.services.reports.billing import InvoiceListFilter
from workshop_reports.services.reports.filters import FilterState
from workshop_reports.services.store import RecordStore
from workshop_reports.services.sync.bus import MutationBroadcastBus
from workshop_reports.services.sync.session import ReportingSession, SessionRegistry

router = APIRouter()

def _session_out(s: ReportingSession) -> dict:
    return {
        "id": s.id,
        "workshop_id": s.workshop_id,
        "views": [{"name": v.name, "state": v.state.value, "records": len(v.records)} for v in s.views],
        "invoice_error": s.invoice_error,
    }

def _get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> ReportingSession:
    s = registry.get(session_id)
    if s is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return s

def apply_filter_change(state: FilterState, data: FilterChangeIn) -> FilterState:
    sent = data.model_fields_set
    if sent & {"date_from", "date_to"} and sent & {"month", "year"}:
        raise InvalidFilter("date range and month/year filters are mutually exclusive")
    if data.clear_temporal:
        state = state.without_temporal()
    if "workshop_id" in sent:
        state = state.with_workshop(data.workshop_id)
    if "date_from" in sent:
        state = state.with_date_from(data.date_from)
    if "date_to" in sent:
        state = state.with_date_to(data.date_to)
    if "month" in sent:
        state = state.with_month(data.month)
    if "year" in sent:
        state = state.with_year(data.year)
    return state

@router.post("", response_model=SessionOut)
def post_session(
    data: SessionCreate,
    db: Session = Depends(get_db),
    store: RecordStore = Depends(get_store),
    bus: MutationBroadcastBus = Depends(get_bus),
    registry: SessionRegistry = Depends(get_registry),
):
    if not get_workshop(db, data.workshop_id):
        raise HTTPException(status_code=404, detail="Workshop not found")
    return _session_out(registry.open(data.workshop_id, store, bus))

@router.get("/{session_id}", response_model=SessionOut)
def get_session(s: ReportingSession = Depends(_get_session)):
    return _session_out(s)

@router.delete("/{session_id}")
def delete_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    if not registry.close(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "ok"}

@router.get("/{session_id}/indicators", response_model=IndicatorsOut)
def get_indicators(s: ReportingSession = Depends(_get_session)):
    return indicators_payload(s.indicators.result())

@router.put("/{session_id}/filters", response_model=IndicatorsOut)
def put_filters(data: FilterChangeIn, s: ReportingSession = Depends(_get_session)):
    try:
        new_state = apply_filter_change(s.indicators.filters, data)
    except InvalidFilter as e:
        raise HTTPException(status_code=422, detail=str(e))
    # a well-formed but not yet resolvable state comes back as `error`, filters unchanged
    return indicators_payload(s.indicators.change_filters(new_state))

@router.post("/{session_id}/indicators/reload", response_model=IndicatorsOut)
def reload_indicators(s: ReportingSession = Depends(_get_session)):
    return indicators_payload(s.indicators.reload())

@router.get("/{session_id}/invoices", response_model=ListingOut)
def get_listing(
    client: str | None = Query(None),
    concept: str | None = Query(None),
    date_from: dt.date | None = Query(None),
    date_to: dt.date | None = Query(None),
    collected: bool | None = Query(None),
    s: ReportingSession = Depends(_get_session),
):
    rows, summary = s.listing.filtered(
        InvoiceListFilter(client=client, concept=concept, date_from=date_from, date_to=date_to, collected=collected)
    )
    return {"rows": rows, "summary": summary.as_dict()}

@router.get("/{session_id}/statistics", response_model=BillingStatisticsOut)
def get_statistics(s: ReportingSession = Depends(_get_session)):
    return s.statistics.statistics.as_dict()

@router.get("/{session_id}/summary", response_model=BillingSummaryOut)
def get_summary(s: ReportingSession = Depends(_get_session)):
    return {"period_start": s.cards.period.start, "period_end": s.cards.period.end, **s.cards.summary.as_dict()}

@router.post("/{session_id}/refresh", response_model=RefreshOut)
def refresh(s: ReportingSession = Depends(_get_session)):
    refreshed = s.refresh_invoices()
    return {"refreshed": refreshed, "invoice_error": s.invoice_error}

@router.post("/{session_id}/invoices/{invoice_id}/collected", response_model=MutationOut)
def post_collected(invoice_id: str, data: CollectedIn, s: ReportingSession = Depends(_get_session)):
    return s.set_collected(invoice_id, data.collected)
