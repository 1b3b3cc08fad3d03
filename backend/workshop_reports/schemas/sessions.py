import datetime as dt
from pydantic import BaseModel

from workshop_reports.schemas.invoices import InvoiceOut
from workshop_reports.schemas.reports import InvoiceSummaryOut

class SessionCreate(BaseModel):
    workshop_id: int

class ViewStateOut(BaseModel):
    name: str
    state: str
    records: int

class SessionOut(BaseModel):
    id: str
    workshop_id: int
    views: list[ViewStateOut]
    invoice_error: str | None = None

class FilterChangeIn(BaseModel):
    """Only the fields sent are applied, range fields before month/year."""

    workshop_id: int | None = None
    date_from: dt.date | None = None
    date_to: dt.date | None = None
    month: int | None = None  # 0 = January
    year: int | None = None
    clear_temporal: bool = False

class ListingOut(BaseModel):
    rows: list[InvoiceOut]
    summary: InvoiceSummaryOut

class RefreshOut(BaseModel):
    refreshed: bool
    invoice_error: str | None = None
