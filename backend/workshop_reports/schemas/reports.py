import datetime as dt
from pydantic import BaseModel

class WindowOut(BaseModel):
    date_from: dt.date
    date_to: dt.date

class AggregateKpiOut(BaseModel):
    hours_mechanics: float
    hours_sheet_metal: float
    hours_paint: float
    orders_mechanics: float
    orders_bodywork: float
    material_paint: float
    material_ancillary: float
    total_materials: float
    total_labor: float
    total_invoiced: float
    materials_mechanics: float
    labor_mechanics: float
    materials_bodywork: float
    labor_bodywork: float

class RatioSetOut(BaseModel):
    hours_per_order_mechanics: float
    hours_per_order_bodywork: float
    avg_ticket_mechanics: float
    avg_ticket_bodywork: float
    paint_material_per_hour: float
    paint_material_per_order: float

class FiltersOut(BaseModel):
    workshop_id: int | None = None
    mode: str | None = None
    date_from: dt.date | None = None
    date_to: dt.date | None = None
    month: int | None = None
    year: int | None = None

class IndicatorsOut(BaseModel):
    filters: FiltersOut
    window: WindowOut | None = None
    data: AggregateKpiOut | None = None
    ratios: RatioSetOut | None = None
    loading: bool = False
    error: str | None = None

class BillingSummaryOut(BaseModel):
    period_start: dt.datetime
    period_end: dt.datetime
    count: int
    collected_count: int
    collected_total: float
    average_collected: float

class InvoiceSummaryOut(BaseModel):
    total_collected: float
    invoice_count: int
    collected_count: int
    collected_last_30_days: float
    new_last_30_days: int
    average_collected: float
    pct_last_30_days: float

class MonthTotalOut(BaseModel):
    month: str
    total: float

class ClientTotalOut(BaseModel):
    client_id: str | None = None
    client_name: str
    total: float
    invoices: int

class BillingStatisticsOut(BaseModel):
    collected_count: int
    collected_total: float
    collected_recent: float
    monthly: list[MonthTotalOut]
    top_clients: list[ClientTotalOut]

class AnnualMonthOut(BaseModel):
    month: int
    collected_total: float
    collected_count: int

class AnnualBillingOut(BaseModel):
    workshop_id: int
    year: int
    months: list[AnnualMonthOut]
    collected_total: float
