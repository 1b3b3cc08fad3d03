import datetime as dt
from pydantic import BaseModel, Field

class KpiIn(BaseModel):
    workshop_id: int
    fecha: dt.date
    mo_mecanica: float | None = None
    mo_chapa: float | None = None
    mo_pintura: float | None = None
    or_mecanica: float | None = None
    or_carroceria: float | None = None
    material_pintura: float | None = None
    material_anexos: float | None = None
    materiales_mecanica: float | None = None
    total_materiales: float | None = None
    total_mano_obra: float | None = None
    total_facturas: float | None = None

class InvoiceIn(BaseModel):
    workshop_id: int
    client_id: str = Field(..., min_length=1)
    client_name: str | None = None
    invoice_number: str | None = None
    concept: str = ""
    amount: float = 0.0
    issue_date: dt.datetime
    collected: bool = False
