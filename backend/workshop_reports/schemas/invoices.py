import datetime as dt
from pydantic import BaseModel, ConfigDict

class InvoiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workshop_id: int
    client_id: str | None = None
    client_name: str | None = None
    invoice_number: str | None = None
    concept: str | None = None
    amount: float
    issue_date: dt.datetime
    collected: bool
    version: int | None = None

class CollectedIn(BaseModel):
    collected: bool

class MutationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    record_id: str
    collected: bool | None = None
    version: int | None = None
    error: str | None = None
