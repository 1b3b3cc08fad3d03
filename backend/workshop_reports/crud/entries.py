import uuid
from sqlalchemy.orm import Session
from workshop_reports.db.models.invoice import Invoice
from workshop_reports.db.models.kpi import KpiDaily
from workshop_reports.schemas.entries import KpiIn, InvoiceIn

def upsert_kpi(db: Session, data: KpiIn) -> KpiDaily:
    # one row per (workshop, fecha); a second post for the same day overwrites it
    row = (
        db.query(KpiDaily)
        .filter(KpiDaily.workshop_id == data.workshop_id, KpiDaily.fecha == data.fecha)
        .one_or_none()
    )
    if row is None:
        row = KpiDaily(workshop_id=data.workshop_id, fecha=data.fecha)
        db.add(row)
    for name, value in data.model_dump(exclude={"workshop_id", "fecha"}).items():
        setattr(row, name, value)
    db.commit()
    db.refresh(row)
    return row

def create_invoice(db: Session, data: InvoiceIn) -> Invoice:
    inv = Invoice(
        id=uuid.uuid4().hex,
        workshop_id=data.workshop_id,
        client_id=data.client_id,
        client_name=data.client_name,
        invoice_number=data.invoice_number,
        concept=data.concept,
        amount=data.amount,
        issue_date=data.issue_date,
        collected=data.collected,
        version=1,
    )
    db.add(inv)
    db.commit()
    db.refresh(inv)
    return inv

def list_invoices(db: Session, workshop_id: int) -> list[Invoice]:
    return (
        db.query(Invoice)
        .filter(Invoice.workshop_id == workshop_id)
        .order_by(Invoice.issue_date.desc(), Invoice.id.desc())
        .all()
    )
