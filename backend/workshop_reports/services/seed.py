import datetime as dt
import random
from sqlalchemy.orm import Session
from workshop_reports.db.session import SessionLocal
from workshop_reports.core.config import settings
from workshop_reports.core.logging import logger
from workshop_reports.crud.workshops import list_workshops, create_workshop
from workshop_reports.crud.entries import upsert_kpi, create_invoice
from workshop_reports.schemas.workshop import WorkshopCreate
from workshop_reports.schemas.entries import KpiIn, InvoiceIn

DEMO_CLIENTS = [
    ("C-001", "Autos Garcia"),
    ("C-002", "Flota Levante"),
    ("C-003", "Maria Lopez"),
    ("C-004", "Transportes Ebro"),
    ("C-005", "Rent a Car Sur"),
    ("C-006", "Juan Perez"),
]

def seed_demo(days: int = 120, today: dt.date | None = None):
    today = today or dt.date.today()
    rnd = random.Random(42)
    db: Session = SessionLocal()
    try:
        # Only an empty database gets demo data
        if list_workshops(db):
            return
        w = create_workshop(db, WorkshopCreate(name=settings.DEMO_WORKSHOP_NAME))

        for i in range(days):
            d = today - dt.timedelta(days=i)
            if d.weekday() >= 5:
                continue
            mo_mec = round(rnd.uniform(20, 40), 1)
            mo_chapa = round(rnd.uniform(5, 15), 1)
            mo_pint = round(rnd.uniform(5, 15), 1)
            mat_pint = round(rnd.uniform(150, 400), 2)
            mat_anex = round(rnd.uniform(50, 150), 2)
            mat_mec = round(rnd.uniform(400, 900), 2)
            upsert_kpi(db, KpiIn(
                workshop_id=w.id,
                fecha=d,
                mo_mecanica=mo_mec,
                mo_chapa=mo_chapa,
                mo_pintura=mo_pint,
                or_mecanica=rnd.randint(4, 9),
                or_carroceria=rnd.randint(1, 4),
                material_pintura=mat_pint,
                material_anexos=mat_anex,
                materiales_mecanica=mat_mec,
                total_materiales=mat_pint + mat_anex + mat_mec,
                total_mano_obra=round((mo_mec + mo_chapa + mo_pint) * 45, 2),
                total_facturas=rnd.randint(5, 12),
            ))

        for i in range(days // 3):
            client_id, client_name = rnd.choice(DEMO_CLIENTS)
            issued = dt.datetime.combine(today - dt.timedelta(days=i * 3), dt.time(10, 0))
            create_invoice(db, InvoiceIn(
                workshop_id=w.id,
                client_id=client_id,
                client_name=client_name,
                invoice_number=f"F-{today.year}-{i + 1:04d}",
                concept=rnd.choice(["Revision", "Cambio de aceite", "Reparacion chapa", "Pintura", "Neumaticos"]),
                amount=round(rnd.uniform(80, 1500), 2),
                issue_date=issued,
                # recent invoices are mostly still pending
                collected=i > 5 and rnd.random() < 0.8,
            ))
        logger.info("demo_seeded", workshop_id=w.id, days=days)
    finally:
        db.close()
