# import all models for Alembic
from workshop_reports.db.models.workshop import Workshop
from workshop_reports.db.models.kpi import KpiDaily
from workshop_reports.db.models.invoice import Invoice
