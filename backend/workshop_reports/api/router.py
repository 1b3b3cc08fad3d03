from fastapi import APIRouter
from workshop_reports.api.routers import workshops, entries, reports, invoices, sessions

api_router = APIRouter()
api_router.include_router(workshops.router, prefix="/workshops", tags=["workshops"])
api_router.include_router(entries.router, prefix="/entries", tags=["entries"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
api_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
