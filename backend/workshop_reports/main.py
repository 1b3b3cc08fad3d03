from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from workshop_reports.core.config import settings
from workshop_reports.core.logging import configure_logging, logger
from workshop_reports.api.router import api_router
from workshop_reports.db.session import engine
from workshop_reports.db.base import Base
from workshop_reports.db import models  # noqa: F401  registers tables on Base.metadata
from workshop_reports.services.seed import seed_demo

def prepare_database() -> None:
    # Ensure tables exist for dev-only convenience; in prod rely on alembic
    if settings.ENV == "dev":
        Base.metadata.create_all(bind=engine)
    if settings.SEED_DEMO and settings.ENV == "dev":
        seed_demo()

@asynccontextmanager
async def lifespan(app: FastAPI):
    prepare_database()
    yield

def create_app() -> FastAPI:
    configure_logging(settings.ENV)
    app = FastAPI(title="Workshop Reports", version="0.1.0", lifespan=lifespan)

    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    app.include_router(api_router)
    logger.info("app_started", env=settings.ENV)
    return app

app = create_app()
