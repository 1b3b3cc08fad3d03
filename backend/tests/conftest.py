from __future__ import annotations

import datetime as dt
import os
from collections.abc import Generator

# settings are read at import time
os.environ.setdefault("ENV", "test")
os.environ.setdefault("SEED_DEMO", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from workshop_reports.core.deps import get_bus, get_db, get_registry, get_store
from workshop_reports.core.errors import StoreError
from workshop_reports.db.base import Base
import workshop_reports.db.models  # noqa: F401
from workshop_reports.db.models.invoice import Invoice
from workshop_reports.db.models.kpi import KpiDaily
from workshop_reports.db.models.workshop import Workshop
from workshop_reports.main import create_app
from workshop_reports.services.store import SqlRecordStore
from workshop_reports.services.sync.bus import MutationBroadcastBus
from workshop_reports.services.sync.session import SessionRegistry

NOW = dt.datetime(2024, 5, 15, 12, 0)


class CountingStore:
    """Delegating store that records every call."""

    def __init__(self, inner):
        self.inner = inner
        self.finds: list[str] = []
        self.updates: list[tuple[str, str]] = []

    def find(self, table, **filters):
        self.finds.append(table)
        return self.inner.find(table, **filters)

    def update(self, table, record_id, fields):
        self.updates.append((table, record_id))
        return self.inner.update(table, record_id, fields)


class BrokenStore:
    def find(self, table, **filters):
        raise StoreError("connection refused", table=table)

    def update(self, table, record_id, fields):
        raise StoreError("connection refused", table=table, record_id=record_id)


@pytest.fixture()
def session_factory() -> Generator[sessionmaker, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(session_factory) -> SqlRecordStore:
    return SqlRecordStore(session_factory)


@pytest.fixture()
def counting_store(store) -> CountingStore:
    return CountingStore(store)


@pytest.fixture()
def bus() -> MutationBroadcastBus:
    return MutationBroadcastBus()


@pytest.fixture()
def workshop(db_session) -> Workshop:
    w = Workshop(name="Taller Centro")
    db_session.add(w)
    db_session.commit()
    db_session.refresh(w)
    return w


@pytest.fixture()
def add_kpi(db_session):
    def _add(workshop_id: int, fecha: dt.date, **values) -> KpiDaily:
        row = KpiDaily(workshop_id=workshop_id, fecha=fecha, **values)
        db_session.add(row)
        db_session.commit()
        return row
    return _add


@pytest.fixture()
def add_invoice(db_session):
    def _add(
        invoice_id: str,
        workshop_id: int,
        amount: float,
        issue_date: dt.datetime,
        collected: bool = False,
        client_id: str = "C-1",
        client_name: str = "Cliente Uno",
        concept: str = "Revision",
    ) -> Invoice:
        inv = Invoice(
            id=invoice_id,
            workshop_id=workshop_id,
            client_id=client_id,
            client_name=client_name,
            concept=concept,
            amount=amount,
            issue_date=issue_date,
            collected=collected,
            version=1,
        )
        db_session.add(inv)
        db_session.commit()
        return inv
    return _add


@pytest.fixture()
def client(session_factory, store, bus) -> Generator[TestClient, None, None]:
    app = create_app()
    registry = SessionRegistry()

    def override_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_bus] = lambda: bus
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    registry.close_all()
    app.dependency_overrides.clear()


@pytest.fixture()
def broken_store() -> BrokenStore:
    return BrokenStore()


@pytest.fixture()
def now() -> dt.datetime:
    return NOW
