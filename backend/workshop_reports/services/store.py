"""
Keyed record store used by the reporting core.

The core only needs two capabilities from persistence: a filtered range read
and a keyed single-row write. Rows travel as plain dicts so aggregation and
the synchronized views never hold ORM instances across sessions.
"""
from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from workshop_reports.core.errors import StoreError
from workshop_reports.core.logging import logger
from workshop_reports.db.base import Base
from workshop_reports.db.models.invoice import Invoice
from workshop_reports.db.models.kpi import KpiDaily
from workshop_reports.db.models.workshop import Workshop

TABLES: dict[str, type[Base]] = {
    "workshop": Workshop,
    "kpis": KpiDaily,
    "invoices": Invoice,
}


class RecordStore(Protocol):
    def find(
        self,
        table: str,
        *,
        equals: Mapping[str, Any] | None = None,
        gte: Mapping[str, Any] | None = None,
        lte: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]: ...

    def update(self, table: str, record_id: Any, fields: Mapping[str, Any]) -> dict[str, Any]: ...


def _row_to_dict(row: Base) -> dict[str, Any]:
    return {c.key: getattr(row, c.key) for c in row.__table__.columns}


class SqlRecordStore:
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    @staticmethod
    def _model(table: str) -> type[Base]:
        model = TABLES.get(table)
        if model is None:
            raise StoreError(f"Unknown table '{table}'", table=table)
        return model

    @staticmethod
    def _column(model: type[Base], table: str, name: str):
        if name not in model.__table__.columns:
            raise StoreError(f"Unknown column '{name}' for table '{table}'", table=table)
        return getattr(model, name)

    def find(self, table, *, equals=None, gte=None, lte=None):
        model = self._model(table)
        db = self.session_factory()
        try:
            q = db.query(model)
            for name, value in (equals or {}).items():
                q = q.filter(self._column(model, table, name) == value)
            for name, value in (gte or {}).items():
                q = q.filter(self._column(model, table, name) >= value)
            for name, value in (lte or {}).items():
                q = q.filter(self._column(model, table, name) <= value)
            rows = q.order_by(model.id).all()
            return [_row_to_dict(r) for r in rows]
        except SQLAlchemyError as e:
            logger.error("store_find_failed", table=table, error=str(e))
            raise StoreError(f"Read from '{table}' failed: {e}", table=table) from e
        finally:
            db.close()

    def update(self, table, record_id, fields):
        model = self._model(table)
        db = self.session_factory()
        try:
            row = db.get(model, record_id)
            if row is None:
                raise StoreError(f"{table} record '{record_id}' not found", table=table, record_id=str(record_id))
            for name, value in fields.items():
                self._column(model, table, name)
                setattr(row, name, value)
            if "version" in model.__table__.columns:
                row.version = (row.version or 0) + 1
            db.commit()
            db.refresh(row)
            logger.info("store_record_updated", table=table, record_id=str(record_id), fields=sorted(fields))
            return _row_to_dict(row)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("store_update_failed", table=table, record_id=str(record_id), error=str(e))
            raise StoreError(f"Write to '{table}' failed: {e}", table=table, record_id=str(record_id)) from e
        finally:
            db.close()
