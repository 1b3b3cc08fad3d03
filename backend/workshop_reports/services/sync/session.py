"""
Browsing sessions.

A session is what one user has on screen for one workshop: the indicators
panel and the three invoice views. The invoice views are subscribed to the
process-wide bus for as long as the session is open.
"""
from __future__ import annotations

import datetime as dt
import uuid
from contextlib import ExitStack
from threading import Lock
from typing import Callable

from structlog.contextvars import bound_contextvars

from workshop_reports.core.errors import StoreError
from workshop_reports.core.logging import logger
from workshop_reports.services.reports.billing import InvoiceRecord
from workshop_reports.services.reports.filters import FilterState
from workshop_reports.services.reports.indicators import IndicatorsPanel
from workshop_reports.services.reports.kpi import KpiAggregationEngine
from workshop_reports.services.store import RecordStore
from workshop_reports.services.sync.bus import MutationBroadcastBus
from workshop_reports.services.sync.mutations import INVOICE_TABLE, InvoiceMutations, MutationResult
from workshop_reports.services.sync.views import (
    BillingStatisticsView,
    InvoiceListingView,
    InvoiceView,
    SummaryCardsView,
)


class ReportingSession:
    def __init__(
        self,
        session_id: str,
        workshop_id: int,
        store: RecordStore,
        bus: MutationBroadcastBus,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ):
        self.id = session_id
        self.workshop_id = workshop_id
        self.store = store
        self.bus = bus
        self.clock = clock

        self.indicators = IndicatorsPanel(
            KpiAggregationEngine(store),
            FilterState(workshop_id=workshop_id),
            today=lambda: self.clock().date(),
        )
        self.listing = InvoiceListingView(clock)
        self.statistics = BillingStatisticsView(clock)
        self.cards = SummaryCardsView(clock)
        self.mutations = InvoiceMutations(store, bus)

        self.invoice_error: str | None = None
        self.pending: set[str] = set()
        self._mutation_seq = 0
        self.is_open = False

    @property
    def views(self) -> list[InvoiceView]:
        return [self.listing, self.statistics, self.cards]

    def open(self) -> "ReportingSession":
        for view in self.views:
            view.mount(self.bus)
        self.is_open = True
        self.indicators.mount()
        self.refresh_invoices()
        logger.info("session_opened", session_id=self.id, workshop_id=self.workshop_id)
        return self

    def close(self) -> None:
        for view in self.views:
            view.unmount()
        self.indicators.unmount()
        self.is_open = False
        logger.info("session_closed", session_id=self.id, workshop_id=self.workshop_id)

    def __enter__(self) -> "ReportingSession":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def refresh_invoices(self) -> bool:
        """Full reload of the invoice views; False when skipped or failed."""
        if self.pending:
            logger.info("invoice_refresh_deferred", session_id=self.id, pending=sorted(self.pending))
            return False

        seq = self._mutation_seq
        try:
            rows = self.store.find(INVOICE_TABLE, equals={"workshop_id": self.workshop_id})
        except StoreError as e:
            logger.warning("invoice_refresh_failed", session_id=self.id, error=str(e))
            self.invoice_error = f"Could not load invoices: {e}"
            return False

        records = [InvoiceRecord.from_row(r) for r in rows]
        with ExitStack() as stack:
            # no delivery may land between the staleness check and the loads
            for view in self.views:
                stack.enter_context(view.lock)
            # a mutation landed while the read was out; the rows may predate it
            if seq != self._mutation_seq or self.pending or not self.is_open:
                logger.info("stale_result_discarded", session_id=self.id, view="invoices")
                return False
            for view in self.views:
                view.load(records)
        self.invoice_error = None
        return True

    def set_collected(self, invoice_id: str, collected: bool) -> MutationResult:
        self.pending.add(invoice_id)
        self._mutation_seq += 1
        try:
            with bound_contextvars(session_id=self.id, workshop_id=self.workshop_id):
                return self.mutations.set_collected(invoice_id, collected)
        finally:
            self.pending.discard(invoice_id)


class SessionRegistry:
    def __init__(self):
        self._sessions: dict[str, ReportingSession] = {}
        self._lock = Lock()

    def open(
        self,
        workshop_id: int,
        store: RecordStore,
        bus: MutationBroadcastBus,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ) -> ReportingSession:
        session = ReportingSession(uuid.uuid4().hex, workshop_id, store, bus, clock)
        with self._lock:
            self._sessions[session.id] = session
        return session.open()

    def get(self, session_id: str) -> ReportingSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def close(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        return True

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for s in sessions:
            s.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
