"""
Invoice views kept consistent through the mutation bus.

Each view owns its own copy of the workshop's invoices. On a broadcast it
replaces the affected record and, when the record is in scope for what the
view shows, recomputes its figures from the whole local collection.
"""
from __future__ import annotations

import datetime as dt
import enum
from dataclasses import fields, replace
from threading import RLock
from typing import Callable, Iterable

from workshop_reports.core.config import settings
from workshop_reports.core.errors import NotFoundLocally
from workshop_reports.core.logging import logger
from workshop_reports.services.reports.billing import (
    BillingPeriod,
    BillingStatistics,
    BillingSummary,
    InvoiceListFilter,
    InvoiceRecord,
    InvoiceSummary,
    apply_listing_filter,
    billing_statistics,
    current_billing_period,
    summarize,
    summarize_invoices,
)
from workshop_reports.services.sync.bus import MutationBroadcastBus, MutationEvent, Subscription

Clock = Callable[[], dt.datetime]

_RECORD_FIELDS = {f.name for f in fields(InvoiceRecord)} - {"id", "version"}


class SubscriberState(str, enum.Enum):
    idle = "idle"
    subscribed = "subscribed"
    reconciled = "reconciled"
    unsubscribed = "unsubscribed"


class InvoiceView:
    name = "invoices"

    def __init__(self, clock: Clock = dt.datetime.now):
        self.clock = clock
        self.records: list[InvoiceRecord] = []
        self.state = SubscriberState.idle
        self.subscription: Subscription | None = None
        self.recomputations = 0
        # guards `records`; held for the whole of a delivery, a load or a read
        self.lock = RLock()
        self.recompute()

    # lifecycle

    def mount(self, bus: MutationBroadcastBus) -> Subscription:
        if self.subscription is not None and self.subscription.active:
            return self.subscription
        self.subscription = bus.subscribe(self.on_mutation, name=self.name)
        self.state = SubscriberState.subscribed
        return self.subscription

    def unmount(self) -> None:
        if self.subscription is not None:
            self.subscription.dispose()
            self.subscription = None
        self.state = SubscriberState.unsubscribed

    @property
    def mounted(self) -> bool:
        return self.subscription is not None and self.subscription.active

    # data

    def load(self, records: Iterable[InvoiceRecord]) -> None:
        """Replace the whole local collection (result of a full fetch), keeping newer local versions."""
        with self.lock:
            local = {r.id: r for r in self.records}
            merged = []
            for r in records:
                mine = local.get(r.id)
                # a broadcast may already have delivered a newer version than the read saw
                if mine is not None and mine.version is not None and r.version is not None and mine.version > r.version:
                    merged.append(mine)
                else:
                    merged.append(r)
            self.records = merged
            self.recompute()

    def _index_of(self, record_id: str) -> int:
        for i, r in enumerate(self.records):
            if r.id == record_id:
                return i
        raise NotFoundLocally(record_id)

    def get(self, record_id: str) -> InvoiceRecord | None:
        with self.lock:
            try:
                return self.records[self._index_of(record_id)]
            except NotFoundLocally:
                return None

    def on_mutation(self, event: MutationEvent) -> None:
        # lookup and write must see the same list
        with self.lock:
            self._apply(event)

    def _apply(self, event: MutationEvent) -> None:
        if event.field not in _RECORD_FIELDS:
            logger.debug("event_ignored_unknown_field", view=self.name, field=event.field)
            return
        try:
            idx = self._index_of(event.record_id)
        except NotFoundLocally:
            # the next full load brings it in
            logger.debug("event_ignored_not_found", view=self.name, record_id=event.record_id)
            return

        current = self.records[idx]
        if event.version is not None and current.version is not None and event.version <= current.version:
            logger.info(
                "event_ignored_stale",
                view=self.name,
                record_id=event.record_id,
                event_version=event.version,
                local_version=current.version,
            )
            return

        updated = replace(current, **{event.field: event.new_value})
        if event.version is not None:
            updated = replace(updated, version=event.version)
        self.records[idx] = updated
        self.state = SubscriberState.reconciled

        if self.in_scope(current) or self.in_scope(updated):
            self.recompute()
        self.state = SubscriberState.subscribed

    # derived figures

    def in_scope(self, record: InvoiceRecord) -> bool:
        return True

    def recompute(self) -> None:
        self.recomputations += 1


class InvoiceListingView(InvoiceView):
    name = "invoice_listing"

    def __init__(self, clock: Clock = dt.datetime.now, listing_filter: InvoiceListFilter | None = None):
        self.listing_filter = listing_filter or InvoiceListFilter()
        self.summary = InvoiceSummary()
        super().__init__(clock)

    def set_filter(self, listing_filter: InvoiceListFilter | None) -> None:
        with self.lock:
            self.listing_filter = listing_filter or InvoiceListFilter()

    def rows(self) -> list[InvoiceRecord]:
        with self.lock:
            return apply_listing_filter(self.records, self.listing_filter)

    def filtered(self, listing_filter: InvoiceListFilter | None) -> tuple[list[InvoiceRecord], InvoiceSummary]:
        """Set the filter and read rows plus summary as one consistent snapshot."""
        with self.lock:
            self.set_filter(listing_filter)
            return self.rows(), self.summary

    def recompute(self) -> None:
        super().recompute()
        self.summary = summarize_invoices(self.records, self.clock(), recent_days=settings.RECENT_DAYS)


class BillingStatisticsView(InvoiceView):
    name = "billing_statistics"

    def __init__(self, clock: Clock = dt.datetime.now):
        self.statistics: BillingStatistics | None = None
        super().__init__(clock)

    def in_scope(self, record: InvoiceRecord) -> bool:
        return record.collected

    def recompute(self) -> None:
        super().recompute()
        self.statistics = billing_statistics(
            self.records,
            self.clock(),
            months=settings.STATISTICS_MONTHS,
            top=settings.TOP_CLIENTS,
            recent_days=settings.RECENT_DAYS,
        )


class SummaryCardsView(InvoiceView):
    name = "summary_cards"

    def __init__(self, clock: Clock = dt.datetime.now):
        self.period: BillingPeriod | None = None
        self.summary = BillingSummary()
        super().__init__(clock)

    def in_scope(self, record: InvoiceRecord) -> bool:
        period = current_billing_period(self.clock())
        if period != self.period:
            # the month turned since the last recompute; everything shown is outdated
            return True
        return period.contains(record.issue_date)

    def recompute(self) -> None:
        super().recompute()
        self.period = current_billing_period(self.clock())
        self.summary = summarize(self.records, self.period.start, self.period.end)
