"""
Business indicators panel for one browsing session.

Filter change -> window resolution -> fetch guard -> aggregation -> ratios.
A result is only applied if the panel is still mounted and its filters have
not changed since the fetch started; anything else is discarded.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, replace
from typing import Callable

from workshop_reports.core.errors import AggregationFailure, InvalidFilter
from workshop_reports.core.logging import logger
from workshop_reports.services.reports.fetch_guard import FetchGuard
from workshop_reports.services.reports.filters import FilterState, ResolvedWindow, resolve
from workshop_reports.services.reports.kpi import AggregateKpi, KpiAggregationEngine
from workshop_reports.services.reports.ratios import RatioSet, compute_ratios


@dataclass(frozen=True)
class IndicatorsResult:
    filters: FilterState
    window: ResolvedWindow | None
    data: AggregateKpi | None
    ratios: RatioSet | None
    loading: bool = False
    error: str | None = None


class IndicatorsPanel:
    def __init__(
        self,
        engine: KpiAggregationEngine,
        filters: FilterState | None = None,
        today: Callable[[], dt.date] = dt.date.today,
    ):
        self.engine = engine
        self.guard = FetchGuard()
        self.filters = filters or FilterState()
        self._today = today
        self.window: ResolvedWindow | None = None
        self.data: AggregateKpi | None = None
        self.ratios: RatioSet | None = None
        self.error: str | None = None
        self.loading = False
        self.mounted = False
        self._generation = 0
        self._shown_key = None

    def mount(self) -> IndicatorsResult:
        self.mounted = True
        return self.refresh()

    def unmount(self) -> None:
        self.mounted = False
        self._generation += 1

    def result(self) -> IndicatorsResult:
        return IndicatorsResult(
            filters=self.filters,
            window=self.window,
            data=self.data,
            ratios=self.ratios,
            loading=self.loading,
            error=self.error,
        )

    def change_filters(self, update: FilterState | Callable[[FilterState], FilterState]) -> IndicatorsResult:
        """Apply a filter change; a state that cannot be resolved is rejected and the current one kept."""
        try:
            new_filters = update(self.filters) if callable(update) else update
            resolve(new_filters, today=self._today())
        except InvalidFilter as e:
            logger.info("filter_change_rejected", workshop_id=self.filters.workshop_id, error=str(e))
            return replace(self.result(), error=str(e))
        if new_filters != self.filters:
            self.filters = new_filters
            self._generation += 1
        return self.refresh()

    def reload(self) -> IndicatorsResult:
        return self.refresh(force=True)

    def refresh(self, force: bool = False) -> IndicatorsResult:
        workshop_id = self.filters.workshop_id
        if workshop_id is None:
            self.window = None
            self.data = None
            self.ratios = None
            self.error = None
            self.loading = False
            self._shown_key = None
            return self.result()

        try:
            window = resolve(self.filters, today=self._today())
        except InvalidFilter as e:
            # only reachable through a state passed to the constructor
            logger.warning("filter_unresolvable", workshop_id=workshop_id, error=str(e))
            self.window = None
            self.data = None
            self.ratios = None
            self.error = str(e)
            self._shown_key = None
            return self.result()
        self.window = window
        key = FetchGuard.key(workshop_id, window)
        # what is on screen may belong to another key after a failed fetch
        force = force or self._shown_key != key
        if not self.guard.begin(workshop_id, window, force=force):
            logger.debug(
                "kpi_fetch_skipped",
                workshop_id=workshop_id,
                date_from=window.date_from.isoformat(),
                date_to=window.date_to.isoformat(),
            )
            return self.result()

        generation = self._generation
        self.loading = True
        self.error = None
        try:
            data = self.engine.aggregate(workshop_id, window)
        except AggregationFailure as e:
            self.guard.fail(workshop_id, window)
            if self._is_current(generation):
                self.data = None
                self.ratios = None
                self.error = e.message
                self.loading = False
                self._shown_key = None
            return self.result()

        if not self._is_current(generation):
            # let the same key be fetched again if the user comes back to it
            self.guard.fail(workshop_id, window)
            logger.info("stale_result_discarded", workshop_id=workshop_id, view="indicators")
            return self.result()

        self.guard.succeed(workshop_id, window)
        self._shown_key = key
        self.data = data
        self.ratios = compute_ratios(data)
        self.loading = False
        return self.result()

    def _is_current(self, generation: int) -> bool:
        return self.mounted and generation == self._generation
