"""
Indicator filter state and its resolution into a concrete date window.

The temporal part of the filter is a tagged union: a date range, a calendar
month, or nothing. Field setters always return a new state whose temporal
part is of exactly one kind, so range fields and month/year fields can never
be populated at the same time.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field, replace
from typing import Literal, Union

from workshop_reports.core.config import settings
from workshop_reports.core.errors import InvalidFilter

Mode = Literal["range", "monthYear"]


@dataclass(frozen=True)
class RangeFilter:
    date_from: dt.date | None = None
    date_to: dt.date | None = None

    kind = "range"


@dataclass(frozen=True)
class MonthYearFilter:
    month: int | None = None  # 0 = January .. 11 = December
    year: int | None = None

    kind = "monthYear"


@dataclass(frozen=True)
class NoTemporalFilter:
    kind = None


TemporalFilter = Union[RangeFilter, MonthYearFilter, NoTemporalFilter]


def _normalize(temporal: TemporalFilter) -> TemporalFilter:
    if isinstance(temporal, RangeFilter) and temporal.date_from is None and temporal.date_to is None:
        return NoTemporalFilter()
    if isinstance(temporal, MonthYearFilter) and temporal.month is None and temporal.year is None:
        return NoTemporalFilter()
    return temporal


@dataclass(frozen=True)
class FilterState:
    workshop_id: int | None = None
    temporal: TemporalFilter = field(default_factory=NoTemporalFilter)

    @property
    def mode(self) -> Mode | None:
        return self.temporal.kind

    def _with_temporal(self, temporal: TemporalFilter) -> "FilterState":
        return replace(self, temporal=_normalize(temporal))

    def with_workshop(self, workshop_id: int | None) -> "FilterState":
        return replace(self, workshop_id=workshop_id)

    def with_date_from(self, value: dt.date | None) -> "FilterState":
        current = self.temporal if isinstance(self.temporal, RangeFilter) else RangeFilter()
        return self._with_temporal(replace(current, date_from=value))

    def with_date_to(self, value: dt.date | None) -> "FilterState":
        current = self.temporal if isinstance(self.temporal, RangeFilter) else RangeFilter()
        return self._with_temporal(replace(current, date_to=value))

    def with_month(self, month: int | None) -> "FilterState":
        if month is not None and not 0 <= month <= 11:
            raise InvalidFilter(f"month must be within 0..11, got {month}")
        current = self.temporal if isinstance(self.temporal, MonthYearFilter) else MonthYearFilter()
        return self._with_temporal(replace(current, month=month))

    def with_year(self, year: int | None) -> "FilterState":
        current = self.temporal if isinstance(self.temporal, MonthYearFilter) else MonthYearFilter()
        return self._with_temporal(replace(current, year=year))

    def without_temporal(self) -> "FilterState":
        return replace(self, temporal=NoTemporalFilter())


def build_filter_state(
    workshop_id: int | None = None,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
    month: int | None = None,
    year: int | None = None,
) -> FilterState:
    """Build a state from flat query parameters; both field pairs at once is rejected."""
    has_range = date_from is not None or date_to is not None
    has_month = month is not None or year is not None
    if has_range and has_month:
        raise InvalidFilter("date range and month/year filters are mutually exclusive")
    state = FilterState(workshop_id=workshop_id)
    if has_range:
        return state.with_date_from(date_from).with_date_to(date_to)
    if has_month:
        return state.with_month(month).with_year(year)
    return state


@dataclass(frozen=True)
class ResolvedWindow:
    """Closed interval [date_from, date_to]."""

    date_from: dt.date
    date_to: dt.date

    def __post_init__(self):
        if self.date_from > self.date_to:
            raise InvalidFilter(f"window start {self.date_from} is after its end {self.date_to}")

    def contains(self, day: dt.date) -> bool:
        return self.date_from <= day <= self.date_to


def month_start(year: int, month: int) -> dt.date:
    """First day of a 0-based month."""
    return dt.date(year, month + 1, 1)


def month_end(year: int, month: int) -> dt.date:
    # day zero of the next month, i.e. its first day minus one
    if month == 11:
        next_m = dt.date(year + 1, 1, 1)
    else:
        next_m = dt.date(year, month + 2, 1)
    return next_m - dt.timedelta(days=1)


def default_window(today: dt.date) -> ResolvedWindow:
    return ResolvedWindow(today - dt.timedelta(days=settings.DEFAULT_WINDOW_DAYS), today)


def resolve(state: FilterState | TemporalFilter, today: dt.date | None = None) -> ResolvedWindow:
    today = today or dt.date.today()
    temporal = state.temporal if isinstance(state, FilterState) else state

    if isinstance(temporal, RangeFilter):
        if temporal.date_from is None:
            raise InvalidFilter("date_from is required when filtering by date range")
        return ResolvedWindow(temporal.date_from, temporal.date_to or today)

    if isinstance(temporal, MonthYearFilter):
        if temporal.month is None or temporal.year is None:
            # month picked without a year (or the reverse): not yet a usable window
            return default_window(today)
        return ResolvedWindow(month_start(temporal.year, temporal.month), month_end(temporal.year, temporal.month))

    return default_window(today)
