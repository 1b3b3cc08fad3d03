"""
Suppresses redundant indicator fetches.

A fetch is identified by (workshop_id, date_from, date_to). The guard keeps
the key of the last successful fetch and the keys currently in flight; a key
already in flight is never started a second time, even when forced.
"""
from __future__ import annotations

import datetime as dt
from threading import Lock

from workshop_reports.services.reports.filters import ResolvedWindow

FetchKey = tuple[int | None, dt.date, dt.date]


class FetchGuard:
    def __init__(self):
        self._last: FetchKey | None = None
        self._in_flight: set[FetchKey] = set()
        self._lock = Lock()

    @staticmethod
    def key(workshop_id: int | None, window: ResolvedWindow) -> FetchKey:
        return (workshop_id, window.date_from, window.date_to)

    @property
    def last_key(self) -> FetchKey | None:
        return self._last

    def in_flight(self, workshop_id: int | None, window: ResolvedWindow) -> bool:
        with self._lock:
            return self.key(workshop_id, window) in self._in_flight

    def should_fetch(self, workshop_id: int | None, window: ResolvedWindow, force: bool = False) -> bool:
        k = self.key(workshop_id, window)
        with self._lock:
            if k in self._in_flight:
                return False
            return force or self._last != k

    def begin(self, workshop_id: int | None, window: ResolvedWindow, force: bool = False) -> bool:
        """Check and mark the key in flight in one step; False means skip the fetch."""
        k = self.key(workshop_id, window)
        with self._lock:
            if k in self._in_flight:
                return False
            if not force and self._last == k:
                return False
            self._in_flight.add(k)
            return True

    def succeed(self, workshop_id: int | None, window: ResolvedWindow) -> None:
        k = self.key(workshop_id, window)
        with self._lock:
            self._in_flight.discard(k)
            self._last = k

    def fail(self, workshop_id: int | None, window: ResolvedWindow) -> None:
        with self._lock:
            self._in_flight.discard(self.key(workshop_id, window))

    def reset(self) -> None:
        with self._lock:
            self._last = None
            self._in_flight.clear()
