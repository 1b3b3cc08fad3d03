"""
Process-wide mutation broadcast.

Views holding a local copy of invoice data subscribe here and get told about
single-field changes made elsewhere in the process, so they can patch their
copy and recompute derived figures without reloading the collection.

Delivery rules:
1. Synchronous, in subscription order.
2. Events are delivered in publish order. A publish issued from inside a
   handler is queued behind the event being delivered.
3. A failing handler is logged and skipped; the others still get the event.
4. Nothing is persisted and nothing is acknowledged.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from functools import lru_cache
from itertools import count
from threading import RLock
from typing import Any, Callable

from workshop_reports.core.logging import logger

COLLECTED = "collected"


@dataclass(frozen=True)
class MutationEvent:
    record_id: str
    field: str
    new_value: Any
    snapshot: dict[str, Any] = field(default_factory=dict)
    # store-assigned row version after the write; None means unversioned
    version: int | None = None


Handler = Callable[[MutationEvent], None]


class Subscription:
    """Disposable handle returned by `subscribe`."""

    def __init__(self, bus: "MutationBroadcastBus", sub_id: int, handler: Handler, name: str):
        self._bus = bus
        self.id = sub_id
        self.handler = handler
        self.name = name
        self.active = True

    def dispose(self) -> None:
        if not self.active:
            return
        self.active = False
        self._bus._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"Subscription(id={self.id}, name={self.name!r}, active={self.active})"


class MutationBroadcastBus:
    def __init__(self):
        self._subs: list[Subscription] = []
        self._queue: deque[MutationEvent] = deque()
        self._dispatching = False
        self._ids = count(1)
        self._lock = RLock()

    def subscribe(self, handler: Handler, name: str | None = None) -> Subscription:
        with self._lock:
            sub = Subscription(self, next(self._ids), handler, name or getattr(handler, "__qualname__", repr(handler)))
            self._subs.append(sub)
        logger.debug("subscriber_added", subscriber=sub.name, subscription_id=sub.id)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            self._subs = [s for s in self._subs if s is not sub]
        logger.debug("subscriber_removed", subscriber=sub.name, subscription_id=sub.id)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def publish(self, event: MutationEvent) -> None:
        with self._lock:
            self._queue.append(event)
            if self._dispatching:
                return
            self._dispatching = True
            try:
                while self._queue:
                    self._deliver(self._queue.popleft())
            finally:
                self._dispatching = False

    def _deliver(self, event: MutationEvent) -> None:
        # handlers may subscribe or dispose while we iterate
        subscribers = list(self._subs)
        failed = 0
        for sub in subscribers:
            if not sub.active:
                continue
            try:
                sub.handler(event)
            except Exception:
                failed += 1
                logger.exception(
                    "subscriber_failed",
                    subscriber=sub.name,
                    record_id=event.record_id,
                    field=event.field,
                )
        logger.info(
            "mutation_published",
            record_id=event.record_id,
            field=event.field,
            version=event.version,
            subscribers=len(subscribers),
            failed=failed,
        )


@lru_cache
def get_bus() -> MutationBroadcastBus:
    return MutationBroadcastBus()
