"""Invoice writes that notify the rest of the process."""
from __future__ import annotations

from dataclasses import dataclass

from workshop_reports.core.errors import MutationFailure, StoreError
from workshop_reports.core.logging import logger
from workshop_reports.services.store import RecordStore
from workshop_reports.services.sync.bus import COLLECTED, MutationBroadcastBus, MutationEvent

INVOICE_TABLE = "invoices"


@dataclass(frozen=True)
class MutationResult:
    success: bool
    record_id: str
    collected: bool | None = None
    version: int | None = None
    error: str | None = None


class InvoiceMutations:
    def __init__(self, store: RecordStore, bus: MutationBroadcastBus):
        self.store = store
        self.bus = bus

    def _write_collected(self, invoice_id: str, collected: bool) -> dict:
        try:
            return self.store.update(INVOICE_TABLE, invoice_id, {COLLECTED: collected})
        except StoreError as e:
            raise MutationFailure(f"Could not update invoice {invoice_id}: {e}") from e

    def set_collected(self, invoice_id: str, collected: bool) -> MutationResult:
        """Write the collected flag, then broadcast it. Nothing is published on failure."""
        try:
            row = self._write_collected(invoice_id, collected)
        except MutationFailure as e:
            logger.warning("invoice_mutation_failed", record_id=invoice_id, collected=collected, error=e.message)
            return MutationResult(success=False, record_id=invoice_id, error=e.message)

        new_value = bool(row.get(COLLECTED, collected))
        version = row.get("version")
        self.bus.publish(
            MutationEvent(
                record_id=invoice_id,
                field=COLLECTED,
                new_value=new_value,
                snapshot={"id": invoice_id, "amount": row.get("amount"), "issue_date": row.get("issue_date")},
                version=version,
            )
        )
        return MutationResult(success=True, record_id=invoice_id, collected=new_value, version=version)

    def mark_collected(self, invoice_id: str) -> MutationResult:
        return self.set_collected(invoice_id, True)

    def revert_collected(self, invoice_id: str) -> MutationResult:
        return self.set_collected(invoice_id, False)
