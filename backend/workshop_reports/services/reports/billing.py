"""
Billing figures over an in-memory invoice collection.

Everything here is a pure function of a snapshot of records: the views call
these after every local change, so nothing may read the store or keep state.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, asdict
from typing import Any, Iterable, Mapping

import pandas as pd

ONE_MS = dt.timedelta(milliseconds=1)


@dataclass(frozen=True)
class InvoiceRecord:
    id: str
    workshop_id: int
    amount: float
    issue_date: dt.datetime
    collected: bool
    concept: str | None = None
    client_id: str | None = None
    client_name: str | None = None
    invoice_number: str | None = None
    version: int | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "InvoiceRecord":
        issue_date = row["issue_date"]
        if not isinstance(issue_date, dt.datetime):
            issue_date = dt.datetime.combine(issue_date, dt.time.min)
        return cls(
            id=str(row["id"]),
            workshop_id=row["workshop_id"],
            amount=float(row.get("amount") or 0.0),
            issue_date=issue_date,
            collected=bool(row.get("collected")),
            concept=row.get("concept"),
            client_id=row.get("client_id"),
            client_name=row.get("client_name"),
            invoice_number=row.get("invoice_number"),
            version=row.get("version"),
        )


def start_of_day(d: dt.date) -> dt.datetime:
    return dt.datetime.combine(d, dt.time.min)


def end_of_day(d: dt.date) -> dt.datetime:
    # 23:59:59.999, millisecond resolution like the stored timestamps
    return start_of_day(d) + dt.timedelta(days=1) - ONE_MS


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Shift a 1-based (year, month) by delta months."""
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


@dataclass(frozen=True)
class BillingPeriod:
    start: dt.datetime
    end: dt.datetime

    def contains(self, moment: dt.datetime) -> bool:
        return self.start <= moment <= self.end


def billing_period_for(year: int, month: int) -> BillingPeriod:
    """Calendar month (1-based) from its first millisecond to its last."""
    start = dt.datetime(year, month, 1)
    ny, nm = _shift_month(year, month, 1)
    return BillingPeriod(start, dt.datetime(ny, nm, 1) - ONE_MS)


def current_billing_period(now: dt.datetime) -> BillingPeriod:
    return billing_period_for(now.year, now.month)


@dataclass(frozen=True)
class BillingSummary:
    count: int = 0
    collected_count: int = 0
    collected_total: float = 0.0
    average_collected: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def summarize(records: Iterable[InvoiceRecord], period_start: dt.datetime, period_end: dt.datetime) -> BillingSummary:
    in_period = [r for r in records if period_start <= r.issue_date <= period_end]
    collected = [r for r in in_period if r.collected]
    total = sum(r.amount for r in collected)
    return BillingSummary(
        count=len(in_period),
        collected_count=len(collected),
        collected_total=total,
        average_collected=total / len(collected) if collected else 0.0,
    )


@dataclass(frozen=True)
class InvoiceSummary:
    total_collected: float = 0.0
    invoice_count: int = 0
    collected_count: int = 0
    collected_last_30_days: float = 0.0
    new_last_30_days: int = 0
    average_collected: float = 0.0
    pct_last_30_days: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def summarize_invoices(records: Iterable[InvoiceRecord], now: dt.datetime, recent_days: int = 30) -> InvoiceSummary:
    records = list(records)
    since = now - dt.timedelta(days=recent_days)
    collected = [r for r in records if r.collected]
    recent = [r for r in records if r.issue_date >= since]

    total = sum(r.amount for r in collected)
    recent_total = sum(r.amount for r in recent if r.collected)
    return InvoiceSummary(
        total_collected=total,
        invoice_count=len(records),
        collected_count=len(collected),
        collected_last_30_days=recent_total,
        new_last_30_days=len(recent),
        average_collected=total / len(collected) if collected else 0.0,
        pct_last_30_days=recent_total / total * 100 if total > 0 else 0.0,
    )


@dataclass(frozen=True)
class MonthTotal:
    month: str  # YYYY-MM
    total: float


@dataclass(frozen=True)
class ClientTotal:
    client_id: str | None
    client_name: str
    total: float
    invoices: int


@dataclass(frozen=True)
class BillingStatistics:
    collected_count: int
    collected_total: float
    collected_recent: float
    monthly: list[MonthTotal]
    top_clients: list[ClientTotal]

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _collected_frame(records: Iterable[InvoiceRecord]) -> pd.DataFrame:
    rows = [
        {
            "id": r.id,
            "amount": r.amount,
            "issue_date": r.issue_date,
            "client_id": r.client_id or "",
            "client_name": r.client_name or "",
        }
        for r in records
        if r.collected
    ]
    return pd.DataFrame(rows, columns=["id", "amount", "issue_date", "client_id", "client_name"])


def billing_statistics(
    records: Iterable[InvoiceRecord],
    now: dt.datetime,
    months: int = 6,
    top: int = 5,
    recent_days: int = 30,
) -> BillingStatistics:
    df = _collected_frame(records)

    keys = []
    for delta in range(-(months - 1), 1):
        y, m = _shift_month(now.year, now.month, delta)
        keys.append(f"{y:04d}-{m:02d}")

    if df.empty:
        return BillingStatistics(0, 0.0, 0.0, [MonthTotal(k, 0.0) for k in keys], [])

    df["month"] = pd.to_datetime(df["issue_date"]).dt.strftime("%Y-%m")
    by_month = df.groupby("month")["amount"].sum()
    monthly = [MonthTotal(k, float(by_month.get(k, 0.0))) for k in keys]

    since = now - dt.timedelta(days=recent_days)
    recent = float(df.loc[pd.to_datetime(df["issue_date"]) >= since, "amount"].sum())

    clients = (
        df.groupby(["client_id", "client_name"], as_index=False)
        .agg(total=("amount", "sum"), invoices=("id", "count"))
        .sort_values(["total", "client_name"], ascending=[False, True])
        .head(top)
    )
    top_clients = [
        ClientTotal(
            client_id=row.client_id or None,
            client_name=row.client_name,
            total=float(row.total),
            invoices=int(row.invoices),
        )
        for row in clients.itertuples(index=False)
    ]

    return BillingStatistics(
        collected_count=int(len(df)),
        collected_total=float(df["amount"].sum()),
        collected_recent=recent,
        monthly=monthly,
        top_clients=top_clients,
    )


def annual_collected_billing(records: Iterable[InvoiceRecord], year: int) -> list[dict[str, Any]]:
    """Collected total per calendar month of `year`, January first."""
    out = []
    records = list(records)
    for month in range(1, 13):
        period = billing_period_for(year, month)
        s = summarize(records, period.start, period.end)
        out.append({"month": month, "collected_total": s.collected_total, "collected_count": s.collected_count})
    return out


@dataclass(frozen=True)
class InvoiceListFilter:
    client: str | None = None
    concept: str | None = None
    date_from: dt.date | None = None
    date_to: dt.date | None = None
    collected: bool | None = None

    def matches(self, r: InvoiceRecord) -> bool:
        if self.client and self.client.lower() not in (r.client_name or "").lower():
            return False
        if self.concept and self.concept.lower() not in (r.concept or "").lower():
            return False
        if self.date_from is not None and r.issue_date < start_of_day(self.date_from):
            return False
        if self.date_to is not None and r.issue_date > end_of_day(self.date_to):
            return False
        if self.collected is not None and r.collected != self.collected:
            return False
        return True


def apply_listing_filter(records: Iterable[InvoiceRecord], flt: InvoiceListFilter | None = None) -> list[InvoiceRecord]:
    flt = flt or InvoiceListFilter()
    out = [r for r in records if flt.matches(r)]
    out.sort(key=lambda r: (r.issue_date, r.id), reverse=True)
    return out
