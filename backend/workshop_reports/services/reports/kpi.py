"""
KPI aggregation over a resolved window.

Rows come from the `kpis` table, one per workshop and period date. The fold
is an element-wise sum; a missing or null figure counts as zero.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Iterable, Mapping

import pandas as pd

from workshop_reports.core.errors import AggregationFailure, StoreError
from workshop_reports.core.logging import logger
from workshop_reports.services.reports.filters import ResolvedWindow
from workshop_reports.services.store import RecordStore

KPI_TABLE = "kpis"
PERIOD_FIELD = "fecha"

KPI_COLUMNS = [
    "mo_mecanica",
    "mo_chapa",
    "mo_pintura",
    "or_mecanica",
    "or_carroceria",
    "material_pintura",
    "material_anexos",
    "materiales_mecanica",
    "total_materiales",
    "total_mano_obra",
    "total_facturas",
]


@dataclass(frozen=True)
class AggregateKpi:
    # labour hours: mechanics, bodywork split into sheet metal and paint
    hours_mechanics: float = 0.0
    hours_sheet_metal: float = 0.0
    hours_paint: float = 0.0

    orders_mechanics: float = 0.0
    orders_bodywork: float = 0.0

    material_paint: float = 0.0
    material_ancillary: float = 0.0

    total_materials: float = 0.0
    total_labor: float = 0.0
    total_invoiced: float = 0.0

    # per-trade totals feeding the average ticket
    materials_mechanics: float = 0.0
    labor_mechanics: float = 0.0
    materials_bodywork: float = 0.0
    labor_bodywork: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def fold_kpi_rows(rows: Iterable[Mapping[str, Any]]) -> AggregateKpi:
    rows = list(rows)
    if not rows:
        return AggregateKpi()

    df = pd.DataFrame.from_records(rows).reindex(columns=KPI_COLUMNS)
    df = df.apply(pd.to_numeric, errors="coerce").fillna(0.0)
    t = df.sum()

    return AggregateKpi(
        hours_mechanics=float(t["mo_mecanica"]),
        hours_sheet_metal=float(t["mo_chapa"]),
        hours_paint=float(t["mo_pintura"]),
        orders_mechanics=float(t["or_mecanica"]),
        orders_bodywork=float(t["or_carroceria"]),
        material_paint=float(t["material_pintura"]),
        material_ancillary=float(t["material_anexos"]),
        total_materials=float(t["total_materiales"]),
        total_labor=float(t["total_mano_obra"]),
        total_invoiced=float(t["total_facturas"]),
        materials_mechanics=float(t["materiales_mecanica"]),
        # labour value of a trade is booked from its hour figure
        labor_mechanics=float(t["mo_mecanica"]),
        materials_bodywork=float(t["material_pintura"] + t["material_anexos"]),
        labor_bodywork=float(t["mo_chapa"] + t["mo_pintura"]),
    )


class KpiAggregationEngine:
    def __init__(self, store: RecordStore):
        self.store = store

    def fetch_rows(self, workshop_id: int, window: ResolvedWindow) -> list[dict[str, Any]]:
        try:
            return self.store.find(
                KPI_TABLE,
                equals={"workshop_id": workshop_id},
                gte={PERIOD_FIELD: window.date_from},
                lte={PERIOD_FIELD: window.date_to},
            )
        except StoreError as e:
            logger.warning(
                "kpi_aggregation_failed",
                workshop_id=workshop_id,
                date_from=window.date_from.isoformat(),
                date_to=window.date_to.isoformat(),
                error=str(e),
            )
            raise AggregationFailure(f"Could not load indicators: {e}") from e

    def aggregate(self, workshop_id: int, window: ResolvedWindow) -> AggregateKpi:
        rows = self.fetch_rows(workshop_id, window)
        result = fold_kpi_rows(rows)
        logger.info(
            "kpi_aggregated",
            workshop_id=workshop_id,
            date_from=window.date_from.isoformat(),
            date_to=window.date_to.isoformat(),
            rows=len(rows),
        )
        return result
