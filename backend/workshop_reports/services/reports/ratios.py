"""Business ratios derived from an aggregate; a zero or negative denominator yields 0."""
import math
from dataclasses import dataclass, asdict

from workshop_reports.services.reports.kpi import AggregateKpi


@dataclass(frozen=True)
class RatioSet:
    hours_per_order_mechanics: float = 0.0
    hours_per_order_bodywork: float = 0.0
    avg_ticket_mechanics: float = 0.0
    avg_ticket_bodywork: float = 0.0
    paint_material_per_hour: float = 0.0
    paint_material_per_order: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def _safe_div(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    value = numerator / denominator
    return value if math.isfinite(value) else 0.0


def compute_ratios(agg: AggregateKpi) -> RatioSet:
    paint_materials = agg.material_paint + agg.material_ancillary
    return RatioSet(
        hours_per_order_mechanics=_safe_div(agg.hours_mechanics, agg.orders_mechanics),
        hours_per_order_bodywork=_safe_div(agg.hours_sheet_metal + agg.hours_paint, agg.orders_bodywork),
        avg_ticket_mechanics=_safe_div(agg.materials_mechanics + agg.labor_mechanics, agg.orders_mechanics),
        avg_ticket_bodywork=_safe_div(agg.materials_bodywork + agg.labor_bodywork, agg.orders_bodywork),
        paint_material_per_hour=_safe_div(paint_materials, agg.hours_paint),
        paint_material_per_order=_safe_div(paint_materials, agg.orders_bodywork),
    )
