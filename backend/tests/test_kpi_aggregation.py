import datetime as dt
import pytest

from workshop_reports.core.errors import AggregationFailure
from workshop_reports.db.models.workshop import Workshop
from workshop_reports.services.reports.filters import ResolvedWindow
from workshop_reports.services.reports.kpi import AggregateKpi, KpiAggregationEngine, fold_kpi_rows


MAY = ResolvedWindow(dt.date(2024, 5, 1), dt.date(2024, 5, 31))

def test_fold_treats_missing_and_null_as_zero():
    agg = fold_kpi_rows([
        {"mo_mecanica": 2.5, "or_mecanica": 1, "material_pintura": None},
        {"mo_mecanica": 1.5, "mo_chapa": 3, "material_pintura": 10, "material_anexos": 5},
    ])
    assert agg.hours_mechanics == 4.0
    assert agg.hours_sheet_metal == 3.0
    assert agg.orders_mechanics == 1.0
    assert agg.material_paint == 10.0
    assert agg.materials_bodywork == 15.0
    assert agg.labor_bodywork == 3.0
    assert agg.total_invoiced == 0.0

def test_fold_empty_is_all_zero():
    assert fold_kpi_rows([]) == AggregateKpi()

def test_aggregate_filters_by_workshop_and_inclusive_window(store, workshop, add_kpi, db_session):
    other = Workshop(name="Otro")
    db_session.add(other)
    db_session.commit()

    add_kpi(workshop.id, dt.date(2024, 4, 30), mo_mecanica=100)
    add_kpi(workshop.id, dt.date(2024, 5, 1), mo_mecanica=1, or_mecanica=1)
    add_kpi(workshop.id, dt.date(2024, 5, 31), mo_mecanica=2, or_mecanica=1)
    add_kpi(workshop.id, dt.date(2024, 6, 1), mo_mecanica=100)
    add_kpi(other.id, dt.date(2024, 5, 10), mo_mecanica=100)

    agg = KpiAggregationEngine(store).aggregate(workshop.id, MAY)
    assert agg.hours_mechanics == 3.0
    assert agg.orders_mechanics == 2.0

def test_aggregate_is_idempotent(store, workshop, add_kpi):
    add_kpi(workshop.id, dt.date(2024, 5, 3), mo_chapa=2, mo_pintura=1.5, or_carroceria=1, total_facturas=2)
    add_kpi(workshop.id, dt.date(2024, 5, 4), material_anexos=12.5, total_materiales=40)
    engine = KpiAggregationEngine(store)
    assert engine.aggregate(workshop.id, MAY) == engine.aggregate(workshop.id, MAY)

def test_aggregate_with_no_rows_is_zero(store, workshop):
    assert KpiAggregationEngine(store).aggregate(workshop.id, MAY) == AggregateKpi()

def test_store_error_becomes_aggregation_failure(broken_store):
    with pytest.raises(AggregationFailure) as exc:
        KpiAggregationEngine(broken_store).aggregate(1, MAY)
    assert "connection refused" in exc.value.message
