import datetime as dt

from workshop_reports.services.sync.session import ReportingSession, SessionRegistry
from workshop_reports.services.sync.views import SubscriberState

NOW = dt.datetime(2024, 5, 15, 12, 0)

def _seed(workshop, add_invoice, add_kpi):
    add_invoice("F1", workshop.id, 120.0, dt.datetime(2024, 5, 3))
    add_invoice("F2", workshop.id, 80.0, dt.datetime(2024, 5, 4), collected=True)
    add_kpi(workshop.id, dt.date(2024, 5, 10), mo_mecanica=8, or_mecanica=2)

def test_open_loads_everything(counting_store, bus, workshop, add_invoice, add_kpi):
    _seed(workshop, add_invoice, add_kpi)
    s = ReportingSession("s1", workshop.id, counting_store, bus, clock=lambda: NOW).open()
    assert sorted(counting_store.finds) == ["invoices", "kpis"]
    assert s.indicators.data.hours_mechanics == 8
    assert [r.id for r in s.listing.rows()] == ["F2", "F1"]
    assert s.cards.summary.collected_total == 80
    assert bus.subscriber_count == 3
    s.close()
    assert bus.subscriber_count == 0
    assert all(v.state == SubscriberState.unsubscribed for v in s.views)

def test_mutation_updates_views_without_reads(counting_store, bus, workshop, add_invoice, add_kpi):
    _seed(workshop, add_invoice, add_kpi)
    with ReportingSession("s1", workshop.id, counting_store, bus, clock=lambda: NOW) as s:
        reads = len(counting_store.finds)
        before = s.cards.summary

        r = s.set_collected("F1", True)

        assert r.success and r.collected is True
        assert len(counting_store.finds) == reads
        assert s.cards.summary.collected_total == before.collected_total + 120
        assert s.cards.summary.collected_count == before.collected_count + 1
        assert all(v.get("F1").collected for v in s.views)
        assert not s.pending

def test_mutation_reaches_other_sessions(store, bus, workshop, add_invoice, add_kpi):
    _seed(workshop, add_invoice, add_kpi)
    with ReportingSession("a", workshop.id, store, bus, clock=lambda: NOW) as a, \
            ReportingSession("b", workshop.id, store, bus, clock=lambda: NOW) as b:
        a.set_collected("F1", True)
        assert b.cards.summary.collected_total == 200
        assert b.statistics.get("F1").version == 2

def test_failed_mutation_leaves_views_untouched(broken_store, bus, workshop):
    s = ReportingSession("s1", workshop.id, broken_store, bus, clock=lambda: NOW).open()
    assert s.invoice_error is not None
    assert s.indicators.error is not None
    r = s.set_collected("F1", True)
    assert not r.success
    assert not s.pending

def test_refresh_deferred_while_mutation_pending(counting_store, bus, workshop, add_invoice, add_kpi):
    _seed(workshop, add_invoice, add_kpi)
    s = ReportingSession("s1", workshop.id, counting_store, bus, clock=lambda: NOW).open()
    reads = len(counting_store.finds)
    s.pending.add("F1")
    assert s.refresh_invoices() is False
    assert len(counting_store.finds) == reads

def test_refresh_racing_a_mutation_is_discarded(store, bus, workshop, add_invoice, add_kpi):
    _seed(workshop, add_invoice, add_kpi)

    class RacingStore:
        race = False

        def find(self, table, **filters):
            rows = store.find(table, **filters)
            if self.race and table == "invoices":
                self.race = False
                # the user marks F1 collected while the reload is out
                session.set_collected("F1", True)
            return rows

        def update(self, table, record_id, fields):
            return store.update(table, record_id, fields)

    racing = RacingStore()
    session = ReportingSession("s1", workshop.id, racing, bus, clock=lambda: NOW).open()
    racing.race = True
    assert session.refresh_invoices() is False
    # the pre-mutation rows were not applied over the broadcast update
    assert session.listing.get("F1").collected is True

def test_refresh_reloads_after_external_change(store, bus, workshop, add_invoice, add_kpi):
    _seed(workshop, add_invoice, add_kpi)
    s = ReportingSession("s1", workshop.id, store, bus, clock=lambda: NOW).open()
    add_invoice("F3", workshop.id, 30.0, dt.datetime(2024, 5, 5), collected=True)
    assert s.cards.summary.count == 2
    assert s.refresh_invoices() is True
    assert s.cards.summary.count == 3
    assert s.cards.summary.collected_total == 110

def test_registry(store, bus, workshop):
    reg = SessionRegistry()
    s = reg.open(workshop.id, store, bus, clock=lambda: NOW)
    assert len(reg) == 1
    assert reg.get(s.id) is s
    assert reg.close(s.id) is True
    assert reg.close(s.id) is False
    assert reg.get(s.id) is None
    assert bus.subscriber_count == 0
