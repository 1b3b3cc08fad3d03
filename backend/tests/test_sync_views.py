import datetime as dt
import threading

from workshop_reports.services.reports.billing import InvoiceListFilter, InvoiceRecord
from workshop_reports.services.sync.bus import MutationEvent
from workshop_reports.services.sync.views import (
    BillingStatisticsView,
    InvoiceListingView,
    SubscriberState,
    SummaryCardsView,
)

NOW = dt.datetime(2024, 5, 15, 12, 0)

def clock():
    return NOW

def records():
    return [
        InvoiceRecord(id="F1", workshop_id=1, amount=120.0, issue_date=dt.datetime(2024, 5, 3), collected=False,
                      client_id="C-1", client_name="Uno", version=1),
        InvoiceRecord(id="F2", workshop_id=1, amount=80.0, issue_date=dt.datetime(2024, 5, 4), collected=True,
                      client_id="C-2", client_name="Dos", version=1),
        InvoiceRecord(id="F3", workshop_id=1, amount=500.0, issue_date=dt.datetime(2024, 3, 4), collected=True,
                      client_id="C-2", client_name="Dos", version=1),
    ]

def mounted_views(bus):
    views = [InvoiceListingView(clock), BillingStatisticsView(clock), SummaryCardsView(clock)]
    for v in views:
        v.mount(bus)
        v.load(records())
    return views

def collected(version=2, value=True, record_id="F1"):
    return MutationEvent(
        record_id=record_id,
        field="collected",
        new_value=value,
        snapshot={"id": record_id, "amount": 120.0},
        version=version,
    )

def test_lifecycle_states(bus):
    v = SummaryCardsView(clock)
    assert v.state == SubscriberState.idle
    v.mount(bus)
    assert v.state == SubscriberState.subscribed
    v.unmount()
    assert v.state == SubscriberState.unsubscribed
    assert bus.subscriber_count == 0

def test_broadcast_reaches_three_views(bus):
    listing, stats, cards = mounted_views(bus)
    before_cards = cards.summary
    before_listing = listing.summary
    before_stats = stats.statistics

    bus.publish(collected())

    for v in (listing, stats, cards):
        assert v.get("F1").collected is True
        assert v.state == SubscriberState.subscribed

    assert cards.summary.collected_total == before_cards.collected_total + 120
    assert cards.summary.collected_count == before_cards.collected_count + 1
    assert listing.summary.total_collected == before_listing.total_collected + 120
    assert listing.summary.collected_count == before_listing.collected_count + 1
    assert stats.statistics.collected_total == before_stats.collected_total + 120
    assert stats.statistics.collected_count == before_stats.collected_count + 1

def test_cross_record_figures_recomputed_from_collection(bus):
    listing, stats, cards = mounted_views(bus)
    bus.publish(collected())
    assert cards.summary.average_collected == 100
    names = [(c.client_name, c.total) for c in stats.statistics.top_clients]
    assert names == [("Dos", 580.0), ("Uno", 120.0)]
    assert listing.summary.pct_last_30_days == 200 / 700 * 100

def test_unknown_record_ignored(bus):
    listing, stats, cards = mounted_views(bus)
    before = cards.summary
    bus.publish(collected(record_id="F99"))
    assert cards.summary == before
    assert [r.id for r in listing.records] == ["F1", "F2", "F3"]

def test_out_of_period_record_does_not_recompute_cards(bus):
    listing, stats, cards = mounted_views(bus)
    n = cards.recomputations
    bus.publish(collected(record_id="F3", value=False))
    assert cards.get("F3").collected is False
    assert cards.recomputations == n
    assert stats.statistics.collected_total == 80

def test_stale_version_ignored(bus):
    listing, stats, cards = mounted_views(bus)
    bus.publish(collected(version=3, value=True))
    # an older write arriving late must not undo the newer one
    bus.publish(collected(version=2, value=False))
    for v in (listing, stats, cards):
        assert v.get("F1").collected is True
        assert v.get("F1").version == 3

def test_unversioned_event_is_last_write_wins(bus):
    listing, stats, cards = mounted_views(bus)
    bus.publish(collected(version=None, value=True))
    bus.publish(collected(version=None, value=False))
    assert cards.get("F1").collected is False

def test_unmounted_view_keeps_its_copy(bus):
    listing, stats, cards = mounted_views(bus)
    cards.unmount()
    bus.publish(collected())
    assert cards.get("F1").collected is False
    assert listing.get("F1").collected is True

def test_failing_view_does_not_block_others(bus):
    listing, stats, cards = mounted_views(bus)

    def broken(e):
        raise ValueError("render failed")

    bus.subscribe(broken)
    bus.publish(collected())
    assert cards.get("F1").collected is True

def test_listing_rows_follow_filter(bus):
    listing, _, _ = mounted_views(bus)
    listing.set_filter(InvoiceListFilter(collected=True))
    assert [r.id for r in listing.rows()] == ["F2", "F3"]
    bus.publish(collected())
    assert [r.id for r in listing.rows()] == ["F2", "F1", "F3"]

def test_cards_follow_the_month_turning(bus):
    now = [dt.datetime(2024, 4, 30, 23, 0)]
    cards = SummaryCardsView(lambda: now[0])
    cards.mount(bus)
    cards.load([
        InvoiceRecord(id="F1", workshop_id=1, amount=120.0, issue_date=dt.datetime(2024, 5, 1), collected=False,
                      client_id="C-1", client_name="Uno", version=1),
    ])
    assert cards.period.start == dt.datetime(2024, 4, 1)

    now[0] = dt.datetime(2024, 5, 2, 9, 0)
    bus.publish(collected())

    assert cards.period.start == dt.datetime(2024, 5, 1)
    assert cards.summary.collected_total == 120
    assert cards.summary.collected_count == 1

def test_load_keeps_newer_broadcast_version(bus):
    listing, _, _ = mounted_views(bus)
    bus.publish(collected(version=2))
    # a read that started before the write lands afterwards
    listing.load(records())
    f1 = listing.get("F1")
    assert f1.version == 2
    assert f1.collected is True
    assert listing.summary.collected_count == 3

def test_load_during_delivery_waits_for_it(bus):
    located = threading.Event()
    proceed = threading.Event()

    class SlowListing(InvoiceListingView):
        paused = False

        def _index_of(self, record_id):
            idx = super()._index_of(record_id)
            if not self.paused:
                self.paused = True
                located.set()
                proceed.wait(timeout=5)
            return idx

    listing = SlowListing(clock)
    listing.mount(bus)
    listing.load(records())

    delivery = threading.Thread(target=bus.publish, args=(collected(),))
    delivery.start()
    assert located.wait(timeout=5)

    reordered = [records()[1], records()[0], records()[2]]
    loader = threading.Thread(target=listing.load, args=(reordered,))
    loader.start()
    loader.join(timeout=0.2)
    assert loader.is_alive()

    proceed.set()
    delivery.join(timeout=5)
    loader.join(timeout=5)

    assert [r.id for r in listing.records] == ["F2", "F1", "F3"]
    assert listing.get("F2").amount == 80.0
    assert listing.get("F2").collected is True
    assert listing.get("F1").collected is True
    assert listing.get("F1").version == 2
