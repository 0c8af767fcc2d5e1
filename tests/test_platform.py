from datetime import timedelta

from backend.app import crud
from tests.conftest import NOW


class TestPlatformMetrics:

    def test_breakdown_and_business_count(self, store):
        store.record_event("business_listing_viewed", {"businessId": "b1"})
        store.record_event("business_contact_clicked", {"businessId": "b1"})

        metrics = crud.get_platform_metrics(store)

        assert metrics.event_breakdown == {
            "business_listing_viewed": 1,
            "business_contact_clicked": 1,
        }
        assert metrics.total_businesses == 1
        assert metrics.total_events == 2

    def test_empty_store(self, store):
        metrics = crud.get_platform_metrics(store)

        assert metrics.total_events == 0
        assert metrics.unique_users == 0
        assert metrics.total_businesses == 0
        assert metrics.event_breakdown == {}
        assert metrics.recent_activity == []

    def test_unique_users_counts_distinct_non_null_values(self, store):
        for user_id in ["u1", "u2", "u1", None, 7, 7, {"id": 1}, {"id": 1}]:
            store.record_event("page_opened", {"userId": user_id})
        store.record_event("page_opened")

        assert crud.get_platform_metrics(store).unique_users == 4

    def test_unique_users_keeps_booleans_apart_from_numbers(self, store):
        for user_id in [1, True, 1.0]:
            store.record_event("page_opened", {"userId": user_id})

        assert crud.get_platform_metrics(store).unique_users == 2

    def test_events_without_business_do_not_count_as_businesses(self, store):
        store.record_event("search_performed", {"userId": "u1"})
        store.record_event("business_listing_viewed", {"businessId": "b1"})
        store.record_event("business_listing_viewed", {"businessId": "b2"})

        assert crud.get_platform_metrics(store).total_businesses == 2


class TestRecentActivity:

    def test_only_last_day_newest_first(self, store, record_at):
        record_at(NOW - timedelta(hours=25), "old", userId="u0")
        record_at(NOW - timedelta(hours=2), "earlier", userId="u1", businessId="b1")
        record_at(NOW - timedelta(hours=1), "later", userId="u2")
        record_at(NOW - timedelta(hours=24), "boundary")

        activity = crud.get_platform_metrics(store).recent_activity

        assert [a.event for a in activity] == ["later", "earlier", "boundary"]

    def test_projection(self, store):
        store.record_event(
            "business_listing_viewed",
            {"userId": "u1", "businessId": "b1", "source": "google", "secret": "x"},
        )

        activity = crud.get_platform_metrics(store).recent_activity

        assert [a.model_dump(by_alias=True) for a in activity] == [{
            "event": "business_listing_viewed",
            "timestamp": "2025-10-20T12:00:00.000Z",
            "userId": "u1",
            "businessId": "b1",
        }]

    def test_missing_ids_project_as_none(self, store):
        store.record_event("heartbeat")

        item = crud.get_platform_metrics(store).recent_activity[0]

        assert item.user_id is None
        assert item.business_id is None

    def test_ties_keep_insertion_order_and_limit(self, store, clock):
        for i in range(60):
            store.record_event(f"event-{i}")
        clock.advance(seconds=1)
        store.record_event("newest")

        activity = crud.get_platform_metrics(store).recent_activity

        assert len(activity) == 50
        assert activity[0].event == "newest"
        assert [a.event for a in activity[1:4]] == ["event-0", "event-1", "event-2"]

    def test_totals_cover_whole_log(self, store, record_at):
        record_at(NOW - timedelta(days=400), "ancient", userId="u1")
        store.record_event("fresh", {"userId": "u2"})

        metrics = crud.get_platform_metrics(store)

        assert metrics.total_events == 2
        assert metrics.unique_users == 2
        assert len(metrics.recent_activity) == 1
