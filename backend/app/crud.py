import json
import logging
import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, Hashable, List, Mapping, Optional, Tuple

from shared.models import Event
from shared.store import EventStore, normalize_utc
from backend.app import schemas

logger = logging.getLogger(__name__)

VIEW_EVENT = "business_listing_viewed"
CONTACT_EVENT = "business_contact_clicked"
SEARCH_EVENT = "search_performed"

TIMEFRAME_DAYS = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_TIMEFRAME = "30d"

TOP_SOURCES_LIMIT = 5
SEARCH_KEYWORDS_LIMIT = 10
RECENT_ACTIVITY_LIMIT = 50
RECENT_ACTIVITY_WINDOW = timedelta(hours=24)


def track_event(
    store: EventStore,
    name: str,
    properties: Optional[Mapping[str, Any]] = None
) -> schemas.TrackResponse:
    event = store.record_event(name, properties)
    logger.info(
        f"Tracked event {event.name} | id: {event.id} | "
        f"business: {event.properties.get('businessId')}"
    )
    return schemas.TrackResponse(event_id=event.id)


def resolve_window(timeframe: str, now: datetime) -> Tuple[datetime, datetime, int]:
    """Return ``(start, end, days)`` for a named timeframe; unknown names mean 30 days."""
    days = TIMEFRAME_DAYS.get(timeframe, TIMEFRAME_DAYS[DEFAULT_TIMEFRAME])
    return now - timedelta(days=days), now, days


def get_business_metrics(
    store: EventStore,
    business_id: str,
    timeframe: str = DEFAULT_TIMEFRAME,
    now: Optional[datetime] = None
) -> schemas.MetricsBundle:
    now = store.now() if now is None else normalize_utc(now)
    start_date, end_date, days = resolve_window(timeframe, now)

    business_events = [
        event for event in store.events()
        if event.properties.get("businessId") == business_id
        and start_date <= event.occurred_at <= end_date
    ]

    return schemas.MetricsBundle(
        total_views=sum(1 for e in business_events if e.name == VIEW_EVENT),
        total_contacts=sum(1 for e in business_events if e.name == CONTACT_EVENT),
        total_clicks=sum(1 for e in business_events if "clicked" in e.name),
        avg_time_on_page=calculate_average_time(business_events),
        top_sources=get_top_sources(business_events),
        daily_views=get_daily_views(business_events, end_date, days),
        popular_times=get_popular_times(business_events),
        search_keywords=get_search_keywords(business_events),
    )


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def calculate_average_time(events: List[Event]) -> int:
    session_events = [e for e in events if "session" in e.name]
    if not session_events:
        return 0

    total_time = sum(_number(e.properties.get("timeSpent")) for e in session_events)
    # half-up rounding, 2.5 -> 3
    return int(math.floor(total_time / len(session_events) + 0.5))


def get_top_sources(events: List[Event]) -> List[schemas.SourceCount]:
    sources = Counter()
    for event in events:
        source = event.properties.get("source") or "direct"
        sources[source if isinstance(source, str) else str(source)] += 1

    # most_common keeps first-seen order between equal counts
    return [
        schemas.SourceCount(source=source, count=count)
        for source, count in sources.most_common(TOP_SOURCES_LIMIT)
    ]


def get_daily_views(events: List[Event], end_date: datetime, days: int) -> List[schemas.DailyViews]:
    """Zero-filled view counts for the ``days`` UTC calendar days ending on ``end_date``."""
    first_day = end_date.date() - timedelta(days=days - 1)
    daily_views: Dict[str, int] = {
        (first_day + timedelta(days=offset)).isoformat(): 0
        for offset in range(days)
    }

    for event in events:
        if event.name != VIEW_EVENT:
            continue
        date_str = event.occurred_at.date().isoformat()
        if date_str in daily_views:
            daily_views[date_str] += 1

    return [schemas.DailyViews(date=date, views=views) for date, views in daily_views.items()]


def get_popular_times(events: List[Event]) -> List[schemas.HourCount]:
    hour_counts = [0] * 24
    for event in events:
        hour_counts[event.occurred_at.hour] += 1

    return [schemas.HourCount(hour=hour, count=count) for hour, count in enumerate(hour_counts)]


def get_search_keywords(events: List[Event]) -> List[schemas.KeywordCount]:
    keywords = Counter()
    for event in events:
        if event.name != SEARCH_EVENT:
            continue
        term = event.properties.get("searchTerm")
        if isinstance(term, str) and term:
            keywords[term.lower()] += 1

    return [
        schemas.KeywordCount(keyword=keyword, count=count)
        for keyword, count in keywords.most_common(SEARCH_KEYWORDS_LIMIT)
    ]


def _distinct_key(value: Any) -> Hashable:
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, default=str)
    # True and 1 hash alike; 1 and 1.0 stay one value
    return (isinstance(value, bool), value)


def get_platform_metrics(store: EventStore, now: Optional[datetime] = None) -> schemas.PlatformMetrics:
    now = store.now() if now is None else normalize_utc(now)
    events = store.events()

    unique_users = {
        _distinct_key(e.properties["userId"])
        for e in events
        if e.properties.get("userId") is not None
    }

    cutoff = now - RECENT_ACTIVITY_WINDOW
    # sorted() is stable with reverse=True, so insertion order breaks ties
    recent_activity = sorted(
        (e for e in events if e.occurred_at >= cutoff),
        key=lambda e: e.occurred_at,
        reverse=True,
    )[:RECENT_ACTIVITY_LIMIT]

    return schemas.PlatformMetrics(
        total_events=len(events),
        unique_users=len(unique_users),
        total_businesses=len(store.business_ids()),
        event_breakdown=dict(Counter(e.name for e in events)),
        recent_activity=[
            schemas.ActivityItem(
                event=e.name,
                timestamp=e.timestamp,
                user_id=e.properties.get("userId"),
                business_id=e.properties.get("businessId"),
            )
            for e in recent_activity
        ],
    )
