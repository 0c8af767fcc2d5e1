import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from fastapi import Request

from shared.models import BusinessMetrics, Event

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Render a UTC datetime as ISO-8601 with milliseconds and a Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.replace(microsecond=moment.microsecond // 1000 * 1000)


class EventStore:
    """
    Append-only in-memory event log with per-business running counters.

    One instance is created per process and handed to request handlers
    through ``get_store``; tests construct their own instance.

    Appending an event and bumping its business counter happen under the same
    lock, and readers get snapshot copies taken under that lock.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or utcnow
        self._events: List[Event] = []
        self._business_metrics: Dict[str, BusinessMetrics] = {}
        self._lock = threading.Lock()

    def now(self) -> datetime:
        return normalize_utc(self._clock())

    def record_event(self, name: str, properties: Optional[Mapping[str, Any]] = None) -> Event:
        if not isinstance(name, str) or not name:
            raise ValueError("Event name is required")

        occurred_at = self.now()
        stored_properties = dict(properties or {})
        stored_properties["timestamp"] = format_timestamp(occurred_at)

        event = Event(
            # milliseconds since epoch; same-millisecond ids are not deduplicated
            id=str((occurred_at - EPOCH) // timedelta(milliseconds=1)),
            name=name,
            properties=stored_properties,
            occurred_at=occurred_at,
        )

        business_id = stored_properties.get("businessId")
        with self._lock:
            if business_id:
                key = business_id if isinstance(business_id, str) else str(business_id)
                current = self._business_metrics.get(key)
                updated = BusinessMetrics() if current is None else current.model_copy()
                updated.apply(name)
                self._business_metrics[key] = updated
            self._events.append(event)

        return event

    def events(self) -> List[Event]:
        with self._lock:
            return list(self._events)

    def business_ids(self) -> List[str]:
        with self._lock:
            return list(self._business_metrics)

    def business_metrics(self, business_id: str) -> Optional[BusinessMetrics]:
        with self._lock:
            metrics = self._business_metrics.get(business_id)
            return metrics.model_copy() if metrics is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


def get_store(request: Request) -> EventStore:
    return request.app.state.store
