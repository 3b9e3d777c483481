import logging
import threading
from dataclasses import replace
from typing import Optional

from event_api.core.errors import InvalidEventIdError
from event_api.domain import SORTABLE_FIELDS, Event, EventId, EventType
from event_api.stores.interfaces import EventStore, Mutation

logger = logging.getLogger(__name__)


class MemoryEventStore(EventStore):
    """Process-local event store with sequential integer ids.

    Records are lost on restart. A single re-entrant lock guards the
    collection and the id counter.
    """

    backend = "memory"

    def __init__(self) -> None:
        self._events: dict[int, Event] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    def parse_id(self, raw_id: str) -> EventId:
        raw = str(raw_id).strip()
        if not (raw.isascii() and raw.isdigit()) or int(raw) < 1:
            raise InvalidEventIdError(raw_id)
        return int(raw)

    def list_events(self, *, event_type, sort_by, descending, offset, limit) -> list[Event]:
        key = SORTABLE_FIELDS[sort_by]
        with self._lock:
            events = [e for e in self._events.values() if event_type is None or e.event_type == event_type]
        # stable sort on id first so equal keys keep creation order
        events.sort(key=lambda e: e.id)
        events.sort(key=key, reverse=descending)
        return events[offset:offset + limit]

    def count_events(self, event_type: Optional[EventType] = None) -> int:
        with self._lock:
            if event_type is None:
                return len(self._events)
            return sum(1 for e in self._events.values() if e.event_type == event_type)

    def get_event(self, event_id: EventId) -> Optional[Event]:
        with self._lock:
            return self._events.get(event_id)

    def add_event(self, event: Event) -> Event:
        with self._lock:
            stored = replace(event, id=self._next_id)
            self._events[stored.id] = stored
            self._next_id += 1
        logger.info("Created event %s", stored.id)
        return stored

    def update_event(self, event_id: EventId, mutate: Mutation) -> Optional[Event]:
        with self._lock:
            current = self._events.get(event_id)
            if current is None:
                return None
            updated = replace(mutate(current), id=current.id, created_at=current.created_at)
            self._events[event_id] = updated
        logger.info("Updated event %s", event_id)
        return updated

    def delete_event(self, event_id: EventId) -> Optional[Event]:
        with self._lock:
            deleted = self._events.pop(event_id, None)
        if deleted is not None:
            logger.info("Deleted event %s", event_id)
        return deleted

    def delete_all(self) -> int:
        with self._lock:
            count = len(self._events)
            self._events.clear()
        logger.info("Deleted %d events", count)
        return count

    def stats(self) -> dict:
        with self._lock:
            events = list(self._events.values())

        total_prize = sum(e.prize_money.total for e in events)
        by_type: dict[str, dict] = {}
        for e in events:
            bucket = by_type.setdefault(
                e.event_type.value, {"event_type": e.event_type.value, "count": 0, "total_prize": 0.0}
            )
            bucket["count"] += 1
            bucket["total_prize"] += e.prize_money.total

        return {
            "overview": {
                "total_events": len(events),
                "total_prize_money": total_prize,
                "avg_prize_money": total_prize / len(events) if events else 0,
                "event_types": sorted(by_type),
            },
            "by_event_type": sorted(by_type.values(), key=lambda b: (-b["count"], b["event_type"])),
        }

    def ping(self) -> bool:
        return True
