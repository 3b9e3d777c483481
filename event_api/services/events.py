"""Event service: normalization, pagination, patch merging and timestamps.

Depends only on the EventStore interface; raises domain errors from
event_api.core.errors for the HTTP layer to map.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from event_api.core.errors import EventNotFoundError, EventValidationError
from event_api.domain import SORTABLE_FIELDS, Event, EventType, PrizeMoney, title_case
from event_api.schemas.events import EventCreate, EventPatch
from event_api.stores.interfaces import EventStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50
MAX_LIMIT = 100
DEFAULT_SORT = "dateTime"
SORT_ORDERS = ("asc", "desc")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: datetime, now: datetime) -> datetime:
    """Return `now`, bumped past `previous` if the clock has not moved."""
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def apply_patch(event: Event, patch: EventPatch) -> Event:
    """Merge the supplied patch fields into `event`, field by field."""
    changes = {}
    if patch.title is not None:
        changes["title"] = title_case(patch.title)
    if patch.description is not None:
        changes["description"] = patch.description
    if patch.prize_money is not None:
        prizes = patch.prize_money
        current = event.prize_money
        changes["prize_money"] = PrizeMoney(
            first=prizes.first if prizes.first is not None else current.first,
            second=prizes.second if prizes.second is not None else current.second,
            third=prizes.third if prizes.third is not None else current.third,
        )
    if patch.date_time is not None:
        changes["date_time"] = patch.date_time
    if patch.venue is not None:
        changes["venue"] = patch.venue
    if patch.event_type is not None:
        changes["event_type"] = patch.event_type
    if patch.max_team_size is not None:
        changes["max_team_size"] = patch.max_team_size
    return replace(event, **changes)


class EventService:
    """Service for event CRUD operations."""

    def __init__(self, store: EventStore, clock=utcnow) -> None:
        self._store = store
        self._clock = clock

    def _build(self, payload: EventCreate, created_at: datetime, updated_at: datetime) -> Event:
        return Event(
            title=title_case(payload.title),
            description=payload.description,
            prize_money=PrizeMoney(
                first=float(payload.prize_money.first),
                second=float(payload.prize_money.second),
                third=float(payload.prize_money.third),
            ),
            date_time=payload.date_time,
            venue=payload.venue,
            event_type=payload.event_type,
            max_team_size=int(payload.max_team_size),
            created_at=created_at,
            updated_at=updated_at,
        )

    def list_events(
        self,
        *,
        event_type: Optional[EventType] = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
        sort_by: str = DEFAULT_SORT,
        order: str = "asc",
    ) -> tuple[list[Event], dict]:
        """Return one page of events and its pagination metadata.

        Raises:
            EventValidationError: If any paging or sorting parameter is invalid.
        """
        errors = []
        if page < 1:
            errors.append({"field": "page", "message": "Page must be at least 1"})
        if not 1 <= limit <= MAX_LIMIT:
            errors.append({"field": "limit", "message": f"Limit must be between 1 and {MAX_LIMIT}"})
        if sort_by not in SORTABLE_FIELDS:
            errors.append({"field": "sortBy", "message": f"Cannot sort by '{sort_by}'"})
        if order not in SORT_ORDERS:
            errors.append({"field": "order", "message": "Order must be 'asc' or 'desc'"})
        if errors:
            raise EventValidationError(errors)

        total = self._store.count_events(event_type)
        offset = (page - 1) * limit
        events = []
        # pages past the end are empty; the offset may not even fit a DB integer
        if offset < total:
            events = self._store.list_events(
                event_type=event_type,
                sort_by=sort_by,
                descending=order == "desc",
                offset=offset,
                limit=limit,
            )
        total_pages = math.ceil(total / limit)
        pagination = {
            "current_page": page,
            "total_pages": total_pages,
            "total_events": total,
            "has_next_page": page < total_pages,
            "has_prev_page": page > 1,
        }
        return events, pagination

    def get_event(self, raw_id: str) -> Event:
        """Return an event by ID.

        Raises:
            InvalidEventIdError: If raw_id is not valid for the store.
            EventNotFoundError: If the event does not exist.
        """
        event_id = self._store.parse_id(raw_id)
        event = self._store.get_event(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def create_event(self, payload: EventCreate) -> Event:
        now = self._clock()
        return self._store.add_event(self._build(payload, now, now))

    def replace_event(self, raw_id: str, payload: EventCreate) -> Event:
        """Overwrite every field except id and created_at."""
        event_id = self._store.parse_id(raw_id)

        def mutate(current: Event) -> Event:
            updated_at = next_timestamp(current.updated_at, self._clock())
            return replace(
                self._build(payload, current.created_at, updated_at),
                id=current.id,
            )

        event = self._store.update_event(event_id, mutate)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def patch_event(self, raw_id: str, patch: EventPatch) -> Event:
        event_id = self._store.parse_id(raw_id)
        logger.debug("Patching event %s fields %s", event_id, sorted(patch.model_fields_set))

        def mutate(current: Event) -> Event:
            merged = apply_patch(current, patch)
            return replace(merged, updated_at=next_timestamp(current.updated_at, self._clock()))

        event = self._store.update_event(event_id, mutate)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def delete_event(self, raw_id: str) -> Event:
        event_id = self._store.parse_id(raw_id)
        event = self._store.delete_event(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def delete_all_events(self) -> int:
        return self._store.delete_all()

    def stats(self) -> dict:
        return self._store.stats()

    def health(self) -> dict:
        connected = self._store.ping()
        return {
            "backend": self._store.backend,
            "status": "Connected" if connected else "Disconnected",
            "event_count": self._store.count_events() if connected else None,
        }
