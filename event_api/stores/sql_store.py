import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

import redis
from sqlalchemy import delete, desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from event_api.core.errors import InvalidEventIdError, StoreError
from event_api.domain import Event, EventId, EventType, PrizeMoney
from event_api.models.events import EventRow
from event_api.stores.interfaces import EventStore, Mutation

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    "id": EventRow.id,
    "title": EventRow.title,
    "description": EventRow.description,
    "dateTime": EventRow.date_time,
    "venue": EventRow.venue,
    "eventType": EventRow.event_type,
    "maxTeamSize": EventRow.max_team_size,
    "prizeMoney.first": EventRow.prize_first,
    "prizeMoney.second": EventRow.prize_second,
    "prizeMoney.third": EventRow.prize_third,
    "createdAt": EventRow.created_at,
    "updatedAt": EventRow.updated_at,
}

_TOTAL_PRIZE = EventRow.prize_first + EventRow.prize_second + EventRow.prize_third


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_domain(row: EventRow) -> Event:
    return Event(
        id=row.id,
        title=row.title,
        description=row.description,
        prize_money=PrizeMoney(first=row.prize_first, second=row.prize_second, third=row.prize_third),
        date_time=_aware(row.date_time),
        venue=row.venue,
        event_type=EventType(row.event_type),
        max_team_size=row.max_team_size,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _write_fields(row: EventRow, event: Event) -> None:
    """Copy every mutable field of `event` onto `row`."""
    row.title = event.title
    row.description = event.description
    row.prize_first = event.prize_money.first
    row.prize_second = event.prize_money.second
    row.prize_third = event.prize_money.third
    row.date_time = event.date_time
    row.venue = event.venue
    row.event_type = event.event_type.value
    row.max_team_size = event.max_team_size
    row.updated_at = event.updated_at


class SqlEventStore(EventStore):
    """Durable event store using SQLAlchemy, with UUID identifiers.

    Read-modify-write updates hold a Redis lock per record so that concurrent
    PATCH requests from several workers cannot interleave.
    """

    backend = "sql"

    def __init__(
        self,
        db: Session,
        redis_client: Optional[redis.Redis] = None,
        *,
        lock_timeout: int = 10,
        lock_blocking_timeout: int = 5,
    ) -> None:
        self.db = db
        self.redis_client = redis_client
        self.lock_timeout = lock_timeout
        self.lock_blocking_timeout = lock_blocking_timeout

    @contextmanager
    def _translate_errors(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Database error while %s", action)
            raise StoreError(f"Error {action}", detail=str(e)) from e

    @contextmanager
    def _record_lock(self, event_id: EventId):
        if self.redis_client is None:
            yield
            return

        lock = self.redis_client.lock(
            f"event_lock:{event_id}",
            timeout=self.lock_timeout,
            blocking_timeout=self.lock_blocking_timeout,
        )
        try:
            acquired = lock.acquire(blocking=True)
        except redis.exceptions.RedisError as e:
            raise StoreError("Could not acquire event lock", detail=str(e)) from e
        if not acquired:
            raise StoreError("Event is being modified by another request, please try again.")

        try:
            yield
        finally:
            try:
                lock.release()
            except redis.exceptions.LockError:
                logger.warning("Lock for event %s expired before release", event_id)

    def parse_id(self, raw_id: str) -> EventId:
        try:
            return str(uuid.UUID(str(raw_id)))
        except ValueError:
            raise InvalidEventIdError(raw_id)

    def list_events(self, *, event_type, sort_by, descending, offset, limit) -> list[Event]:
        column = _SORT_COLUMNS[sort_by]
        stmt = select(EventRow)
        if event_type is not None:
            stmt = stmt.where(EventRow.event_type == event_type.value)
        stmt = (
            stmt.order_by(column.desc() if descending else column.asc(), EventRow.created_at, EventRow.id)
            .offset(offset)
            .limit(limit)
        )
        with self._translate_errors("retrieving events"):
            return [_to_domain(row) for row in self.db.scalars(stmt)]

    def count_events(self, event_type: Optional[EventType] = None) -> int:
        stmt = select(func.count(EventRow.id))
        if event_type is not None:
            stmt = stmt.where(EventRow.event_type == event_type.value)
        with self._translate_errors("counting events"):
            return int(self.db.scalar(stmt) or 0)

    def get_event(self, event_id: EventId) -> Optional[Event]:
        with self._translate_errors("retrieving event"):
            row = self.db.get(EventRow, event_id)
            return _to_domain(row) if row else None

    def add_event(self, event: Event) -> Event:
        row = EventRow(created_at=event.created_at)
        _write_fields(row, event)
        with self._translate_errors("creating event"):
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        logger.info("Created event %s", row.id)
        return _to_domain(row)

    def update_event(self, event_id: EventId, mutate: Mutation) -> Optional[Event]:
        with self._record_lock(event_id), self._translate_errors("updating event"):
            row = self.db.get(EventRow, event_id)
            if row is None:
                return None
            _write_fields(row, mutate(_to_domain(row)))
            self.db.commit()
            self.db.refresh(row)
            logger.info("Updated event %s", event_id)
            return _to_domain(row)

    def delete_event(self, event_id: EventId) -> Optional[Event]:
        with self._translate_errors("deleting event"):
            row = self.db.get(EventRow, event_id)
            if row is None:
                return None
            deleted = _to_domain(row)
            self.db.delete(row)
            self.db.commit()
        logger.info("Deleted event %s", event_id)
        return deleted

    def delete_all(self) -> int:
        with self._translate_errors("deleting events"):
            result = self.db.execute(delete(EventRow))
            self.db.commit()
        count = result.rowcount or 0
        logger.info("Deleted %d events", count)
        return count

    def stats(self) -> dict:
        with self._translate_errors("retrieving statistics"):
            total_events, total_prize, avg_prize = self.db.execute(
                select(func.count(EventRow.id), func.sum(_TOTAL_PRIZE), func.avg(_TOTAL_PRIZE))
            ).one()
            event_types = self.db.scalars(
                select(EventRow.event_type).distinct().order_by(EventRow.event_type)
            ).all()
            count = func.count(EventRow.id).label("count")
            by_type = self.db.execute(
                select(EventRow.event_type, count, func.sum(_TOTAL_PRIZE))
                .group_by(EventRow.event_type)
                .order_by(desc("count"), EventRow.event_type)
            ).all()

        return {
            "overview": {
                "total_events": int(total_events or 0),
                "total_prize_money": float(total_prize or 0),
                "avg_prize_money": float(avg_prize or 0),
                "event_types": list(event_types),
            },
            "by_event_type": [
                {"event_type": event_type, "count": int(n), "total_prize": float(prize or 0)}
                for event_type, n, prize in by_type
            ],
        }

    def ping(self) -> bool:
        try:
            self.db.execute(select(1))
        except SQLAlchemyError as e:
            logger.warning("Database ping failed: %s", e)
            self.db.rollback()
            return False
        return True
