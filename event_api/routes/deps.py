from fastapi import Depends, Request

from event_api.core.config import MEMORY_BACKEND, get_settings
from event_api.core.redis_config import get_redis_client
from event_api.database.db import SessionLocal
from event_api.services.events import EventService
from event_api.stores.interfaces import EventStore
from event_api.stores.sql_store import SqlEventStore


def get_event_store(request: Request):
    """Yield the configured store: the app-wide memory store, or a SQL store per request."""
    settings = get_settings()
    if settings.event_store == MEMORY_BACKEND:
        yield request.app.state.memory_store
        return

    db = SessionLocal()
    try:
        yield SqlEventStore(
            db,
            get_redis_client(),
            lock_timeout=settings.lock_timeout,
            lock_blocking_timeout=settings.lock_blocking_timeout,
        )
    finally:
        db.close()


def get_event_service(store: EventStore = Depends(get_event_store)) -> EventService:
    return EventService(store)
