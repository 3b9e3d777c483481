from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from event_api.domain import Event, EventType
from event_api.routes.deps import get_event_service
from event_api.schemas.events import (
    DeleteAllEnvelope,
    EventCreate,
    EventEnvelope,
    EventListEnvelope,
    EventOut,
    EventPatch,
    StatsEnvelope,
)
from event_api.services.events import DEFAULT_LIMIT, DEFAULT_PAGE, DEFAULT_SORT, EventService

router = APIRouter(prefix="/events", tags=["events"])


def _envelope(message: str, event: Event) -> EventEnvelope:
    return EventEnvelope(message=message, data=EventOut.model_validate(event))


@router.get("", response_model=EventListEnvelope)
def list_events(
    event_type: Optional[EventType] = Query(None, alias="eventType"),
    page: int = Query(DEFAULT_PAGE),
    limit: int = Query(DEFAULT_LIMIT),
    sort_by: str = Query(DEFAULT_SORT, alias="sortBy"),
    order: str = Query("asc"),
    service: EventService = Depends(get_event_service),
):
    events, pagination = service.list_events(
        event_type=event_type, page=page, limit=limit, sort_by=sort_by, order=order
    )
    return EventListEnvelope(
        message="Events retrieved successfully",
        data=[EventOut.model_validate(e) for e in events],
        pagination=pagination,
    )


@router.get("/stats", response_model=StatsEnvelope)
def event_stats(service: EventService = Depends(get_event_service)):
    """Aggregate prize and type statistics across all events."""
    return StatsEnvelope(message="Statistics retrieved successfully", data=service.stats())


@router.get("/{event_id}", response_model=EventEnvelope)
def get_event(event_id: str, service: EventService = Depends(get_event_service)):
    return _envelope("Event retrieved successfully", service.get_event(event_id))


@router.post("", response_model=EventEnvelope, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, service: EventService = Depends(get_event_service)):
    return _envelope("Event created successfully", service.create_event(payload))


@router.put("/{event_id}", response_model=EventEnvelope)
def replace_event(event_id: str, payload: EventCreate, service: EventService = Depends(get_event_service)):
    return _envelope("Event updated successfully", service.replace_event(event_id, payload))


@router.patch("/{event_id}", response_model=EventEnvelope)
def patch_event(event_id: str, payload: EventPatch, service: EventService = Depends(get_event_service)):
    return _envelope("Event updated successfully", service.patch_event(event_id, payload))


@router.delete("/{event_id}", response_model=EventEnvelope)
def delete_event(event_id: str, service: EventService = Depends(get_event_service)):
    return _envelope("Event deleted successfully", service.delete_event(event_id))


@router.delete("", response_model=DeleteAllEnvelope)
def delete_all_events(service: EventService = Depends(get_event_service)):
    deleted = service.delete_all_events()
    return DeleteAllEnvelope(message=f"{deleted} events deleted successfully", deleted_count=deleted)
