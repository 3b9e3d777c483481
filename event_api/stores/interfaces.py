"""Store interfaces (repository pattern).

Both backends implement EventStore with the same contract, so services and
handlers never know which one is in use.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from event_api.domain import Event, EventId, EventType

Mutation = Callable[[Event], Event]


class EventStore(ABC):
    """Interface for event persistence operations."""

    backend: str

    @abstractmethod
    def parse_id(self, raw_id: str) -> EventId:
        """Convert a path parameter to this store's id type.

        Raises:
            InvalidEventIdError: If raw_id is not a valid identifier here.
        """
        ...

    @abstractmethod
    def list_events(
        self,
        *,
        event_type: Optional[EventType],
        sort_by: str,
        descending: bool,
        offset: int,
        limit: int,
    ) -> list[Event]:
        """Return one page of events, ties broken by creation time."""
        ...

    @abstractmethod
    def count_events(self, event_type: Optional[EventType] = None) -> int:
        ...

    @abstractmethod
    def get_event(self, event_id: EventId) -> Optional[Event]:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def add_event(self, event: Event) -> Event:
        """Persist a new event and return it with its generated id."""
        ...

    @abstractmethod
    def update_event(self, event_id: EventId, mutate: Mutation) -> Optional[Event]:
        """Apply `mutate` to the current record and persist the result.

        The read, mutation and write happen atomically with respect to other
        writers of the same record. `id` and `created_at` are never changed.
        Returns None if the event does not exist.
        """
        ...

    @abstractmethod
    def delete_event(self, event_id: EventId) -> Optional[Event]:
        """Remove an event and return it, or None if not found."""
        ...

    @abstractmethod
    def delete_all(self) -> int:
        """Remove every event and return how many were removed."""
        ...

    @abstractmethod
    def stats(self) -> dict:
        """Return aggregate prize and type statistics."""
        ...

    @abstractmethod
    def ping(self) -> bool:
        """Check whether the store is reachable."""
        ...
