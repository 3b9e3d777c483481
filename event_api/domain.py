"""Domain models for events.

Plain frozen dataclasses shared by both storage backends. Persistence rows
(models/events.py) and API schemas (schemas/events.py) convert to and from
these.
"""

import enum
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

EventId = Union[int, str]

_WORD = re.compile(r"\w\S*")


class EventType(str, enum.Enum):
    TECHNICAL = "Technical"
    CULTURAL = "Cultural"
    SPORTS = "Sports"
    ACADEMIC = "Academic"
    LITERARY = "Literary"
    ART = "Art"
    MUSIC = "Music"
    DANCE = "Dance"


def title_case(value: str) -> str:
    """Upper-case the first character of each word and lower-case the rest.

    Unlike str.title(), apostrophes and digits inside a word do not start a
    new word: "o'neil 2nd" becomes "O'neil 2nd".
    """
    return _WORD.sub(lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), value)


@dataclass(frozen=True)
class PrizeMoney:
    first: float
    second: float
    third: float

    @property
    def total(self) -> float:
        return self.first + self.second + self.third


@dataclass(frozen=True)
class Event:
    """Domain representation of an Event.

    `id` is None until a store has persisted the record.
    """

    title: str
    description: str
    prize_money: PrizeMoney
    date_time: datetime
    venue: str
    event_type: EventType
    max_team_size: int
    created_at: datetime
    updated_at: datetime
    id: Optional[EventId] = None


# API field name -> accessor on Event, for sorting
SORTABLE_FIELDS = {
    "id": lambda e: e.id,
    "title": lambda e: e.title,
    "description": lambda e: e.description,
    "dateTime": lambda e: e.date_time,
    "venue": lambda e: e.venue,
    "eventType": lambda e: e.event_type.value,
    "maxTeamSize": lambda e: e.max_team_size,
    "prizeMoney.first": lambda e: e.prize_money.first,
    "prizeMoney.second": lambda e: e.prize_money.second,
    "prizeMoney.third": lambda e: e.prize_money.third,
    "createdAt": lambda e: e.created_at,
    "updatedAt": lambda e: e.updated_at,
}
