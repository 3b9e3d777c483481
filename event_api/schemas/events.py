import re
from datetime import datetime, timezone
from typing import Annotated, Optional, Union

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from event_api.domain import EventType, title_case

TITLE_MAX_LENGTH = 100
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")


def _require_iso_string(value):
    # unix timestamps, numbers and other non-ISO text never reach the datetime parser
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not _ISO_DATE.match(value.strip()):
        raise ValueError("Date and time must be in ISO format")
    return value.strip()


def _ensure_future(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    if value <= datetime.now(timezone.utc):
        raise ValueError("Event date must be in the future")
    return value


FutureDateTime = Annotated[datetime, BeforeValidator(_require_iso_string), AfterValidator(_ensure_future)]


def _title_fits(value: str) -> str:
    # case mapping can lengthen text ('ß' -> 'SS'), so check the stored form
    if len(title_case(value)) > TITLE_MAX_LENGTH:
        raise ValueError(f"Title cannot be more than {TITLE_MAX_LENGTH} characters")
    return value


Title = Annotated[str, AfterValidator(_title_fits)]


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# ---------- Requests ----------
class PrizeMoneyIn(ApiModel):
    first: float = Field(ge=0, allow_inf_nan=False)
    second: float = Field(ge=0, allow_inf_nan=False)
    third: float = Field(ge=0, allow_inf_nan=False)


class EventCreate(ApiModel):
    """Body of POST and PUT: every field required."""

    title: Title = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str = Field(min_length=1, max_length=1000)
    prize_money: PrizeMoneyIn
    date_time: FutureDateTime
    venue: str = Field(min_length=1, max_length=200)
    event_type: EventType
    max_team_size: int = Field(ge=1, le=50)


class _PatchModel(ApiModel):
    @field_validator("*", mode="before")
    @classmethod
    def _reject_null(cls, value):
        # absent fields keep their default and never reach this validator
        if value is None:
            raise ValueError("Value cannot be null")
        return value


class PrizeMoneyPatch(_PatchModel):
    first: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    second: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    third: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class EventPatch(_PatchModel):
    """Body of PATCH: only the supplied fields are validated and applied."""

    title: Optional[Title] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    prize_money: Optional[PrizeMoneyPatch] = None
    date_time: Optional[FutureDateTime] = None
    venue: Optional[str] = Field(None, min_length=1, max_length=200)
    event_type: Optional[EventType] = None
    max_team_size: Optional[int] = Field(None, ge=1, le=50)


# ---------- Responses ----------
class PrizeMoneyOut(ApiModel):
    model_config = ConfigDict(from_attributes=True)

    first: float
    second: float
    third: float


class EventOut(ApiModel):
    model_config = ConfigDict(from_attributes=True)

    id: Union[int, str]
    title: str
    description: str
    prize_money: PrizeMoneyOut
    date_time: datetime
    venue: str
    event_type: EventType
    max_team_size: int
    created_at: datetime
    updated_at: datetime


class Pagination(ApiModel):
    current_page: int
    total_pages: int
    total_events: int
    has_next_page: bool
    has_prev_page: bool


class EventEnvelope(ApiModel):
    success: bool = True
    message: str
    data: EventOut


class EventListEnvelope(ApiModel):
    success: bool = True
    message: str
    data: list[EventOut]
    pagination: Pagination


class DeleteAllEnvelope(ApiModel):
    success: bool = True
    message: str
    deleted_count: int


class StatsOverview(ApiModel):
    total_events: int
    total_prize_money: float
    avg_prize_money: float
    event_types: list[str]


class EventTypeStats(ApiModel):
    event_type: str
    count: int
    total_prize: float


class EventStatsOut(ApiModel):
    overview: StatsOverview
    by_event_type: list[EventTypeStats]


class StatsEnvelope(ApiModel):
    success: bool = True
    message: str
    data: EventStatsOut
