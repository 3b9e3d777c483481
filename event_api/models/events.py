import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from event_api.database.db import Base


def new_event_id() -> str:
    return str(uuid.uuid4())


class EventRow(Base):
    __tablename__ = "events"
    __table_args__ = (
        Index("ix_events_event_type", "event_type"),
        Index("ix_events_date_time", "date_time"),
        Index("ix_events_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_event_id)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    prize_first: Mapped[float] = mapped_column(Float, nullable=False)
    prize_second: Mapped[float] = mapped_column(Float, nullable=False)
    prize_third: Mapped[float] = mapped_column(Float, nullable=False)
    date_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    venue: Mapped[str] = mapped_column(String(200), nullable=False)
    event_type: Mapped[str] = mapped_column(String(16), nullable=False)
    max_team_size: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
