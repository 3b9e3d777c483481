from datetime import datetime
from typing import Optional

from event_api.schemas.events import ApiModel


class DatabaseHealth(ApiModel):
    backend: str
    status: str
    event_count: Optional[int] = None


class HealthOut(ApiModel):
    success: bool = True
    message: str
    timestamp: datetime
    version: str
    database: DatabaseHealth
