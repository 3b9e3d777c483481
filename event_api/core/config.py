import os
from dataclasses import dataclass

# Backend selection
MEMORY_BACKEND = "memory"
SQL_BACKEND = "sql"

VERSION = "1.0.0"


@dataclass
class Settings:
    """Runtime configuration, read from the environment."""

    event_store: str = MEMORY_BACKEND
    database_url: str = "sqlite:///./events.db"
    redis_url: str = ""
    app_env: str = "development"
    log_level: str = "INFO"
    port: int = 3000
    lock_timeout: int = 10
    lock_blocking_timeout: int = 5

    def __post_init__(self):
        self.event_store = os.getenv("EVENT_STORE", self.event_store).lower()
        self.database_url = os.getenv("DATABASE_URL", self.database_url)
        self.redis_url = os.getenv("REDIS_URL", self.redis_url)
        self.app_env = os.getenv("APP_ENV", self.app_env).lower()
        self.log_level = os.getenv("LOG_LEVEL", self.log_level).upper()
        self.port = int(os.getenv("PORT", str(self.port)))
        self.lock_timeout = int(os.getenv("LOCK_TIMEOUT", str(self.lock_timeout)))
        self.lock_blocking_timeout = int(
            os.getenv("LOCK_BLOCKING_TIMEOUT", str(self.lock_blocking_timeout))
        )

        if self.event_store not in (MEMORY_BACKEND, SQL_BACKEND):
            raise ValueError(
                f"EVENT_STORE must be '{MEMORY_BACKEND}' or '{SQL_BACKEND}', got '{self.event_store}'"
            )

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


def get_settings() -> Settings:
    return Settings()
