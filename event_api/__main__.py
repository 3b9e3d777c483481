import uvicorn

from event_api.core.config import get_settings


def run() -> None:
    settings = get_settings()
    uvicorn.run("event_api.main:app", host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
