import logging

from fastapi import Request

from event_api.core.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("event_api.requests")


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)


async def log_requests(request: Request, call_next):
    """Log every inbound request as `METHOD path`."""
    logger.info("%s %s", request.method, request.url.path)
    return await call_next(request)
