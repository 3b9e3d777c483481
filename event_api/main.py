import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from event_api.core.config import SQL_BACKEND, VERSION, get_settings
from event_api.core.errors import DomainError, ErrorCode, EventValidationError, StoreError
from event_api.core.logging_config import configure_logging, log_requests
from event_api.database.db import Base, engine
from event_api.routes import events
from event_api.routes.deps import get_event_service
from event_api.schemas.health import HealthOut
from event_api.services.events import EventService
from event_api.stores.memory_store import MemoryEventStore

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_EVENT_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.STORE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _field_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors into `{field, message}` pairs keyed by JSON path."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err["loc"]]
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        field = ".".join(loc) or "body"
        if err["type"] == "json_invalid":
            # loc carries the character offset, not a field
            field = "body"
            message = "Request body must be valid JSON"
        elif err["type"] == "missing":
            message = f"{field} is required"
        else:
            message = err["msg"].removeprefix("Value error, ")
        errors.append({"field": field, "message": message})
    return errors


def _server_error(message: str, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": message,
            "error": detail if get_settings().is_development else "Internal server error",
        },
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Validation errors", "errors": _field_errors(exc)},
    )


async def domain_exception_handler(request: Request, exc: DomainError):
    if isinstance(exc, StoreError):
        logger.error("Store error on %s %s: %s", request.method, request.url.path, exc.detail)
        return _server_error(exc.message, exc.detail)

    content = {"success": False, "message": exc.message}
    if isinstance(exc, EventValidationError):
        content["errors"] = exc.errors
    return JSONResponse(status_code=STATUS_BY_CODE[exc.code], content=content)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"success": False, "message": "Route not found"},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _server_error("Something went wrong!", str(exc))


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(title="Event API", version=VERSION)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DomainError, domain_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    if settings.event_store == SQL_BACKEND:
        # Create all tables (in production, use migrations such as Alembic)
        Base.metadata.create_all(bind=engine)
    app.state.memory_store = MemoryEventStore()

    app.include_router(events.router, prefix="/api")

    @app.get("/api/health", response_model=HealthOut, tags=["health"])
    def health(service: EventService = Depends(get_event_service)):
        return HealthOut(
            message="API is running successfully",
            timestamp=datetime.now(timezone.utc),
            version=VERSION,
            database=service.health(),
        )

    logger.info("Event API %s starting with %s store (%s)", VERSION, settings.event_store, settings.app_env)
    return app


app = create_app()
