"""whatnow - gamified task recommendation and scoring service."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from whatnow.core.auth_client import AuthClient, AuthenticationError
from whatnow.core.config import constants, settings
from whatnow.core.db_client import DatabaseError, RecordNotFoundError
from whatnow.core.errors import classify_error_with_response
from whatnow.core.logging import configure_logfire, instrument_fastapi
from whatnow.core.redis_client import redis_client
from whatnow.interface.auth_router import router as auth_router
from whatnow.interface.groups_router import router as groups_router
from whatnow.interface.profile_router import router as profile_router
from whatnow.interface.tasks_router import router as tasks_router
from whatnow.interface.what_next_router import router as what_next_router
from whatnow.services.in_progress import InProgressTasks, TaskNotStartedError
from whatnow.services.swipe_session import InvalidSessionTransitionError, SessionNotFoundError, SwipeSessionStore


logger = logging.getLogger(__name__)

# Most specific first: RecordNotFoundError is a DatabaseError
_ERROR_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (RecordNotFoundError, status.HTTP_404_NOT_FOUND),
    (SessionNotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionError, status.HTTP_403_FORBIDDEN),
    (InvalidSessionTransitionError, status.HTTP_409_CONFLICT),
    (TaskNotStartedError, status.HTTP_409_CONFLICT),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (ValueError, status.HTTP_400_BAD_REQUEST),
    (DatabaseError, status.HTTP_502_BAD_GATEWAY),
)


async def check_pocketbase_connectivity() -> None:
    """Verify PocketBase is reachable.

    Raises:
        ConnectionError: If the health endpoint cannot be reached
    """
    try:
        async with httpx.AsyncClient(timeout=constants.API_TIMEOUT_SECONDS) as client:
            response = await client.get(f"{settings.pocketbase_url}/api/health")
            if response.is_success:
                logger.info("startup_validation", extra={"service": "pocketbase", "status": "ok"})
            else:
                raise ConnectionError(f"PocketBase returned status {response.status_code}")
    except Exception as e:
        logger.error("startup_validation", extra={"service": "pocketbase", "status": "failed", "error": str(e)})
        raise ConnectionError(f"PocketBase connectivity check failed: {e}") from e


async def check_redis_connectivity() -> None:
    """Verify Redis connectivity (optional service); never fails startup."""
    if not redis_client.is_available:
        logger.info("startup_validation", extra={"service": "redis", "status": "disabled"})
        return

    if await redis_client.ping():
        logger.info("startup_validation", extra={"service": "redis", "status": "ok"})
    else:
        logger.warning("startup_validation", extra={"service": "redis", "status": "unavailable"})


async def validate_startup_configuration() -> None:
    """Check external services and exit with a clear message when a required one is down."""
    logger.info("startup_validation_begin")

    try:
        await check_pocketbase_connectivity()
        await check_redis_connectivity()
        logger.info("startup_validation_complete", extra={"status": "ok"})
    except ConnectionError as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\n❌ Startup validation failed: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so validation logs are captured
    configure_logfire()
    await validate_startup_configuration()
    yield
    await redis_client.close()


async def handle_service_error(_request: Request, exc: Exception) -> JSONResponse:
    """Turn service exceptions into a status code plus a structured ErrorResponse."""
    status_code = next(
        (code for exc_type, code in _ERROR_STATUS if isinstance(exc, exc_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    error = classify_error_with_response(exc)
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("request_failed", extra={"error": str(exc), "code": error.code})
    return JSONResponse(status_code=status_code, content={"error": error.model_dump(mode="json")})


def create_app(*, auth_client: AuthClient | None = None) -> FastAPI:
    """Build the application with its own auth client and swipe session store."""
    app = FastAPI(
        title="whatnow",
        description="Gamified task recommendation and scoring service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.auth_client = auth_client or AuthClient()
    app.state.session_store = SwipeSessionStore()
    app.state.in_progress = InProgressTasks()

    instrument_fastapi(app)

    for exc_type, _ in _ERROR_STATUS:
        app.add_exception_handler(exc_type, handle_service_error)

    app.include_router(auth_router)
    app.include_router(tasks_router)
    app.include_router(what_next_router)
    app.include_router(profile_router)
    app.include_router(groups_router)

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse(
            content={
                "status": "healthy",
                "redis": "ok" if redis_client.is_available else "disabled",
                "pending_cache_invalidations": redis_client.pending_invalidations,
            },
            status_code=200,
        )

    return app


app = create_app()
