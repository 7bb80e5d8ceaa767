"""
Queue Desk API - Main Application Entry Point

Numbered-ticket queueing for service counters:
- Concurrency-safe ticket issuance bounded by each counter's capacity
- Closed ticket status state machine (call, skip, process, release, reset)
- Redis caching of listings, evicted by the allocation engine's change hook
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from queuedesk.core.config import get_settings
from queuedesk.core.errors import (
    CapacityExceeded,
    InvalidTransition,
    NotFound,
    QueueError,
    StorageError,
    ValidationFailed,
)
from queuedesk.core.logging import setup_logging, get_logger
from queuedesk.core.metrics import metrics_endpoint
from queuedesk.api.router import api_router
from queuedesk.api.middleware import RequestLoggingMiddleware
from queuedesk.db.session import get_engine
from queuedesk.schemas.common import ErrorResponse
from queuedesk.services.cache_service import get_redis, close_redis, get_cache_stats

settings = get_settings()
logger = get_logger(__name__)

ERROR_STATUS_CODES: dict[type[QueueError], int] = {
    NotFound: 404,
    CapacityExceeded: 429,
    InvalidTransition: 409,
    ValidationFailed: 400,
    StorageError: 503,
}


def status_code_for(exc: QueueError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    yield

    await close_redis()
    await get_engine().dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Counter queueing API with concurrency-safe ticket allocation",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.exception_handler(QueueError)
async def queue_error_handler(request: Request, exc: QueueError) -> JSONResponse:
    status_code = status_code_for(exc)
    log = logger.error if status_code >= 500 else logger.info
    log("queue_error", error_type=type(exc).__name__, message=exc.message, status_code=status_code)
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=exc.message).model_dump())


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
