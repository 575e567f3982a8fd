import time
from contextlib import asynccontextmanager

import uvicorn

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.api_v1.api import api_router, callback_router
from app.core.config import settings
from app.database import check_database_health, engine, init_db
from app.monitoring.db_monitor import DatabaseMonitor
from app.services.backup import DatabaseBackup
from app.tasks.maintenance import (
    BackupTask,
    DatabaseMonitorTask,
    RateLimitEvictionTask,
    RecommendationPruneTask
)
from app.utils.exceptions import MoodScaleError
from app.utils.logging import setup_logger
from app.utils.rate_limiter import create_rate_limiter

logger = setup_logger(__name__)

# Paths that must answer even when the database is down
DB_CHECK_EXEMPT = (f"{settings.API_PREFIX}/health",)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for the FastAPI application."""
    # Startup
    tasks = []
    try:
        logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENVIRONMENT})")
        logger.info("Creating database tables...")
        init_db()
        logger.info("Database tables created successfully")

        tasks.append(RateLimitEvictionTask(app.state.rate_limiter, settings.RATE_LIMIT_WINDOW_SECONDS))
        tasks.append(RecommendationPruneTask())
        if settings.MONITORING_ENABLED:
            tasks.append(DatabaseMonitorTask(app.state.db_monitor))
        if settings.BACKUP_ENABLED:
            tasks.append(BackupTask(DatabaseBackup(settings)))

        for task in tasks:
            task.start()
        logger.info(f"Started {len(tasks)} background tasks")
    except Exception as e:
        logger.error(f"Error during startup: {e}")
        raise

    yield

    # Shutdown
    try:
        logger.info("Stopping background tasks...")
        for task in tasks:
            await task.stop()

        logger.info("Closing database connections...")
        engine.dispose()
        logger.info("Database connections closed successfully")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")
        raise


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.APP_VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    lifespan=lifespan
)

app.state.rate_limiter = create_rate_limiter(settings.RATE_LIMIT_BACKEND, settings.REDIS_URL)
app.state.db_monitor = DatabaseMonitor()


@app.middleware("http")
async def database_health_middleware(request: Request, call_next):
    path = request.url.path
    if path.startswith(settings.API_PREFIX) and path not in DB_CHECK_EXEMPT:
        if not await run_in_threadpool(check_database_health):
            return JSONResponse(status_code=503, content={"error": "Database unavailable"})
    return await call_next(request)


@app.middleware("http")
async def api_rate_limit_middleware(request: Request, call_next):
    if request.url.path.startswith(settings.API_PREFIX):
        client_ip = request.client.host if request.client else "unknown"
        allowed = request.app.state.rate_limiter.check(
            f"api_{client_ip}",
            settings.API_RATE_LIMIT,
            settings.RATE_LIMIT_WINDOW_SECONDS
        )
        if not allowed:
            return JSONResponse(status_code=429, content={"error": "Too many requests"})
    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.monotonic()
    response = await call_next(request)
    if request.url.path.startswith(settings.API_PREFIX):
        duration = (time.monotonic() - start) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} in {duration:.0f}ms")
    return response


# Set up CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MoodScaleError)
async def moodscale_error_handler(request: Request, exc: MoodScaleError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request data"
    if errors:
        field = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"{message}: {field} {errors[0].get('msg', '')}".strip()
    return JSONResponse(status_code=400, content={"error": message})


app.include_router(api_router, prefix=settings.API_PREFIX)
app.include_router(callback_router)


if __name__ == "__main__":
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
