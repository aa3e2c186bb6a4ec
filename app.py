"""
MedCare Backend
Main FastAPI application: medicine tracking, adherence reports and reminders
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Configuration and database
from config import settings
from database import init_db, DatabaseHealthCheck

from actions.reminder_engine import ReminderScheduler
from api import include_routers
from exceptions import MedCareError, NotFoundError, NotificationError, PersistenceError, ValidationError
from services.tracker_service import tracker_service
from tools.notification_service import get_notification_sink

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


# ==================== LIFESPAN ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown"""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENV}")

    try:
        init_db()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    try:
        await tracker_service.hydrate()
    except PersistenceError as e:
        logger.error(f"Could not load saved data, starting empty: {e}")

    sink = get_notification_sink()
    scheduler = ReminderScheduler(tracker_service, sink)
    app.state.reminder_scheduler = scheduler
    scheduler.start()

    yield

    # Shutdown
    await scheduler.stop()
    await sink.aclose()
    logger.info(f"Shutting down {settings.APP_NAME}")


# ==================== APP INITIALIZATION ====================

app = FastAPI(
    title=settings.APP_NAME,
    description="""
    ## MedCare API

    Personal medicine-adherence tracker.

    ### Features
    - **Medicines**: Daily HH:MM schedules with start/end dates
    - **Tracker**: Today's doses with taken / skipped / missed / pending status
    - **Adherence**: Weekly, monthly and quarterly adherence reports
    - **Reminders**: Dose reminders with caregiver escalation after 30 minutes
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Attach modular API routers (prefix /api/v1)
include_routers(app)


# ==================== EXCEPTION HANDLERS ====================

def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": True,
            "message": message,
            "status_code": status_code,
            "timestamp": datetime.utcnow().isoformat(),
            **extra
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    return error_response(exc.status_code, exc.detail)


@app.exception_handler(ValidationError)
async def validation_exception_handler(request, exc: ValidationError):
    return error_response(422, str(exc), errors=exc.errors)


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request, exc: NotFoundError):
    return error_response(404, str(exc))


@app.exception_handler(PersistenceError)
async def persistence_exception_handler(request, exc: PersistenceError):
    logger.error(f"Persistence failure on {request.url.path}: {exc}")
    return error_response(503, "Change applied but could not be saved, it will sync on the next write")


@app.exception_handler(NotificationError)
async def notification_exception_handler(request, exc: NotificationError):
    logger.error(f"Notification failure on {request.url.path}: {exc}")
    return error_response(502, str(exc))


@app.exception_handler(MedCareError)
async def medcare_exception_handler(request, exc: MedCareError):
    return error_response(400, str(exc))


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return error_response(500, "An unexpected error occurred" if not settings.DEBUG else str(exc))


# ==================== HEALTH ENDPOINTS ====================

@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic health check"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat()
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check endpoint"""
    db_connected = DatabaseHealthCheck.is_connected()
    scheduler = getattr(app.state, "reminder_scheduler", None)

    return {
        "status": "healthy" if db_connected else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {
            "database": {
                "status": "up" if db_connected else "down",
                "type": "sqlite" if "sqlite" in settings.DATABASE_URL else "postgresql"
            },
            "reminders": {
                "enabled": settings.REMINDERS_ENABLED,
                "running": bool(scheduler and scheduler.running),
                "pending_escalations": scheduler.pending_escalations if scheduler else 0
            },
            "notifications": {
                "backend": settings.NOTIFICATION_BACKEND
            }
        },
        "version": settings.APP_VERSION,
        "environment": settings.ENV
    }


# ==================== MAIN ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
