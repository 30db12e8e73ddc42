"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import availability, bookings, seasonal, waitlist
from app.core.config import settings
from app.core.database import init_models
from app.core.exceptions import BookingEngineError, InvalidConfiguration
from app.services.scheduler import auto_complete_scheduler

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting court booking engine")
    logger.info(f"Debug mode: {settings.DEBUG}")

    if settings.CREATE_TABLES:
        await init_models()

    # Start the auto-complete sweep
    await auto_complete_scheduler.start()

    yield

    # Shutdown
    logger.info("Shutting down court booking engine")
    await auto_complete_scheduler.stop()


# Create FastAPI app
app = FastAPI(
    title="Court Booking Engine",
    description="Slot scheduling, pricing and seasonal series bookings for sports courts",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingEngineError)
async def booking_engine_error_handler(request: Request, exc: BookingEngineError):
    """Render domain errors with their status code."""
    if isinstance(exc, InvalidConfiguration):
        logger.error(f"Invalid configuration on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "code": exc.code,
            "details": exc.details,
        },
    )


# Include routers
app.include_router(availability.router)
app.include_router(seasonal.router)
app.include_router(bookings.router)
app.include_router(waitlist.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "scheduler_running": auto_complete_scheduler.running,
    }
