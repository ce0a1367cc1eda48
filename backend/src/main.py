# pyright: reportMissingTypeStubs=false
"""
Vaccination Booking Backend API

A FastAPI application for a pharmacy's vaccination appointments.

Features:
- Staff availability grid with day and week templates
- Public booking of free 15-minute slots
- Patient list management with CSV import/export
- Booking confirmation emails with a calendar invite
- PostgreSQL database with SQLAlchemy ORM
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from api import appointments, auth, availability, booking, patients
from core.constants import CORS_ORIGINS
from core.database import get_db_context
from services.appointment_service import SlotTakenError
from services.availability_store import AvailabilityLoadError
from services.availability_sync_service import PartialWriteError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)
logger.info("💉 Vaccination Booking API starting...")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("🚀 Starting Vaccination Booking Backend API")

    try:
        with get_db_context() as db:
            db.execute(text("SELECT 1"))
        logger.info("✅ Database connection verified")
    except SQLAlchemyError as e:
        logger.exception(f"❌ Database is not reachable at startup: {e}")

    yield

    logger.info("🛑 Shutting down Vaccination Booking Backend API")


# Create FastAPI application
app = FastAPI(
    title="Vaccination Booking Backend",
    description="Availability management and public booking for pharmacy vaccinations",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",  # ReDoc
    lifespan=lifespan,
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(
    auth.router,
    prefix="/api/auth",
    tags=["authentication"],
    responses={
        401: {"description": "Unauthorized"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    availability.router,
    prefix="/api/availability",
    tags=["availability"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        503: {"description": "Availability could not be loaded"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    appointments.router,
    prefix="/api/appointments",
    tags=["appointments"],
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Resource not found"},
        409: {"description": "Conflict"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    patients.router,
    prefix="/api/patients",
    tags=["patients"],
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Resource not found"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    booking.router,
    prefix="/api/booking",
    tags=["booking"],
    responses={
        404: {"description": "Resource not found"},
        409: {"description": "Conflict"},
        500: {"description": "Internal server error"},
    },
)


@app.get(
    "/",
    summary="Root endpoint",
    description="Returns basic API information",
)
async def root() -> dict[str, str]:
    """Get API information."""
    return {
        "message": "Vaccination Booking Backend API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get(
    "/health",
    summary="Health check",
    description="Returns the health status of the API",
)
async def health_check() -> dict[str, str]:
    """Check if the API is healthy and responding."""
    return {"status": "healthy"}


# Global exception handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions globally."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": "internal_error"},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions."""
    logger.warning(f"ValueError: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "type": "validation_error"},
    )


@app.exception_handler(SlotTakenError)
async def slot_taken_handler(request: Request, exc: SlotTakenError):
    """A concurrent booking won the slot; the client should pick another one."""
    logger.info(f"Slot taken: {exc}")
    return JSONResponse(
        status_code=409,
        content={
            "detail": "This slot has just been booked. Please choose another time.",
            "type": "slot_taken",
            "date": exc.appointment_date.isoformat(),
            "time": exc.appointment_time,
        },
    )


@app.exception_handler(AvailabilityLoadError)
async def availability_load_error_handler(request: Request, exc: AvailabilityLoadError):
    """Availability could not be read; nothing is shown as bookable."""
    logger.error(f"Availability load error: {exc}")
    return JSONResponse(
        status_code=503,
        content={
            "detail": "Availability could not be loaded. Please try again.",
            "type": "availability_unavailable",
        },
    )


@app.exception_handler(PartialWriteError)
async def partial_write_error_handler(request: Request, exc: PartialWriteError):
    """Report which dates were saved and which must be saved again."""
    logger.error(f"Partial availability write: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Availability was only partially saved. Save again to finish.",
            "type": "partial_write",
            "chunk_index": exc.chunk_index,
            "committed_dates": [d.isoformat() for d in exc.committed_dates],
            "failed_dates": [d.isoformat() for d in exc.failed_dates],
        },
    )
