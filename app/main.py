from fastapi import FastAPI
from fastapi.exceptions import HTTPException as FastAPIHTTPException

from app.core.logger import setup_logging
from app.middleware.cors import configure_cors
from app.middleware.logging import RequestLoggerMiddleware
from app.middleware import error_handler

# Routers
from app.routers import health as health_router
from app.routers import voice as voice_router
from app.routers import appointments as appointments_router
from app.routers import doctors as doctors_router
from app.routers import clinic as clinic_router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    setup_logging()
    description = (
        "Dental clinic booking API.\n\n"
        "One availability and booking engine shared by the voice agent, "
        "WhatsApp, web chat and the clinic staff."
    )

    openapi_tags = [
        {"name": "voice", "description": "Voice-agent adapter: doctors, availability, book, lookup, cancel, reschedule."},
        {"name": "appointments", "description": "Staff appointment management and reminder status."},
        {"name": "doctors", "description": "Doctor directory and availability blocks."},
        {"name": "clinic", "description": "Clinic hours, working days and reminder policy."},
        {"name": "health", "description": "Health checks and service status endpoints."},
    ]

    app = FastAPI(
        title="Dental Clinic Booking API",
        version="0.1.0",
        description=description,
        openapi_tags=openapi_tags,
    )

    # Middleware
    configure_cors(app)
    app.add_middleware(RequestLoggerMiddleware)

    # Exception handlers
    app.add_exception_handler(FastAPIHTTPException, error_handler.http_exception_handler)
    app.add_exception_handler(Exception, error_handler.unhandled_exception_handler)

    # Include routers
    app.include_router(health_router.router)
    app.include_router(voice_router.router)
    app.include_router(appointments_router.router)
    app.include_router(doctors_router.router)
    app.include_router(clinic_router.router)

    return app


app = create_app()
