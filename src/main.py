"""
Lead Dialer - FastAPI Application Entry Point.

Lead management backend with outbound calling:
- Lead CRUD with a validated status lifecycle
- Outbound calls via Twilio, manual dialing, and call outcome tracking

Run with:
    uvicorn src.main:app --reload --port 8000
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.core.config import get_settings
from src.core.database import db_service
from src.core.exceptions import LeadDialerError, LeadStateTransitionError
from src.api.leads import router as leads_router
from src.api.calls import router as calls_router
from src.api.voice import router as voice_router
from src.api.seed import router as seed_router


# ===========================================
# Logging Configuration
# ===========================================

def setup_logging():
    """Configure application logging."""
    settings = get_settings()

    # Create formatter
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)

    return logging.getLogger(__name__)


logger = setup_logging()


# ===========================================
# Application Lifespan
# ===========================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    logger.info("=" * 50)
    logger.info("Lead Dialer Starting Up")
    logger.info("=" * 50)
    logger.info(f"Environment: {'Development' if settings.DEBUG else 'Production'}")
    logger.info(f"Max call attempts: {settings.MAX_CALL_ATTEMPTS}")

    # Verify critical settings
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        logger.warning("Supabase credentials not configured!")

    if not settings.TWILIO_ACCOUNT_SID or not settings.TWILIO_AUTH_TOKEN:
        logger.warning("Twilio credentials not configured - only manual dialing available")

    logger.info("Startup complete - ready to accept requests")

    yield

    # Shutdown
    logger.info("Lead Dialer shutting down...")


# ===========================================
# Error Handlers
# ===========================================

async def transition_error_handler(request: Request, exc: LeadStateTransitionError):
    """Illegal status change - a client error, never retried."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.message,
            "from_status": exc.from_status.value,
            "to_status": exc.to_status.value,
            "allowed": [status.value for status in exc.allowed],
        }
    )


async def lead_dialer_error_handler(request: Request, exc: LeadDialerError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message}
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "message": str(exc) if get_settings().DEBUG else "An error occurred"
        }
    )


# ===========================================
# FastAPI Application
# ===========================================

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Lead Dialer",
        description="""
        Lead management with outbound calling.

        ## Lead lifecycle

        `pending -> calling -> answered -> qualified | dropped`, with
        `calling -> pending` when a call goes unanswered and the lead
        still has attempts left. Every status change is validated.

        ## Endpoints

        - `/api/leads` - Lead CRUD and valid transitions
        - `/api/calls/*` - Start calls and record outcomes
        - `/api/voice` - TwiML and Twilio status callbacks
        - `/api/seed` - Sample data
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LeadStateTransitionError, transition_error_handler)
    app.add_exception_handler(LeadDialerError, lead_dialer_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # Include routers
    app.include_router(leads_router)
    app.include_router(calls_router)
    app.include_router(voice_router)
    app.include_router(seed_router)

    return app


# Create app instance
app = create_app()


# ===========================================
# Root Endpoints
# ===========================================

@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return JSONResponse({
        "service": "Lead Dialer",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "leads": {
                "list": "GET /api/leads",
                "create": "POST /api/leads",
                "detail": "GET|PUT|DELETE /api/leads/{lead_id}",
                "transitions": "GET /api/leads/{lead_id}/transitions"
            },
            "calls": {
                "start": "POST /api/calls/start",
                "manual_start": "POST /api/calls/manual-start",
                "answered": "POST /api/calls/answered",
                "no_answer": "POST /api/calls/no-answer"
            },
            "voice": {
                "twiml": "POST /api/voice",
                "status": "POST /api/voice/status"
            },
            "docs": "GET /docs"
        }
    })


@app.get("/health", tags=["root"])
async def health():
    """Health check endpoint."""
    database_ok = await db_service.health_check()
    return {
        "status": "healthy" if database_ok else "degraded",
        "service": "lead-dialer",
        "database": "ok" if database_ok else "unavailable"
    }


# ===========================================
# Main Entry Point
# ===========================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
