"""
Inbox SLA - Main Application
=============================

SLA resolution and breach-detection service for a multi-tenant inbox.

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects, business-hours calendar and breach policies
- Infrastructure: Database and YAML repositories
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from inbox_sla.config import settings
from inbox_sla.core import ApplicationException

# Infrastructure
from inbox_sla.infrastructure.database import close_database, create_tables, init_database

# Middleware and Logging
from inbox_sla.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from inbox_sla.shared.infrastructure.logging import get_logger, setup_logging

# SLA Module
from inbox_sla.sla.infrastructure import YAMLSLARepository
from inbox_sla.sla.interfaces import sla_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database
    3. Create database tables (development only)
    4. Load YAML SLA definitions, when configured

    SHUTDOWN:
    1. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Inbox SLA service", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    init_database()

    # Use migrations outside development
    if settings.environment == "development":
        try:
            await create_tables()
        except Exception as e:
            logger.warning(f"Database not available - running in degraded mode: {e}")

    app.state.sla_repository = None
    if settings.sla_definitions_path:
        logger.info("Loading SLA definitions", extra={"path": str(settings.sla_definitions_path)})
        app.state.sla_repository = YAMLSLARepository(settings.sla_definitions_path)

    logger.info("Inbox SLA service started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Inbox SLA service")
    await close_database()
    logger.info("Inbox SLA service shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Inbox SLA API",
    description="""
    ## SLA Resolution & Breach Detection

    Resolves which SLA applies to a conversation and flags the conversations
    that are close to, or past, their first-response deadline.

    ---

    ### SLA Hierarchy

    1. **Location** SLA (most specific)
    2. **Channel** SLA (WHATSAPP, INSTAGRAM, TIKTOK, FACEBOOK, TWITTER, TELEGRAM)
    3. **Tenant** default (earliest-created SLA)

    ---

    ### Thresholds

    | Warning  | Used  | Minutes left |
    |----------|-------|--------------|
    | critical | 95%   | 5            |
    | high     | 90%   | 15           |
    | medium   | 85%   | 30           |
    | low      | 75%   | -            |

    | Expired  | Overdue | Overdue % |
    |----------|---------|-----------|
    | urgent   | 120 min | 200%      |
    | critical | 60 min  | 150%      |
    | overdue  | > 0     | -         |
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware ===
app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(sla_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {"sla_store": "database"}
                }
            }
        }
    }
})
async def health_check(request: Request):
    """Health check endpoint for load balancers and orchestrators."""
    yaml_store = getattr(request.app.state, "sla_repository", None)
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": {"sla_store": "yaml" if yaml_store is not None else "database"},
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "inbox_sla.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
