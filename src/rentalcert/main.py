"""
Rental Certification API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Logging
- Database and Redis connections
- Background job scheduler (certification expiry sweep)
- CORS middleware
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from rentalcert.api import api_router
from rentalcert.core import redis as redis_state
from rentalcert.core.config import settings
from rentalcert.core.database import async_session_maker, close_db, init_db
from rentalcert.core.logging import configure_logging
from rentalcert.core.redis import close_redis, init_redis
from rentalcert.core.scheduler import (
    list_registered_jobs,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from rentalcert.modules.certifications.jobs import register_certification_jobs

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection
    - Database connection
    - Background job scheduler
    """
    configure_logging()
    logger.info(f"Starting Rental Certification API in {settings.python_env} mode...")

    # Redis backs rate limiting; the in-memory fallback covers development
    try:
        await init_redis()
        logger.info("[OK] Redis connected")
    except Exception as e:
        logger.error(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        logger.info("[OK] Database connected")
    except Exception as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    try:
        # Register jobs before starting the scheduler
        register_certification_jobs()
        await start_scheduler()
        logger.info("[OK] Background scheduler started")
    except Exception as e:
        logger.error(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    logger.info("Shutting down Rental Certification API...")

    # Stop the scheduler first (wait for running jobs)
    await stop_scheduler()
    logger.info("[OK] Background scheduler stopped")

    await close_redis()
    await close_db()
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="Rental Certification API",
    description="Short-term rental host certification: applications, review and certificates",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to the Rental Certification API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check: the database must answer."""
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(status_code=503, detail="Database unavailable") from e
    return {"status": "ready"}


@app.get("/debug/redis", tags=["Debug"])
async def debug_redis():
    """Test Redis connection."""
    try:
        if redis_state.redis_client:
            await redis_state.redis_client.ping()
            return {"redis": "connected"}
        return {"redis": "not initialized"}
    except Exception as e:
        return {"redis": "error", "message": str(e)}


# ============================================
# Background Job Debug Endpoints
# ============================================
# Manual triggering for testing; in production jobs run on schedule.


@app.get("/debug/jobs", tags=["Debug"])
async def list_jobs():
    """List all registered background jobs and their next run time."""
    return {"jobs": list_registered_jobs()}


@app.post("/debug/jobs/{job_id}/trigger", tags=["Debug"])
async def trigger_job(job_id: str):
    """
    Manually trigger a background job.

    Args:
        job_id: The ID of the job to trigger. Available jobs:
            - certifications_expiry_sweep

    Raises:
        HTTPException 400: If job_id is not found.
    """
    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
