"""
FastAPI application factory and entry point.

This module creates and configures the FastAPI application:
  1. Logging — one basicConfig call at LOG_LEVEL for the whole process
  2. Lifespan manager — handles startup/shutdown (DB tables, session sweeper)
  3. CORS middleware — allows frontend origins to make credentialed requests
  4. Exception handlers — maps domain errors to {"error": ...} responses
  5. Router registration — mounts all API endpoint groups

Running locally:
    uvicorn banking_portal.main:app --reload

The --reload flag watches for file changes and restarts automatically,
which is ideal for development but should not be used in production.
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from banking_portal.config import settings
from banking_portal.database import AsyncSessionLocal, Base, check_connection, engine, get_db
from banking_portal.exceptions import register_exception_handlers
from banking_portal.routers import auth, banker, transactions
from banking_portal.services.session_service import run_session_sweeper

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
      Creates all database tables if they don't exist, then starts the
      background sweeper that deletes expired sessions every
      SESSION_SWEEP_INTERVAL_SECONDS (0 disables it).

    Shutdown:
      Cancels the sweeper and disposes of the database engine, closing all
      connections cleanly.
    """
    # --- Startup ---
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    sweeper = None
    if settings.SESSION_SWEEP_INTERVAL_SECONDS > 0:
        sweeper = asyncio.create_task(
            run_session_sweeper(AsyncSessionLocal, settings.SESSION_SWEEP_INTERVAL_SECONDS)
        )
    logger.info("%s %s started (%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)
    yield
    # --- Shutdown ---
    if sweeper is not None:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
    await engine.dispose()


# Create the FastAPI application instance
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Banking portal API: customer deposits and withdrawals, banker dashboard",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

# CORS: credentials are allowed because the browser client authenticates
# with httpOnly cookies. Lock ALLOWED_ORIGINS down in production.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(auth.router)
app.include_router(transactions.router)
app.include_router(banker.router)


# ---------------------------------------------------------------------------
# Health checks
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for deployment probes (Kubernetes, Docker, etc.).

    Returns a simple JSON response indicating the service is running.
    Load balancers and orchestrators use this to determine if the
    container should receive traffic.
    """
    return {"status": "ok", "version": settings.APP_VERSION}


@app.get("/api/test-db", tags=["Health"])
async def test_database(db: AsyncSession = Depends(get_db)):
    """Verify the database answers a query."""
    timestamp = datetime.now(timezone.utc).isoformat()
    if not await check_connection(db):
        return JSONResponse(
            status_code=500,
            content={"error": "Database connection failed", "timestamp": timestamp},
        )
    return {
        "status": "success",
        "message": "Database connection successful",
        "timestamp": timestamp,
    }
