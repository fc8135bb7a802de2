"""LockerDrop Backend API - FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from lockerdrop import __version__

from .config import get_settings
from .errors import register_error_handlers
from .logging_config import configure_logging, get_logger
from .rate_limit import limiter
from .routes import jobs_router, lockers_router, pricing_router, workers_router

API_PREFIX = "/api"

logger = get_logger("lockerdrop.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(f"Starting LockerDrop API (debug={settings.debug})")
    yield
    logger.info("Shutting down LockerDrop API")


app = FastAPI(
    title="LockerDrop API",
    description="Parcel locker delivery marketplace",
    version=__version__,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

register_error_handlers(app)

# CORS middleware
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(jobs_router, prefix=API_PREFIX)
app.include_router(pricing_router, prefix=API_PREFIX)
app.include_router(lockers_router, prefix=API_PREFIX)
app.include_router(workers_router, prefix=API_PREFIX)


@app.get("/")
async def root():
    """Liveness check."""
    return {
        "service": "lockerdrop-backend",
        "version": __version__,
        "status": "ok",
    }


@app.get("/health")
async def health():
    """Health check with actual database verification."""
    from .database import JOBS_TABLE, get_supabase_client

    db_status = "disconnected"
    try:
        db = get_supabase_client()
        db.table(JOBS_TABLE).select("id").limit(1).execute()
        db_status = "connected"
    except Exception as e:
        logger.warning(f"Health check database query failed: {e}")
        db_status = f"error: {str(e)[:50]}"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "database": db_status,
    }
