"""
Box Office API - Main Application Entry Point

Seat reservation service for ticketed events:
- Short-lived, all-or-nothing seat locks per client session
- Per-event critical sections so no seat is ever held or sold twice
- Pending bookings with price snapshots, settled through a payment gateway
- Background reaper returning expired locks to the pool
"""

from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from boxoffice.core.concurrency import KeyedLocks
from boxoffice.core.config import get_settings
from boxoffice.core.exceptions import register_exception_handlers
from boxoffice.core.logging import setup_logging, get_logger
from boxoffice.core.metrics import metrics_endpoint
from boxoffice.api.router import api_router
from boxoffice.api.middleware import RequestLoggingMiddleware
from boxoffice.db.session import Database
from boxoffice.services.cache_service import get_redis, close_redis, get_cache_stats
from boxoffice.services.interfaces.payment_gateway import PaymentGateway
from boxoffice.services.reaper import ExpiryReaper
from boxoffice.services.seed_service import seed_demo_data
from boxoffice.services.strategy_factory import build_payment_gateway

settings = get_settings()


def configure_state(app: FastAPI, database: Database, payment_gateway: PaymentGateway) -> None:
    """Attach the store handle and the process-wide coordination objects."""
    app.state.database = database
    app.state.payment_gateway = payment_gateway
    app.state.event_locks = KeyedLocks()
    app.state.booking_locks = KeyedLocks()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: open the store, start the reaper, clean up."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    database = Database.from_settings(settings)
    configure_state(app, database, build_payment_gateway(settings))

    if settings.DB_CREATE_TABLES:
        await database.create_all()
    if settings.SEED_DEMO_DATA:
        async with database.session() as db:
            await seed_demo_data(db)

    ttl = settings.PENDING_BOOKING_TTL_MINUTES
    reaper = ExpiryReaper(
        database,
        app.state.booking_locks,
        interval_seconds=settings.REAPER_INTERVAL_SECONDS,
        pending_booking_ttl=timedelta(minutes=ttl) if ttl else None,
    )
    reaper.start()
    app.state.reaper = reaper

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    yield

    await reaper.stop()
    await close_redis()
    await database.dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Seat reservation API with lock expiry and atomic booking",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    reaper = getattr(app.state, "reaper", None)
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "reaper": "running" if reaper is not None and reaper.running else "stopped",
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("boxoffice.main:app", host="0.0.0.0", port=8000)
