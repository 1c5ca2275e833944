import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from . import models  # noqa: F401 - registers tables with Base
from .database import Base, SessionLocal, check_database_connection, engine
from .domain.bookings.router import router as bookings_router
from .domain.pos.router import router as pos_router
from .domain.vouchers.router import router as vouchers_router
from .errors import register_error_handlers
from .routes.ads import router as ads_router
from .routes.auth import router as auth_router
from .routes.branches import router as branches_router
from .routes.gamification import router as gamification_router
from .routes.notifications import router as notifications_router
from .routes.packages import router as packages_router
from .routes.payments import router as payments_router
from .routes.settings import router as settings_router
from .routes.subscriptions import router as subscriptions_router
from .seed import seed_defaults
from .services.payment_methods import refresh_payment_methods_cache
from .workers.poller import VisibilityPoller

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Fayeed Auto Care API starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("✅ Database tables ready")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"❌ Failed to create database tables: {e}")

    if config.SEED_DEFAULTS:
        db = SessionLocal()
        try:
            seed_defaults(db)
        except Exception as e:
            logger.error(f"❌ Seeding skipped: {e}")
        finally:
            db.close()

    if config.REDIS_ENABLED:
        try:
            from .rate_limiter import get_redis_client

            get_redis_client()  # Connection test
            logger.info("✅ Redis connection established")
        except Exception as e:
            logger.warning(f"⚠️ Redis connection failed - using in-memory rate limiting and cache: {e}")

    # A TTL of 0 disables caching, so there is nothing to keep warm
    poller = None
    if config.XENDIT_METHODS_CACHE_TTL_SECONDS > 0:
        poller = VisibilityPoller(
            refresh_payment_methods_cache,
            interval_seconds=config.XENDIT_METHODS_CACHE_TTL_SECONDS,
            name="payment-methods poller",
        )
        poller.start()
    app.state.payment_methods_poller = poller

    yield

    if poller is not None:
        await poller.shutdown()
    logger.info("👋 Application shutting down...")


app = FastAPI(title="Fayeed Auto Care API", version="1.0.0", lifespan=lifespan)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health", tags=["Health"])
async def health_check():
    database_ok = check_database_connection()
    return {
        "status": "healthy" if database_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "services": {"database": "connected" if database_ok else "disconnected"},
    }


app.include_router(auth_router)
app.include_router(bookings_router)
app.include_router(subscriptions_router)
app.include_router(notifications_router)
app.include_router(settings_router)
app.include_router(ads_router)
app.include_router(branches_router)
app.include_router(packages_router)
app.include_router(gamification_router)
app.include_router(pos_router)
app.include_router(vouchers_router)
app.include_router(payments_router)
