"""
Admission Portal API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Blob storage, file cache and payment gateway
- CORS middleware
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from admission_portal.api import api_router
from admission_portal.core.config import settings
from admission_portal.core.database import Database
from admission_portal.core.payment_gateway import create_payment_gateway
from admission_portal.core.redis import close_redis, connect_redis
from admission_portal.core.storage import FileCache, create_storage

# Register every model with the declarative metadata
from admission_portal.modules.admissions import models as admissions_models  # noqa: F401
from admission_portal.modules.master_data import models as master_data_models  # noqa: F401
from admission_portal.modules.users import models as users_models  # noqa: F401

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection
    - Database connection
    - Blob storage and payment gateway clients
    """
    # Startup
    logger.info(f"Starting Admission Portal API in {settings.python_env} mode...")

    # Initialize Redis
    app.state.redis = None
    try:
        app.state.redis = await connect_redis(settings.redis_url)
        logger.info("[OK] Redis connected")
    except Exception as e:
        logger.error(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    # Initialize Database
    database = Database(settings.database_url, echo=settings.database_echo)
    app.state.database = database
    try:
        await database.connect()
        logger.info("[OK] Database connected")
    except Exception as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    # Storage and payments
    storage = create_storage(settings)
    app.state.storage = storage
    app.state.file_cache = FileCache(storage, settings.file_cache_dir)
    app.state.payment_gateway = create_payment_gateway(settings)
    logger.info(f"[OK] Storage ready ({type(storage).__name__})")

    yield  # Application runs here

    # Shutdown
    logger.info("Shutting down Admission Portal API...")

    await storage.close()
    await close_redis(app.state.redis)
    await database.disconnect()
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="Admission Portal API",
    description="Student admission applications, documents and fee payments",
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
        "message": "Welcome to the Admission Portal API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check: the database must be connected."""
    if not app.state.database.is_connected:
        return {"status": "not ready"}
    return {"status": "ready"}
