"""
Palma Marketplace Service
Orders, carrier shipments, product catalog, brokers and accounts behind one API
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import os

from shared.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger, HealthStatus
from palma.core_settings import get_settings
from palma.domain.models import Base
from palma.infrastructure import db
from palma.api.deps import get_gateway
from palma.api.orders import router as orders_router
from palma.api.products import router as products_router
from palma.api.shipments import router as shipments_router
from palma.api.locations import router as locations_router
from palma.api.cart import router as cart_router
from palma.api.users import auth_router, users_router
from palma.api.brokers import router as brokers_router
from palma.seed import seed_database

# Service configuration
SERVICE_NAME = "palma-marketplace"
SERVICE_VERSION = os.getenv("SERVICE_VERSION", "1.0.0")
SERVICE_DESCRIPTION = "Multi-role marketplace with carrier shipment automation"

settings = get_settings()

# Setup structured logging
setup_logging(
    service_name=SERVICE_NAME,
    level=settings.LOG_LEVEL
)

logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    logger.info(f"Starting {SERVICE_NAME} version {SERVICE_VERSION}")

    try:
        db.init_models()
        logger.info("Database models initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database models: {e}")
        raise

    if settings.SEED_ON_STARTUP:
        with db.SessionLocal() as session:
            if seed_database(session):
                logger.info("Seed data loaded")

    logger.info(
        f"{SERVICE_NAME} started successfully",
        extra={"extra_fields": {"shipments": get_gateway().mode, "remote_catalog": settings.remote_catalog_configured}},
    )

    yield

    # Shutdown
    logger.info(f"Shutting down {SERVICE_NAME}")

# Create FastAPI application
app = FastAPI(
    title=SERVICE_NAME,
    description=SERVICE_DESCRIPTION,
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

def _shipment_gateway_check():
    mode = get_gateway().mode
    return {
        "status": HealthStatus.PASS if mode == "live" else HealthStatus.WARN,
        "componentType": "component",
        "observedValue": mode,
    }

# Initialize health checks
health_service = ServiceHealth(
    SERVICE_NAME,
    SERVICE_VERSION,
    engine_provider=lambda: db.engine,
    required_tables=Base.metadata.tables.keys(),
    extra_checks={"shipments:gateway": _shipment_gateway_check},
)
app.include_router(health_service.create_health_router())

# Include business logic routes
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(products_router)
app.include_router(orders_router)
app.include_router(shipments_router)
app.include_router(locations_router)
app.include_router(cart_router)
app.include_router(brokers_router)

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "docs": "/api/docs"
    }

@app.get("/info")
async def info():
    """Service information endpoint"""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "description": SERVICE_DESCRIPTION,
        "environment": os.getenv("ENVIRONMENT", "development"),
        "currency": settings.CURRENCY,
        "shipments": get_gateway().mode,
        "endpoints": {
            "health": "/health",
            "ready": "/health/ready",
            "live": "/health/live",
            "metrics": "/metrics",
            "docs": "/api/docs"
        }
    }
