"""
EduBridge API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Identity verifier and payment gateway
- CORS middleware
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from edubridge.api import api_router
from edubridge.core.config import settings
from edubridge.core.database import close_db, init_db
from edubridge.core.identity import init_identity_verifier
from edubridge.core.payments import init_payment_gateway
from edubridge.core.redis import close_redis, init_redis

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Database connection
    - Redis connection (settlement locks)
    - Identity verifier and payment gateway
    """
    # Startup
    print(f"Starting EduBridge API in {settings.python_env} mode...")

    # Initialize Database
    try:
        await init_db(app)
        print("[OK] Database connected")
    except Exception as e:
        print(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    # Initialize Redis
    try:
        await init_redis(app)
        print("[OK] Redis connected")
    except Exception as e:
        print(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    # External providers
    init_identity_verifier(app)
    print("[OK] Identity verifier ready")
    init_payment_gateway(app)
    print("[OK] Payment gateway ready")

    yield  # Application runs here

    # Shutdown
    print("Shutting down EduBridge API...")

    await close_redis(app)
    await close_db(app)
    print("[OK] Cleanup complete")


app = FastAPI(
    title="EduBridge API",
    description="Tuition marketplace API",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix=settings.api_prefix)

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
        "message": "Welcome to EduBridge API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check endpoint."""
    return {"status": "ready"}
