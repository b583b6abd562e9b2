"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pms import __version__
from pms.api.v1 import health, reservations
from pms.config import settings
from pms.db import dispose_engine, init_db
from pms.logging import setup_logging

# Configure logging before anything else
setup_logging()

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting PMS reservations API", debug=settings.debug)

    await init_db()
    logger.info("Database schema ready")

    yield

    logger.info("Shutting down PMS reservations API")
    await dispose_engine()
    logger.info("Database connections disposed")


app = FastAPI(
    title="PMS Reservations API",
    description="Reservation numbering and booking for the property management backend",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(reservations.router, prefix="/api/v1", tags=["reservations"])
