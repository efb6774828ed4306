"""
FastAPI Main Application
Strategy statistics service
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from app.config import settings
from app.core.logging import setup_logging
from app.infrastructure.db.database import init_db, close_db
from app.api.routes import health, statistics

# Configure logging
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Handles startup and shutdown of the database
    """
    logger.info("Starting strategy statistics service | env=%s", settings.APP_ENV)
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down strategy statistics service")
    await close_db()


app = FastAPI(
    title="Strategy Statistics",
    description="Daily trading statistics ingestion and monthly performance rollups",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["Health"])
app.include_router(statistics.router, prefix="/api/v1/strategies", tags=["Strategy Statistics"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.API_HOST, port=settings.API_PORT)
