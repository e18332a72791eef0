"""
Plenario Legislative Data API
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from plenario.api import dependencies
from plenario.api.routes import (
    health,
    politicians,
    feed,
    content
)
from plenario.core.config import get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# ===========================
# Application Lifespan
# ===========================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Starting application...")
    service = dependencies.get_data_service()
    logger.info(f"Local cache backend: {service.cache.cache.backend}")

    yield

    # Shutdown
    logger.info("Closing upstream and cache clients...")
    try:
        await dependencies.shutdown()
    except Exception as e:
        logger.error(f"Shutdown cleanup failed: {e}")


# ===========================
# Application Setup
# ===========================

app = FastAPI(
    title=settings.app_name,
    description="Cached acquisition and progressive enrichment of Brazilian legislative open data",
    version=settings.version,
    lifespan=lifespan
)

# Read-only API consumed by browser front-ends
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(politicians.router, tags=["politicians"])
app.include_router(feed.router, tags=["feed"])
app.include_router(content.router, tags=["content"])


# ===========================
# Run the application
# ===========================

if __name__ == "__main__":
    uvicorn.run(
        "plenario.main:app",
        host="0.0.0.0",
        port=8080,
        reload=False,
        log_level=settings.log_level.lower()
    )
