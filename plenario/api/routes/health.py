"""
Health check and info routes
"""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends

from plenario.api.dependencies import get_data_service
from plenario.core.config import get_settings
from plenario.models.responses import CacheStatsResponse, HealthResponse
from plenario.services.data_service import LegislativeDataService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def root():
    """API information"""
    settings = get_settings()
    return {
        "service": settings.app_name,
        "version": settings.version,
        "status": "ready",
        "features": [
            "politicians", "fast_enrichment", "full_enrichment", "prefetch",
            "parties", "feed", "educational_content"
        ]
    }


@router.get("/health", response_model=HealthResponse)
async def health_check(
    service: Annotated[LegislativeDataService, Depends(get_data_service)]
):
    """Health check endpoint"""
    stats = service.get_stats()
    return HealthResponse(
        cache_backend=stats["local_cache"].get("backend", "memory"),
        remote_cache_enabled=stats["remote_cache_enabled"],
        in_flight=stats["in_flight"],
    )


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def get_cache_stats(
    service: Annotated[LegislativeDataService, Depends(get_data_service)]
):
    """
    Get cache statistics

    Returns:
    - Local tier: item count, size, process memory, backend kind
    - Remote tier: whether it is enabled
    - Ids currently being prefetched
    """
    stats = service.get_stats()
    logger.debug(f"Cache stats requested at {datetime.now().isoformat()}")
    return CacheStatsResponse(cache_stats=stats)
