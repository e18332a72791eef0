from datetime import datetime, timezone
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class PrefetchResponse(BaseModel):
    """Prefetch scheduling result"""
    status: str = "accepted"
    entity_id: int
    already_in_flight: bool = Field(False, description="An enrichment for this id was already running")


class CacheStatsResponse(BaseModel):
    status: str = "success"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    cache_stats: Dict[str, Any]


class HealthResponse(BaseModel):
    status: str = "healthy"
    cache_backend: str
    remote_cache_enabled: bool
    in_flight: List[int] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
