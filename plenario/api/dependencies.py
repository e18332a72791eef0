"""
Dependency injection functions for FastAPI routes
"""

import logging
from typing import Optional

from plenario.core.config import get_settings
from plenario.services.cache_service import CacheService
from plenario.services.camara import CamaraClient
from plenario.services.content import ContentService
from plenario.services.data_service import LegislativeDataService
from plenario.services.enrichment import EnrichmentPipeline
from plenario.services.feed import FeedAggregator
from plenario.services.inflight import InFlightRegistry
from plenario.services.senado import SenadoClient
from plenario.services.simulated import SimulatedDataProvider
from plenario.utils.cache import CacheManager
from plenario.utils.document_store import RemoteDocumentStore
from plenario.utils.http_client import ResilientFetchClient

logger = logging.getLogger(__name__)

# ===========================
# Global singleton instances
# ===========================

_cache_manager: Optional[CacheManager] = None
_fetch_client: Optional[ResilientFetchClient] = None
_remote_store: Optional[RemoteDocumentStore] = None
_content_service: Optional[ContentService] = None
_data_service: Optional[LegislativeDataService] = None


# ===========================
# Dependency injection functions
# ===========================

def get_cache_manager() -> CacheManager:
    """Get the process-wide durable store"""
    global _cache_manager
    if _cache_manager is None:
        _cache_manager = CacheManager(get_settings())
    return _cache_manager


def get_fetch_client() -> ResilientFetchClient:
    global _fetch_client
    if _fetch_client is None:
        settings = get_settings()
        _fetch_client = ResilientFetchClient(
            max_retries=settings.fetch_max_retries,
            timeout=settings.fetch_timeout,
            initial_delay=settings.fetch_initial_delay,
        )
    return _fetch_client


def get_remote_store() -> Optional[RemoteDocumentStore]:
    """Remote document cache, None when disabled"""
    global _remote_store
    settings = get_settings()
    if not settings.remote_cache_enabled:
        return None
    if _remote_store is None:
        _remote_store = RemoteDocumentStore.from_settings(settings)
    return _remote_store


def get_data_service() -> LegislativeDataService:
    """Wire the whole pipeline once; routes share this instance"""
    global _data_service, _content_service
    if _data_service is None:
        settings = get_settings()
        cache = CacheService(get_cache_manager())
        fetcher = get_fetch_client()
        camara = CamaraClient(fetcher, settings.camara_base_url)
        senado = SenadoClient(fetcher, settings.senado_base_url)

        pipeline = EnrichmentPipeline(
            settings,
            cache,
            camara,
            senado,
            remote=get_remote_store(),
            simulated=SimulatedDataProvider(settings.simulated_presence_enabled),
        )
        _content_service = ContentService(settings, cache=cache)

        _data_service = LegislativeDataService(
            settings,
            cache=cache,
            camara=camara,
            senado=senado,
            pipeline=pipeline,
            registry=InFlightRegistry(),
            feed=FeedAggregator(settings, cache, camara),
            content=_content_service,
        )
        logger.info("Legislative data service initialized")
    return _data_service


async def shutdown():
    """Close every client created above"""
    global _cache_manager, _fetch_client, _remote_store, _content_service, _data_service

    if _fetch_client is not None:
        await _fetch_client.close()
    if _remote_store is not None:
        await _remote_store.close()
    if _content_service is not None:
        await _content_service.close()
    if _cache_manager is not None:
        await _cache_manager.close()

    _cache_manager = _fetch_client = _remote_store = _content_service = _data_service = None
