"""
Outbound surface for the presentation layer.

Every public method returns degraded-but-valid data (the input entity, an
empty list or static seed content) instead of raising.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from plenario.models.domain import EducationalArticle, FeedItem, Party, Politician, to_document
from plenario.services.cache_service import CacheService
from plenario.services.camara import CamaraClient
from plenario.services.content import STATIC_ARTICLES, ContentService
from plenario.services.enrichment import EnrichmentPipeline
from plenario.services.feed import FeedAggregator
from plenario.services.inflight import InFlightRegistry
from plenario.services.normalization import gendered_role, static_parties
from plenario.services.senado import SenadoClient
from plenario.utils.cache_utils import CacheKeyGenerator

logger = logging.getLogger(__name__)


class LegislativeDataService:
    def __init__(
        self,
        settings,
        cache: CacheService,
        camara: CamaraClient,
        senado: SenadoClient,
        pipeline: EnrichmentPipeline,
        registry: InFlightRegistry,
        feed: FeedAggregator,
        content: ContentService,
    ):
        self.settings = settings
        self.cache = cache
        self.camara = camara
        self.senado = senado
        self.pipeline = pipeline
        self.registry = registry
        self.feed = feed
        self.content = content

    async def list_entities(self) -> List[Politician]:
        """Deputies and senators; a failing chamber contributes nothing"""
        deputies, senators = await asyncio.gather(
            self._cached_list(CacheKeyGenerator.collection("lista_deputados"), self.camara.list_deputies),
            self._cached_list(CacheKeyGenerator.collection("lista_senadores"), self.senado.list_senators),
        )
        return [self._apply_override(p) for p in deputies + senators]

    async def find_entity(self, entity_id: int) -> Optional[Politician]:
        for pol in await self.list_entities():
            if pol.id == entity_id:
                return pol
        return None

    async def list_parties(self) -> List[Party]:
        async def fetcher():
            return to_document(await self.camara.list_parties())

        data = await self.cache.with_cache(
            CacheKeyGenerator.collection("lista_partidos"), fetcher, self.settings.ttl_static, stale_on_error=True
        )
        if not data:
            logger.info("Party listing unavailable, serving static party metadata")
            return static_parties()
        return [Party.model_validate(p) for p in data]

    async def enrich_fast(self, pol: Politician) -> Politician:
        try:
            return await self.pipeline.enrich_fast(pol)
        except Exception as e:
            logger.error(f"Fast enrichment failed for {pol.id}: {e}")
            return pol

    async def enrich_full(self, pol: Politician) -> Politician:
        try:
            return await self.pipeline.enrich_full(pol)
        except Exception as e:
            logger.error(f"Full enrichment failed for {pol.id}: {e}")
            return pol

    async def prefetch(self, pol: Politician) -> bool:
        """Opportunistic full enrichment, deduplicated per entity id"""
        return await self.registry.guard(
            pol.id, lambda: self.pipeline.enrich_full(pol), eligible=pol.has_api_integration
        )

    async def get_feed(self) -> List[FeedItem]:
        try:
            return await self.feed.get_feed()
        except Exception as e:
            logger.error(f"Feed aggregation failed: {e}")
            return []

    async def educational_content(self) -> List[EducationalArticle]:
        try:
            return await self.content.educational_articles()
        except Exception as e:
            logger.error(f"Educational content failed: {e}")
            return list(STATIC_ARTICLES)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "local_cache": self.cache.cache.get_stats(),
            "remote_cache_enabled": bool(self.settings.remote_cache_enabled and self.pipeline.remote),
            "in_flight": sorted(self.registry.active),
        }

    async def _cached_list(self, key: str, loader: Callable[[], Awaitable[List[Politician]]]) -> List[Politician]:
        async def fetcher():
            return to_document(await loader())

        data = await self.cache.with_cache(key, fetcher, self.settings.ttl_static, stale_on_error=True)
        entities = []
        for item in data or []:
            try:
                entities.append(Politician.model_validate(item))
            except ValidationError as e:
                logger.debug(f"Skipping malformed cached entity in {key}: {e}")
        return entities

    def _apply_override(self, pol: Politician) -> Politician:
        override = self.settings.identity_overrides.get(pol.id)
        if not override or override == pol.sex:
            return pol
        return pol.model_copy(update={"sex": override, "role": gendered_role(pol.role, override)})
