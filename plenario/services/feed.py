"""
Global activity feed: recent votes, new proposals and today's events
"""

import asyncio
import logging
import re
from datetime import date, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional
from urllib.parse import quote

from pydantic import ValidationError

from plenario.models.domain import FeedItem, FeedItemType
from plenario.services.cache_service import CacheService
from plenario.services.camara import CAMARA_SITE, CamaraClient
from plenario.services.normalization import (
    detect_category, format_date, format_text, parse_feed_date,
)
from plenario.utils.cache_utils import CacheKeyGenerator

logger = logging.getLogger(__name__)

VOTES_WINDOW_DAYS = 30
PROPOSALS_WINDOW_DAYS = 7
COLLECTION_SIZE = 15
TITLE_MAX_CHARS = 80

BILL_REFERENCE_RE = re.compile(
    r"(?:Requerimento|Projeto|Proposta|Medida|PL|PEC|MPV|PLP|REQ)[^0-9]*\d+(?:/\d{4})?",
    re.IGNORECASE,
)
_LEADING_DIGITS_RE = re.compile(r"\d+")


def _numeric_id(raw: Any) -> Optional[int]:
    """Vote ids look like '2438483-45'; the leading number is the sort key"""
    if isinstance(raw, int):
        return raw
    match = _LEADING_DIGITS_RE.match(str(raw or ""))
    return int(match.group()) if match else None


def vote_source_url(vote: Dict[str, Any]) -> str:
    description = vote.get("descricao") or ""
    uri = vote.get("uriProposicaoObjeto")
    if uri:
        proposal_id = uri.rstrip("/").split("/")[-1]
        if proposal_id:
            return f"{CAMARA_SITE}/propostas-legislativas/{proposal_id}"

    match = BILL_REFERENCE_RE.search(description)
    query = match.group(0) if match else description
    return f"{CAMARA_SITE}/busca-portal?contexto=votacoes&q={quote(query)}"


def feed_entry_from_vote(vote: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    item_id = _numeric_id(vote.get("id"))
    if item_id is None:
        return None

    description = format_text(vote.get("descricao"))
    title = description if len(description) <= TITLE_MAX_CHARS else description[:TITLE_MAX_CHARS] + "..."
    return {
        "id": item_id,
        "type": FeedItemType.VOTE.value,
        "title": title or (vote.get("siglaOrgao") or "Votação"),
        "date": format_date(vote.get("dataHoraRegistro") or vote.get("data")) or "",
        "description": description,
        "status": "Concluído",
        "source_url": vote_source_url(vote),
        "category": detect_category(f"{vote.get('descricao') or ''} {vote.get('siglaOrgao') or ''}"),
    }


def feed_entry_from_proposal(proposal: Dict[str, Any], today: date) -> Optional[Dict[str, Any]]:
    item_id = _numeric_id(proposal.get("id"))
    if item_id is None:
        return None

    return {
        "id": item_id,
        "type": FeedItemType.VOTE.value,
        "title": f"{proposal.get('siglaTipo')} {proposal.get('numero')}/{proposal.get('ano')}",
        "date": format_date(proposal.get("dataApresentacao")) or today.strftime("%d/%m/%Y"),
        "description": format_text(proposal.get("ementa")),
        "status": "Apresentado",
        "source_url": f"{CAMARA_SITE}/propostas-legislativas/{item_id}",
        "category": detect_category(proposal.get("ementa")),
    }


def feed_entry_from_event(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    item_id = _numeric_id(event.get("id"))
    if item_id is None:
        return None

    if event.get("descricao"):
        description = format_text(event["descricao"])
    elif event.get("orgaos"):
        description = ", ".join(o.get("sigla", "") for o in event["orgaos"])
    else:
        description = "Sessão Oficial"

    return {
        "id": item_id,
        "type": FeedItemType.EVENT.value,
        "title": event.get("descricaoTipo") or "Evento",
        "date": format_date(event.get("dataHoraInicio")) or "",
        "description": description,
        "status": event.get("situacao") or "",
        "source_url": f"{CAMARA_SITE}/evento-legislativo/{item_id}",
        "category": detect_category(event.get("descricao")),
    }


def rank_feed(items: List[FeedItem], limit: int) -> List[FeedItem]:
    """Newest first, higher id first on the same day, truncated to limit"""
    ordered = sorted(items, key=lambda item: (parse_feed_date(item.date), item.id), reverse=True)
    return ordered[:limit]


class FeedAggregator:
    """Each upstream collection is cached and fails independently"""

    def __init__(self, settings, cache: CacheService, camara: CamaraClient, today: Callable[[], date] = date.today):
        self.settings = settings
        self.cache = cache
        self.camara = camara
        self.today = today

    async def get_feed(self) -> List[FeedItem]:
        votes, proposals, events = await asyncio.gather(
            self._collection("feed_votacoes", self._load_votes),
            self._collection("feed_proposicoes", self._load_proposals),
            self._collection("feed_eventos", self._load_events),
        )
        return rank_feed(votes + proposals + events, self.settings.feed_max_items)

    async def _collection(self, name: str, loader: Callable[[], Awaitable[List[Dict]]]) -> List[FeedItem]:
        key = CacheKeyGenerator.collection(name, self.today().isoformat())
        raw = await self.cache.with_cache(key, loader, self.settings.ttl_dynamic)
        if raw is None:
            logger.warning(f"Feed collection {name} unavailable, continuing without it")
            return []

        items = []
        for entry in raw:
            try:
                items.append(FeedItem.model_validate(entry))
            except ValidationError as e:
                logger.debug(f"Skipping malformed feed entry in {name}: {e}")
        return items

    async def _load_votes(self) -> List[Dict]:
        since = self.today() - timedelta(days=VOTES_WINDOW_DAYS)
        raw = await self.camara.recent_votes(since, COLLECTION_SIZE)
        return [item for item in map(feed_entry_from_vote, raw) if item]

    async def _load_proposals(self) -> List[Dict]:
        today = self.today()
        raw = await self.camara.recent_propositions(today - timedelta(days=PROPOSALS_WINDOW_DAYS), COLLECTION_SIZE)
        return [item for item in (feed_entry_from_proposal(p, today) for p in raw) if item]

    async def _load_events(self) -> List[Dict]:
        raw = await self.camara.events_on(self.today(), COLLECTION_SIZE)
        return [item for item in map(feed_entry_from_event, raw) if item]
