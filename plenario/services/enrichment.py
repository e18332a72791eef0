"""
Two-tier progressive enrichment of a parliamentarian.

Fast tier: identity and contact fields. Full tier: expenses, presence, votes,
speeches, agenda and the rest. Each tier has its own local cache slot and can
be short-circuited by the remote document cache.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from plenario.models.domain import (
    FAST_FIELDS, FULL_FIELDS, Chamber, ExpenseHistoryItem, Politician, merge_politician,
    to_document,
)
from plenario.services import aggregation
from plenario.services.cache_service import CacheService
from plenario.services.camara import CamaraClient
from plenario.services.normalization import gendered_role
from plenario.services.senado import SenadoClient
from plenario.services.simulated import SimulatedDataProvider
from plenario.utils.cache_utils import CacheKeyGenerator
from plenario.utils.document_store import RemoteCacheError, RemoteDocumentStore

logger = logging.getLogger(__name__)

DOCUMENT_TYPE = "politician"


class EnrichmentPipeline:
    """Fast and full enrichment tiers over local cache, remote cache and live APIs"""

    def __init__(
        self,
        settings,
        cache: CacheService,
        camara: CamaraClient,
        senado: SenadoClient,
        remote: Optional[RemoteDocumentStore] = None,
        simulated: Optional[SimulatedDataProvider] = None,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings
        self.cache = cache
        self.camara = camara
        self.senado = senado
        self.remote = remote
        self.simulated = simulated or SimulatedDataProvider(settings.simulated_presence_enabled)
        self.today = today

    # ===========================
    # Fast tier
    # ===========================

    async def enrich_fast(self, pol: Politician) -> Politician:
        """Identity/contact enrichment; returns pol unchanged when nothing is available"""
        key = CacheKeyGenerator.fast_profile(pol.id)
        fields = await self.cache.with_cache(key, lambda: self._load_fast(pol), self.settings.ttl_static)
        if not fields:
            return pol
        return merge_politician(pol, self._apply_identity(pol, fields))

    async def _load_fast(self, pol: Politician) -> Dict[str, Any]:
        remote_doc = await self._read_remote(pol.id)
        if remote_doc.get("civil_name") and remote_doc.get("sex"):
            logger.debug(f"Fast tier served from remote cache: {pol.id}")
            return {k: remote_doc[k] for k in FAST_FIELDS if remote_doc.get(k) is not None}

        if pol.chamber == Chamber.SENADO:
            fields = await self._fetch_fast_senado(pol)
        else:
            fields = await self._fetch_fast_camara(pol)
        fields = to_document(self._apply_identity(pol, fields))

        live = {k: v for k, v in fields.items() if v is not None}
        await self._write_remote(pol.id, {**remote_doc, **live})
        return fields

    async def _fetch_fast_camara(self, pol: Politician) -> Dict[str, Any]:
        # Core profile failures propagate; the side lists degrade to empty
        details, profession, roles, occupations = await asyncio.gather(
            self.camara.get_deputy(pol.id),
            self._isolated("profissoes", pol.id, self.camara.get_professions(pol.id), None),
            self._isolated("orgaos", pol.id, self.camara.get_roles(pol.id), []),
            self._isolated("ocupacoes", pol.id, self.camara.get_occupations(pol.id), []),
        )
        if not details:
            raise ValueError(f"Empty profile payload for deputy {pol.id}")

        fields = dict(details)
        fields["profession"] = profession
        fields["roles"] = roles
        fields["occupations"] = occupations
        fields["bio"] = self._compose_bio(pol, fields)
        return fields

    async def _fetch_fast_senado(self, pol: Politician) -> Dict[str, Any]:
        details = await self.senado.get_senator(pol.id)
        if not details:
            raise ValueError(f"Empty profile payload for senator {pol.id}")

        fields = dict(details)
        if fields.get("civil_name"):
            role = gendered_role(pol.role, fields.get("sex"))
            fields["bio"] = f"{fields['civil_name']}, conhecido(a) como {pol.name}, é {role} da República."
        return fields

    def _apply_identity(self, pol: Politician, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Gendered role from the sex field, with configured overrides winning"""
        fields = dict(fields)
        sex = fields.get("sex") or pol.sex

        override = self.settings.identity_overrides.get(pol.id)
        if override and override != sex:
            logger.info(f"Applying identity override for {pol.id}: sex {sex} -> {override}")
            sex = override

        if sex:
            fields["sex"] = sex
            fields["role"] = gendered_role(fields.get("role") or pol.role, sex)
        return fields

    @staticmethod
    def _compose_bio(pol: Politician, fields: Dict[str, Any]) -> Optional[str]:
        civil_name = fields.get("civil_name")
        if not civil_name:
            return pol.bio

        bio = f"{civil_name}, eleito(a) como {pol.name}."
        if fields.get("birth_city"):
            bio += f" Natural de {fields['birth_city']}-{fields.get('birth_state') or ''}."
        if fields.get("education"):
            bio += f" Possui formação em {fields['education']}."
        profession = fields.get("profession")
        if profession and profession != "Parlamentar":
            bio += f" Atua profissionalmente como {profession.lower()}."
        return bio

    # ===========================
    # Full tier
    # ===========================

    async def enrich_full(self, pol: Politician) -> Politician:
        """Full enrichment; always runs the fast tier first"""
        pol = await self.enrich_fast(pol)

        key = CacheKeyGenerator.full_profile(pol.id)
        cached = await self.cache.get_fresh(key, self.settings.ttl_profile)
        if cached is not None:
            return merge_politician(pol, cached)

        remote_doc = await self._read_remote(pol.id)
        if aggregation.has_meaningful_data(remote_doc):
            logger.debug(f"Full tier served from remote cache: {pol.id}")
            fields = {k: remote_doc[k] for k in FULL_FIELDS if remote_doc.get(k) is not None}
            await self.cache.put(key, fields)
            return merge_politician(pol, fields)

        if pol.chamber == Chamber.SENADO:
            fields = await self._aggregate_senado(pol)
        else:
            fields = await self._aggregate_camara(pol)
        fields = to_document(fields)

        if aggregation.has_meaningful_data(fields):
            await self.cache.put(key, fields)
            fast_fields = {k: v for k, v in pol.model_dump(mode="json", include=set(FAST_FIELDS)).items() if v is not None}
            await self._write_remote(
                pol.id, {**remote_doc, **fast_fields, **aggregation.cap_for_remote(fields)}
            )
        else:
            logger.warning(f"Profile {pol.id} incomplete, not caching full tier so a later call retries")

        return merge_politician(pol, fields)

    async def _aggregate_camara(self, pol: Politician) -> Dict[str, Any]:
        current_year = self.today().year
        years = list(range(self.settings.mandate_start_year, current_year + 1))
        tag = pol.id

        (
            expenses_by_year, events_by_year, projects_by_year, speeches, fronts,
            bills, agenda, reported_bills, votes_and_orientations, staff,
        ) = await asyncio.gather(
            self._isolated("despesas", tag, self._per_year("despesas", pol.id, years, self.camara.get_expenses), {}),
            self._isolated("eventos", tag, self._per_year("eventos", pol.id, years, self.camara.get_events), {}),
            self._isolated("proposicoes", tag, self._per_year("proposicoes", pol.id, years, self.camara.count_authored_propositions), {}),
            self._isolated("discursos", tag, self.camara.get_speeches(pol.id), []),
            self._isolated("frentes", tag, self.camara.get_fronts(pol.id), []),
            self._isolated("autorias", tag, self.camara.get_bills(pol.id), []),
            self._isolated("agenda", tag, self.camara.get_agenda(pol.id, self.today()), []),
            self._isolated("relatorias", tag, self.camara.get_relatorias(pol.id, current_year), []),
            self._isolated("votacoes", tag, self._votes_with_orientations(pol.id, current_year), ([], {})),
            self._isolated("secretarios", tag, self.camara.get_staff(pol.id), []),
        )

        all_expenses = [e for year in years for e in expenses_by_year.get(year) or []]
        total, breakdown = aggregation.expense_breakdown(all_expenses)
        spending_by_year = {
            year: sum(float(e.get("value") or 0) for e in expenses_by_year.get(year) or [] if (e.get("value") or 0) > 0)
            for year in years
        }

        presence, plenary, commissions = aggregation.yearly_presence(
            {year: events_by_year.get(year) or [] for year in years}, self.simulated
        )
        votes, orientations = votes_and_orientations
        fidelity, voting_history = aggregation.party_fidelity(votes, orientations, pol.party)

        current_expenses = expenses_by_year.get(current_year) or []
        stats = pol.stats.model_copy(update={
            "spending": round(total, 2),
            "projects": sum(projects_by_year.values()),
            "attendance_pct": plenary.percentage,
            "total_sessions": plenary.total,
            "present_sessions": plenary.present,
            "absent_sessions": plenary.unjustified,
            "plenary": plenary,
            "commissions": commissions,
            "presence_simulated": self.simulated.enabled and plenary.total > 0,
            "party_fidelity": fidelity,
        })

        return {
            "stats": stats,
            "yearly_stats": aggregation.yearly_stats(
                self.settings.mandate_start_year, current_year, presence, spending_by_year,
                {year: projects_by_year.get(year) or 0 for year in years},
            ),
            "expenses_breakdown": breakdown,
            "expenses_history": aggregation.expense_history(spending_by_year),
            "voting_history": voting_history,
            "speeches": speeches,
            "fronts": fronts,
            "bills": bills,
            "reported_bills": reported_bills,
            "agenda": agenda,
            "staff": staff,
            "travels": aggregation.travels(current_expenses),
            "timeline": aggregation.expense_timeline(current_expenses),
            "assets": [],
        }

    async def _aggregate_senado(self, pol: Politician) -> Dict[str, Any]:
        year = self.today().year
        tag = pol.id

        votes, expenses = await asyncio.gather(
            self._isolated("votacoes", tag, self.senado.get_votes(pol.id, year), []),
            self._isolated("despesas", tag, self._senado_expenses(pol.id, year), []),
        )

        total, breakdown = aggregation.expense_breakdown(expenses)
        _score, voting_history = aggregation.party_fidelity(votes, {}, pol.party)

        return {
            "stats": pol.stats.model_copy(update={"spending": round(total, 2), "projects": len(votes)}),
            "expenses_breakdown": breakdown,
            "expenses_history": [ExpenseHistoryItem(year=year, value=round(total, 2), label=str(year))],
            "voting_history": voting_history,
            "timeline": aggregation.vote_timeline(voting_history, "Votação no Senado"),
            "speeches": [],
            "agenda": [],
            "staff": [],
        }

    async def _senado_expenses(self, senator_id: int, year: int) -> List[Dict[str, Any]]:
        key = CacheKeyGenerator.collection("senado_despesas", senator_id, year)
        data = await self.cache.with_cache(
            key, lambda: self.senado.get_expenses(senator_id, year), self.settings.ttl_dynamic
        )
        return data or []

    async def _per_year(
        self,
        name: str,
        entity_id: int,
        years: Iterable[int],
        fetch: Callable[[int, int], Awaitable[Any]],
    ) -> Dict[int, Any]:
        """One cached collection per year; closed years never expire.

        A closed year lives under its own "final" key, so a snapshot taken
        while the year was still open keeps its short TTL after rollover.
        """
        current_year = self.today().year

        async def load(year: int):
            if year < current_year:
                key = CacheKeyGenerator.collection(name, entity_id, year, "final")
                ttl = self.settings.ttl_permanent
            else:
                key = CacheKeyGenerator.collection(name, entity_id, year)
                ttl = self.settings.ttl_dynamic

            async def fetcher():
                return to_document(await fetch(entity_id, year))

            return year, await self.cache.with_cache(key, fetcher, ttl)

        results = await asyncio.gather(*(load(year) for year in years))
        return {year: data for year, data in results if data is not None}

    async def _votes_with_orientations(self, deputy_id: int, year: int):
        votes = await self.camara.get_votes(deputy_id, year)
        sample = [v["id"] for v in votes[: self.settings.fidelity_sample_size]]

        fetched = await asyncio.gather(*(
            self._isolated("orientacoes", deputy_id, self.camara.get_vote_orientations(voting_id), {})
            for voting_id in sample
        ))
        return votes, {voting_id: o for voting_id, o in zip(sample, fetched) if o}

    # ===========================
    # Helpers
    # ===========================

    async def _isolated(self, name: str, entity_id: int, awaitable: Awaitable[Any], default: Any) -> Any:
        """Await a sub-resource, substituting default on any failure"""
        try:
            return await awaitable
        except Exception as e:
            logger.warning(f"Sub-resource {name} failed for {entity_id}, using empty value: {e}")
            return default

    async def _read_remote(self, entity_id: int) -> Dict[str, Any]:
        if not self.remote or not self.settings.remote_cache_enabled:
            return {}
        try:
            return await self.remote.read_document(DOCUMENT_TYPE, entity_id)
        except RemoteCacheError as e:
            logger.warning(f"Remote cache read failed for {entity_id}, treating as miss: {e}")
            return {}

    async def _write_remote(self, entity_id: int, document: Dict[str, Any]) -> bool:
        if not self.remote or not self.settings.remote_cache_enabled:
            return False
        document = {k: v for k, v in document.items() if k != "updatedAt"}
        return await self.remote.write_document(DOCUMENT_TYPE, entity_id, document)
