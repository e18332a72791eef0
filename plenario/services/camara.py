"""
Chamber of Deputies open-data API (dadosabertos.camara.leg.br, v2)
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from plenario.models.domain import (
    Bill, Cabinet, Chamber, Front, LegislativeEvent, Occupation, Party,
    Politician, Relatoria, Role, Secretary, Speech,
)
from plenario.services.normalization import (
    format_date, format_name, format_text, format_time, gendered_role, get_ideology,
)
from plenario.utils.http_client import ResilientFetchClient

logger = logging.getLogger(__name__)

CAMARA_SITE = "https://www.camara.leg.br"

# Largest page the API serves
PAGE_SIZE = 100
MAX_PAGES = 50


def normalize_expense(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Expense record shared by both chambers"""
    return {
        "type": raw.get("tipoDespesa") or "Outros",
        "value": float(raw.get("valorDocumento") or 0),
        "date": raw.get("dataDocumento"),
        "supplier": raw.get("nomeFornecedor"),
        "document_id": raw.get("codDocumento"),
        "url": raw.get("urlDocumento"),
    }


class CamaraClient:
    """Typed wrappers around the chamber endpoints; every call may raise FetchError"""

    def __init__(self, fetcher: ResilientFetchClient, base_url: str, sub_resource_retries: int = 2):
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")
        self.retries = sub_resource_retries

    @staticmethod
    def _unwrap(payload: Any) -> List[Dict]:
        dados = payload.get("dados") if isinstance(payload, dict) else None
        if dados is None:
            return []
        return dados if isinstance(dados, list) else [dados]

    async def _fetch(self, path: str, params: Optional[Dict[str, Any]], **kwargs) -> Any:
        kwargs.setdefault("max_retries", self.retries)
        return await self.fetcher.fetch_json(f"{self.base_url}{path}", params=params, **kwargs)

    async def _dados(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> List[Dict]:
        return self._unwrap(await self._fetch(path, params, **kwargs))

    async def _all_pages(
        self,
        path: str,
        params: Dict[str, Any],
        page_size: int = PAGE_SIZE,
        max_pages: int = MAX_PAGES,
        **kwargs,
    ) -> List[Dict]:
        """Every record of a paginated collection.

        Follows pagina=1,2,... until a short page or a payload whose links
        carry no rel=next.
        """
        records: List[Dict] = []
        for page in range(1, max_pages + 1):
            payload = await self._fetch(path, {**params, "pagina": page, "itens": page_size}, **kwargs)
            dados = self._unwrap(payload)
            records.extend(dados)
            if len(dados) < page_size:
                return records
            links = payload.get("links") if isinstance(payload, dict) else None
            if links is not None and not any(link.get("rel") == "next" for link in links):
                return records
        logger.warning(f"Stopped paging {path} after {max_pages} pages ({len(records)} records)")
        return records

    # Listings

    async def list_deputies(self) -> List[Politician]:
        dados = await self._dados("/deputados", {"pagina": 1, "itens": 600}, max_retries=None)
        deputies = []
        for dep in sorted(dados, key=lambda d: d.get("nome") or ""):
            role = gendered_role("Deputado Federal", dep.get("sexo"))
            deputies.append(Politician(
                id=dep["id"],
                name=dep.get("nome") or "",
                role=role,
                chamber=Chamber.CAMARA,
                party=dep.get("siglaPartido") or "",
                state=dep.get("siglaUf") or "",
                photo=dep.get("urlFoto"),
                email=dep.get("email"),
                sex=dep.get("sexo"),
                bio=f"{role} em exercício.",
                external_link=f"{CAMARA_SITE}/deputados/{dep['id']}",
            ))
        return deputies

    async def list_parties(self) -> List[Party]:
        dados = await self._dados("/partidos", {"ordem": "ASC", "ordenarPor": "sigla", "itens": 100})
        return [
            Party(
                id=p["id"],
                sigla=p.get("sigla") or "",
                nome=p.get("nome") or "",
                uri=p.get("uri") or "",
                ideology=get_ideology(p.get("sigla")),
            )
            for p in dados
        ]

    # Fast tier

    async def get_deputy(self, deputy_id: int) -> Dict[str, Any]:
        """Core profile as a dict of Politician fast-tier fields"""
        payload = await self.fetcher.fetch_json(f"{self.base_url}/deputados/{deputy_id}")
        d = (payload or {}).get("dados") or {}
        if not d:
            return {}

        gabinete = (d.get("ultimoStatus") or {}).get("gabinete") or {}
        return {
            "civil_name": format_name(d.get("nomeCivil")),
            "sex": d.get("sexo"),
            "birth_date": format_date(d.get("dataNascimento")),
            "birth_city": d.get("municipioNascimento"),
            "birth_state": d.get("ufNascimento"),
            "education": d.get("escolaridade"),
            "socials": d.get("redeSocial") or [],
            "cabinet": Cabinet(
                room=gabinete.get("sala"),
                floor=gabinete.get("andar"),
                building=gabinete.get("predio"),
                phone=gabinete.get("telefone"),
                email=gabinete.get("email"),
            ).model_dump(),
        }

    async def get_professions(self, deputy_id: int) -> Optional[str]:
        dados = await self._dados(f"/deputados/{deputy_id}/profissoes")
        titles = [p.get("titulo") for p in dados if p.get("titulo")]
        return ", ".join(titles) or None

    async def get_roles(self, deputy_id: int) -> List[Role]:
        dados = await self._dados(
            f"/deputados/{deputy_id}/orgaos", {"ordem": "DESC", "ordenarPor": "dataInicio"}
        )
        return [
            Role(
                id=str(o.get("idOrgao")),
                name=o.get("nomeOrgao") or "",
                acronym=o.get("siglaOrgao"),
                title=o.get("titulo"),
                start_date=o.get("dataInicio"),
                end_date=o.get("dataFim"),
            )
            for o in dados
        ]

    async def get_occupations(self, deputy_id: int) -> List[Occupation]:
        dados = await self._dados(f"/deputados/{deputy_id}/ocupacoes")
        return [
            Occupation(
                title=format_text(o.get("titulo")),
                entity=format_text(o.get("entidade")) or None,
                state=o.get("ufEntidade"),
                start_year=o.get("anoInicio"),
                end_year=o.get("anoFim"),
            )
            for o in dados
        ]

    # Full tier

    async def get_expenses(self, deputy_id: int, year: int, order_by: str = "valorDocumento") -> List[Dict]:
        """Every expense of a year, across all pages"""
        dados = await self._all_pages(
            f"/deputados/{deputy_id}/despesas",
            {"ano": year, "ordem": "DESC", "ordenarPor": order_by},
        )
        return [normalize_expense(e) for e in dados]

    async def get_events(self, deputy_id: int, year: int) -> List[Dict]:
        """Raw events of a year; only descricaoTipo is used downstream"""
        dados = await self._all_pages(
            f"/deputados/{deputy_id}/eventos",
            {
                "dataInicio": f"{year}-01-01",
                "dataFim": f"{year}-12-31",
                "ordem": "DESC",
                "ordenarPor": "dataHoraInicio",
            },
        )
        return [{"id": e.get("id"), "descricaoTipo": e.get("descricaoTipo") or ""} for e in dados]

    async def count_authored_propositions(self, deputy_id: int, year: int) -> int:
        dados = await self._all_pages("/proposicoes", {"idDeputadoAutor": deputy_id, "ano": year})
        return len(dados)

    async def get_speeches(self, deputy_id: int, page: int = 1) -> List[Speech]:
        dados = await self._dados(
            f"/deputados/{deputy_id}/discursos",
            {"ordem": "DESC", "ordenarPor": "dataHoraInicio", "pagina": page, "itens": 5},
        )
        return [
            Speech(
                date=d.get("dataHoraInicio") or "",
                summary=format_text(d.get("sumario") or d.get("transcricao") or "Discurso em plenário."),
                transcription=d.get("transcricao") or d.get("sumario"),
                type=(d.get("keywords") or "Discurso").split(",")[0],
                external_link=d.get("urlAudio") or f"{CAMARA_SITE}/deputados/{deputy_id}",
            )
            for d in dados
        ]

    async def get_fronts(self, deputy_id: int) -> List[Front]:
        dados = await self._dados(f"/deputados/{deputy_id}/frentes")
        return [
            Front(
                id=f["id"],
                title=f.get("titulo") or "",
                external_link=f"{CAMARA_SITE}/frentes-parlamentares/{f['id']}",
            )
            for f in dados
        ]

    async def get_bills(self, deputy_id: int) -> List[Bill]:
        dados = await self._dados(
            "/proposicoes", {"idDeputadoAutor": deputy_id, "ordem": "DESC", "ordenarPor": "id", "itens": 10}
        )
        return [
            Bill(
                id=p["id"],
                title=f"{p.get('siglaTipo')} {p.get('numero')}/{p.get('ano')}",
                type=p.get("siglaTipo") or "",
                description=format_text(p.get("ementa")),
                external_link=f"{CAMARA_SITE}/propostas-legislativas/{p['id']}",
            )
            for p in dados
        ]

    async def get_agenda(self, deputy_id: int, today: Optional[date] = None) -> List[LegislativeEvent]:
        today = today or date.today()
        dados = await self._dados(
            f"/deputados/{deputy_id}/eventos",
            {"dataInicio": today.isoformat(), "ordem": "ASC", "ordenarPor": "dataHoraInicio"},
        )
        return [self._event(e, default_location="Câmara dos Deputados", default_description="Agenda Oficial") for e in dados]

    async def get_relatorias(self, deputy_id: int, year: int) -> List[Relatoria]:
        dados = await self._dados(
            f"/deputados/{deputy_id}/relatorias",
            {"ano": year, "ordem": "DESC", "ordenarPor": "dataInicio", "itens": 100},
        )
        return [
            Relatoria(
                id=f"{r.get('siglaTipo')}{r.get('numero')}{r.get('ano')}",
                bill_title=f"{r.get('siglaTipo')} {r.get('numero')}/{r.get('ano')}",
                bill_type=r.get("siglaTipo") or "",
                date=r.get("dataInicio"),
                commission=r.get("siglaComissao"),
                external_link=r.get("urlProposicao") or f"{CAMARA_SITE}/propostas-legislativas/{r.get('idProposicao')}",
            )
            for r in dados
        ]

    async def get_votes(self, deputy_id: int, year: int) -> List[Dict]:
        """Votes of the deputy in a year: {id, date, description, vote}"""
        dados = await self._dados(
            f"/deputados/{deputy_id}/votacoes",
            {"ano": year, "ordem": "DESC", "ordenarPor": "dataHoraRegistro", "itens": 200},
        )
        return [
            {
                "id": str(v.get("idVotacao")),
                "date": v.get("dataRegistro") or "",
                "description": format_text(f"{v.get('siglaOrgao')} - {v.get('descricao')}"),
                "vote": v.get("voto") or "Registrou",
            }
            for v in dados
        ]

    async def get_vote_orientations(self, voting_id: str) -> Dict[str, str]:
        """Party (or bloc) acronym -> orientation for one voting session"""
        dados = await self._dados(f"/votacoes/{voting_id}/orientacoes")
        orientations = {}
        for o in dados:
            sigla = (o.get("siglaPartidoBloco") or "").strip().upper()
            if sigla:
                orientations[sigla] = o.get("orientacaoVoto") or ""
        return orientations

    async def get_staff(self, deputy_id: int) -> List[Secretary]:
        dados = await self._dados(f"/deputados/{deputy_id}/secretarios")
        return [
            Secretary(name=format_name(s.get("nome")) or "", role=s.get("cargo"), start=s.get("dataInicio"))
            for s in dados
        ]

    # Feed collections

    async def recent_votes(self, since: date, items: int = 15) -> List[Dict]:
        return await self._dados(
            "/votacoes",
            {"ordem": "DESC", "ordenarPor": "dataHoraRegistro", "dataInicio": since.isoformat(), "itens": items},
        )

    async def recent_propositions(self, since: date, items: int = 15) -> List[Dict]:
        return await self._dados(
            "/proposicoes",
            {"ordem": "DESC", "ordenarPor": "id", "dataApresentacaoInicio": since.isoformat(), "itens": items},
        )

    async def events_on(self, day: date, items: int = 15) -> List[Dict]:
        return await self._dados(
            "/eventos",
            {
                "dataInicio": day.isoformat(),
                "dataFim": day.isoformat(),
                "ordem": "ASC",
                "ordenarPor": "dataHoraInicio",
                "itens": items,
            },
        )

    @staticmethod
    def _event(e: Dict, default_location: str, default_description: str) -> LegislativeEvent:
        if e.get("descricao"):
            description = format_text(e["descricao"])
        elif e.get("orgaos"):
            description = ", ".join(o.get("sigla", "") for o in e["orgaos"])
        else:
            description = default_description
        local = e.get("localCamara") or {}
        return LegislativeEvent(
            id=e["id"],
            start_time=format_time(e.get("dataHoraInicio")),
            end_time=format_time(e.get("dataHoraFim")),
            title=e.get("descricaoTipo") or "",
            description=description,
            location=local.get("nome") or default_location,
            status=e.get("situacao"),
            type=e.get("descricaoTipo"),
        )
