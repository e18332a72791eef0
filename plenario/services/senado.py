"""
Federal Senate open-data API (legis.senado.leg.br/dadosabertos, JSON flavour)
"""

import logging
from typing import Any, Dict, List

from plenario.models.domain import Cabinet, Chamber, Mandate, Politician
from plenario.services.normalization import (
    force_list, format_date, format_name, format_text, gendered_role,
)
from plenario.utils.http_client import ResilientFetchClient

logger = logging.getLogger(__name__)

SENADO_PROFILE_URL = "https://www25.senado.leg.br/web/senadores/senador/-/perfil/{id}"


class SenadoClient:
    """The senate wraps every payload in nested envelopes and collapses one-element lists"""

    def __init__(self, fetcher: ResilientFetchClient, base_url: str, sub_resource_retries: int = 2):
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")
        self.retries = sub_resource_retries

    async def list_senators(self) -> List[Politician]:
        payload = await self.fetcher.fetch_json(f"{self.base_url}/senador/lista/atual.json", max_retries=1)
        lista = ((payload or {}).get("ListaParlamentarEmExercicio") or {}).get("Parlamentares") or {}
        parlamentares = lista.get("Parlamentar")

        senators = []
        for sen in force_list(parlamentares):
            ident = sen.get("IdentificacaoParlamentar") or {}
            senator_id = int(ident["CodigoParlamentar"])
            sex = "F" if ident.get("SexoParlamentar") == "Feminino" else "M"
            role = gendered_role("Senador", sex)
            senators.append(Politician(
                id=senator_id,
                name=ident.get("NomeParlamentar") or "",
                role=role,
                chamber=Chamber.SENADO,
                party=ident.get("SiglaPartidoParlamentar") or "",
                state=(sen.get("Mandato") or {}).get("UfParlamentar") or "BR",
                photo=ident.get("UrlFotoParlamentar"),
                email=ident.get("EmailParlamentar"),
                sex=sex,
                bio=f"{role} da República.",
                mandate=Mandate(start="01/02/2019", end="01/02/2027"),
                external_link=ident.get("UrlPaginaParlamentar") or SENADO_PROFILE_URL.format(id=senator_id),
            ))
        return senators

    async def get_senator(self, senator_id: int) -> Dict[str, Any]:
        payload = await self.fetcher.fetch_json(f"{self.base_url}/senador/{senator_id}.json")
        parlamentar = ((payload or {}).get("DetalheParlamentar") or {}).get("Parlamentar")
        if not parlamentar:
            return {}

        ident = parlamentar.get("IdentificacaoParlamentar") or {}
        basic = parlamentar.get("DadosBasicosParlamentar") or {}
        phones = force_list((parlamentar.get("Telefones") or {}).get("Telefone"))
        sex = ident.get("SexoParlamentar")

        return {
            "civil_name": format_name(ident.get("NomeCompletoParlamentar")),
            "sex": {"Feminino": "F", "Masculino": "M"}.get(sex, sex),
            "birth_date": format_date(basic.get("DataNascimento")),
            "birth_city": basic.get("Naturalidade"),
            "birth_state": basic.get("UfNaturalidade"),
            "cabinet": Cabinet(
                phone=phones[0].get("NumeroTelefone") if phones else None,
                email=ident.get("EmailParlamentar"),
            ).model_dump(),
        }

    async def get_votes(self, senator_id: int, year: int) -> List[Dict]:
        payload = await self.fetcher.fetch_json(
            f"{self.base_url}/senador/{senator_id}/votacoes.json",
            params={"ano": year},
            max_retries=self.retries,
        )
        parlamentar = ((payload or {}).get("VotacoesParlamentar") or {}).get("Parlamentar") or {}
        votacoes = force_list((parlamentar.get("Votacoes") or {}).get("Votacao"))
        return [
            {
                "id": f"{v.get('CodigoSessao')}-{v.get('SequencialVotacao')}",
                "date": v.get("DataSessao") or "",
                "description": format_text(
                    v.get("DescricaoVotacao")
                    or (v.get("Materia") or {}).get("EmentaMateria")
                    or "Votação em Plenário"
                ),
                "vote": v.get("SiglaDescricaoVoto") or "Presença",
            }
            for v in votacoes
        ]

    async def get_expenses(self, senator_id: int, year: int) -> List[Dict]:
        payload = await self.fetcher.fetch_json(
            f"{self.base_url}/senador/{senator_id}/indemnizatorias.json",
            params={"ano": year},
            max_retries=self.retries,
        )
        parlamentar = ((payload or {}).get("IndenizacaoSenador") or {}).get("Parlamentar") or {}
        despesas = (parlamentar.get("Despesas") or {}).get("Despesa")
        expenses = []
        for d in force_list(despesas):
            try:
                value = float(d.get("ValorReembolsado") or 0)
            except (TypeError, ValueError):
                value = 0.0
            expenses.append({
                "type": format_text(d.get("TipoDespesa")) or "Outros",
                "value": value,
                "date": d.get("Data"),
                "supplier": d.get("Fornecedor"),
                "document_id": d.get("Documento"),
                "url": None,
            })
        return expenses
