"""
Tests for the chamber API client: paging through collections.
"""

import logging

import httpx

from tests.conftest import CAMARA, paged

PROPOSICOES = f"{CAMARA}/proposicoes"
DESPESAS = f"{CAMARA}/deputados/42/despesas"


def propositions(n):
    return [{"id": i, "siglaTipo": "PL", "numero": i, "ano": 2024, "ementa": f"Projeto {i}"} for i in range(n)]


class TestPagination:
    """Collections spanning more than one page."""

    async def test_count_follows_every_page(self, camara, upstream):
        upstream.add(PROPOSICOES, paged(propositions(250)))

        assert await camara.count_authored_propositions(42, 2024) == 250
        assert upstream.count(PROPOSICOES) == 3

    async def test_short_first_page_is_a_single_request(self, camara, upstream):
        upstream.add(PROPOSICOES, paged(propositions(7)))

        assert await camara.count_authored_propositions(42, 2024) == 7
        assert upstream.count(PROPOSICOES) == 1

    async def test_full_page_without_next_link_stops(self, camara, upstream):
        def exactly_one_page(request):
            size = int(request.url.params["itens"])
            return httpx.Response(200, json={
                "dados": propositions(size),
                "links": [{"rel": "self", "href": str(request.url)}, {"rel": "last", "href": str(request.url)}],
            })

        upstream.add(PROPOSICOES, exactly_one_page)

        assert await camara.count_authored_propositions(42, 2024) == 100
        assert upstream.count(PROPOSICOES) == 1

    async def test_expenses_are_collected_across_pages(self, camara, upstream):
        upstream.add(DESPESAS, paged([
            {"tipoDespesa": "TELEFONIA", "valorDocumento": 2.0, "codDocumento": i} for i in range(150)
        ]))

        expenses = await camara.get_expenses(42, 2024)

        assert len(expenses) == 150
        assert sum(e["value"] for e in expenses) == 300.0
        assert [e["document_id"] for e in expenses[:2]] == [0, 1]

    async def test_page_cap_logs_and_returns_what_was_read(self, camara, upstream, caplog):
        upstream.add(PROPOSICOES, paged(propositions(1000)))

        with caplog.at_level(logging.WARNING, logger="plenario.services.camara"):
            records = await camara._all_pages("/proposicoes", {"ano": 2024}, page_size=10, max_pages=3)

        assert len(records) == 30
        assert upstream.count(PROPOSICOES) == 3
        assert "Stopped paging /proposicoes" in caplog.text

    async def test_display_list_stays_capped(self, camara, upstream):
        upstream.add(PROPOSICOES, paged(propositions(250)))

        bills = await camara.get_bills(42)

        assert len(bills) == 10
        assert bills[0].title == "PL 0/2024"
        assert upstream.count(PROPOSICOES) == 1
