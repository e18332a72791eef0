"""
Tests for the HTTP routes, with the data service replaced by a stub.
"""

import pytest
from fastapi.testclient import TestClient

from plenario.api.dependencies import get_data_service
from plenario.main import app
from plenario.models.domain import (
    Chamber, EducationalArticle, FeedItem, FeedItemType, Party, Politician,
)
from plenario.services.inflight import InFlightRegistry


class StubDataService:
    def __init__(self):
        self.registry = InFlightRegistry()
        self.prefetched = []
        self.entities = [
            Politician(id=42, name="Maria Teste", role="Deputada Federal", party="PT", state="SP", sex="F"),
            Politician(id=5000, name="Ana Souza", role="Senadora", chamber=Chamber.SENADO, party="MDB", state="PE"),
        ]

    async def list_entities(self):
        return self.entities

    async def find_entity(self, entity_id):
        return next((p for p in self.entities if p.id == entity_id), None)

    async def enrich_fast(self, pol):
        return pol.model_copy(update={"civil_name": "Maria da Silva Teste"})

    async def enrich_full(self, pol):
        return pol.model_copy(update={"civil_name": "Maria da Silva Teste", "speeches": []})

    async def prefetch(self, pol):
        self.prefetched.append(pol.id)
        return True

    async def list_parties(self):
        return [Party(id=1, sigla="PT", nome="Partido dos Trabalhadores", ideology="Esquerda")]

    async def get_feed(self):
        return [FeedItem(id=7, type=FeedItemType.VOTE, title="PL 1/2024", date="12/10/2024", source_url="https://x")]

    async def educational_content(self):
        return [EducationalArticle(title="STF", text="Guardião da Constituição.", topic="Judiciário")]

    def get_stats(self):
        return {
            "local_cache": {"backend": "memory", "items_count": 0},
            "remote_cache_enabled": False,
            "in_flight": sorted(self.registry.active),
        }


@pytest.fixture
def stub():
    return StubDataService()


@pytest.fixture
def client(stub):
    app.dependency_overrides[get_data_service] = lambda: stub
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    """Service info and health."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["cache_backend"] == "memory"
        assert body["in_flight"] == []

    def test_cache_stats(self, client):
        response = client.get("/cache/stats")

        assert response.status_code == 200
        assert response.json()["cache_stats"]["local_cache"]["backend"] == "memory"


class TestPoliticians:
    """Listing, enrichment and prefetch."""

    def test_list_with_filters(self, client):
        assert len(client.get("/politicians").json()) == 2
        assert [p["id"] for p in client.get("/politicians", params={"chamber": "senado"}).json()] == [5000]
        assert [p["id"] for p in client.get("/politicians", params={"state": "sp"}).json()] == [42]

    def test_fast_profile(self, client):
        response = client.get("/politicians/42/fast")

        assert response.status_code == 200
        assert response.json()["civil_name"] == "Maria da Silva Teste"

    def test_full_profile(self, client):
        response = client.get("/politicians/42/full")

        assert response.status_code == 200
        assert response.json()["speeches"] == []

    def test_unknown_politician_is_404(self, client):
        assert client.get("/politicians/999/full").status_code == 404

    def test_prefetch_is_accepted_and_scheduled(self, client, stub):
        response = client.post("/politicians/42/prefetch")

        assert response.status_code == 202
        assert response.json()["already_in_flight"] is False
        assert stub.prefetched == [42]

    def test_parties(self, client):
        assert client.get("/parties").json()[0]["ideology"] == "Esquerda"


class TestFeedAndContent:
    """Feed and educational articles."""

    def test_feed(self, client):
        body = client.get("/feed").json()

        assert body[0]["id"] == 7
        assert body[0]["type"] == "vote"

    def test_articles(self, client):
        assert client.get("/content/articles").json()[0]["title"] == "STF"
