"""
Shared fixtures: isolated settings, a controllable clock, a recording sleep
and in-process fakes of the upstream APIs and the remote document store.
"""

import base64
import json
from datetime import date
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from plenario.core.config import Settings
from plenario.models.domain import Politician
from plenario.services.cache_service import CacheService
from plenario.services.camara import CamaraClient
from plenario.services.enrichment import EnrichmentPipeline
from plenario.services.senado import SenadoClient
from plenario.services.simulated import SimulatedDataProvider
from plenario.utils.cache import CacheManager
from plenario.utils.document_store import RemoteDocumentStore
from plenario.utils.http_client import ResilientFetchClient

TODAY = date(2024, 5, 10)
CAMARA = "/api/v2"
SENADO = "/dadosabertos"


class FakeClock:
    """Epoch seconds that only move when a test says so"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingSleep:
    """Stand-in for asyncio.sleep that records the requested delays"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


class FakeUpstream:
    """MockTransport handler keyed by exact URL path.

    A route may be a JSON payload, an HTTP status code or a callable taking
    the request. Unknown paths answer with an empty chamber collection.
    """

    def __init__(self):
        self.routes: Dict[str, Any] = {}
        self.calls: List[str] = []

    def add(self, path: str, response: Any):
        self.routes[path] = response

    def count(self, path: str) -> int:
        return self.calls.count(path)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(path)
        route = self.routes.get(path)
        if route is None:
            return httpx.Response(200, json={"dados": []})
        if callable(route):
            return route(request)
        if isinstance(route, int):
            return httpx.Response(route, json={"message": "error"})
        return httpx.Response(200, json=route)


def paged(records: List[Dict[str, Any]]) -> Callable[[httpx.Request], httpx.Response]:
    """Route serving records the way the chamber API pages them (pagina/itens + links)"""

    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params.get("pagina", 1))
        size = int(request.url.params.get("itens", 15))
        start = (page - 1) * size
        links = [{"rel": "self", "href": str(request.url)}]
        if start + size < len(records):
            links.append({"rel": "next", "href": str(request.url.copy_set_param("pagina", page + 1))})
        return httpx.Response(200, json={"dados": records[start:start + size], "links": links})

    return handler


class FakeGitHub:
    """Contents API of a single repository.

    A PUT is accepted only when its sha matches the stored blob (or the file
    is new and no sha is sent). interleave, when set, runs between the
    writer's sha read and its PUT, standing in for a concurrent commit.
    """

    def __init__(self):
        self.files: Dict[str, tuple] = {}
        self.puts: List[Dict[str, Any]] = []
        self.read_status: Optional[int] = None
        self.interleave: Optional[Callable[[str], None]] = None

    def seed(self, path: str, document: Dict[str, Any], sha: str = "seed-sha"):
        self.files[path] = (document, sha)

    def document(self, path: str) -> Optional[Dict[str, Any]]:
        entry = self.files.get(path)
        return entry[0] if entry else None

    def decoded_puts(self) -> List[Dict[str, Any]]:
        return [json.loads(base64.b64decode(body["content"])) for body in self.puts]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.split("/contents/", 1)[1]

        if request.method == "GET":
            if self.read_status is not None:
                return httpx.Response(self.read_status, json={"message": "error"})
            if path not in self.files:
                return httpx.Response(404, json={"message": "Not Found"})
            document, sha = self.files[path]
            content = base64.encodebytes(json.dumps(document).encode("utf-8")).decode("ascii")
            return httpx.Response(200, json={"content": content, "encoding": "base64", "sha": sha})

        if request.method == "PUT":
            body = json.loads(request.content)
            self.puts.append(body)
            if self.interleave is not None:
                self.interleave(path)
            current = self.files[path][1] if path in self.files else None
            if body.get("sha") != current:
                return httpx.Response(409, json={"message": "sha does not match"})
            sha = f"sha-{len(self.puts)}"
            self.files[path] = (json.loads(base64.b64decode(body["content"])), sha)
            return httpx.Response(201, json={"content": {"sha": sha}})

        return httpx.Response(405)


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Settings that never read .env and default to a memory-only cache"""

    def factory(**overrides) -> Settings:
        values = {
            "cache_enabled": True,
            "redis_url": None,
            "duckdb_path": None,
            "remote_cache_enabled": True,
            "github_owner": "owner",
            "github_repo": "cache",
            "github_token": "test-token",
            "identity_overrides": {},
            "openai_api_key": None,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return factory


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
async def fetcher(upstream, sleeper):
    client = ResilientFetchClient(
        max_retries=3,
        timeout=5,
        initial_delay=1.0,
        transport=httpx.MockTransport(upstream),
        sleep=sleeper,
    )
    yield client
    await client.close()


@pytest.fixture
async def remote(settings, github):
    store = RemoteDocumentStore.from_settings(settings, transport=httpx.MockTransport(github))
    yield store
    await store.close()


@pytest.fixture
def cache(settings, clock) -> CacheService:
    return CacheService(CacheManager(settings), clock=clock)


@pytest.fixture
def camara(settings, fetcher) -> CamaraClient:
    return CamaraClient(fetcher, settings.camara_base_url)


@pytest.fixture
def senado(settings, fetcher) -> SenadoClient:
    return SenadoClient(fetcher, settings.senado_base_url)


@pytest.fixture
def pipeline(settings, cache, camara, senado, remote) -> EnrichmentPipeline:
    return EnrichmentPipeline(
        settings,
        cache,
        camara,
        senado,
        remote=remote,
        simulated=SimulatedDataProvider(True),
        today=lambda: TODAY,
    )


@pytest.fixture
def deputy() -> Politician:
    return Politician(
        id=42,
        name="Maria Teste",
        role="Deputado Federal",
        party="PT",
        state="SP",
    )


@pytest.fixture
def deputy_profile() -> Dict[str, Any]:
    """Chamber payload for /deputados/42"""
    return {
        "dados": {
            "id": 42,
            "nomeCivil": "MARIA DA SILVA TESTE",
            "sexo": "F",
            "dataNascimento": "1970-03-15",
            "municipioNascimento": "Campinas",
            "ufNascimento": "SP",
            "escolaridade": "Superior",
            "redeSocial": ["https://twitter.com/mariateste"],
            "ultimoStatus": {
                "gabinete": {
                    "sala": "101",
                    "andar": "1",
                    "predio": "4",
                    "telefone": "3215-5101",
                    "email": "dep.mariateste@camara.leg.br",
                }
            },
        }
    }
