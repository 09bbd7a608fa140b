from datetime import datetime
from typing import override

import pytest
from fakes import MockFetchClient, MockSearchClient
from inline_snapshot import snapshot

from note_outline_api.config import Settings
from note_outline_api.errors import UpstreamError
from note_outline_api.models.serpapi import SerpApiResponse
from note_outline_api.servers.outline import OutlineServer
from note_outline_api.web.app import READY_MESSAGE, create_app


class FailingSearchClient(MockSearchClient):
    def __init__(self, error: Exception):
        super().__init__()
        self.error = error

    @override
    async def search(self, query: str, num: int = 10) -> SerpApiResponse:
        self.calls.append((query, num))
        raise self.error


@pytest.fixture
def outline_server(search_client: MockSearchClient, fetch_client: MockFetchClient) -> OutlineServer:
    return OutlineServer(search_client=search_client, fetch_client=fetch_client)


@pytest.fixture
def make_client(aiohttp_client, outline_server: OutlineServer):
    async def _make(settings: Settings, server: OutlineServer | None = None):
        return await aiohttp_client(create_app(settings, outline_server=server or outline_server))

    return _make


@pytest.fixture
async def client(make_client, settings: Settings):
    return await make_client(settings)


async def test_index(client):
    response = await client.get("/")

    assert response.status == 200
    assert await response.text() == READY_MESSAGE


@pytest.mark.parametrize("path", ["/health", "/ping"])
async def test_health(client, path: str):
    response = await client.get(path)

    assert response.status == 200
    assert await response.json() == {"ok": True}


async def test_get_outline(client, search_client: MockSearchClient, fetch_client: MockFetchClient):
    response = await client.get("/note_top_outline", params={"q": "productivity tips", "num": "3"})

    assert response.status == 200

    payload = await response.json()

    assert payload["query"] == "productivity tips site:note.com"
    assert "note" not in payload
    assert [result["rank"] for result in payload["results"]] == [1, 2, 3]
    assert [result["url"] for result in payload["results"]] == fetch_client.calls
    assert search_client.calls == [("productivity tips site:note.com", 3)]

    first = payload["results"][0]
    assert set(first) == {"rank", "url", "serp_title", "page_title", "h1", "h2", "h3", "fetched_at"}
    assert first["h1"] == "Ten productivity tips"

    fetched_at = [datetime.fromisoformat(result["fetched_at"]) for result in payload["results"]]
    assert fetched_at == sorted(fetched_at)

    degraded = payload["results"][1]
    assert (degraded["page_title"], degraded["h1"], degraded["h2"], degraded["h3"]) == ("", "", [], [])


async def test_post_outline(client, search_client: MockSearchClient):
    response = await client.post("/note_top_outline", json={"query": "  productivity tips ", "num": 2})

    assert response.status == 200

    payload = await response.json()

    assert payload["query"] == "productivity tips site:note.com"
    assert len(payload["results"]) == 2
    assert search_client.calls == [("productivity tips site:note.com", 2)]


@pytest.mark.parametrize(("num", "expected"), [("0", 1), ("-4", 1), ("99", 10), ("ten", 10), ("", 10)])
async def test_get_outline_clamps_num(client, search_client: MockSearchClient, num: str, expected: int):
    response = await client.get("/note_top_outline", params={"q": "tips", "num": num})

    assert response.status == 200
    assert search_client.calls == [("tips site:note.com", expected)]


async def test_get_outline_default_num(client, search_client: MockSearchClient):
    response = await client.get("/note_top_outline", params={"q": "tips"})

    assert response.status == 200
    assert search_client.calls == [("tips site:note.com", 10)]


@pytest.mark.parametrize("params", [{}, {"q": ""}, {"q": "   "}])
async def test_get_outline_requires_query(client, search_client: MockSearchClient, params: dict[str, str]):
    response = await client.get("/note_top_outline", params=params)

    assert response.status == 400
    assert await response.json() == {"error": "query is required"}
    assert search_client.calls == []


async def test_post_outline_invalid_body(client, search_client: MockSearchClient):
    response = await client.post("/note_top_outline", data="not json", headers={"Content-Type": "application/json"})

    assert response.status == 400
    assert await response.json() == {"error": "query is required"}
    assert search_client.calls == []


async def test_outline_no_matching_results(client, search_client: MockSearchClient, fetch_client: MockFetchClient):
    search_client.organic_results = [{"link": "https://example.com/a", "title": "A"}]

    response = await client.get("/note_top_outline", params={"q": "tips"})

    assert response.status == 200
    assert await response.json() == snapshot(
        {"query": "tips site:note.com", "results": [], "note": "No note.com results found in top organic results."}
    )
    assert fetch_client.calls == []


async def test_outline_missing_serpapi_key(make_client, search_client: MockSearchClient):
    client = await make_client(Settings(serpapi_key=""))

    response = await client.get("/note_top_outline", params={"q": "tips"})

    assert response.status == 500
    assert await response.json() == {"error": "SERPAPI_KEY is missing"}
    assert search_client.calls == []


async def test_outline_missing_serpapi_key_checked_before_query(make_client):
    client = await make_client(Settings(serpapi_key=""))

    response = await client.get("/note_top_outline")

    assert response.status == 500


@pytest.fixture
async def secured_client(make_client):
    return await make_client(Settings(serpapi_key="test-serpapi-key", api_token="s3cret"))


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}, {"Authorization": "s3cret"}, {"Authorization": "Basic s3cret"}])
async def test_outline_unauthorized(secured_client, search_client: MockSearchClient, headers: dict[str, str]):
    response = await secured_client.post("/note_top_outline", json={"query": "tips"}, headers=headers)

    assert response.status == 401
    assert await response.json() == {"error": "Unauthorized"}
    assert search_client.calls == []


async def test_outline_authorized(secured_client, search_client: MockSearchClient):
    response = await secured_client.get("/note_top_outline", params={"q": "tips", "num": "1"}, headers={"Authorization": "Bearer s3cret"})

    assert response.status == 200
    assert search_client.calls == [("tips site:note.com", 1)]


async def test_health_is_never_authenticated(secured_client):
    response = await secured_client.get("/health")

    assert response.status == 200


async def test_outline_upstream_error(make_client, settings: Settings, fetch_client: MockFetchClient):
    server = OutlineServer(search_client=FailingSearchClient(UpstreamError(upstream_status=503, detail="unavailable")), fetch_client=fetch_client)
    client = await make_client(settings, server)

    response = await client.get("/note_top_outline", params={"q": "tips"})

    assert response.status == 502
    assert await response.json() == {"error": "SERP API failed", "status": 503, "detail": "unavailable"}
    assert fetch_client.calls == []


async def test_outline_internal_error(make_client, settings: Settings, fetch_client: MockFetchClient):
    server = OutlineServer(search_client=FailingSearchClient(RuntimeError("y" * 1000)), fetch_client=fetch_client)
    client = await make_client(settings, server)

    response = await client.post("/note_top_outline", json={"query": "tips"})

    assert response.status == 500
    assert await response.json() == {"error": "Internal error", "detail": "y" * 800}


async def test_post_outline_huge_num_is_clamped(client, search_client: MockSearchClient):
    body = '{"query": "tips", "num": 1' + "0" * 400 + "}"

    response = await client.post("/note_top_outline", data=body, headers={"Content-Type": "application/json"})

    assert response.status == 200
    assert search_client.calls == [("tips site:note.com", 10)]


async def test_post_outline_body_with_oversized_integer(client, search_client: MockSearchClient):
    body = '{"query": "tips", "num": ' + "9" * 5001 + "}"

    response = await client.post("/note_top_outline", data=body, headers={"Content-Type": "application/json"})

    assert response.status == 400
    assert await response.json() == {"error": "query is required"}
    assert search_client.calls == []


async def test_outline_search_timeout(make_client, settings: Settings, fetch_client: MockFetchClient):
    search_client = FailingSearchClient(TimeoutError())
    server = OutlineServer(search_client=search_client, fetch_client=fetch_client)
    client = await make_client(settings, server)

    response = await client.get("/note_top_outline", params={"q": "tips"})

    assert response.status == 500
    assert await response.json() == {"error": "Internal error", "detail": "TimeoutError"}
    assert search_client.calls == [("tips site:note.com", 10)]
    assert fetch_client.calls == []


async def test_unknown_route_returns_json(client):
    response = await client.get("/missing")

    assert response.status == 404
    assert await response.json() == {"error": "Not Found"}


async def test_wrong_method_returns_json(client):
    response = await client.put("/note_top_outline")

    assert response.status == 405
    assert await response.json() == {"error": "Method Not Allowed"}


async def test_oversized_body_returns_json(client, search_client: MockSearchClient):
    body = '{"query": "' + "x" * (1024**2) + '"}'

    response = await client.post("/note_top_outline", data=body, headers={"Content-Type": "application/json"})

    assert response.status == 413
    assert "error" in await response.json()
    assert search_client.calls == []
