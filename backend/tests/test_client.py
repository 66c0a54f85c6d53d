"""
Tests for ClanChainClient caching and error handling
"""
import asyncio
import json
from collections import Counter
from datetime import timedelta

import httpx
import pytest

from clanchain.client.client import ClanChainAPIError, ClanChainClient

DISPUTE = {"id": "d1", "clan_id": "c1", "title": "X", "status": "open", "testimonies": []}


class FakeServer:
    """Records calls per (method, path) and answers from a route table"""

    def __init__(self):
        self.calls = Counter()
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        key = (request.method, request.url.path)
        self.calls[key] += 1
        self.requests.append(request)

        if key == ("GET", "/api/disputes/d1"):
            return httpx.Response(200, json=DISPUTE)
        if key == ("GET", "/api/clans/c1/disputes"):
            return httpx.Response(200, json={"data": [DISPUTE], "total": 1, "page": 1, "limit": 10, "has_more": False})
        if key == ("POST", "/api/disputes/d1/testimonies"):
            body = json.loads(request.content)
            return httpx.Response(201, json={**DISPUTE, "testimonies": [{**body, "verified": False}]})
        if key == ("GET", "/api/clans/c1"):
            return httpx.Response(200, json={"id": "c1", "name": "Umuada"})
        if key == ("PATCH", "/api/clans/c1"):
            return httpx.Response(200, json={"id": "c1", "name": "Renamed"})
        if key == ("GET", "/api/clans/c1/vaults"):
            return httpx.Response(200, json=[{"id": "v1", "clan_id": "c1", "balance": 0}])
        if key == ("POST", "/api/vaults/v1/contribute"):
            return httpx.Response(200, json={"id": "v1", "clan_id": "c1", "balance": 10})
        if key == ("POST", "/api/auth/login"):
            return httpx.Response(200, json={"token": "tok-123", "user": {}, "expires_at": "2030-01-01T00:00:00"})
        if key == ("GET", "/functions/v1/clan-api/youth-tasks"):
            return httpx.Response(200, json=[{"id": "t1"}])
        if key == ("POST", "/functions/v1/clan-api/youth-tasks"):
            return httpx.Response(201, json={"id": "t2"})
        if key == ("GET", "/functions/v1/clan-analytics"):
            return httpx.Response(200, json={"report": request.url.params.get("type", "overview")})
        if key == ("PUT", "/functions/v1/clan-api/notifications"):
            return httpx.Response(200, json={"id": request.url.params["id"], **json.loads(request.content)})
        if key == ("POST", "/api/disputes/d1/elder-override"):
            return httpx.Response(200, json={**DISPUTE, "status": "resolved"})
        if key == ("GET", "/api/disputes/missing"):
            return httpx.Response(404, json={"error": "Dispute missing not found"})
        return httpx.Response(500, text="boom")


@pytest.fixture
def server():
    return FakeServer()


@pytest.mark.asyncio
async def test_reads_are_cached(server):
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        first = await api.get_dispute("d1")
        second = await api.get_dispute("d1")

    assert first == second
    assert server.calls[("GET", "/api/disputes/d1")] == 1


@pytest.mark.asyncio
async def test_testimony_invalidates_item_and_clan_list(server):
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        await api.get_dispute("d1")
        await api.get_disputes("c1")
        await api.get_clan("c1")

        await api.add_testimony("d1", by="m1", text="...")

        await api.get_dispute("d1")
        await api.get_disputes("c1")
        await api.get_clan("c1")

    assert server.calls[("GET", "/api/disputes/d1")] == 2
    assert server.calls[("GET", "/api/clans/c1/disputes")] == 2
    assert server.calls[("GET", "/api/clans/c1")] == 1


@pytest.mark.asyncio
async def test_list_pages_are_cached_separately(server):
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        await api.get_disputes("c1", status="open")
        await api.get_disputes("c1", status="open")
        await api.get_disputes("c1", page=2)

    assert server.calls[("GET", "/api/clans/c1/disputes")] == 2
    assert server.requests[-1].url.params["page"] == "2"
    assert "status" not in server.requests[-1].url.params


@pytest.mark.asyncio
async def test_update_clan_invalidates_clan(server):
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        await api.get_clan("c1")
        await api.update_clan("c1", {"name": "Renamed"})
        await api.get_clan("c1")

    assert server.calls[("GET", "/api/clans/c1")] == 2


@pytest.mark.asyncio
async def test_contribution_invalidates_vault_list(server):
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        await api.get_vaults("c1")
        await api.contribute("v1", 10)
        await api.get_vaults("c1")

    assert server.calls[("GET", "/api/clans/c1/vaults")] == 2


@pytest.mark.asyncio
async def test_expired_entries_are_refetched(server):
    async with ClanChainClient(
        "http://clanchain.test", cache_ttl=timedelta(seconds=-1), transport=httpx.MockTransport(server)
    ) as api:
        await api.get_dispute("d1")
        await api.get_dispute("d1")

    assert server.calls[("GET", "/api/disputes/d1")] == 2


@pytest.mark.asyncio
async def test_error_carries_status_and_message(server):
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        with pytest.raises(ClanChainAPIError) as exc_info:
            await api.get_dispute("missing")

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Dispute missing not found"


@pytest.mark.asyncio
async def test_non_json_error(server):
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        with pytest.raises(ClanChainAPIError) as exc_info:
            await api.get_rite("r1")

    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "boom"


@pytest.mark.asyncio
async def test_login_sets_bearer_token(server):
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        await api.login("member@example.com", "password123")
        await api.get_clan("c1")

    assert server.requests[-1].headers["Authorization"] == "Bearer tok-123"


@pytest.mark.asyncio
async def test_resource_create_invalidates_lists(server):
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        await api.list_resource("youth-tasks", user_id="u1")
        await api.list_resource("youth-tasks", user_id="u1")
        await api.create_resource("youth-tasks", {"title": "Fetch water"})
        await api.list_resource("youth-tasks", user_id="u1")

    assert server.calls[("GET", "/functions/v1/clan-api/youth-tasks")] == 2


@pytest.mark.asyncio
async def test_analytics_reports_cached_per_type(server):
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        assert (await api.get_analytics())["report"] == "overview"
        assert (await api.get_analytics("youth-progress", clan_id="c1"))["report"] == "youth-progress"
        await api.get_analytics("youth-progress", clan_id="c1")

    assert server.calls[("GET", "/functions/v1/clan-analytics")] == 2
    assert server.requests[-1].url.params["clan_id"] == "c1"


@pytest.mark.asyncio
async def test_mark_notification_read(server):
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        marked = await api.mark_notification_read("n1")

    assert marked == {"id": "n1", "read": True}


@pytest.mark.asyncio
async def test_elder_override_omits_missing_elder_id(server):
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        await api.elder_override("d1", "resolved", None, "final")

    assert json.loads(server.requests[-1].content) == {"decision": "resolved", "reasoning": "final"}

class SlowDisputeServer:
    """Holds the first dispute read open until released; testimonies change later reads"""

    def __init__(self):
        self.testimonies = []
        self.reads = 0
        self.read_started = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            self.reads += 1
            snapshot = {**DISPUTE, "testimonies": list(self.testimonies)}
            if self.reads == 1:
                self.read_started.set()
                await self.release.wait()
            return httpx.Response(200, json=snapshot)
        self.testimonies.append({**json.loads(request.content), "verified": False})
        return httpx.Response(201, json={**DISPUTE, "testimonies": list(self.testimonies)})


@pytest.mark.asyncio
async def test_read_overlapping_mutation_is_not_cached():
    server = SlowDisputeServer()
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        pending = asyncio.create_task(api.get_dispute("d1"))
        await server.read_started.wait()

        await api.add_testimony("d1", by="m1", text="...")
        server.release.set()
        stale = await pending

        fresh = await api.get_dispute("d1")

    assert stale["testimonies"] == []
    assert len(fresh["testimonies"]) == 1
    assert server.reads == 2


@pytest.mark.asyncio
async def test_clear_cache_discards_in_flight_load():
    server = SlowDisputeServer()
    async with ClanChainClient("http://clanchain.test", transport=httpx.MockTransport(server)) as api:
        pending = asyncio.create_task(api.get_dispute("d1"))
        await server.read_started.wait()
        api.clear_cache()
        server.release.set()
        await pending

        await api.get_dispute("d1")

    assert server.reads == 2
