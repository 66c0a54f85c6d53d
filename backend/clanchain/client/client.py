"""
Async client for the ClanChain HTTP API with a keyed response cache

Reads are cached under tuple keys whose first two parts are the resource type
and id, e.g. ("dispute", "d1") or ("disputes", "c1", "open", 1, 10) for one
page of a clan's disputes. Mutations drop every key under the affected
(resource, id) prefixes.
"""
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx
from pydantic import BaseModel

from clanchain.core.logging_config import LoggingConfig
from clanchain.utils.datetime_utils import utc_now

logger = LoggingConfig.get_logger(__name__)

CacheKey = Tuple[Any, ...]


class CacheEntry(BaseModel):
    """Cached response body"""
    data: Any
    timestamp: datetime


class ClanChainAPIError(Exception):
    """Non-2xx response; `message` is the server's `error` field when present"""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class ClanChainClient:
    """
    Client for the ClanChain API

    Usage:
        async with ClanChainClient("http://localhost:8000", token=token) as api:
            disputes = await api.get_disputes("c1")
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        cache_ttl: timedelta = timedelta(minutes=5),
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.cache: Dict[CacheKey, CacheEntry] = {}
        # Bumped on every invalidation so loads that started earlier are not stored
        self._generations: Dict[CacheKey, int] = {}
        self.cache_ttl = cache_ttl
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "ClanChainClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        await self._client.aclose()

    # Cache

    def _get_from_cache(self, key: CacheKey) -> Optional[Any]:
        entry = self.cache.get(key)
        if entry is None:
            return None
        if utc_now() - entry.timestamp > self.cache_ttl:
            del self.cache[key]
            return None
        return entry.data

    def _save_to_cache(self, key: CacheKey, data: Any):
        self.cache[key] = CacheEntry(data=data, timestamp=utc_now())

    def _generation(self, key: CacheKey) -> Tuple[int, ...]:
        return tuple(self._generations.get(key[:i], 0) for i in range(len(key) + 1))

    async def _cached(self, key: CacheKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        cached = self._get_from_cache(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return cached
        generation = self._generation(key)
        data = await loader()
        if self._generation(key) == generation:
            self._save_to_cache(key, data)
        else:
            logger.debug(f"Discarding load for {key} invalidated in flight")
        return data

    def invalidate(self, resource: str, item_id: Optional[str] = None):
        """Drop every cached entry for a resource, or for one id of it"""
        prefix: CacheKey = (resource,) if item_id is None else (resource, item_id)
        self._generations[prefix] = self._generations.get(prefix, 0) + 1
        for key in [k for k in self.cache if k[:len(prefix)] == prefix]:
            del self.cache[key]

    def clear_cache(self):
        self.cache.clear()
        self._generations[()] = self._generations.get((), 0) + 1

    # Transport

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        query = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            response = await self._client.request(method, path, params=query, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"ClanChain request {method} {path} failed: {e}")
            raise ClanChainAPIError(0, str(e)) from e

        if response.status_code >= 400:
            try:
                message = response.json().get("error") or response.reason_phrase
            except (ValueError, AttributeError):
                message = response.text or response.reason_phrase
            raise ClanChainAPIError(response.status_code, message)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # Auth

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Log in and use the returned bearer token for later calls"""
        data = await self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        self.clear_cache()
        return data

    # Clans

    async def get_clan(self, clan_id: str) -> Dict[str, Any]:
        return await self._cached(("clan", clan_id), lambda: self._request("GET", f"/api/clans/{clan_id}"))

    async def get_clan_members(self, clan_id: str):
        return await self._cached(
            ("clan-members", clan_id), lambda: self._request("GET", f"/api/clans/{clan_id}/members")
        )

    async def update_clan(self, clan_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request("PATCH", f"/api/clans/{clan_id}", json=updates)
        self.invalidate("clan", clan_id)
        return data

    async def add_member(self, clan_id: str, member: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request("POST", f"/api/clans/{clan_id}/members", json=member)
        self.invalidate("clan-members", clan_id)
        self.invalidate("clan", clan_id)
        return data

    async def update_member_role(self, clan_id: str, member_id: str, role: str) -> Dict[str, Any]:
        data = await self._request("PATCH", f"/api/clans/{clan_id}/members/{member_id}", json={"role": role})
        self.invalidate("clan-members", clan_id)
        self.invalidate("clan", clan_id)
        return data

    # Disputes

    async def get_disputes(self, clan_id: str, status: Optional[str] = None, page: int = 1, limit: int = 10):
        return await self._cached(
            ("disputes", clan_id, status, page, limit),
            lambda: self._request(
                "GET", f"/api/clans/{clan_id}/disputes",
                params={"status": status, "page": page, "limit": limit},
            ),
        )

    async def get_dispute(self, dispute_id: str) -> Dict[str, Any]:
        return await self._cached(("dispute", dispute_id), lambda: self._request("GET", f"/api/disputes/{dispute_id}"))

    async def create_dispute(self, clan_id: str, dispute: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request("POST", f"/api/clans/{clan_id}/disputes", json=dispute)
        self.invalidate("disputes", clan_id)
        return data

    async def add_testimony(self, dispute_id: str, by: str, text: str) -> Dict[str, Any]:
        data = await self._request(
            "POST", f"/api/disputes/{dispute_id}/testimonies", json={"by": by, "text": text}
        )
        self._dispute_changed(data)
        return data

    async def verify_testimony(self, dispute_id: str, index: int, verified_by: Optional[str] = None):
        data = await self._request(
            "PATCH", f"/api/disputes/{dispute_id}/testimonies/{index}/verify", json={"verified_by": verified_by}
        )
        self._dispute_changed(data)
        return data

    async def update_dispute_status(self, dispute_id: str, status: str) -> Dict[str, Any]:
        data = await self._request("PATCH", f"/api/disputes/{dispute_id}/status", json={"status": status})
        self._dispute_changed(data)
        return data

    async def request_agent_verdict(self, dispute_id: str) -> Dict[str, Any]:
        data = await self._request("POST", f"/api/disputes/{dispute_id}/agent-verdict")
        self.invalidate("dispute", dispute_id)
        return data

    async def elder_override(self, dispute_id: str, decision: str, elder_id: Optional[str], reasoning: str):
        """`elder_id=None` lets the server use the caller's own elder membership"""
        body = {"decision": decision, "reasoning": reasoning}
        if elder_id:
            body["elder_id"] = elder_id
        data = await self._request("POST", f"/api/disputes/{dispute_id}/elder-override", json=body)
        self._dispute_changed(data)
        return data

    def _dispute_changed(self, dispute: Dict[str, Any]):
        self.invalidate("dispute", dispute["id"])
        self.invalidate("disputes", dispute["clan_id"])

    # Vaults and tokens

    async def get_vaults(self, clan_id: str):
        return await self._cached(("vaults", clan_id), lambda: self._request("GET", f"/api/clans/{clan_id}/vaults"))

    async def create_vault(self, clan_id: str, vault: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request("POST", f"/api/clans/{clan_id}/vaults", json=vault)
        self.invalidate("vaults", clan_id)
        return data

    async def contribute(self, vault_id: str, amount: float, member_id: Optional[str] = None):
        data = await self._request(
            "POST", f"/api/vaults/{vault_id}/contribute", json={"amount": amount, "member_id": member_id}
        )
        self.invalidate("vaults", data["clan_id"])
        return data

    async def withdraw(self, vault_id: str, amount: float, reason: str, requested_by: Optional[str] = None):
        data = await self._request(
            "POST",
            f"/api/vaults/{vault_id}/withdraw",
            json={"amount": amount, "reason": reason, "requested_by": requested_by},
        )
        self.invalidate("vaults", data["clan_id"])
        return data

    async def get_tokens(self, clan_id: str, page: int = 1, limit: int = 20):
        return await self._cached(
            ("tokens", clan_id, page, limit),
            lambda: self._request("GET", f"/api/clans/{clan_id}/tokens", params={"page": page, "limit": limit}),
        )

    async def award_tokens(self, clan_id: str, award: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request("POST", f"/api/clans/{clan_id}/tokens", json=award)
        self.invalidate("tokens", clan_id)
        self.invalidate("token-balance", data["member_id"])
        return data

    async def verify_tokens(self, token_id: str, verified_by: Optional[str] = None) -> Dict[str, Any]:
        data = await self._request("PATCH", f"/api/tokens/{token_id}/verify", json={"verified_by": verified_by})
        self.invalidate("tokens", data["clan_id"])
        self.invalidate("token-balance", data["member_id"])
        return data

    async def get_member_token_balance(self, member_id: str) -> Dict[str, Any]:
        return await self._cached(
            ("token-balance", member_id),
            lambda: self._request("GET", f"/api/members/{member_id}/token-balance"),
        )

    # Rites

    async def get_rites(self, clan_id: str, rite_type: Optional[str] = None, page: int = 1, limit: int = 20):
        return await self._cached(
            ("rites", clan_id, rite_type, page, limit),
            lambda: self._request(
                "GET", f"/api/clans/{clan_id}/rites",
                params={"type": rite_type, "page": page, "limit": limit},
            ),
        )

    async def get_rite(self, rite_id: str) -> Dict[str, Any]:
        return await self._cached(("rite", rite_id), lambda: self._request("GET", f"/api/rites/{rite_id}"))

    async def create_rite(self, clan_id: str, rite: Dict[str, Any], schedule: bool = False) -> Dict[str, Any]:
        path = f"/api/clans/{clan_id}/rites/schedule" if schedule else f"/api/clans/{clan_id}/rites"
        data = await self._request("POST", path, json=rite)
        self.invalidate("rites", clan_id)
        return data

    async def update_rite(self, rite_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request("PATCH", f"/api/rites/{rite_id}", json=updates)
        self.invalidate("rite", rite_id)
        self.invalidate("rites", data["clan_id"])
        return data

    def refresh_clan(self, clan_id: str):
        """Forget everything cached for a clan's dashboard"""
        for resource in ("clan", "clan-members", "disputes", "vaults", "rites", "tokens"):
            self.invalidate(resource, clan_id)

    # Function gateway

    async def list_resource(self, resource: str, **filters) -> Any:
        key = ("fn:" + resource, None, tuple(sorted(filters.items())))
        return await self._cached(
            key, lambda: self._request("GET", f"/functions/v1/clan-api/{resource}", params=filters)
        )

    async def get_resource(self, resource: str, id_param: str, item_id: str) -> Any:
        return await self._cached(
            ("fn:" + resource, item_id),
            lambda: self._request("GET", f"/functions/v1/clan-api/{resource}", params={id_param: item_id}),
        )

    async def create_resource(self, resource: str, values: Dict[str, Any]) -> Any:
        data = await self._request("POST", f"/functions/v1/clan-api/{resource}", json=values)
        self.invalidate("fn:" + resource, None)
        return data

    async def update_resource(self, resource: str, id_param: str, item_id: str, values: Dict[str, Any]) -> Any:
        data = await self._request(
            "PUT", f"/functions/v1/clan-api/{resource}", params={id_param: item_id}, json=values
        )
        self.invalidate("fn:" + resource, item_id)
        self.invalidate("fn:" + resource, None)
        return data

    async def delete_resource(self, resource: str, id_param: str, item_id: str) -> Any:
        data = await self._request("DELETE", f"/functions/v1/clan-api/{resource}", params={id_param: item_id})
        self.invalidate("fn:" + resource, item_id)
        self.invalidate("fn:" + resource, None)
        return data

    async def mark_notification_read(self, notification_id: str) -> Any:
        return await self.update_resource("notifications", "id", notification_id, {"read": True})

    async def get_analytics(self, report: Optional[str] = None, **params) -> Any:
        """One clan-analytics report; the overview when `report` is None"""
        if report:
            params["type"] = report
        key = ("fn:clan-analytics", report, tuple(sorted(params.items())))
        return await self._cached(key, lambda: self._request("GET", "/functions/v1/clan-analytics", params=params))

    async def superadmin(
        self,
        action: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        """Superadmin calls are never cached"""
        return await self._request(method, f"/functions/v1/superadmin-api/{action}", params=params, json=body)
