"""
Thin async client for a PostgREST endpoint (Supabase REST API).

Rows are plain dicts; filters use PostgREST operator syntax
(``{"organization_id": "eq.42"}``). Every request runs under the client's
own ResiliencePolicy, and any transport failure or error status surfaces
as StoreError.

Usage:
    async with RestClient(settings.store.url, settings.store.service_key) as client:
        rows = await client.select("faqs", {"organization_id": "eq.42"})
"""

import logging
from typing import Any, Optional

import httpx

from repairline.config import settings
from repairline.exceptions import StoreError
from repairline.resilience import ResiliencePolicy

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class RestClient:
    """PostgREST table client with shared auth headers and a resilience policy."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 10.0,
        policy: Optional[ResiliencePolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not base_url:
            raise ValueError("SUPABASE_URL is required for the REST store")
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json",
                "Prefer": "return=representation",
            },
            timeout=timeout,
            transport=transport,
        )
        self.policy = policy or ResiliencePolicy(
            "store",
            failure_threshold=settings.resilience.store_failure_threshold,
            cooldown_sec=settings.resilience.store_cooldown_sec,
        )

    @classmethod
    def from_settings(cls) -> "RestClient":
        return cls(
            settings.store.url,
            settings.store.service_key,
            timeout=settings.store.request_timeout_sec,
        )

    async def __aenter__(self) -> "RestClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def select(self, table: str, params: dict[str, str]) -> list[Row]:
        return await self._request("GET", table, params=params)

    async def insert(self, table: str, row: Row) -> list[Row]:
        return await self._request("POST", table, json=row)

    async def update(self, table: str, filters: dict[str, str], values: Row) -> list[Row]:
        return await self._request("PATCH", table, params=filters, json=values)

    async def delete(self, table: str, filters: dict[str, str]) -> list[Row]:
        return await self._request("DELETE", table, params=filters)

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, str]] = None,
        json: Optional[Row] = None,
    ) -> list[Row]:
        return await self.policy.call(self._send, method, table, params, json)

    async def _send(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, str]],
        json: Optional[Row],
    ) -> list[Row]:
        try:
            response = await self._client.request(method, f"/{table}", params=params, json=json)
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {table} failed: {e}") from e

        if response.status_code >= 400:
            raise StoreError(
                f"{method} {table} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        logger.debug("%s %s -> %d", method, table, response.status_code)
        if not response.content:
            return []
        body = response.json()
        if isinstance(body, list):
            return body
        return [body]
