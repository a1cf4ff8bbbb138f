"""
Read-mostly tenant catalogs: FAQ answers, cached audio clips, tenant config.

Each catalog has a Protocol, a PostgREST implementation and an in-memory
implementation. Audio batch lookups drop keys that fail or are missing
rather than failing the whole batch.
"""

import asyncio
import logging
from typing import Iterable, Optional, Protocol

from repairline.config import settings
from repairline.exceptions import StoreError
from repairline.schemas.catalog_schema import FAQRecord, TenantConfig
from repairline.store.rest_client import RestClient

logger = logging.getLogger(__name__)

FAQ_TABLE = "faqs"
AUDIO_TABLE = "audio_assets"
TENANT_TABLE = "tenant_configs"

FAQ_COLUMNS = "id,question,response,keywords,category,usage_count,audio_url"


class FAQCatalog(Protocol):
    async def list_faqs(self, tenant_id: str) -> list[FAQRecord]: ...

    async def increment_usage(self, faq_id: str) -> None: ...


class AudioCatalog(Protocol):
    async def get_asset(self, tenant_id: str, key: str) -> Optional[str]: ...

    async def get_batch(self, tenant_id: str, keys: Iterable[str]) -> dict[str, str]: ...


class TenantDirectory(Protocol):
    async def get_config(self, tenant_id: str) -> TenantConfig: ...


async def _gather_batch(catalog: AudioCatalog, tenant_id: str, keys: Iterable[str]) -> dict[str, str]:
    """Look up keys concurrently, keeping request order and dropping misses."""
    keys = list(keys)
    results = await asyncio.gather(
        *(catalog.get_asset(tenant_id, key) for key in keys), return_exceptions=True
    )
    batch: dict[str, str] = {}
    for key, result in zip(keys, results):
        if isinstance(result, Exception):
            logger.warning("Audio lookup for %s failed: %s", key, result)
        elif result:
            batch[key] = result
    return batch


# ---------------------------------------------------------------------- #
# PostgREST implementations
# ---------------------------------------------------------------------- #


class RestFAQCatalog:
    def __init__(self, client: RestClient) -> None:
        self._client = client

    async def list_faqs(self, tenant_id: str) -> list[FAQRecord]:
        rows = await self._client.select(
            FAQ_TABLE, {"organization_id": f"eq.{tenant_id}", "select": FAQ_COLUMNS}
        )
        return [FAQRecord.model_validate(row) for row in rows]

    async def increment_usage(self, faq_id: str) -> None:
        # Read-then-write; concurrent increments can lose a count
        rows = await self._client.select(
            FAQ_TABLE, {"id": f"eq.{faq_id}", "select": "usage_count"}
        )
        if not rows:
            raise StoreError(f"FAQ {faq_id} not found", status_code=404)
        current = rows[0].get("usage_count") or 0
        await self._client.update(FAQ_TABLE, {"id": f"eq.{faq_id}"}, {"usage_count": current + 1})


class RestAudioCatalog:
    """Pre-rendered clips in ``audio_assets``; URL is the public base plus the object key."""

    def __init__(self, client: RestClient, public_base_url: Optional[str] = None) -> None:
        self._client = client
        base = settings.store.audio_public_base_url if public_base_url is None else public_base_url
        self._public_base_url = base.rstrip("/")

    async def get_asset(self, tenant_id: str, key: str) -> Optional[str]:
        rows = await self._client.select(
            AUDIO_TABLE,
            {
                "organization_id": f"eq.{tenant_id}",
                "asset_key": f"eq.{key}",
                "active": "eq.true",
                "select": "r2_key,r2_bucket",
                "limit": "1",
            },
        )
        if not rows or not rows[0].get("r2_key"):
            return None
        return f"{self._public_base_url}/{rows[0]['r2_key']}"

    async def get_batch(self, tenant_id: str, keys: Iterable[str]) -> dict[str, str]:
        return await _gather_batch(self, tenant_id, keys)


class RestTenantDirectory:
    def __init__(self, client: RestClient) -> None:
        self._client = client

    async def get_config(self, tenant_id: str) -> TenantConfig:
        rows = await self._client.select(
            TENANT_TABLE, {"organization_id": f"eq.{tenant_id}", "select": "*", "limit": "1"}
        )
        if not rows:
            return TenantConfig(organization_id=tenant_id)
        return TenantConfig.model_validate(rows[0])


# ---------------------------------------------------------------------- #
# In-memory implementations
# ---------------------------------------------------------------------- #


class InMemoryFAQCatalog:
    def __init__(self, faqs: Optional[dict[str, list[FAQRecord]]] = None) -> None:
        self.faqs: dict[str, list[FAQRecord]] = faqs or {}

    async def list_faqs(self, tenant_id: str) -> list[FAQRecord]:
        return [faq.model_copy() for faq in self.faqs.get(tenant_id, [])]

    async def increment_usage(self, faq_id: str) -> None:
        for records in self.faqs.values():
            for i, faq in enumerate(records):
                if faq.id == faq_id:
                    records[i] = faq.model_copy(update={"usage_count": faq.usage_count + 1})
                    return
        raise StoreError(f"FAQ {faq_id} not found", status_code=404)


class InMemoryAudioCatalog:
    def __init__(self, assets: Optional[dict[str, dict[str, str]]] = None) -> None:
        self.assets: dict[str, dict[str, str]] = assets or {}

    async def get_asset(self, tenant_id: str, key: str) -> Optional[str]:
        return self.assets.get(tenant_id, {}).get(key)

    async def get_batch(self, tenant_id: str, keys: Iterable[str]) -> dict[str, str]:
        return await _gather_batch(self, tenant_id, keys)


class InMemoryTenantDirectory:
    def __init__(self, configs: Optional[dict[str, TenantConfig]] = None) -> None:
        self.configs: dict[str, TenantConfig] = configs or {}

    async def get_config(self, tenant_id: str) -> TenantConfig:
        return self.configs.get(tenant_id) or TenantConfig(organization_id=tenant_id)
