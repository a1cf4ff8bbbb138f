"""
Per-contact interaction log: one row per answered turn.

The orchestrator records every reply it sends and reads the most recent
exchanges back as context for the fallback responder. History comes back
oldest first, as ``{"speech_input": ..., "ai_response": ...}`` dicts.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from repairline.store.rest_client import RestClient

INTERACTIONS_TABLE = "interactions"


class InteractionLog(Protocol):
    async def recent(self, tenant_id: str, contact_id: str, limit: int) -> list[dict[str, str]]:
        """The last ``limit`` exchanges for the contact, oldest first."""
        ...

    async def record(
        self,
        tenant_id: str,
        contact_id: str,
        channel: str,
        speech_input: str,
        ai_response: str,
        faq_id: Optional[str] = None,
        processing_time_ms: Optional[int] = None,
    ) -> None:
        ...


def _row(
    tenant_id: str,
    contact_id: str,
    channel: str,
    speech_input: str,
    ai_response: str,
    faq_id: Optional[str],
    processing_time_ms: Optional[int],
) -> dict[str, Any]:
    return {
        "organization_id": tenant_id,
        "customer_phone": contact_id,
        "channel": channel,
        "speech_input": speech_input,
        "ai_response": ai_response,
        "faq_matched": faq_id is not None,
        "faq_id": faq_id,
        "processing_time_ms": processing_time_ms,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


class RestInteractionLog:
    """``interactions`` table over PostgREST."""

    def __init__(self, client: RestClient) -> None:
        self._client = client

    async def recent(self, tenant_id: str, contact_id: str, limit: int) -> list[dict[str, str]]:
        rows = await self._client.select(
            INTERACTIONS_TABLE,
            {
                "organization_id": f"eq.{tenant_id}",
                "customer_phone": f"eq.{contact_id}",
                "order": "created_at.desc",
                "limit": str(limit),
                "select": "speech_input,ai_response",
            },
        )
        return [
            {"speech_input": r.get("speech_input") or "", "ai_response": r.get("ai_response") or ""}
            for r in reversed(rows)
        ]

    async def record(
        self,
        tenant_id: str,
        contact_id: str,
        channel: str,
        speech_input: str,
        ai_response: str,
        faq_id: Optional[str] = None,
        processing_time_ms: Optional[int] = None,
    ) -> None:
        await self._client.insert(
            INTERACTIONS_TABLE,
            _row(tenant_id, contact_id, channel, speech_input, ai_response, faq_id, processing_time_ms),
        )


class InMemoryInteractionLog:
    def __init__(self) -> None:
        self.rows: list[dict[str, Any]] = []

    async def recent(self, tenant_id: str, contact_id: str, limit: int) -> list[dict[str, str]]:
        if limit < 1:
            return []
        mine = [
            r for r in self.rows
            if r["organization_id"] == tenant_id and r["customer_phone"] == contact_id
        ]
        return [
            {"speech_input": r["speech_input"], "ai_response": r["ai_response"]}
            for r in mine[-limit:]
        ]

    async def record(
        self,
        tenant_id: str,
        contact_id: str,
        channel: str,
        speech_input: str,
        ai_response: str,
        faq_id: Optional[str] = None,
        processing_time_ms: Optional[int] = None,
    ) -> None:
        self.rows.append(
            _row(tenant_id, contact_id, channel, speech_input, ai_response, faq_id, processing_time_ms)
        )
