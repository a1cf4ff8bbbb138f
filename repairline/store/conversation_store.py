"""
Conversation record storage.

``ConversationStore`` is the narrow interface the state manager needs.
Two implementations ship here: ``RestConversationStore`` on the
``conversation_states`` table, and ``InMemoryConversationStore`` for
tests and the console demo.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from repairline.schemas.conversation_schema import ConversationState
from repairline.store.rest_client import RestClient

logger = logging.getLogger(__name__)

CONVERSATIONS_TABLE = "conversation_states"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ConversationStore(Protocol):
    async def find_active(self, tenant_id: str, contact_id: str) -> Optional[ConversationState]:
        """Most recently updated active record for the pair, or None."""
        ...

    async def fetch(self, record_id: str) -> Optional[ConversationState]:
        """Record by id, or None."""
        ...

    async def insert(self, state: ConversationState) -> ConversationState:
        """Persist a new record and return it with its assigned id."""
        ...

    async def update(self, record_id: str, fields: dict[str, Any]) -> None:
        """Write the given columns onto an existing record."""
        ...

    async def delete_expired(self, cutoff: datetime) -> int:
        """Delete records whose expiry is before ``cutoff``; return how many."""
        ...


class RestConversationStore:
    """``conversation_states`` table over PostgREST."""

    def __init__(self, client: RestClient) -> None:
        self._client = client

    async def find_active(self, tenant_id: str, contact_id: str) -> Optional[ConversationState]:
        rows = await self._client.select(
            CONVERSATIONS_TABLE,
            {
                "organization_id": f"eq.{tenant_id}",
                "customer_phone": f"eq.{contact_id}",
                "is_active": "eq.true",
                "order": "updated_at.desc",
                "limit": "1",
            },
        )
        if not rows:
            return None
        return ConversationState.from_row(rows[0])

    async def fetch(self, record_id: str) -> Optional[ConversationState]:
        rows = await self._client.select(
            CONVERSATIONS_TABLE, {"id": f"eq.{record_id}", "limit": "1"}
        )
        if not rows:
            return None
        return ConversationState.from_row(rows[0])

    async def insert(self, state: ConversationState) -> ConversationState:
        rows = await self._client.insert(CONVERSATIONS_TABLE, state.to_row())
        if not rows:
            return state
        return ConversationState.from_row(rows[0])

    async def update(self, record_id: str, fields: dict[str, Any]) -> None:
        await self._client.update(CONVERSATIONS_TABLE, {"id": f"eq.{record_id}"}, fields)

    async def delete_expired(self, cutoff: datetime) -> int:
        rows = await self._client.delete(
            CONVERSATIONS_TABLE, {"expires_at": f"lt.{cutoff.isoformat()}"}
        )
        return len(rows)


class InMemoryConversationStore:
    """Dict-backed store keyed by record id."""

    def __init__(self) -> None:
        self.records: dict[str, ConversationState] = {}

    async def find_active(self, tenant_id: str, contact_id: str) -> Optional[ConversationState]:
        candidates = [
            s for s in self.records.values()
            if s.tenant_id == tenant_id and s.contact_id == contact_id and s.is_active
        ]
        if not candidates:
            return None
        latest = max(candidates, key=lambda s: s.updated_at or _EPOCH)
        return latest.model_copy(deep=True)

    async def fetch(self, record_id: str) -> Optional[ConversationState]:
        current = self.records.get(record_id)
        return None if current is None else current.model_copy(deep=True)

    async def insert(self, state: ConversationState) -> ConversationState:
        stored = state.model_copy(update={"id": uuid.uuid4().hex}, deep=True)
        self.records[stored.id] = stored  # type: ignore[index]
        return stored.model_copy(deep=True)

    async def update(self, record_id: str, fields: dict[str, Any]) -> None:
        current = self.records.get(record_id)
        if current is None:
            logger.warning("Update for unknown conversation %s ignored", record_id)
            return
        changes: dict[str, Any] = {}
        if "conversation_data" in fields:
            changes["slots"] = dict(fields["conversation_data"])
        if "current_step" in fields:
            changes["current_step"] = fields["current_step"]
        if "updated_at" in fields:
            changes["updated_at"] = fields["updated_at"]
        self.records[record_id] = ConversationState.model_validate(
            {**current.model_dump(), **changes}
        )

    async def delete_expired(self, cutoff: datetime) -> int:
        expired = [
            record_id for record_id, s in self.records.items()
            if s.expires_at is not None and s.expires_at < cutoff
        ]
        for record_id in expired:
            del self.records[record_id]
        return len(expired)
