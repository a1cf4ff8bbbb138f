"""
Conversation record lifecycle on top of a ConversationStore.

``get`` always yields a usable state. The outcome is one of three
variants so callers can tell a persisted record from a stateless
stand-in:

    Found     an active record already existed
    Created   none existed, a fresh one was inserted
    Degraded  the store failed; the state is transient and never written

Usage:
    manager = ConversationStateManager(store)
    lookup = await manager.get("org-1", "+15551234567")
    if lookup.persisted:
        await manager.update(lookup.state.id, new_slots, ConversationStep.COLLECTING)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional, Union

from repairline.config import settings
from repairline.conversation.completion import completion_percentage
from repairline.schemas.conversation_schema import ConversationState, ConversationStep
from repairline.store.conversation_store import ConversationStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Found:
    state: ConversationState
    persisted = True


@dataclass(frozen=True)
class Created:
    state: ConversationState
    persisted = True


@dataclass(frozen=True)
class Degraded:
    state: ConversationState
    reason: str = ""
    persisted = False


StateLookup = Union[Found, Created, Degraded]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ConversationStateManager:
    """Fetches, creates, updates and reaps conversation records."""

    def __init__(self, store: ConversationStore, ttl_hours: Optional[int] = None) -> None:
        self.store = store
        self.ttl = timedelta(hours=ttl_hours or settings.store.conversation_ttl_hours)

    def new_state(self, tenant_id: str, contact_id: str) -> ConversationState:
        now = _now()
        return ConversationState(
            tenant_id=tenant_id,
            contact_id=contact_id,
            slots={},
            current_step=ConversationStep.GREETING,
            is_active=True,
            expires_at=now + self.ttl,
            created_at=now,
            updated_at=now,
        )

    async def get(self, tenant_id: str, contact_id: str) -> StateLookup:
        try:
            existing = await self.store.find_active(tenant_id, contact_id)
            if existing is not None:
                return Found(existing)
            created = await self.store.insert(self.new_state(tenant_id, contact_id))
        except Exception as e:
            logger.error(
                "Conversation store unavailable for %s/%s, continuing stateless: %s",
                tenant_id, contact_id, e,
            )
            return Degraded(self.new_state(tenant_id, contact_id), reason=str(e))

        logger.info("Created conversation %s for %s/%s", created.id, tenant_id, contact_id)
        return Created(created)

    async def update(
        self,
        record_id: Optional[str],
        slots: Mapping[str, object],
        step: Optional[ConversationStep] = None,
    ) -> bool:
        """Merge ``slots`` into the stored slot set (and set the step).

        Returns False if nothing was written. Fields already stored and
        absent from ``slots`` are kept; the completion figure is
        recomputed from the merged set. A None ``record_id`` marks a
        transient state and is a no-op. Store failures are logged, not
        raised: a lost write costs one turn of context, not the call.
        """
        if record_id is None:
            return False

        try:
            current = await self.store.fetch(record_id)
            if current is None:
                logger.warning("Conversation %s no longer exists, update dropped", record_id)
                return False

            merged = {**current.slots, **slots}
            merged.pop("completion_percentage", None)
            merged["completion_percentage"] = completion_percentage(merged)

            fields: dict[str, object] = {
                "conversation_data": merged,
                "updated_at": _now().isoformat(),
            }
            if step is not None:
                fields["current_step"] = step.value
            await self.store.update(record_id, fields)
        except Exception as e:
            logger.error("Failed to update conversation %s: %s", record_id, e)
            return False
        return True

    async def reap(self, cutoff: Optional[datetime] = None) -> int:
        """Delete records that expired before ``cutoff`` (default: now)."""
        cutoff = cutoff or _now()
        removed = await self.store.delete_expired(cutoff)
        logger.info("Reaped %d expired conversations before %s", removed, cutoff.isoformat())
        return removed
