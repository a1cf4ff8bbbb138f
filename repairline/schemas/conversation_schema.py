"""Conversation records and the per-turn request/response models."""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class Channel(str, Enum):
    VOICE = "voice"
    TEXT = "text"

    @classmethod
    def parse(cls, value: "str | Channel") -> "Channel":
        """Accept the enum, its value, or the messaging alias ``sms``."""
        if isinstance(value, Channel):
            return value
        lowered = str(value).strip().lower()
        if lowered == "sms":
            return cls.TEXT
        return cls(lowered)


class ConversationStep(str, Enum):
    """Coarse progress label stored with each conversation."""

    GREETING = "greeting"
    COLLECTING = "collecting"
    URGENT = "urgent"
    CONFIRMING = "confirming"


class ResponseSource(str, Enum):
    """Where the reply text of a turn came from."""

    FAQ = "faq"
    FLOW = "flow"
    FALLBACK = "fallback"
    ERROR = "error"


def _parse_step(value: Any) -> ConversationStep:
    """Stored step label; labels this version does not know read as collecting."""
    if not value:
        return ConversationStep.GREETING
    try:
        return ConversationStep(value)
    except ValueError:
        logger.warning("Unknown conversation step %r, treating as collecting", value)
        return ConversationStep.COLLECTING


class ConversationState(BaseModel):
    """One conversation record per (tenant, contact) pair.

    ``id`` is None for a transient record that was never persisted.
    """

    id: Optional[str] = None
    tenant_id: str
    contact_id: str
    slots: dict[str, Any] = Field(default_factory=dict)
    current_step: ConversationStep = ConversationStep.GREETING
    is_active: bool = True
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return None if value is None else str(value)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ConversationState":
        """Build from a ``conversation_states`` store row."""
        return cls(
            id=row.get("id"),
            tenant_id=row.get("organization_id", ""),
            contact_id=row.get("customer_phone", ""),
            slots=row.get("conversation_data") or {},
            current_step=_parse_step(row.get("current_step")),
            is_active=row.get("is_active", True),
            expires_at=row.get("expires_at"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_row(self) -> dict[str, Any]:
        """Serialize to a ``conversation_states`` store row (without id)."""
        return {
            "organization_id": self.tenant_id,
            "customer_phone": self.contact_id,
            "conversation_data": dict(self.slots),
            "current_step": self.current_step.value,
            "is_active": self.is_active,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class InboundTurn(BaseModel):
    """A single inbound message or speech result."""

    utterance: str
    tenant_id: str
    contact_id: str
    channel: Channel = Channel.VOICE

    @field_validator("channel", mode="before")
    @classmethod
    def _parse_channel(cls, value: Any) -> Channel:
        return Channel.parse(value)


class TurnResult(BaseModel):
    """Reply produced for an inbound turn."""

    reply_text: str
    updated_slots: dict[str, Any] = Field(default_factory=dict)
    completion_percentage: int = 0
    source: ResponseSource = ResponseSource.FLOW
    audio_url: Optional[str] = None
    faq_id: Optional[str] = None
    persisted: bool = False
