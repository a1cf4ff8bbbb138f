"""Shared test fixtures and helpers."""

from typing import Optional

import pytest

from repairline.conversation.flow_engine import FlowEngine
from repairline.conversation.state_manager import ConversationStateManager
from repairline.orchestrator import TurnOrchestrator
from repairline.responders import ScriptedResponder
from repairline.schemas.catalog_schema import FAQRecord, TenantConfig
from repairline.schemas.conversation_schema import Channel, InboundTurn
from repairline.store.catalogs import (
    InMemoryAudioCatalog,
    InMemoryFAQCatalog,
    InMemoryTenantDirectory,
)
from repairline.store.conversation_store import InMemoryConversationStore
from repairline.store.interactions import InMemoryInteractionLog

TENANT = "org-1"
CONTACT = "+15551234567"


def make_slots(**overrides) -> dict:
    """A fully populated slot set; pass ``field=None`` to leave a field out."""
    slots = {
        "appliance_type": "washer",
        "issue_description": "leaking",
        "appliance_make": "Samsung",
        "customer_name": "John Smith",
        "street_address": "123 Main Street",
        "city": "Springfield",
        "zip_code": "62701",
        "callback_number": "+15551234567",
        "preferred_time": "morning",
    }
    slots.update(overrides)
    return {k: v for k, v in slots.items() if v is not None}


def make_faq(
    faq_id: str = "faq-1",
    question: str = "What are your business hours?",
    answer: str = "We're open Monday through Friday, 8 AM to 6 PM.",
    keywords: str = "hours, open",
    usage_count: int = 0,
    audio_url: Optional[str] = None,
) -> FAQRecord:
    return FAQRecord(
        id=faq_id,
        question=question,
        answer=answer,
        keywords=keywords,
        usage_count=usage_count,
        audio_url=audio_url,
    )


def make_turn(utterance: str, channel: Channel = Channel.VOICE, contact_id: str = CONTACT) -> InboundTurn:
    return InboundTurn(utterance=utterance, tenant_id=TENANT, contact_id=contact_id, channel=channel)


class FailingStore:
    """Conversation store whose every call fails."""

    def __init__(self) -> None:
        self.update_calls = 0

    async def find_active(self, tenant_id, contact_id):
        raise ConnectionError("database unreachable")

    async def fetch(self, record_id):
        raise ConnectionError("database unreachable")

    async def insert(self, state):
        raise ConnectionError("database unreachable")

    async def update(self, record_id, fields):
        self.update_calls += 1
        raise ConnectionError("database unreachable")

    async def delete_expired(self, cutoff):
        raise ConnectionError("database unreachable")


@pytest.fixture
def flow_engine():
    return FlowEngine(diagnostic_fee=89, repair_range=(150, 300))


@pytest.fixture
def conversation_store():
    return InMemoryConversationStore()


@pytest.fixture
def state_manager(conversation_store):
    return ConversationStateManager(conversation_store, ttl_hours=24)


@pytest.fixture
def faq_catalog():
    return InMemoryFAQCatalog({TENANT: [make_faq()]})


@pytest.fixture
def audio_catalog():
    return InMemoryAudioCatalog(
        {
            TENANT: {
                "greeting": "https://cdn.test/greeting.mp3",
                "greeting_confirmed": "https://cdn.test/greeting_confirmed.mp3",
                "greeting_hurry_sms": "https://cdn.test/greeting_hurry_sms.mp3",
                "understand": "https://cdn.test/understand.mp3",
                "diagnostic_fee": "https://cdn.test/diagnostic_fee.mp3",
            }
        }
    )


@pytest.fixture
def tenants():
    return InMemoryTenantDirectory(
        {TENANT: TenantConfig(organization_id=TENANT, business_name="Test Appliance Co")}
    )


@pytest.fixture
def interaction_log():
    return InMemoryInteractionLog()


@pytest.fixture
def responder():
    return ScriptedResponder("Sure, let me help with that.")


@pytest.fixture
def orchestrator(
    state_manager, faq_catalog, audio_catalog, tenants, responder, flow_engine, interaction_log
):
    return TurnOrchestrator(
        state_manager=state_manager,
        faq_catalog=faq_catalog,
        audio_catalog=audio_catalog,
        tenants=tenants,
        responder=responder,
        flow_engine=flow_engine,
        interactions=interaction_log,
    )
