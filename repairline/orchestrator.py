"""
Per-turn orchestration: one inbound utterance in, one reply out.

Order of work for a turn:
1. Load tenant config, FAQs, common audio clips (voice only), recent
   exchanges and the conversation state concurrently. Catalog and history
   failures degrade to empty defaults; state failures degrade to a
   transient conversation.
2. Extract slots from the utterance on top of the stored slots and, if
   anything changed, write them back in the background.
3. Reply with the best FAQ answer, else the scripted flow reply, else the
   fallback responder. A failed fallback becomes a canned apology.
4. For voice, attach a pre-rendered clip when the reply matches one.
5. Log the exchange in the background for the next turn's history.

Usage:
    orchestrator = TurnOrchestrator(state_manager, faqs, audio, tenants, responder)
    result = await orchestrator.handle_turn(
        InboundTurn(utterance="My washer is leaking", tenant_id="org-1", contact_id="+15551234567")
    )
    await orchestrator.drain()
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Mapping, Optional, TypeVar

from repairline.config import settings
from repairline.conversation.flow_engine import FlowEngine
from repairline.conversation.slot_extractor import extract
from repairline.conversation.state_manager import ConversationStateManager
from repairline.logging_context import get_turn_logger, start_turn
from repairline.matching.audio_matcher import COMMON_TEMPLATE_KEYS, match_audio_template
from repairline.matching.faq_matcher import find_best_faq
from repairline.prompts.error_responses import error_response
from repairline.prompts.system_prompts import (
    GREETING_CONFIRMED_TEXT,
    GREETING_HURRY_SMS_TEXT,
    build_greeting,
    build_system_prompt,
)
from repairline.responders import FallbackResponder
from repairline.schemas.catalog_schema import FAQRecord, TenantConfig
from repairline.schemas.conversation_schema import (
    Channel,
    InboundTurn,
    ResponseSource,
    TurnResult,
)
from repairline.store.catalogs import AudioCatalog, FAQCatalog, TenantDirectory
from repairline.store.interactions import InteractionLog
from repairline.utils import preview, truncate

logger = get_turn_logger(__name__)

T = TypeVar("T")

POSITIVE_WORDS = ("okay", "yes", "sure", "fine", "alright", "ok", "good", "sounds good")
NEGATIVE_WORDS = ("no", "hurry", "rush", "fast", "quick", "busy", "time")


def _slot_values(slots: Mapping[str, Any]) -> dict[str, Any]:
    """Slots minus the derived completion figure."""
    return {k: v for k, v in slots.items() if k != "completion_percentage"}


def _personalize(answer: str, tenant: TenantConfig) -> str:
    """Put the tenant's business name in place of a generic "our service"."""
    name = tenant.business_name
    if not name or name in answer:
        return answer
    return answer.replace("our service", name, 1)


@dataclass(frozen=True)
class SpokenPrompt:
    """A fixed line to play or send, with its cached clip if one exists."""

    text: str
    template_key: str
    audio_url: Optional[str] = None
    continue_conversation: bool = True


class TurnOrchestrator:
    """Wires extraction, matching, flow and persistence into one turn."""

    def __init__(
        self,
        state_manager: ConversationStateManager,
        faq_catalog: FAQCatalog,
        audio_catalog: AudioCatalog,
        tenants: TenantDirectory,
        responder: FallbackResponder,
        flow_engine: Optional[FlowEngine] = None,
        interactions: Optional[InteractionLog] = None,
    ) -> None:
        self.state_manager = state_manager
        self.faq_catalog = faq_catalog
        self.audio_catalog = audio_catalog
        self.tenants = tenants
        self.responder = responder
        self.flow_engine = flow_engine or FlowEngine()
        self.interactions = interactions
        self._background: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------ #
    # Turn handling
    # ------------------------------------------------------------------ #

    async def handle_turn(self, turn: InboundTurn) -> TurnResult:
        if not turn.utterance or not turn.utterance.strip():
            raise ValueError("utterance is required")

        started = time.perf_counter()
        start_turn(turn.contact_id)
        channel = turn.channel
        logger.info(
            "Turn started: tenant=%s channel=%s utterance=%r",
            turn.tenant_id, channel.value, preview(turn.utterance),
        )

        tenant, faqs, audio, history, lookup = await asyncio.gather(
            self._load("tenant config", self.tenants.get_config(turn.tenant_id),
                       TenantConfig(organization_id=turn.tenant_id)),
            self._load("faq catalog", self.faq_catalog.list_faqs(turn.tenant_id), []),
            self._load_audio(turn.tenant_id, channel),
            self._load_history(turn),
            self.state_manager.get(turn.tenant_id, turn.contact_id),
        )
        state = lookup.state
        logger.debug("Context loaded in %.3fs", time.perf_counter() - started)

        slots = extract(turn.utterance, state.slots)
        decision = self.flow_engine.decide(slots, channel)
        if _slot_values(slots) != _slot_values(state.slots) and lookup.persisted:
            self._spawn(
                self.state_manager.update(state.id, slots, decision.step), "state update"
            )

        source = ResponseSource.FLOW
        audio_url: Optional[str] = None
        faq_id: Optional[str] = None

        match = find_best_faq(faqs, turn.utterance, channel)
        if match is not None:
            faq: FAQRecord = match.payload
            reply = self._limit(_personalize(faq.answer, tenant), channel)
            source = ResponseSource.FAQ
            faq_id = faq.id
            audio_url = faq.audio_url
            self._spawn(self.faq_catalog.increment_usage(faq.id), f"usage increment for FAQ {faq.id}")
        elif decision.scripted:
            reply = decision.text
        else:
            reply, source = await self._fallback(turn, slots, tenant, history)

        if channel == Channel.VOICE and not audio_url:
            clip = match_audio_template(reply, audio)
            if clip is not None:
                audio_url = clip[1]

        elapsed = time.perf_counter() - started
        log = logger.warning if elapsed > settings.response.slow_turn_threshold_sec else logger.info
        log(
            "Turn finished in %.2fs: source=%s branch=%s completion=%d%% clip=%s",
            elapsed, source.value, decision.branch.value,
            slots["completion_percentage"], bool(audio_url),
        )
        if self.interactions is not None:
            self._spawn(
                self.interactions.record(
                    turn.tenant_id, turn.contact_id, channel.value, turn.utterance, reply,
                    faq_id=faq_id, processing_time_ms=int(elapsed * 1000),
                ),
                "interaction log",
            )

        return TurnResult(
            reply_text=reply,
            updated_slots=dict(slots),
            completion_percentage=slots["completion_percentage"],
            source=source,
            audio_url=audio_url,
            faq_id=faq_id,
            persisted=lookup.persisted,
        )

    async def _fallback(
        self,
        turn: InboundTurn,
        slots: dict[str, Any],
        tenant: TenantConfig,
        history: list[dict[str, str]],
    ) -> tuple[str, ResponseSource]:
        prompt = build_system_prompt(slots, turn.channel, tenant.business_name)
        try:
            reply = await self.responder.respond(turn.utterance, prompt, history)
        except Exception as e:
            logger.error("Fallback responder failed: %s", e)
            return error_response(e, turn.channel), ResponseSource.ERROR
        return self._limit(reply, turn.channel), ResponseSource.FALLBACK

    @staticmethod
    def _limit(text: str, channel: Channel) -> str:
        limits = settings.response
        return truncate(text, limits.voice_max_chars if channel == Channel.VOICE else limits.text_max_chars)

    async def _load_audio(self, tenant_id: str, channel: Channel) -> dict[str, str]:
        if channel != Channel.VOICE:
            return {}
        return await self._load(
            "audio catalog", self.audio_catalog.get_batch(tenant_id, COMMON_TEMPLATE_KEYS), {}
        )

    async def _load_history(self, turn: InboundTurn) -> list[dict[str, str]]:
        if self.interactions is None:
            return []
        return await self._load(
            "recent history",
            self.interactions.recent(turn.tenant_id, turn.contact_id, settings.model.history_turns),
            [],
        )

    @staticmethod
    async def _load(what: str, pending: Awaitable[T], default: T) -> T:
        try:
            return await pending
        except Exception as e:
            logger.warning("Could not load %s, continuing without it: %s", what, e)
            return default

    # ------------------------------------------------------------------ #
    # Greeting and disclaimer
    # ------------------------------------------------------------------ #

    async def greet(self, tenant_id: str) -> SpokenPrompt:
        """Opening line with the recorded-line disclaimer."""
        tenant = await self._load(
            "tenant config", self.tenants.get_config(tenant_id), TenantConfig(organization_id=tenant_id)
        )
        audio_url = await self._clip(tenant_id, "greeting")
        return SpokenPrompt(build_greeting(tenant.business_name), "greeting", audio_url)

    async def confirm_disclaimer(self, tenant_id: str, utterance: str) -> Optional[SpokenPrompt]:
        """Canned reply to the disclaimer question, or None when no clip covers it."""
        lowered = (utterance or "").lower()
        if any(word in lowered for word in POSITIVE_WORDS):
            key, text, proceed = "greeting_confirmed", GREETING_CONFIRMED_TEXT, True
        elif any(word in lowered for word in NEGATIVE_WORDS):
            key, text, proceed = "greeting_hurry_sms", GREETING_HURRY_SMS_TEXT, False
        else:
            return None

        audio_url = await self._clip(tenant_id, key)
        if audio_url is None:
            return None
        return SpokenPrompt(text, key, audio_url, continue_conversation=proceed)

    async def _clip(self, tenant_id: str, key: str) -> Optional[str]:
        return await self._load(f"{key} clip", self.audio_catalog.get_asset(tenant_id, key), None)

    # ------------------------------------------------------------------ #
    # Background work
    # ------------------------------------------------------------------ #

    def _spawn(self, work: Awaitable[Any], what: str) -> None:
        task = asyncio.create_task(self._guarded(work, what))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    @staticmethod
    async def _guarded(work: Awaitable[Any], what: str) -> None:
        try:
            await work
        except Exception as e:
            logger.error("Background %s failed: %s", what, e)

    async def drain(self) -> None:
        """Wait for outstanding background writes."""
        while self._background:
            await asyncio.gather(*list(self._background))
