"""
Deterministic next-response selection for the booking conversation.

Given the accumulated slots and the channel, picks one of five branches
(first match wins):

1. URGENT         preferred_time is "urgent" and completion < 50
2. SUMMARY        nothing missing: read back details with pricing
3. DETAILED       completion >= 60: ask for the last one or two items at once
4. VAGUE          completion < 30: ask about the issue for a known appliance
5. NEXT_QUESTION  ask for the highest-priority missing field

Voice wording is short; text wording is longer and offers choices.

Usage:
    engine = FlowEngine()
    decision = engine.decide(slots, Channel.VOICE)
    decision.branch, decision.text
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from repairline.config import settings
from repairline.conversation.completion import completion_percentage, missing_fields
from repairline.schemas.conversation_schema import Channel, ConversationStep
from repairline.schemas.slot_schema import LOCATION, URGENT_TIME

logger = logging.getLogger(__name__)

DETAILED_THRESHOLD = 60
VAGUE_THRESHOLD = 30
URGENT_THRESHOLD = 50
MAX_COMBINED_ASKS = 2


class FlowBranch(str, Enum):
    URGENT = "urgent"
    SUMMARY = "summary"
    DETAILED = "detailed"
    VAGUE = "vague"
    NEXT_QUESTION = "next_question"


_BRANCH_STEPS = {
    FlowBranch.URGENT: ConversationStep.URGENT,
    FlowBranch.SUMMARY: ConversationStep.CONFIRMING,
}


@dataclass(frozen=True)
class FlowDecision:
    """The branch taken and the text to send."""

    branch: FlowBranch
    text: str
    missing: list[str] = field(default_factory=list)
    scripted: bool = True

    @property
    def step(self) -> ConversationStep:
        return _BRANCH_STEPS.get(self.branch, ConversationStep.COLLECTING)


# (voice, text) wording per appliance
ISSUE_QUESTIONS: dict[str, tuple[str, str]] = {
    "washer": (
        "What's happening with your washer?",
        "What's happening with your washer - is it not starting, leaking water, "
        "not spinning, making loud noises, or something else?",
    ),
    "dryer": (
        "What's wrong with your dryer?",
        "What's the issue with your dryer - is it not heating, not starting, "
        "making noise, or not drying clothes properly?",
    ),
    "dishwasher": (
        "What's the dishwasher doing?",
        "What's wrong with your dishwasher - is it not cleaning dishes, "
        "not draining, leaking, or not starting?",
    ),
    "refrigerator": (
        "What's wrong with your fridge?",
        "What's the problem with your refrigerator - is it not cooling, "
        "making noise, leaking, or something else?",
    ),
    "oven": (
        "What's happening with your oven?",
        "What's happening with your oven - is it not heating, not starting, "
        "door issues, or temperature problems?",
    ),
    "microwave": (
        "What's wrong with your microwave?",
        "What's wrong with your microwave - is it not heating, not starting, "
        "making noise, or display issues?",
    ),
}
GENERIC_ISSUE_QUESTION = (
    "What's the specific issue?",
    "What's the specific issue with your appliance?",
)

FIELD_QUESTIONS: dict[str, tuple[str, str]] = {
    "appliance_type": (
        "What type of appliance needs repair?",
        "What type of appliance needs repair - washer, dryer, dishwasher, "
        "refrigerator, or something else?",
    ),
    "customer_name": (
        "What's your full name?",
        "Great! To schedule your repair, I'll need your full name.",
    ),
    "street_address": (
        "What's your address?",
        "What's your address where the repair is needed?",
    ),
    LOCATION: (
        "What city and zip code?",
        "What city and zip code is that address in?",
    ),
    "callback_number": (
        "Best callback number?",
        "What's the best callback number for you?",
    ),
    "preferred_time": (
        "Morning or afternoon better?",
        "When would be convenient for you - do you prefer mornings or afternoons?",
    ),
}
DEFAULT_QUESTION = (
    "How can I help you today?",
    "How can I help you with your appliance repair today?",
)

URGENT_RESPONSE = (
    "I understand this is urgent. Let me get you scheduled quickly. "
    "What's your name and address?",
    "I understand this is urgent. To get you scheduled quickly, please provide: "
    "your name, address, and best callback number.",
)

# How each missing field is named inside "I just need X and Y"
MISSING_LABELS: dict[str, str] = {
    "appliance_type": "the type of appliance",
    "issue_description": "what the issue is",
    "appliance_make": "the brand",
    "customer_name": "your name",
    "street_address": "your address",
    LOCATION: "city and zip code",
    "callback_number": "callback number",
    "preferred_time": "preferred time",
}

ISSUE_PHRASES: dict[str, str] = {
    "leaking": "leaking",
    "not_starting": "not starting",
    "noisy": "making noise",
    "not_heating": "not heating",
    "not_cooling": "not cooling",
    "not_spinning": "not spinning",
    "not_draining": "not draining",
    "not_cleaning": "not cleaning properly",
    "door_issue": "having door problems",
    "control_panel": "having control issues",
}


def _pick(pair: tuple[str, str], channel: Channel) -> str:
    voice, text = pair
    return voice if channel == Channel.VOICE else text


def _display_appliance(appliance_type: Optional[str]) -> str:
    if not appliance_type:
        return "appliance"
    return appliance_type.replace("_", " ")


def format_issue(issue: Optional[str]) -> str:
    """Turn an issue code into a phrase for the read-back."""
    if not issue:
        return "having issues"
    return ISSUE_PHRASES.get(issue, issue)


class FlowEngine:
    """Stateless response selector; all input arrives through the slot set."""

    def __init__(
        self,
        diagnostic_fee: Optional[int] = None,
        repair_range: Optional[tuple[int, int]] = None,
    ) -> None:
        biz = settings.business
        self.diagnostic_fee = biz.diagnostic_fee if diagnostic_fee is None else diagnostic_fee
        self.repair_range = repair_range or (biz.repair_range_low, biz.repair_range_high)

    def decide(self, slots: Mapping[str, object], channel: Channel) -> FlowDecision:
        completion = completion_percentage(slots)

        if slots.get("preferred_time") == URGENT_TIME and completion < URGENT_THRESHOLD:
            return FlowDecision(FlowBranch.URGENT, _pick(URGENT_RESPONSE, channel))

        missing = missing_fields(slots)

        if not missing:
            return FlowDecision(FlowBranch.SUMMARY, self.summary(slots, channel))

        if completion >= DETAILED_THRESHOLD:
            if len(missing) <= MAX_COMBINED_ASKS:
                return FlowDecision(
                    FlowBranch.DETAILED, self.combined_request(slots, missing, channel), missing
                )
            return self._next_question(FlowBranch.DETAILED, missing, slots, channel)

        if completion < VAGUE_THRESHOLD:
            if not slots.get("issue_description") and slots.get("appliance_type"):
                text = self.issue_question(str(slots["appliance_type"]), channel)
                return FlowDecision(FlowBranch.VAGUE, text, missing)
            return self._next_question(FlowBranch.VAGUE, missing, slots, channel)

        return self._next_question(FlowBranch.NEXT_QUESTION, missing, slots, channel)

    def next_response(self, slots: Mapping[str, object], channel: Channel) -> str:
        """Text of the decision only."""
        return self.decide(slots, channel).text

    # ------------------------------------------------------------------ #
    # Question wording
    # ------------------------------------------------------------------ #

    def _next_question(
        self,
        branch: FlowBranch,
        missing: list[str],
        slots: Mapping[str, object],
        channel: Channel,
    ) -> FlowDecision:
        text = self.question_for(missing[0], slots, channel)
        if text is None:
            return FlowDecision(branch, _pick(DEFAULT_QUESTION, channel), missing, scripted=False)
        return FlowDecision(branch, text, missing)

    def question_for(
        self, field_name: str, slots: Mapping[str, object], channel: Channel
    ) -> Optional[str]:
        """Question for one missing field, or None if the field is unknown."""
        appliance = slots.get("appliance_type")
        if field_name == "issue_description":
            return self.issue_question(str(appliance) if appliance else None, channel)
        if field_name == "appliance_make":
            return self.make_question(str(appliance) if appliance else None, channel)
        pair = FIELD_QUESTIONS.get(field_name)
        return _pick(pair, channel) if pair else None

    @staticmethod
    def issue_question(appliance_type: Optional[str], channel: Channel) -> str:
        pair = ISSUE_QUESTIONS.get(appliance_type or "", GENERIC_ISSUE_QUESTION)
        return _pick(pair, channel)

    @staticmethod
    def make_question(appliance_type: Optional[str], channel: Channel) -> str:
        appliance = _display_appliance(appliance_type)
        if channel == Channel.VOICE:
            return f"What brand is your {appliance}?"
        return f"What's the make of your {appliance} - is it Whirlpool, GE, Samsung, LG, or another brand?"

    def combined_request(
        self, slots: Mapping[str, object], missing: list[str], channel: Channel
    ) -> str:
        needs = " and ".join(MISSING_LABELS.get(name, name.replace("_", " ")) for name in missing)
        appliance = _display_appliance(slots.get("appliance_type"))  # type: ignore[arg-type]
        if channel == Channel.VOICE:
            return f"I can help with your {appliance}. I just need {needs}."
        return (
            f"I can help with your {appliance} repair. "
            f"To schedule a technician, I just need {needs}."
        )

    # ------------------------------------------------------------------ #
    # Read-back
    # ------------------------------------------------------------------ #

    def summary(self, slots: Mapping[str, object], channel: Channel) -> str:
        appliance = _display_appliance(slots.get("appliance_type"))  # type: ignore[arg-type]
        if slots.get("appliance_make"):
            appliance = f"{slots['appliance_make']} {appliance}"
        issue = format_issue(slots.get("issue_description"))  # type: ignore[arg-type]
        time = slots.get("preferred_time") or "your preferred time"
        address = f"{slots['street_address']}, {slots['city']} {slots['zip_code']}"
        low, high = self.repair_range
        fee = self.diagnostic_fee

        if channel == Channel.VOICE:
            return (
                f"Perfect! I have {slots['customer_name']} at {address} for a {appliance} "
                f"that's {issue}, {time}. Our diagnostic fee is ${fee} which goes toward "
                f"the repair. Most repairs are ${low} to ${high}. Sound good?"
            )

        return (
            "Perfect! Let me confirm:\n"
            f"- Customer: {slots['customer_name']}\n"
            f"- Address: {address}\n"
            f"- Appliance: {appliance} - {issue}\n"
            f"- Time: {time}\n"
            f"- Diagnostic fee: ${fee} (goes toward repair)\n"
            f"- Repair cost: Most repairs range ${low}-${high}\n"
            "\n"
            "Is this correct?"
        )


_default_engine: Optional[FlowEngine] = None


def next_response(slots: Mapping[str, object], channel: Channel) -> str:
    """Module-level shortcut using a shared default engine."""
    global _default_engine
    if _default_engine is None:
        _default_engine = FlowEngine()
    return _default_engine.next_response(slots, channel)
