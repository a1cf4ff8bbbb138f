"""
Match outgoing reply text to a pre-rendered audio clip.

Replies that belong to the slot-collecting dialogue ("What's your
address?", "I just need ...") carry customer-specific details, so they
are never served from a generic clip unless they quote pricing.
"""

import logging
from typing import Mapping, Optional

from repairline.matching.scorer import MatchCandidate, ScoringProfile, best_match

logger = logging.getLogger(__name__)

AUDIO_PROFILE = ScoringProfile(
    name="audio",
    min_score=6,
    keyword_length_weight=True,
    exact_phrase_bonus=50,
)

TEMPLATE_KEYWORDS: dict[str, list[str]] = {
    "greeting": ["hi", "hello", "sarah", "help you today", "how can i help"],
    "understand": ["i understand", "let me help", "help you with that"],
    "what_appliance": ["what appliance", "which appliance", "appliance needs service"],
    "what_issue": ["what issue", "what's the issue", "experiencing", "what problem"],
    "check_availability": ["check availability", "check our availability", "let me check"],
    "diagnostic_fee": ["diagnostic fee", "89 dollars", "goes toward", "repair"],
    "address_question": ["what is your address", "address", "where are you located"],
    "time_preference": ["when would be convenient", "mornings or afternoons", "time preference"],
    "appointment_scheduled": ["perfect", "i have you scheduled", "scheduled", "appointment set"],
    "anything_else": ["anything else", "else i can help", "other questions"],
    "common_issue": ["common problem", "definitely help", "we can help"],
    "technician_intro": ["mike rodriguez", "technician", "diagnose and fix"],
    "repair_cost_range": ["repairs range from", "150 to 300", "cost range"],
    "business_hours": ["monday through friday", "8 am to 6 pm", "business hours"],
    "appointment_confirmed": ["appointment is confirmed", "confirmed"],
    "processing_moment": ["one moment", "looking that up", "please wait"],
    "greeting_confirmed": ["great", "how can i help", "help you today"],
    "greeting_hurry_sms": [
        "understand your concerns", "respect your time", "text message",
        "full name", "address", "appliance", "scheduled faster",
    ],
}

# Keys fetched up front for every voice turn
COMMON_TEMPLATE_KEYS: tuple[str, ...] = (
    "understand",
    "what_appliance",
    "what_issue",
    "check_availability",
    "diagnostic_fee",
    "common_issue",
    "technician_intro",
    "anything_else",
)

DIALOGUE_MARKERS: tuple[str, ...] = (
    "i can help with your",
    "i just need",
    "what city and zip",
    "best callback number",
    "morning or afternoon",
    "preferred time",
    "what's your full name",
    "what's your address",
    "what brand is your",
    "what's happening with",
    "what's wrong with",
    "what type of appliance",
    "perfect! i have",
)

PRICING_MARKERS: tuple[str, ...] = ("$89", "diagnostic fee")


def is_dialogue_prompt(text: str) -> bool:
    """True for slot-collecting replies that must be spoken fresh."""
    lowered = text.lower()
    if any(marker in lowered for marker in PRICING_MARKERS):
        return False
    return any(marker in lowered for marker in DIALOGUE_MARKERS)


def match_audio_template(text: str, catalog: Mapping[str, str]) -> Optional[tuple[str, str]]:
    """Return ``(template_key, url)`` of the best clip for ``text``, or None.

    Only templates present in ``catalog`` compete, in catalog order.
    """
    if not text or not catalog:
        return None
    if is_dialogue_prompt(text):
        logger.debug("Dialogue prompt, skipping clip match: %s", text[:50])
        return None

    candidates = [
        MatchCandidate(payload=(key, url), keywords=TEMPLATE_KEYWORDS.get(key, []))
        for key, url in catalog.items()
    ]
    match = best_match(candidates, text, AUDIO_PROFILE)
    if match is None:
        return None
    logger.info("Reply matched clip %s (score %.0f)", match.payload[0], match.score)
    return match.payload
