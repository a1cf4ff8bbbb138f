"""FAQ lookup: pick a tenant's canned answer when the caller's words match its keywords."""

import logging
from typing import Optional, Sequence

from repairline.matching.scorer import MatchCandidate, ScoredMatch, ScoringProfile, best_match
from repairline.schemas.catalog_schema import FAQRecord
from repairline.schemas.conversation_schema import Channel

logger = logging.getLogger(__name__)

VOICE_FAQ_PROFILE = ScoringProfile(
    name="faq_voice",
    min_score=2,
    keyword_weight=3,
    question_word_weight=1,
    usage_divisor=10,
    usage_cap=2,
)

TEXT_FAQ_PROFILE = ScoringProfile(
    name="faq_text",
    min_score=3,
    whole_word_weight=4,
    partial_weight=2,
    question_word_weight=1,
    usage_divisor=5,
    usage_cap=3,
)

# Text-channel answer length limits
LONG_ANSWER_CHARS = 800
MAX_ANSWER_CHARS = 1500
LONG_ANSWER_PENALTY = 1.0


def _candidates(faqs: Sequence[FAQRecord], channel: Channel) -> list[MatchCandidate[FAQRecord]]:
    candidates = []
    for faq in faqs:
        penalty = 0.0
        if channel == Channel.TEXT:
            if len(faq.answer) > MAX_ANSWER_CHARS:
                continue
            if len(faq.answer) > LONG_ANSWER_CHARS:
                penalty = LONG_ANSWER_PENALTY
        candidates.append(
            MatchCandidate(
                payload=faq,
                keywords=faq.keyword_list(),
                text=faq.question,
                usage_count=faq.usage_count,
                penalty=penalty,
            )
        )
    return candidates


def find_best_faq(
    faqs: Sequence[FAQRecord], utterance: str, channel: Channel
) -> Optional[ScoredMatch[FAQRecord]]:
    if not faqs or not utterance:
        return None
    profile = VOICE_FAQ_PROFILE if channel == Channel.VOICE else TEXT_FAQ_PROFILE
    match = best_match(_candidates(faqs, channel), utterance, profile)
    if match:
        logger.info("FAQ %s matched with score %.1f", match.payload.id, match.score)
    return match
