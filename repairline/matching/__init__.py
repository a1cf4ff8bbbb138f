from repairline.matching.audio_matcher import (
    COMMON_TEMPLATE_KEYS,
    TEMPLATE_KEYWORDS,
    is_dialogue_prompt,
    match_audio_template,
)
from repairline.matching.faq_matcher import find_best_faq
from repairline.matching.scorer import MatchCandidate, ScoredMatch, ScoringProfile, best_match

__all__ = [
    "MatchCandidate",
    "ScoringProfile",
    "ScoredMatch",
    "best_match",
    "find_best_faq",
    "match_audio_template",
    "is_dialogue_prompt",
    "TEMPLATE_KEYWORDS",
    "COMMON_TEMPLATE_KEYS",
]
