"""
Keyword scoring shared by FAQ and audio-template matching.

A candidate earns points for each of its keywords found in the query,
plus optional extras: significant words of its own text found in the
query, a capped usage bonus, and a bonus when a keyword is the entire
query. A fixed penalty can be subtracted. The weights live in a
ScoringProfile so each matcher only declares its numbers.

A candidate with no keyword hits is never returned, whatever its other
points add up to. Ties keep input order.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Generic, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ScoringProfile:
    name: str
    min_score: float
    keyword_weight: float = 0.0
    # When set, whole-word hits and substring-only hits score differently
    whole_word_weight: Optional[float] = None
    partial_weight: Optional[float] = None
    # Score each hit by the keyword's length instead of a flat weight
    keyword_length_weight: bool = False
    question_word_weight: float = 0.0
    question_word_min_length: int = 4
    usage_divisor: Optional[float] = None
    usage_cap: float = 0.0
    exact_phrase_bonus: float = 0.0


@dataclass(frozen=True)
class MatchCandidate(Generic[T]):
    payload: T
    keywords: Sequence[str]
    text: str = ""
    usage_count: int = 0
    penalty: float = 0.0


@dataclass(frozen=True)
class ScoredMatch(Generic[T]):
    candidate: MatchCandidate[T]
    score: float
    matched_keywords: list[str] = field(default_factory=list)

    @property
    def payload(self) -> T:
        return self.candidate.payload


def _keyword_points(keyword: str, query: str, profile: ScoringProfile) -> float:
    if profile.keyword_length_weight:
        return float(len(keyword))
    if profile.whole_word_weight is not None:
        if re.search(rf"\b{re.escape(keyword)}\b", query):
            return profile.whole_word_weight
        return profile.partial_weight or 0.0
    return profile.keyword_weight


def score_candidate(
    candidate: MatchCandidate[T], query: str, profile: ScoringProfile
) -> ScoredMatch[T]:
    """Score one candidate against an already lower-cased, stripped query."""
    score = 0.0
    matched: list[str] = []

    for keyword in candidate.keywords:
        keyword = keyword.lower()
        if keyword and keyword in query:
            matched.append(keyword)
            score += _keyword_points(keyword, query, profile)

    if profile.exact_phrase_bonus and any(k.lower() == query for k in candidate.keywords):
        score += profile.exact_phrase_bonus

    if profile.question_word_weight and candidate.text:
        for word in candidate.text.lower().split():
            if len(word) >= profile.question_word_min_length and word in query:
                score += profile.question_word_weight

    if profile.usage_divisor:
        score += min(candidate.usage_count / profile.usage_divisor, profile.usage_cap)

    score -= candidate.penalty
    return ScoredMatch(candidate, score, matched)


def rank(
    candidates: Sequence[MatchCandidate[T]], query: str, profile: ScoringProfile
) -> list[ScoredMatch[T]]:
    """All eligible candidates, best first."""
    query = (query or "").lower().strip()
    if not query:
        return []
    scored = [score_candidate(c, query, profile) for c in candidates]
    eligible = [s for s in scored if s.matched_keywords]
    return sorted(eligible, key=lambda s: s.score, reverse=True)


def best_match(
    candidates: Sequence[MatchCandidate[T]], query: str, profile: ScoringProfile
) -> Optional[ScoredMatch[T]]:
    ranked = rank(candidates, query, profile)
    if not ranked or ranked[0].score < profile.min_score:
        return None
    top = ranked[0]
    logger.debug(
        "%s match: score=%.1f keywords=%s", profile.name, top.score, top.matched_keywords
    )
    return top
