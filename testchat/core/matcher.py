"""Step-to-method matching.

The default scorer is a token-overlap heuristic: every pair of (step word,
candidate word) where one contains the other adds a weight, and the total is
divided by the number of words in the step. Containment is deliberately
generous, so short steps score high and synonyms without a shared substring
never match.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol

from .catalog import MethodDescriptor

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 0.8
METHOD_NAME_WEIGHT = 0.6
DESCRIPTION_WEIGHT = 0.4
MATCH_THRESHOLD = 0.3

_CAMEL_BOUNDARY = re.compile(r"(?=[A-Z])")


def split_camel_case(name: str) -> List[str]:
    """``createCustomer`` -> ``["create", "customer"]``."""
    return [part.lower() for part in _CAMEL_BOUNDARY.split(name or "") if part]


def _overlaps(a: str, b: str) -> bool:
    return a in b or b in a


def _overlap_count(candidates: Iterable[str], step_words: List[str]) -> int:
    return sum(1 for candidate in candidates for word in step_words if _overlaps(candidate, word))


class ScoringStrategy(Protocol):
    def score(self, step: str, method: MethodDescriptor) -> float:
        ...


class SubstringOverlapScorer:
    def __init__(
        self,
        keyword_weight: float = KEYWORD_WEIGHT,
        method_name_weight: float = METHOD_NAME_WEIGHT,
        description_weight: float = DESCRIPTION_WEIGHT,
    ) -> None:
        self.keyword_weight = keyword_weight
        self.method_name_weight = method_name_weight
        self.description_weight = description_weight

    def score(self, step: str, method: MethodDescriptor) -> float:
        step_words = step.lower().split()
        if not step_words:
            return 0.0
        total = 0.0
        total += self.keyword_weight * _overlap_count(method.keywords, step_words)
        total += self.method_name_weight * _overlap_count(split_camel_case(method.method_name), step_words)
        total += self.description_weight * _overlap_count(method.description.lower().split(), step_words)
        return total / len(step_words)


@dataclass(frozen=True)
class MatchResult:
    method: Optional[MethodDescriptor]
    score: float

    @property
    def matched(self) -> bool:
        return self.method is not None


class MethodMatcher:
    """Pick the best-scoring descriptor for a step, or nothing."""

    def __init__(self, scorer: Optional[ScoringStrategy] = None, threshold: float = MATCH_THRESHOLD) -> None:
        self.scorer = scorer or SubstringOverlapScorer()
        self.threshold = threshold

    def best_match(self, step: str, catalog: Iterable[MethodDescriptor]) -> MatchResult:
        best: Optional[MethodDescriptor] = None
        best_score = 0.0
        for method in catalog:
            score = self.scorer.score(step, method)
            # Strict comparison keeps the earliest descriptor on ties.
            if score > best_score:
                best_score = score
                best = method
        if best is None or best_score <= self.threshold:
            logger.debug("[Matcher] No match for %r (best score %.3f)", step, best_score)
            return MatchResult(method=None, score=best_score)
        logger.debug("[Matcher] %r -> %s (score %.3f)", step, best.reference, best_score)
        return MatchResult(method=best, score=best_score)

    def find(self, step: str, catalog: Iterable[MethodDescriptor]) -> Optional[MethodDescriptor]:
        return self.best_match(step, catalog).method
