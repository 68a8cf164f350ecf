"""Heuristic relevance of a recipe to a spoken request, as a percentage."""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

BASE_SCORE = 85
KEYWORD_BONUS = 10
TIME_CLOSE_BONUS = 10
TIME_NEAR_BONUS = 5
MIN_SCORE = 75
MAX_SCORE = 99
DEFAULT_COOKING_TIME = 30

TIME_PATTERN = re.compile(r"(\d+)\s*(min|minutes|mins)")


@dataclass(frozen=True)
class KeywordRule:
    triggers: tuple[str, ...]
    marker: str


KEYWORD_RULES = {
    "quick": KeywordRule(("quick", "fast", "minutes", "min", "15", "10", "5"), "quick"),
    "sweet": KeywordRule(("sweet", "dessert", "sugar", "chocolate", "cake"), "sweet"),
    "spicy": KeywordRule(("spicy", "hot", "chili", "pepper", "heat"), "spicy"),
    "healthy": KeywordRule(("healthy", "nutritious", "fresh", "light"), "healthy"),
    "comfort": KeywordRule(("comfort", "warm", "cozy", "hearty"), "comfort"),
    "tired": KeywordRule(("tired", "energizing", "quick", "protein", "coffee"), "energizing"),
}


class MatchScorer:
    def score(
        self,
        request: str,
        *,
        name: str,
        description: Optional[str],
        tags: Iterable[str],
        cooking_time: Optional[int],
    ) -> int:
        text = (request or "").lower()
        haystack = f"{name} {description or ''}".lower()
        tag_set = {t.lower() for t in tags or []}

        score = BASE_SCORE
        for rule in KEYWORD_RULES.values():
            if not any(trigger in text for trigger in rule.triggers):
                continue
            if rule.marker in haystack or rule.marker in tag_set:
                score += KEYWORD_BONUS

        match = TIME_PATTERN.search(text)
        if match:
            requested = int(match.group(1))
            actual = cooking_time or DEFAULT_COOKING_TIME
            gap = abs(actual - requested)
            if gap <= 5:
                score += TIME_CLOSE_BONUS
            elif gap <= 10:
                score += TIME_NEAR_BONUS

        return max(MIN_SCORE, min(MAX_SCORE, score))


match_scorer = MatchScorer()
