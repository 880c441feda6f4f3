"""Compiled indicator matchers.

Each indicator category (dependencies, file names, content, commands) is
evaluated on its own and yields a `CategoryScore`; callers combine the
category scores with their own weights and bonuses.
"""

import re
from dataclasses import dataclass
from typing import Iterable

from .rules import Indicator


@dataclass(frozen=True)
class CategoryScore:
    """Match result for one indicator category."""
    matched: tuple[str, ...]
    total: int
    strong_matches: int = 0

    @property
    def ratio(self) -> float:
        if not self.total:
            return 0.0
        return len(self.matched) / self.total

    def score(self, strong_bonus: float = 0.0) -> float:
        """Match ratio plus `strong_bonus` per strong match, capped at 1.0."""
        return min(self.ratio + self.strong_matches * strong_bonus, 1.0)


EMPTY_SCORE = CategoryScore(matched=(), total=0)


class PatternMatcher:
    """Regex indicators matched against text or file names."""

    def __init__(self, indicators: list[Indicator]):
        self._patterns = [
            (indicator, re.compile(indicator.value, re.IGNORECASE))
            for indicator in indicators
        ]

    def __len__(self) -> int:
        return len(self._patterns)

    def match_text(self, text: str) -> CategoryScore:
        """Score indicators found anywhere in `text`."""
        return self._collect(
            indicator for indicator, pattern in self._patterns if pattern.search(text)
        )

    def match_names(self, names: list[str]) -> CategoryScore:
        """Score indicators matching at least one of `names`."""
        normalized = [name.replace("\\", "/") for name in names]
        return self._collect(
            indicator
            for indicator, pattern in self._patterns
            if any(pattern.search(name) for name in normalized)
        )

    def _collect(self, hits: Iterable[Indicator]) -> CategoryScore:
        hits = list(hits)
        return CategoryScore(
            matched=tuple(h.value for h in hits),
            total=len(self._patterns),
            strong_matches=sum(1 for h in hits if h.strong),
        )


class KeywordMatcher:
    """Literal indicators such as dependency names or command fragments."""

    def __init__(self, indicators: list[Indicator]):
        self._indicators = [
            Indicator(value=i.value.lower(), strong=i.strong) for i in indicators
        ]

    def __len__(self) -> int:
        return len(self._indicators)

    def match_set(self, values: set[str]) -> CategoryScore:
        """Score indicators present as exact members of `values`."""
        return self._collect(i for i in self._indicators if i.value in values)

    def match_substrings(self, text: str) -> CategoryScore:
        """Score indicators appearing as substrings of `text`."""
        return self._collect(i for i in self._indicators if i.value in text)

    def _collect(self, hits: Iterable[Indicator]) -> CategoryScore:
        hits = list(hits)
        return CategoryScore(
            matched=tuple(h.value for h in hits),
            total=len(self._indicators),
            strong_matches=sum(1 for h in hits if h.strong),
        )
