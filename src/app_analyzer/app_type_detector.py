"""Application-Type Detector - stage 3 of the analysis pipeline.

Classifies the application shape (single-page, server-rendered, API,
full-stack, static) using the framework result as a cross-check plus
file and content indicators.
"""

import logging
from typing import Optional

from .config import AppTypeScoringConfig, get_config
from .matchers import PatternMatcher
from .rules import AppTypeRule, RuleCatalog
from .schema import ContentCorpus, DetectionMatch, DetectionResult

logger = logging.getLogger(__name__)


class AppTypeDetector:
    """Detects the application type from a corpus and framework result.

    The full-stack type needs structural evidence of separate client and
    server code areas. The check is a directory-name lookup and misses
    projects that use other layout conventions.
    """

    def __init__(self, rules: RuleCatalog, config: Optional[AppTypeScoringConfig] = None):
        self.rules = rules
        self.config = config or get_config().app_type
        self._matchers = {
            type_id: (PatternMatcher(rule.files), PatternMatcher(rule.content))
            for type_id, rule in rules.app_types.items()
        }

    def analyze(self, corpus: ContentCorpus, framework_result: DetectionResult) -> DetectionResult:
        """Score every application type and return the best match."""
        if not corpus.text.strip() and not corpus.file_names:
            return DetectionResult.unknown()

        dual_structure = self.has_dual_structure(corpus.file_names)

        matches = []
        for type_id, rule in self.rules.app_types.items():
            score = self.score_app_type(type_id, rule, corpus, framework_result, dual_structure)
            logger.debug("App type %s -> %.3f", type_id, score)
            matches.append(DetectionMatch(
                id=type_id,
                display_name=rule.name,
                score=score,
                confidence=score,
            ))

        return DetectionResult.from_matches(matches)

    def score_app_type(
        self,
        type_id: str,
        rule: AppTypeRule,
        corpus: ContentCorpus,
        framework_result: DetectionResult,
        dual_structure: bool,
    ) -> float:
        """Score one application type."""
        cfg = self.config
        file_matcher, content_matcher = self._matchers[type_id]
        score = 0.0

        if rule.frameworks and framework_result.primary.id in rule.frameworks:
            score += cfg.framework_weight
        if rule.no_framework and framework_result.is_unknown:
            score += cfg.no_framework_weight

        score += file_matcher.match_names(corpus.file_names).ratio * cfg.file_weight
        score += content_matcher.match_text(corpus.text).ratio * cfg.content_weight

        if rule.full_stack:
            if dual_structure:
                score += cfg.structure_bonus
            else:
                score *= cfg.structure_missing_factor
        elif dual_structure:
            score *= cfg.dual_structure_penalty

        if score > cfg.strong_threshold:
            score = min(score * cfg.strong_factor, 1.0)
        elif score < cfg.weak_threshold:
            score *= cfg.weak_factor

        return max(0.0, min(score, 1.0))

    def has_dual_structure(self, file_names: list[str]) -> bool:
        """True when file paths show both a client and a server code area."""
        directories = set()
        for name in file_names:
            parts = name.replace("\\", "/").lower().split("/")
            directories.update(parts[:-1])

        structure = self.rules.structure
        has_client = any(marker in directories for marker in structure.client_markers)
        has_server = any(marker in directories for marker in structure.server_markers)
        return has_client and has_server
