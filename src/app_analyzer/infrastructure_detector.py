"""Infrastructure Detector - stage 4 of the analysis pipeline.

Scores each infrastructure capability independently from content
indicators, marks capabilities as required above a confidence threshold
and derives an aggregate complexity rating.
"""

import logging
from typing import Optional

from .config import InfrastructureScoringConfig, get_config
from .matchers import PatternMatcher
from .rules import RuleCatalog
from .schema import (
    Capability,
    CapabilityRequirement,
    ContentCorpus,
    DatabaseSubtype,
    InfrastructureResult,
)

logger = logging.getLogger(__name__)


class InfrastructureDetector:
    """Detects database, auth, storage, realtime, cache and queue needs."""

    def __init__(self, rules: RuleCatalog, config: Optional[InfrastructureScoringConfig] = None):
        self.rules = rules
        self.config = config or get_config().infrastructure
        self._matchers: dict[Capability, PatternMatcher] = {}
        self._subtype_matchers: dict[Capability, dict[DatabaseSubtype, PatternMatcher]] = {}
        for capability, rule in rules.capabilities.items():
            if rule.subtypes:
                self._subtype_matchers[capability] = {
                    subtype: PatternMatcher(indicators)
                    for subtype, indicators in rule.subtypes.items()
                }
            else:
                self._matchers[capability] = PatternMatcher(rule.indicators)

    def analyze(self, corpus: ContentCorpus) -> InfrastructureResult:
        """Detect every capability and the resulting complexity."""
        capabilities = {
            capability: self.detect_capability(capability, corpus.text)
            for capability in Capability
        }

        reported = [
            req.confidence for req in capabilities.values()
            if req.confidence > self.config.report_threshold
        ]
        confidence = sum(reported) / len(reported) if reported else 0.0

        return InfrastructureResult(
            capabilities=capabilities,
            complexity=self.calculate_complexity(capabilities),
            confidence=min(confidence, 1.0),
        )

    def detect_capability(self, capability: Capability, text: str) -> CapabilityRequirement:
        """Score one capability against the corpus text."""
        cfg = self.config
        subtype = None

        if capability in self._subtype_matchers:
            confidence, evidence = 0.0, ()
            # Race between subtype indicator sets; ties go to the later set (nosql)
            for candidate, matcher in self._subtype_matchers[capability].items():
                result = matcher.match_text(text)
                score = self._floor(result.score(cfg.strong_bonus))
                if score and score >= confidence:
                    confidence, evidence, subtype = score, result.matched, candidate
        else:
            result = self._matchers[capability].match_text(text)
            confidence, evidence = self._floor(result.score(cfg.strong_bonus)), result.matched

        if confidence <= cfg.report_threshold:
            return CapabilityRequirement()

        logger.debug("Capability %s: confidence=%.2f subtype=%s", capability.value, confidence, subtype)
        return CapabilityRequirement(
            required=confidence > cfg.required_threshold,
            confidence=confidence,
            subtype=subtype,
            evidence=list(evidence),
        )

    def calculate_complexity(self, capabilities: dict[Capability, CapabilityRequirement]) -> int:
        """1 plus the weight of every required capability, clamped to 1..5."""
        cfg = self.config
        complexity = cfg.base_complexity
        for capability, requirement in capabilities.items():
            if requirement.required:
                complexity += cfg.complexity_weights.get(capability.value, 0)
        return max(1, min(complexity, cfg.max_complexity))

    def _floor(self, score: float) -> float:
        return 0.0 if score < self.config.noise_floor else score
