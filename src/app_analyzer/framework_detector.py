"""Framework Detector - stage 2 of the analysis pipeline.

Scores every framework rule over four weighted indicator categories
(declared dependencies, file names, content, build/run commands) and
returns the best match with ranked alternatives.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import FrameworkScoringConfig, get_config
from .manifests import ManifestIndex, index_manifests
from .matchers import CategoryScore, KeywordMatcher, PatternMatcher
from .rules import FrameworkRule, RuleCatalog
from .schema import ContentCorpus, DetectionMatch, DetectionResult

logger = logging.getLogger(__name__)


@dataclass
class FrameworkScore:
    """Category breakdown for one framework."""
    framework_id: str
    name: str
    dependencies: float
    files: float
    content: float
    commands: float
    weighted: float
    score: float
    boosted: bool = False
    penalized: bool = False


class _CompiledFramework:
    def __init__(self, rule: FrameworkRule):
        self.rule = rule
        self.dependencies = KeywordMatcher(rule.dependencies)
        self.files = PatternMatcher(rule.files)
        self.content = PatternMatcher(rule.content)
        self.commands = KeywordMatcher(rule.commands)


class FrameworkDetector:
    """Detects the application framework from a content corpus."""

    def __init__(self, rules: RuleCatalog, config: Optional[FrameworkScoringConfig] = None):
        self.rules = rules
        self.config = config or get_config().framework
        self._frameworks = {
            framework_id: _CompiledFramework(rule)
            for framework_id, rule in rules.frameworks.items()
        }

    def analyze(self, corpus: ContentCorpus) -> DetectionResult:
        """Score every framework and return the best match."""
        manifests = index_manifests(corpus.files)
        if manifests.failed:
            logger.debug("Manifests without dependency evidence: %s", ", ".join(manifests.failed))

        matches = []
        for framework_id in self._frameworks:
            result = self.score_framework(framework_id, corpus, manifests)
            logger.debug(
                "Framework %s: deps=%.2f files=%.2f content=%.2f commands=%.2f -> %.3f",
                framework_id, result.dependencies, result.files,
                result.content, result.commands, result.score,
            )
            # Too weak to count as detected
            if result.score < self.config.min_detection_score:
                continue
            matches.append(DetectionMatch(
                id=framework_id,
                display_name=result.name,
                score=result.score,
                confidence=result.score,
            ))

        return DetectionResult.from_matches(matches)

    def score_framework(
        self,
        framework_id: str,
        corpus: ContentCorpus,
        manifests: Optional[ManifestIndex] = None,
    ) -> FrameworkScore:
        """Score a single framework rule against the corpus.

        Raises:
            KeyError: If the framework is not in the rule table.
        """
        compiled = self._frameworks[framework_id]
        if manifests is None:
            manifests = index_manifests(corpus.files)
        cfg = self.config
        weights = compiled.rule.weights or cfg.category_weights

        dependencies = self._dependency_score(compiled, manifests)
        files = compiled.files.match_names(corpus.file_names).score()
        content = compiled.content.match_text(corpus.text).score(cfg.strong_content_bonus)
        commands = compiled.commands.match_substrings(manifests.command_text).score()

        weighted = (
            dependencies * weights.dependencies
            + files * weights.files
            + content * weights.content
            + commands * weights.commands
        )

        score = weighted
        boosted = penalized = False

        # Corroborated dependency evidence
        if dependencies > cfg.boost_dependency_threshold and (
            files > cfg.boost_corroboration_threshold
            or content > cfg.boost_corroboration_threshold
        ):
            score = min(score * cfg.boost_factor, 1.0)
            boosted = True

        # Suppress weak matches
        if score < cfg.weak_threshold:
            score *= cfg.weak_factor
            penalized = True

        return FrameworkScore(
            framework_id=framework_id,
            name=compiled.rule.name,
            dependencies=dependencies,
            files=files,
            content=content,
            commands=commands,
            weighted=weighted,
            score=max(0.0, min(score, 1.0)),
            boosted=boosted,
            penalized=penalized,
        )

    def _dependency_score(self, compiled: _CompiledFramework, manifests: ManifestIndex) -> float:
        if not manifests.dependencies:
            return 0.0
        result: CategoryScore = compiled.dependencies.match_set(manifests.dependencies)
        return result.score(self.config.strong_dependency_bonus)
