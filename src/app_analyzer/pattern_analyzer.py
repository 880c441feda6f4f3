"""Pattern Analyzer - orchestrates the analysis pipeline.

Pipeline:
1. Build the content corpus from the input
2. Detect the framework
3. Detect the application type (cross-checked against the framework)
4. Detect infrastructure capabilities
5. Combine stage confidences into an overall confidence

Any unexpected fault is wrapped in a single AnalysisError; no partial
result is ever returned.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from .app_type_detector import AppTypeDetector
from .config import AnalyzerConfig, get_config
from .corpus import build_corpus, summarize_input
from .framework_detector import FrameworkDetector
from .infrastructure_detector import InfrastructureDetector
from .loader import MemoizedLoader
from .rules import RuleCatalog, shared_rule_cache
from .schema import (
    AnalysisInput,
    AnalysisResult,
    DetectionResult,
    InfrastructureResult,
)

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """Raised when the analysis pipeline fails unexpectedly."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PatternAnalyzer:
    """Runs the detectors and assembles an AnalysisResult.

    Usage:
        analyzer = PatternAnalyzer()
        result = analyzer.analyze_application(
            AnalysisInput(files=[InputFile(name="package.json", content="...")])
        )
    """

    def __init__(
        self,
        rule_cache: Optional[MemoizedLoader[RuleCatalog]] = None,
        config: Optional[AnalyzerConfig] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the analyzer.

        Args:
            rule_cache: Cache handle for the rule tables. Defaults to the
                process-wide handle.
            config: Analyzer configuration. Defaults to the global config.
            clock: Source of the result timestamp.
        """
        self.rule_cache = rule_cache or shared_rule_cache()
        self.config = config or get_config()
        self.clock = clock
        self._rules: Optional[RuleCatalog] = None
        self._detectors: Optional[tuple[FrameworkDetector, AppTypeDetector, InfrastructureDetector]] = None

    def analyze_application(self, analysis_input: Union[AnalysisInput, dict]) -> AnalysisResult:
        """Analyze an application input.

        Raises:
            AnalysisError: If any stage fails unexpectedly.
        """
        try:
            rules = self.rule_cache.get()
            return self._analyze(analysis_input, rules)
        except Exception as e:
            logger.exception("Application analysis failed")
            raise AnalysisError(f"Analysis failed: {e}") from e

    async def analyze_application_async(self, analysis_input: Union[AnalysisInput, dict]) -> AnalysisResult:
        """Analyze an application input, loading rule tables without blocking.

        Raises:
            AnalysisError: If any stage fails unexpectedly.
        """
        try:
            rules = await self.rule_cache.aget()
            return self._analyze(analysis_input, rules)
        except Exception as e:
            logger.exception("Application analysis failed")
            raise AnalysisError(f"Analysis failed: {e}") from e

    def _analyze(self, analysis_input: Union[AnalysisInput, dict], rules: RuleCatalog) -> AnalysisResult:
        if isinstance(analysis_input, dict):
            analysis_input = AnalysisInput.model_validate(analysis_input)

        framework_detector, app_type_detector, infrastructure_detector = self._get_detectors(rules)
        corpus = build_corpus(analysis_input)

        framework = framework_detector.analyze(corpus)
        app_type = app_type_detector.analyze(corpus, framework)
        infrastructure = infrastructure_detector.analyze(corpus)

        overall = self.calculate_overall_confidence(framework, app_type, infrastructure)
        logger.debug(
            "Analysis: framework=%s app_type=%s complexity=%d confidence=%.3f",
            framework.primary.id, app_type.primary.id, infrastructure.complexity, overall,
        )

        return AnalysisResult(
            framework=framework,
            app_type=app_type,
            infrastructure=infrastructure,
            overall_confidence=overall,
            input_summary=summarize_input(analysis_input),
            timestamp=self.clock(),
        )

    def calculate_overall_confidence(
        self,
        framework: DetectionResult,
        app_type: DetectionResult,
        infrastructure: InfrastructureResult,
    ) -> float:
        """Weighted mean of stage confidences, ignoring stages at zero."""
        weights = self.config.overall_confidence
        stages = [
            (framework.primary.confidence, weights.framework),
            (app_type.primary.confidence, weights.app_type),
            (infrastructure.confidence, weights.infrastructure),
        ]
        active = [(confidence, weight) for confidence, weight in stages if confidence > 0]
        total_weight = sum(weight for _, weight in active)
        if not total_weight:
            return 0.0
        return min(sum(c * w for c, w in active) / total_weight, 1.0)

    def _get_detectors(self, rules: RuleCatalog) -> tuple[FrameworkDetector, AppTypeDetector, InfrastructureDetector]:
        if self._detectors is None or self._rules is not rules:
            self._rules = rules
            self._detectors = (
                FrameworkDetector(rules, self.config.framework),
                AppTypeDetector(rules, self.config.app_type),
                InfrastructureDetector(rules, self.config.infrastructure),
            )
        return self._detectors
