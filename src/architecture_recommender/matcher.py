"""Architecture matching.

Maps an AnalysisResult to candidate architecture templates through the
application-type affinity table, scores each template and expands it into
its base and optimized variants.
"""

import logging
from typing import Optional

from app_analyzer.schema import UNKNOWN_ID, AnalysisResult

from .catalog import ArchitectureCatalog
from .config import RecommenderConfig, get_config
from .schema import (
    ArchitectureTemplate,
    PatternMatch,
    Preferences,
    RankingContext,
    Requirements,
    ScoringDimension,
    TrafficLevel,
)
from .variants import VariantBuilder

logger = logging.getLogger(__name__)

TRAFFIC_ORDER = [TrafficLevel.LOW, TrafficLevel.MEDIUM, TrafficLevel.HIGH]


class ArchitectureMatcher:
    """Matches analyses to architecture templates and their variants."""

    def __init__(
        self,
        catalog: ArchitectureCatalog,
        config: Optional[RecommenderConfig] = None,
        variant_builder: Optional[VariantBuilder] = None,
    ):
        self.catalog = catalog
        self.config = config or get_config()
        self.variant_builder = variant_builder or VariantBuilder(catalog, self.config)

    def match(
        self,
        analysis: AnalysisResult,
        preferences: Optional[Preferences] = None,
        requirements: Optional[Requirements] = None,
        context: Optional[RankingContext] = None,
    ) -> list[PatternMatch]:
        """Return variant matches ordered by template score.

        Variants of one template stay together, base first.
        """
        cfg = self.config.matching
        context = context or RankingContext()
        if requirements is None:
            overrides = {"traffic": context.traffic} if context.traffic else {}
            requirements = Requirements.from_analysis(analysis, **overrides)

        app_type = analysis.app_type.primary.id
        templates = self.catalog.templates_for(app_type)[:cfg.max_templates]

        matches = []
        for template in templates:
            dimensions, reasons, warnings = self.score_template(template, analysis, requirements)
            score = round(sum(d.weighted_score for d in dimensions), 4)
            if score < cfg.min_match_score:
                logger.debug("Template %s scored %.2f; below minimum", template.id, score)
                continue

            for variant in self.variant_builder.build(template, requirements, preferences, context):
                confidence = score * analysis.overall_confidence * variant.confidence
                matches.append(PatternMatch(
                    template=template,
                    variant=variant,
                    score=min(score, 1.0),
                    confidence=round(min(confidence, 1.0), 4),
                    dimensions=dimensions,
                    reasons=reasons,
                    warnings=warnings + variant.warnings,
                ))

        matches.sort(key=lambda m: m.score, reverse=True)
        logger.debug("Matched %d variants for app type %s", len(matches), app_type)
        return matches

    def score_template(
        self,
        template: ArchitectureTemplate,
        analysis: AnalysisResult,
        requirements: Requirements,
    ) -> tuple[list[ScoringDimension], list[str], list[str]]:
        """Score one template along app type, framework and requirement coverage."""
        cfg = self.config.matching
        reasons: list[str] = []
        warnings: list[str] = []

        dimensions = [
            self._dimension(
                "app_type", cfg.app_type_weight,
                *self._score_app_type(template, analysis.app_type.primary.id, reasons),
            ),
            self._dimension(
                "framework", cfg.framework_weight,
                *self._score_framework(template, analysis.framework.primary.id, reasons),
            ),
            self._dimension(
                "requirements", cfg.requirements_weight,
                *self._score_requirements(template, requirements, warnings),
            ),
        ]
        return dimensions, reasons, warnings

    @staticmethod
    def _dimension(name: str, weight: float, raw: float, reasoning: str) -> ScoringDimension:
        return ScoringDimension(
            dimension=name,
            weight=weight,
            raw_score=raw,
            weighted_score=round(raw * weight, 4),
            reasoning=reasoning,
        )

    def _score_app_type(self, template: ArchitectureTemplate, app_type: str, reasons: list[str]):
        if app_type in template.app_types:
            reasons.append(f"Designed for {app_type} applications")
            return 1.0, f"{template.name} targets {app_type} applications"
        if app_type == UNKNOWN_ID:
            return 0.5, "Application type unknown"
        return 0.0, f"{template.name} is not intended for {app_type} applications"

    def _score_framework(self, template: ArchitectureTemplate, framework: str, reasons: list[str]):
        if framework in template.frameworks:
            if framework != UNKNOWN_ID:
                reasons.append(f"Compatible with {framework}")
            return 1.0, f"{framework} is supported"
        if framework == UNKNOWN_ID:
            return 0.5, "Framework unknown"
        if not template.frameworks:
            return 0.7, "Template is framework-agnostic"
        return 0.3, f"{framework} is not a typical fit"

    def _score_requirements(self, template: ArchitectureTemplate, requirements: Requirements, warnings: list[str]):
        weights = self.config.matching.requirement_weights
        total = sum(weights.values())
        if total <= 0:
            return 1.0, "No requirement weights configured"

        earned = 0.0
        unmet = []
        for name, weight in weights.items():
            if name == "traffic":
                traffic = requirements.traffic or TrafficLevel.LOW
                if TRAFFIC_ORDER.index(traffic) <= TRAFFIC_ORDER.index(template.max_traffic):
                    earned += weight
                else:
                    unmet.append(f"{traffic.value} traffic")
                    warnings.append(
                        f"{template.name} is sized for up to {template.max_traffic.value} traffic"
                    )
            elif not requirements.needs(name) or name in template.supports:
                earned += weight
            else:
                unmet.append(name)
                warnings.append(f"{template.name} has no built-in {name} support")

        raw = min(earned / total, 1.0)
        reasoning = "All requirements covered" if not unmet else f"Not covered: {', '.join(unmet)}"
        return raw, reasoning
