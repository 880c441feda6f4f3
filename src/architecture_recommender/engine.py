"""Recommendation Engine - turns an analysis into ranked architectures.

Pipeline:
1. Match the analysis to templates and expand their variants
2. Rank the services of every variant
3. Estimate each variant's monthly cost and savings against its base
4. Score suitability against the user's preferences
5. Sort by suitability and assign ranks and tiers
"""

import logging
from typing import Optional

from app_analyzer.loader import MemoizedLoader
from app_analyzer.schema import AnalysisResult

from .catalog import ArchitectureCatalog, shared_catalog_cache
from .config import RecommenderConfig, get_config
from .cost import CostEstimator
from .explainer import RecommendationExplainer
from .matcher import ArchitectureMatcher
from .ranker import ServiceRanker
from .schema import (
    Characteristics,
    CostEstimate,
    OptimizationFocus,
    PatternMatch,
    Preferences,
    RankedService,
    RankingContext,
    Recommendation,
    Requirements,
    ServiceRecommendations,
    TrafficLevel,
)

logger = logging.getLogger(__name__)


class RecommendationEngine:
    """Produces ranked architecture recommendations for an analysis.

    Usage:
        engine = RecommendationEngine()
        recommendations = engine.recommend(analysis, Preferences(cost_priority=5))
    """

    def __init__(
        self,
        catalog_cache: Optional[MemoizedLoader[ArchitectureCatalog]] = None,
        config: Optional[RecommenderConfig] = None,
        ranker: Optional[ServiceRanker] = None,
    ):
        self.catalog_cache = catalog_cache or shared_catalog_cache()
        self.config = config or get_config()
        self.ranker = ranker or ServiceRanker(self.config)
        self.estimator = CostEstimator(self.config)
        self.explainer = RecommendationExplainer(self.config)
        self._catalog: Optional[ArchitectureCatalog] = None
        self._matcher: Optional[ArchitectureMatcher] = None

    def recommend(
        self,
        analysis: AnalysisResult,
        preferences: Optional[Preferences] = None,
        context: Optional[RankingContext] = None,
        requirements: Optional[Requirements] = None,
    ) -> list[Recommendation]:
        """Recommend architectures for an analysis, best first.

        Raises:
            RuleCatalogError: If the architecture catalog cannot be loaded.
        """
        catalog = self.catalog_cache.get()
        return self._recommend(catalog, analysis, preferences, context, requirements)

    async def recommend_async(
        self,
        analysis: AnalysisResult,
        preferences: Optional[Preferences] = None,
        context: Optional[RankingContext] = None,
        requirements: Optional[Requirements] = None,
    ) -> list[Recommendation]:
        """Like `recommend`, loading the catalog without blocking the event loop."""
        catalog = await self.catalog_cache.aget()
        return self._recommend(catalog, analysis, preferences, context, requirements)

    def generate_recommendations(
        self,
        ranked: list[RankedService],
        requirements: Optional[Requirements] = None,
        preferences: Optional[Preferences] = None,
        context: Optional[RankingContext] = None,
    ) -> ServiceRecommendations:
        """Group ranked services by tier with insights, trade-offs and suggestions."""
        return self.explainer.explain(ranked, requirements, preferences, context)

    def _recommend(
        self,
        catalog: ArchitectureCatalog,
        analysis: AnalysisResult,
        preferences: Optional[Preferences],
        context: Optional[RankingContext],
        requirements: Optional[Requirements],
    ) -> list[Recommendation]:
        preferences = preferences or Preferences()
        context = context or RankingContext()
        if requirements is None:
            overrides = {"traffic": context.traffic} if context.traffic else {}
            requirements = Requirements.from_analysis(analysis, **overrides)
        traffic = requirements.traffic or context.traffic or TrafficLevel.LOW

        matches = self._get_matcher(catalog).match(analysis, preferences, requirements, context)

        base_costs = {
            m.template.id: self.estimator.estimate(m.variant.services, traffic)
            for m in matches
            if m.variant.focus == OptimizationFocus.BALANCED
        }

        scored = []
        for match in matches:
            variant = match.variant
            estimate = self.estimator.estimate(variant.services, traffic)
            savings = None
            if variant.focus != OptimizationFocus.BALANCED and match.template.id in base_costs:
                savings = self.estimator.savings(base_costs[match.template.id], estimate)

            ranked = self.ranker.rank_services(variant.services, requirements, preferences, context)
            suitability = self.calculate_suitability(match, preferences, context, estimate)
            scored.append((match, ranked, estimate, savings, suitability))

        scored.sort(key=lambda item: item[4], reverse=True)

        recommendations = []
        for index, (match, ranked, estimate, savings, suitability) in enumerate(scored):
            variant = match.variant
            recommendations.append(Recommendation(
                id=variant.id,
                name=variant.name,
                template_id=match.template.id,
                focus=variant.focus,
                description=match.template.description,
                services=ranked,
                cost_estimate=estimate,
                savings=savings,
                characteristics=variant.characteristics,
                match_score=match.score,
                confidence=match.confidence,
                suitability_score=suitability,
                rank=index + 1,
                tier=self.ranker.determine_tier(suitability),
                reasons=match.reasons + variant.changes,
                warnings=match.warnings,
                pros=variant.pros,
                cons=variant.cons,
                deployment_time=match.template.deployment_time,
                summary=self.generate_recommendations(ranked, requirements, preferences, context),
            ))

        logger.debug(
            "Generated %d recommendations for %s/%s",
            len(recommendations), analysis.framework.primary.id, analysis.app_type.primary.id,
        )
        return recommendations

    def calculate_suitability(
        self,
        match: PatternMatch,
        preferences: Preferences,
        context: RankingContext,
        cost_estimate: CostEstimate,
    ) -> float:
        """Blend the match score with preference fit and context bonuses."""
        cfg = self.config.suitability
        variant = match.variant

        score = (
            cfg.match_weight * match.score
            + cfg.preference_weight * self.preference_fit(variant.characteristics, preferences)
        )

        focus_preferred = {
            OptimizationFocus.COST: preferences.cost_priority >= cfg.strong_preference,
            OptimizationFocus.PERFORMANCE: preferences.performance_requirements >= cfg.strong_preference,
            OptimizationFocus.SIMPLICITY: preferences.complexity_tolerance <= cfg.low_tolerance,
        }
        if focus_preferred.get(variant.focus, False):
            score += cfg.focus_bonus

        if context.traffic == TrafficLevel.HIGH and variant.characteristics.scalability >= 4:
            score += cfg.traffic_bonus

        if context.budget is not None and cost_estimate.monthly <= context.budget:
            score += cfg.budget_bonus

        return round(max(0.0, min(score, 1.0)), 4)

    @staticmethod
    def preference_fit(characteristics: Characteristics, preferences: Preferences) -> float:
        """How well characteristics suit the preferences, in [0, 1].

        Cheap, simple and scalable/available architectures fit better; each
        aspect is weighted by how much the user cares about it.
        """
        cost_fit = (5 - characteristics.cost) / 4
        simplicity_fit = (5 - characteristics.complexity) / 4
        performance_fit = (characteristics.scalability + characteristics.availability - 2) / 8

        weighted = [
            (cost_fit, preferences.cost_priority),
            (simplicity_fit, 6 - preferences.complexity_tolerance),
            (performance_fit, preferences.performance_requirements),
        ]
        total = sum(weight for _, weight in weighted)
        return sum(fit * weight for fit, weight in weighted) / total

    def _get_matcher(self, catalog: ArchitectureCatalog) -> ArchitectureMatcher:
        if self._matcher is None or self._catalog is not catalog:
            self._catalog = catalog
            self._matcher = ArchitectureMatcher(catalog, self.config)
        return self._matcher
