"""Recommendation explanations.

Groups ranked services by tier and derives insights, trade-offs and
optimization suggestions from their score breakdowns. Nothing here
re-scores a service; it only summarizes what the ranker computed.
"""

from typing import Optional

from .config import RecommenderConfig, get_config
from .schema import (
    Insight,
    OptimizationSuggestion,
    Preferences,
    RankedService,
    RankingContext,
    Requirements,
    ServiceRecommendations,
    Tier,
    Tradeoff,
    TrafficLevel,
)


def _rating(service: RankedService, field: str, default: int = 3) -> int:
    definition = service.candidate.definition
    value = getattr(definition, field) if definition else None
    return value if value is not None else default


class RecommendationExplainer:
    """Derives human-readable guidance from ranked services.

    Configuration:
    - Thresholds come from the `insights` section of the recommender config
    """

    def __init__(self, config: Optional[RecommenderConfig] = None):
        self.config = config or get_config()

    def explain(
        self,
        ranked: list[RankedService],
        requirements: Optional[Requirements] = None,
        preferences: Optional[Preferences] = None,
        context: Optional[RankingContext] = None,
    ) -> ServiceRecommendations:
        """Group services by tier and attach insights, trade-offs and suggestions."""
        requirements = requirements or Requirements()
        preferences = preferences or Preferences()
        context = context or RankingContext()

        return ServiceRecommendations(
            recommended=[s for s in ranked if s.tier == Tier.RECOMMENDED],
            suitable=[s for s in ranked if s.tier == Tier.SUITABLE],
            acceptable=[s for s in ranked if s.tier == Tier.ACCEPTABLE],
            not_recommended=[s for s in ranked if s.tier == Tier.NOT_RECOMMENDED],
            insights=self.generate_insights(ranked, requirements, preferences, context),
            tradeoffs=self.identify_tradeoffs(ranked),
            optimization_suggestions=self.generate_suggestions(ranked, preferences),
        )

    def generate_insights(
        self,
        ranked: list[RankedService],
        requirements: Requirements,
        preferences: Preferences,
        context: RankingContext,
    ) -> list[Insight]:
        cfg = self.config.insights
        insights = []

        costs = [s.estimated_cost for s in ranked if s.estimated_cost is not None]
        if costs:
            insights.append(Insight(
                type="cost",
                message=(
                    f"Monthly costs range from ${min(costs):.2f} to ${max(costs):.2f}, "
                    f"averaging ${sum(costs) / len(costs):.2f}"
                ),
                impact="medium",
            ))

        if preferences.complexity_tolerance <= self.config.complexity.low_tolerance:
            complex_services = [
                s.service_id for s in ranked if _rating(s, "complexity") >= cfg.complex_service
            ]
            if complex_services:
                insights.append(Insight(
                    type="complexity",
                    message=f"{len(complex_services)} services may be complex for your experience level",
                    impact="high",
                    services=complex_services,
                ))

        traffic = requirements.traffic or context.traffic
        if traffic == TrafficLevel.HIGH:
            limited = [
                s.service_id for s in ranked if _rating(s, "scalability") < cfg.scalable_service
            ]
            if limited:
                insights.append(Insight(
                    type="scalability",
                    message="Consider alternatives for high traffic requirements",
                    impact="high",
                    services=limited,
                ))

        return insights

    def identify_tradeoffs(self, ranked: list[RankedService]) -> list[Tradeoff]:
        """Trade-offs where no service wins on both axes."""
        cfg = self.config.insights
        tradeoffs = []

        high_performance = [
            s.service_id for s in ranked if s.breakdown.performance.score >= cfg.high_performance
        ]
        low_cost = [s.service_id for s in ranked if s.breakdown.cost.score >= cfg.low_cost]
        if high_performance and low_cost and set(high_performance).isdisjoint(low_cost):
            tradeoffs.append(Tradeoff(
                type="cost-vs-performance",
                message="Higher performance options typically cost more",
                groups={"high_performance": high_performance[:2], "low_cost": low_cost[:2]},
            ))

        simple = [s.service_id for s in ranked if _rating(s, "complexity") <= cfg.simple_service]
        flexible = [
            s.service_id for s in ranked if s.candidate.category in cfg.flexible_categories
        ]
        if simple and flexible and set(simple).isdisjoint(flexible):
            tradeoffs.append(Tradeoff(
                type="simplicity-vs-flexibility",
                message="Simpler services may offer less customization",
                groups={"simple": simple[:2], "flexible": flexible[:2]},
            ))

        return tradeoffs

    def generate_suggestions(
        self,
        ranked: list[RankedService],
        preferences: Preferences,
    ) -> list[OptimizationSuggestion]:
        cfg = self.config.insights
        strong = self.config.suitability.strong_preference
        suggestions = []

        if preferences.cost_priority >= strong:
            expensive = [
                s.service_id for s in ranked
                if s.estimated_cost is not None and s.estimated_cost > cfg.expensive_service
            ]
            if expensive:
                suggestions.append(OptimizationSuggestion(
                    type="cost-optimization",
                    message="Consider serverless alternatives to reduce costs",
                    action="Replace fixed-capacity services with Lambda and usage-priced services",
                    services=expensive,
                ))

        if preferences.performance_requirements >= strong:
            slow = [
                s.service_id for s in ranked if s.breakdown.performance.score < cfg.slow_service
            ]
            if slow:
                suggestions.append(OptimizationSuggestion(
                    type="performance-optimization",
                    message="Add caching and a CDN for better performance",
                    action="Consider ElastiCache and CloudFront in front of these services",
                    services=slow,
                ))

        if preferences.complexity_tolerance <= self.config.complexity.low_tolerance:
            unmanaged = [
                s.service_id for s in ranked
                if s.candidate.definition is not None and not s.candidate.definition.managed
            ]
            if unmanaged:
                suggestions.append(OptimizationSuggestion(
                    type="simplicity-optimization",
                    message="Use fully managed services to reduce complexity",
                    action="Prefer Lambda, RDS and other managed services",
                    services=unmanaged,
                ))

        return suggestions
