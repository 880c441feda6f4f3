"""Service ranking.

Scores every service candidate along six weighted criteria (cost,
complexity, scalability, reliability, performance, maturity), then sorts
the candidates and assigns ranks and tiers.
"""

from typing import Optional

from .config import RecommenderConfig, get_config
from .schema import (
    Criterion,
    CriterionScore,
    Criticality,
    GrowthRate,
    Preferences,
    RankedService,
    RankingContext,
    Requirements,
    ScoreBreakdown,
    ServiceCandidate,
    ServiceComparison,
    Tier,
    TrafficLevel,
)


def _clamp(value: float) -> float:
    return round(max(0.0, min(value, 1.0)), 4)


class ServiceRanker:
    """Ranks service candidates against requirements and preferences.

    Ranking is a pure function of its inputs: the ranker holds only its
    configuration. Any criterion whose service data is missing scores the
    neutral value instead of failing the ranking pass.
    """

    def __init__(self, config: Optional[RecommenderConfig] = None):
        self.config = config or get_config()

    def rank_services(
        self,
        candidates: list[ServiceCandidate],
        requirements: Optional[Requirements] = None,
        preferences: Optional[Preferences] = None,
        context: Optional[RankingContext] = None,
    ) -> list[RankedService]:
        """Score, sort and tier a list of candidates.

        Ties keep the order in which candidates were given.
        """
        requirements = requirements or Requirements()
        preferences = preferences or Preferences()
        context = context or RankingContext()

        scored = [
            self._score_service(candidate, requirements, preferences, context)
            for candidate in candidates
        ]
        # sorted() is stable, so equal scores keep declaration order
        ordered = sorted(scored, key=lambda item: item[1], reverse=True)

        ranked = []
        for index, (candidate, overall, breakdown, reasons, warnings) in enumerate(ordered):
            ranked.append(RankedService(
                candidate=candidate,
                overall=overall,
                breakdown=breakdown,
                reasons=reasons,
                warnings=warnings,
                rank=index + 1,
                tier=self.determine_tier(overall),
            ))
        return ranked

    def determine_tier(self, score: float) -> Tier:
        """Map an overall score to a tier."""
        thresholds = self.config.tiers
        if score >= thresholds.recommended:
            return Tier.RECOMMENDED
        if score >= thresholds.suitable:
            return Tier.SUITABLE
        if score >= thresholds.acceptable:
            return Tier.ACCEPTABLE
        return Tier.NOT_RECOMMENDED

    def _score_service(
        self,
        candidate: ServiceCandidate,
        requirements: Requirements,
        preferences: Preferences,
        context: RankingContext,
    ):
        breakdown = ScoreBreakdown(
            cost=self._score_cost(candidate, requirements, context),
            complexity=self._score_complexity(candidate, preferences),
            scalability=self._score_scalability(candidate, requirements, context),
            reliability=self._score_reliability(candidate, requirements),
            performance=self._score_performance(candidate, requirements, preferences, context),
            maturity=self._score_maturity(candidate),
        )

        weights = self.config.ranking_weights
        total = sum(
            getattr(weights, criterion.value) * score.score
            for criterion, score in breakdown.items()
        )

        reasons = []
        warnings = []
        if candidate.definition is None:
            warnings.append(
                f"No catalog definition for '{candidate.service_id}'; using neutral scores"
            )
        for _, score in breakdown.items():
            reasons.extend(score.reasons)
            warnings.extend(score.warnings)

        return candidate, _clamp(total), breakdown, reasons, warnings

    def _traffic(self, requirements: Requirements, context: RankingContext) -> TrafficLevel:
        return requirements.traffic or context.traffic or TrafficLevel.LOW

    def _neutral(self, *warnings: str) -> CriterionScore:
        return CriterionScore(score=self.config.neutral_score, warnings=list(warnings))

    # =========================================================================
    # Criteria
    # =========================================================================

    def _score_cost(
        self,
        candidate: ServiceCandidate,
        requirements: Requirements,
        context: RankingContext,
    ) -> CriterionScore:
        """Score traffic-adjusted monthly cost."""
        definition = candidate.definition
        if definition is None:
            return self._neutral()
        pricing = definition.pricing
        if pricing is None or pricing.estimated_monthly is None:
            return self._neutral(f"No pricing data for {definition.name}; cost score is neutral")

        cfg = self.config.cost
        traffic = self._traffic(requirements, context)
        adjusted = pricing.estimated_monthly.typical * cfg.traffic_multipliers.get(traffic.value, 1.0)

        reasons = []
        warnings = []
        for step in cfg.steps:
            if adjusted <= step.max_monthly:
                score = step.score
                break
        else:
            score = cfg.above_steps_score
            warnings.append("High monthly cost - consider alternatives")
        reasons.append(f"Estimated ${adjusted:.2f}/month at {traffic.value} traffic")

        if pricing.has_free_tier:
            score += cfg.free_tier_bonus
            reasons.append("Free tier available")

        if context.budget and adjusted > context.budget * cfg.budget_threshold:
            score *= cfg.budget_penalty
            warnings.append(f"May exceed budget of ${context.budget:.2f}/month")

        if pricing.model in cfg.usage_pricing_models and traffic != TrafficLevel.HIGH:
            score += cfg.usage_pricing_bonus
            reasons.append("Pay-per-use pricing model")

        return CriterionScore(
            score=_clamp(score),
            reasons=reasons,
            warnings=warnings,
            estimated_cost=round(adjusted, 2),
        )

    def _score_complexity(self, candidate: ServiceCandidate, preferences: Preferences) -> CriterionScore:
        """Score operational complexity against the user's tolerance."""
        definition = candidate.definition
        if definition is None or definition.complexity is None:
            return self._neutral()

        cfg = self.config.complexity
        complexity = definition.complexity
        tolerance = preferences.complexity_tolerance
        reasons = []

        if tolerance >= cfg.high_tolerance:
            score = cfg.high_tolerance_score
            reasons.append("Complexity acceptable for experienced teams")
        elif tolerance <= cfg.low_tolerance:
            score = (6 - complexity) / 5
            if complexity <= 2:
                reasons.append("Simple to set up and manage")
            else:
                reasons.append("May be complex for beginners")
            if definition.category != "compute":
                score += cfg.managed_bonus
                reasons.append("Fully managed service")
        elif complexity <= cfg.simple_threshold:
            score = cfg.simple_score
            reasons.append("Moderate complexity")
        else:
            score = cfg.complex_score
            reasons.append("Requires some expertise")

        return CriterionScore(score=_clamp(score), reasons=reasons)

    def _score_scalability(
        self,
        candidate: ServiceCandidate,
        requirements: Requirements,
        context: RankingContext,
    ) -> CriterionScore:
        """Score scalability against the traffic tier."""
        definition = candidate.definition
        if definition is None or definition.scalability is None:
            return self._neutral()

        cfg = self.config.scalability
        rating = definition.scalability
        traffic = self._traffic(requirements, context)
        minimum = cfg.minimum_rating.get(traffic.value, 3)
        reasons = []

        score = rating / 5
        if rating >= minimum:
            score = 1.0
            reasons.append(f"Scales well for {traffic.value} traffic")
        elif traffic == TrafficLevel.MEDIUM and rating == minimum - 1:
            score = cfg.medium_shortfall_score
            reasons.append("Adequate for medium traffic")
        elif traffic == TrafficLevel.HIGH:
            if rating == minimum - 1:
                score = cfg.high_shortfall_score
                reasons.append("Good scalability for high traffic")
            else:
                score = cfg.high_insufficient_score
                reasons.append("Limited scalability for high traffic")

        if context.expected_growth == GrowthRate.RAPID and rating >= 4:
            score += cfg.growth_bonus
            reasons.append("Supports rapid growth")

        if candidate.configuration.get("auto_scaling"):
            score += cfg.auto_scaling_bonus
            reasons.append("Auto scaling configured")

        return CriterionScore(score=_clamp(score), reasons=reasons)

    def _score_reliability(self, candidate: ServiceCandidate, requirements: Requirements) -> CriterionScore:
        """Score reliability features."""
        definition = candidate.definition
        if definition is None:
            return self._neutral()

        cfg = self.config.reliability
        configuration = candidate.configuration
        score = cfg.base
        reasons = []

        if definition.managed:
            score += cfg.managed_bonus
            reasons.append("Managed service with high availability")

        if configuration.get("multi_az"):
            score += cfg.multi_az_bonus
            reasons.append("Multi-zone deployment")

        if configuration.get("automated_backups") or configuration.get("backups") == "automated":
            score += cfg.backup_bonus
            reasons.append("Automated backup and recovery")

        if requirements.criticality == Criticality.HIGH and definition.id in cfg.proven_services:
            score += cfg.critical_bonus
            reasons.append("Proven reliability for critical workloads")

        return CriterionScore(score=_clamp(score), reasons=reasons)

    def _score_performance(
        self,
        candidate: ServiceCandidate,
        requirements: Requirements,
        preferences: Preferences,
        context: RankingContext,
    ) -> CriterionScore:
        """Score performance against the required level."""
        definition = candidate.definition
        if definition is None:
            return self._neutral()

        cfg = self.config.performance
        level = (
            requirements.performance_requirements
            or context.performance_requirements
            or preferences.performance_requirements
            or cfg.default_level
        )
        demanding = level >= cfg.demanding_level
        reasons = []

        score = cfg.base
        profile = cfg.profiles.get(definition.id)
        if profile is not None:
            score = profile.demanding if demanding else profile.standard
            reasons.append(
                f"{'Demanding' if demanding else 'Standard'} performance profile for {definition.name}"
            )

        if candidate.configuration.get("caching") == "aggressive":
            score += cfg.caching_bonus
            reasons.append("Aggressive caching")

        if candidate.configuration.get("provisioned"):
            score += cfg.provisioned_bonus
            reasons.append("Provisioned capacity for consistent latency")

        return CriterionScore(score=_clamp(score), reasons=reasons)

    def _score_maturity(self, candidate: ServiceCandidate) -> CriterionScore:
        """Score service maturity."""
        definition = candidate.definition
        if definition is None:
            return self._neutral()

        cfg = self.config.maturity
        reasons = []
        if definition.id in cfg.well_established:
            score = cfg.well_established_score
            reasons.append("Mature and well-established service")
        elif definition.id in cfg.stable:
            score = cfg.stable_score
            reasons.append("Stable service with a good track record")
        else:
            score = cfg.default_score

        score += cfg.documentation_bonus
        reasons.append("Extensive documentation and community support")

        return CriterionScore(score=_clamp(score), reasons=reasons)

    # =========================================================================
    # Comparison helpers
    # =========================================================================

    def compare_services(self, a: RankedService, b: RankedService) -> ServiceComparison:
        """Compare two ranked services on cost, complexity, scalability and performance."""
        def winner(value_a: float, value_b: float, lower_is_better: bool = False) -> Optional[str]:
            if value_a == value_b:
                return None
            a_wins = value_a < value_b if lower_is_better else value_a > value_b
            return a.service_id if a_wins else b.service_id

        def rating(service: RankedService, field: str) -> int:
            definition = service.candidate.definition
            value = getattr(definition, field) if definition else None
            return value if value is not None else 3

        winners = {
            Criterion.COST: winner(a.estimated_cost or 0.0, b.estimated_cost or 0.0, lower_is_better=True),
            Criterion.COMPLEXITY: winner(
                rating(a, "complexity"), rating(b, "complexity"), lower_is_better=True
            ),
            Criterion.SCALABILITY: winner(rating(a, "scalability"), rating(b, "scalability")),
            Criterion.PERFORMANCE: winner(
                a.breakdown.performance.score, b.breakdown.performance.score
            ),
        }

        a_wins = sum(1 for w in winners.values() if w == a.service_id)
        b_wins = sum(1 for w in winners.values() if w == b.service_id)
        overall = None
        if a_wins != b_wins:
            overall = a.service_id if a_wins > b_wins else b.service_id

        return ServiceComparison(
            service_a=a.service_id,
            service_b=b.service_id,
            winners=winners,
            overall_winner=overall,
        )

    def find_alternatives(
        self,
        service_id: str,
        ranked: list[RankedService],
        limit: int = 3,
    ) -> list[RankedService]:
        """Other ranked services in the same category, best first."""
        primary = next((s for s in ranked if s.service_id == service_id), None)
        if primary is None or primary.candidate.category is None:
            return []
        return [
            s for s in ranked
            if s.service_id != service_id and s.candidate.category == primary.candidate.category
        ][:limit]

    def comparison_matrix(self, ranked: list[RankedService]) -> dict:
        """Criterion-by-service score matrix."""
        return {
            "services": [
                {"id": s.service_id, "name": s.name, "overall": s.overall}
                for s in ranked
            ],
            "criteria": [criterion.value for criterion in Criterion],
            "scores": {
                criterion.value: [
                    {
                        "service_id": s.service_id,
                        "score": s.breakdown.get(criterion).score,
                        "reasons": list(s.breakdown.get(criterion).reasons),
                    }
                    for s in ranked
                ]
                for criterion in Criterion
            },
        }
