"""Monthly cost estimation for service sets."""

from typing import Optional

from .config import RecommenderConfig, get_config
from .schema import CostEstimate, CostLine, ServiceCandidate, TrafficLevel


class CostEstimator:
    """Estimates the monthly cost of a set of services.

    Each service contributes its typical monthly cost scaled by the
    traffic multiplier. Services without pricing data contribute nothing.
    """

    def __init__(self, config: Optional[RecommenderConfig] = None):
        self.config = config or get_config()

    def estimate(
        self,
        services: list[ServiceCandidate],
        traffic: TrafficLevel = TrafficLevel.LOW,
    ) -> CostEstimate:
        multiplier = self.config.cost.traffic_multipliers.get(traffic.value, 1.0)

        breakdown = []
        for service in services:
            definition = service.definition
            if definition is None or definition.pricing is None or definition.pricing.estimated_monthly is None:
                continue
            breakdown.append(CostLine(
                service_id=service.service_id,
                name=definition.name,
                monthly=round(definition.pricing.estimated_monthly.typical * multiplier, 2),
            ))

        monthly = round(sum(line.monthly for line in breakdown), 2)
        return CostEstimate(
            monthly=monthly,
            annual=round(monthly * 12, 2),
            breakdown=breakdown,
            traffic=traffic,
            free_tier_eligible=(
                traffic == TrafficLevel.LOW and monthly < self.config.suitability.free_tier_limit
            ),
        )

    @staticmethod
    def savings(base: CostEstimate, variant: CostEstimate) -> float:
        """Monthly savings of `variant` relative to `base` (negative if it costs more)."""
        return round(base.monthly - variant.monthly, 2)
