"""Schema definitions for architecture recommendation.

Covers the service catalog, architecture templates and variants, user
preferences and requirements, and the ranked output structures.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from app_analyzer.schema import AnalysisResult, Capability, DatabaseSubtype


# =============================================================================
# Enums
# =============================================================================

class TrafficLevel(str, Enum):
    """Expected request volume."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Criticality(str, Enum):
    """Business criticality of the workload."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GrowthRate(str, Enum):
    """Expected growth of traffic over time."""
    STABLE = "stable"
    MODERATE = "moderate"
    RAPID = "rapid"


class Tier(str, Enum):
    """Discrete recommendation bucket derived from an overall score."""
    RECOMMENDED = "recommended"
    SUITABLE = "suitable"
    ACCEPTABLE = "acceptable"
    NOT_RECOMMENDED = "not-recommended"


class OptimizationFocus(str, Enum):
    """Axis a variant is optimized along."""
    BALANCED = "balanced"
    COST = "cost"
    PERFORMANCE = "performance"
    SIMPLICITY = "simplicity"
    SCALABILITY = "scalability"


class Criterion(str, Enum):
    """Service ranking criteria."""
    COST = "cost"
    COMPLEXITY = "complexity"
    SCALABILITY = "scalability"
    RELIABILITY = "reliability"
    PERFORMANCE = "performance"
    MATURITY = "maturity"


# =============================================================================
# Service catalog
# =============================================================================

class MonthlyCost(BaseModel):
    """Estimated monthly cost range in USD at low traffic."""
    min: float = 0.0
    typical: float
    max: Optional[float] = None


class Pricing(BaseModel):
    """Pricing block of a service definition."""
    model: str
    unit: Optional[str] = None
    estimated_monthly: Optional[MonthlyCost] = None
    free_tier: Optional[str] = None

    @property
    def has_free_tier(self) -> bool:
        return bool(self.free_tier) and self.free_tier.strip().lower() != "none"


class ServiceDefinition(BaseModel):
    """A cloud service as described in the catalog.

    Ratings are 1 (low) to 5 (high). Missing ratings or pricing make the
    corresponding ranking criteria fall back to a neutral score.
    """
    id: str
    name: str
    category: str
    description: str = ""
    complexity: Optional[int] = Field(None, ge=1, le=5)
    scalability: Optional[int] = Field(None, ge=1, le=5)
    reliability: Optional[int] = Field(None, ge=1, le=5)
    managed: bool = False
    provides: list[str] = Field(default_factory=list)
    pricing: Optional[Pricing] = None


class ServiceCandidate(BaseModel):
    """A service chosen for an architecture, with its configuration."""
    model_config = ConfigDict(frozen=True)

    service_id: str
    definition: Optional[ServiceDefinition] = None
    purpose: str = ""
    required: bool = True
    configuration: dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.definition.name if self.definition else self.service_id

    @property
    def category(self) -> Optional[str]:
        return self.definition.category if self.definition else None


# =============================================================================
# User input
# =============================================================================

class Preferences(BaseModel):
    """User preference weights on a 1-5 scale."""
    model_config = ConfigDict(frozen=True)

    cost_priority: int = Field(3, ge=1, le=5)
    complexity_tolerance: int = Field(3, ge=1, le=5)
    performance_requirements: int = Field(3, ge=1, le=5)


class Requirements(BaseModel):
    """What the architecture has to support."""
    model_config = ConfigDict(frozen=True)

    app_type: Optional[str] = None
    framework: Optional[str] = None
    traffic: Optional[TrafficLevel] = None
    criticality: Criticality = Criticality.MEDIUM
    performance_requirements: Optional[int] = Field(None, ge=1, le=5)
    database: bool = False
    database_subtype: Optional[DatabaseSubtype] = None
    auth: bool = False
    storage: bool = False
    realtime: bool = False
    cache: bool = False
    queue: bool = False
    custom_domain: bool = False

    @classmethod
    def from_analysis(cls, analysis: AnalysisResult, **overrides: Any) -> "Requirements":
        """Derive requirements from an analysis result.

        Keyword overrides (traffic, criticality, custom_domain, ...) take
        precedence over detected values.
        """
        infra = analysis.infrastructure
        database = infra.get(Capability.DATABASE)
        data = {
            "app_type": analysis.app_type.primary.id,
            "framework": analysis.framework.primary.id,
            "database": database.required,
            "database_subtype": database.subtype,
            "auth": infra.requires(Capability.AUTH),
            "storage": infra.requires(Capability.STORAGE),
            "realtime": infra.requires(Capability.REALTIME),
            "cache": infra.requires(Capability.CACHE),
            "queue": infra.requires(Capability.QUEUE),
        }
        data.update(overrides)
        return cls.model_validate(data)

    def needs(self, condition: str) -> bool:
        """Whether a named condition (capability flag) holds."""
        if condition == "always":
            return True
        return bool(getattr(self, condition, False))


class RankingContext(BaseModel):
    """Deployment context for ranking."""
    model_config = ConfigDict(frozen=True)

    traffic: Optional[TrafficLevel] = None
    budget: Optional[float] = Field(None, gt=0)
    expected_growth: GrowthRate = GrowthRate.MODERATE
    performance_requirements: Optional[int] = Field(None, ge=1, le=5)


# =============================================================================
# Ranking output
# =============================================================================

class CriterionScore(BaseModel):
    """Score for one ranking criterion."""
    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0.0, le=1.0)
    reasons: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    estimated_cost: Optional[float] = None


class ScoreBreakdown(BaseModel):
    """Per-criterion scores for a ranked service."""
    model_config = ConfigDict(frozen=True)

    cost: CriterionScore
    complexity: CriterionScore
    scalability: CriterionScore
    reliability: CriterionScore
    performance: CriterionScore
    maturity: CriterionScore

    def get(self, criterion: Criterion) -> CriterionScore:
        return getattr(self, criterion.value)

    def items(self) -> list[tuple[Criterion, CriterionScore]]:
        return [(criterion, self.get(criterion)) for criterion in Criterion]


class RankedService(BaseModel):
    """A service candidate with its ranking."""
    model_config = ConfigDict(frozen=True)

    candidate: ServiceCandidate
    overall: float = Field(ge=0.0, le=1.0)
    breakdown: ScoreBreakdown
    reasons: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    rank: int = Field(ge=1)
    tier: Tier

    @property
    def service_id(self) -> str:
        return self.candidate.service_id

    @property
    def name(self) -> str:
        return self.candidate.name

    @property
    def estimated_cost(self) -> Optional[float]:
        return self.breakdown.cost.estimated_cost


class ServiceComparison(BaseModel):
    """Head-to-head comparison of two ranked services."""
    service_a: str
    service_b: str
    winners: dict[Criterion, Optional[str]] = Field(default_factory=dict)
    overall_winner: Optional[str] = None


# =============================================================================
# Architecture templates and variants
# =============================================================================

class Characteristics(BaseModel):
    """1-5 ratings of an architecture (cost: 1 cheap, 5 expensive)."""
    model_config = ConfigDict(frozen=True)

    cost: int = Field(3, ge=1, le=5)
    complexity: int = Field(3, ge=1, le=5)
    scalability: int = Field(3, ge=1, le=5)
    availability: int = Field(3, ge=1, le=5)


class TemplateService(BaseModel):
    """A service slot in an architecture template."""
    service: str
    purpose: str = ""
    required: bool = True
    include_when: Optional[str] = None
    subtype_overrides: dict[DatabaseSubtype, str] = Field(default_factory=dict)
    configuration: dict[str, Any] = Field(default_factory=dict)


class ArchitectureTemplate(BaseModel):
    """A reusable architecture pattern."""
    id: str
    name: str
    description: str = ""
    services: list[TemplateService]
    required_capabilities: list[str] = Field(default_factory=list)
    characteristics: Characteristics = Field(default_factory=Characteristics)
    app_types: list[str] = Field(default_factory=list)
    frameworks: list[str] = Field(default_factory=list)
    supports: list[str] = Field(default_factory=list)
    max_traffic: TrafficLevel = TrafficLevel.HIGH
    deployment_time: Optional[str] = None
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)


class CostLine(BaseModel):
    """One service's share of a cost estimate."""
    service_id: str
    name: str
    monthly: float


class CostEstimate(BaseModel):
    """Aggregate monthly cost of a set of services."""
    model_config = ConfigDict(frozen=True)

    monthly: float
    annual: float
    breakdown: list[CostLine] = Field(default_factory=list)
    traffic: TrafficLevel = TrafficLevel.LOW
    free_tier_eligible: bool = False


class ArchitectureVariant(BaseModel):
    """A concrete service set derived from a template."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    focus: OptimizationFocus
    services: list[ServiceCandidate]
    characteristics: Characteristics
    confidence: float = Field(ge=0.0, le=1.0)
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    changes: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def service_ids(self) -> list[str]:
        return [s.service_id for s in self.services]


class ScoringDimension(BaseModel):
    """One dimension of a template match score."""
    dimension: str
    weight: float
    raw_score: float = Field(ge=0.0, le=1.0)
    weighted_score: float
    reasoning: str


class PatternMatch(BaseModel):
    """A template variant matched to an analysis."""
    model_config = ConfigDict(frozen=True)

    template: ArchitectureTemplate
    variant: ArchitectureVariant
    score: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    dimensions: list[ScoringDimension] = Field(default_factory=list)
    reasons: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# Recommendation output
# =============================================================================

class Insight(BaseModel):
    """Observation derived from score breakdowns."""
    type: str
    message: str
    impact: str = "medium"
    services: list[str] = Field(default_factory=list)


class Tradeoff(BaseModel):
    """Two disjoint groups of services that each win on one axis."""
    type: str
    message: str
    groups: dict[str, list[str]] = Field(default_factory=dict)


class OptimizationSuggestion(BaseModel):
    """Preference-driven corrective action."""
    type: str
    message: str
    action: str
    services: list[str] = Field(default_factory=list)


class ServiceRecommendations(BaseModel):
    """Ranked services grouped by tier, with derived guidance."""
    recommended: list[RankedService] = Field(default_factory=list)
    suitable: list[RankedService] = Field(default_factory=list)
    acceptable: list[RankedService] = Field(default_factory=list)
    not_recommended: list[RankedService] = Field(default_factory=list)
    insights: list[Insight] = Field(default_factory=list)
    tradeoffs: list[Tradeoff] = Field(default_factory=list)
    optimization_suggestions: list[OptimizationSuggestion] = Field(default_factory=list)


class Recommendation(BaseModel):
    """A ranked architecture variant with its services and cost."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    template_id: str
    focus: OptimizationFocus
    description: str = ""
    services: list[RankedService]
    cost_estimate: CostEstimate
    savings: Optional[float] = None
    characteristics: Characteristics
    match_score: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    suitability_score: float = Field(ge=0.0, le=1.0)
    rank: int = Field(ge=1)
    tier: Tier
    reasons: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    deployment_time: Optional[str] = None
    summary: ServiceRecommendations = Field(default_factory=ServiceRecommendations)
