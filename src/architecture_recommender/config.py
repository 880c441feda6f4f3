"""Centralized configuration management for the architecture recommender."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class RankingWeightsConfig(BaseModel):
    """Weights for the six service ranking criteria.

    They should sum to 1.0.
    """
    cost: float = Field(0.25, description="Weight for traffic-adjusted monthly cost")
    complexity: float = Field(0.20, description="Weight for operational complexity vs. tolerance")
    scalability: float = Field(0.20, description="Weight for scalability vs. traffic")
    reliability: float = Field(0.15, description="Weight for reliability features")
    performance: float = Field(0.10, description="Weight for performance vs. requirements")
    maturity: float = Field(0.10, description="Weight for service maturity")


class CostStep(BaseModel):
    """Cost score for monthly costs up to `max_monthly`."""
    max_monthly: float
    score: float


class CostScoringConfig(BaseModel):
    """Constants for the cost criterion."""
    steps: list[CostStep] = Field(
        default_factory=lambda: [
            CostStep(max_monthly=10, score=1.0),
            CostStep(max_monthly=50, score=0.8),
            CostStep(max_monthly=100, score=0.6),
            CostStep(max_monthly=200, score=0.4),
        ],
        description="Step function of adjusted monthly cost, ascending"
    )
    above_steps_score: float = Field(0.2, description="Score when cost exceeds every step")
    traffic_multipliers: dict[str, float] = Field(
        default_factory=lambda: {"low": 1.0, "medium": 2.0, "high": 4.0},
        description="Multiplier applied to typical monthly cost per traffic level"
    )
    free_tier_bonus: float = Field(0.1, description="Bonus when the service has a free tier")
    budget_threshold: float = Field(
        0.8,
        description="Fraction of the budget above which the budget penalty applies"
    )
    budget_penalty: float = Field(0.7, description="Multiplier when the budget threshold is exceeded")
    usage_pricing_bonus: float = Field(
        0.1,
        description="Bonus for usage-based pricing when traffic is not high"
    )
    usage_pricing_models: list[str] = Field(
        default_factory=lambda: ["usage"],
        description="Pricing models treated as usage-based"
    )


class ComplexityScoringConfig(BaseModel):
    """Constants for the complexity criterion."""
    high_tolerance: int = Field(4, description="Tolerance at or above which complexity barely matters")
    high_tolerance_score: float = Field(0.8, description="Flat score under high tolerance")
    low_tolerance: int = Field(2, description="Tolerance at or below which complexity is inverted")
    managed_bonus: float = Field(0.1, description="Bonus for non-compute services under low tolerance")
    simple_threshold: int = Field(3, description="Service complexity counted as simple under mid tolerance")
    simple_score: float = Field(0.8, description="Mid-tolerance score for simple services")
    complex_score: float = Field(0.6, description="Mid-tolerance score for complex services")


class ScalabilityScoringConfig(BaseModel):
    """Constants for the scalability criterion."""
    minimum_rating: dict[str, int] = Field(
        default_factory=lambda: {"low": 3, "medium": 4, "high": 5},
        description="Rating a service needs to fully satisfy each traffic level"
    )
    medium_shortfall_score: float = Field(0.7, description="Score one rating short under medium traffic")
    high_shortfall_score: float = Field(0.8, description="Score one rating short under high traffic")
    high_insufficient_score: float = Field(0.4, description="Score two or more short under high traffic")
    growth_bonus: float = Field(0.1, description="Bonus for rating >= 4 under rapid growth")
    auto_scaling_bonus: float = Field(0.1, description="Bonus when auto scaling is configured")


class ReliabilityScoringConfig(BaseModel):
    """Constants for the reliability criterion."""
    base: float = Field(0.7, description="Base reliability score")
    managed_bonus: float = Field(0.2, description="Bonus for fully-managed services")
    multi_az_bonus: float = Field(0.1, description="Bonus for multi-zone configuration")
    backup_bonus: float = Field(0.1, description="Bonus for automated backups")
    critical_bonus: float = Field(0.1, description="Bonus for proven services under high criticality")
    proven_services: list[str] = Field(
        default_factory=lambda: ["lambda", "s3"],
        description="Services with a strong availability track record"
    )


class PerformanceProfile(BaseModel):
    """Performance scores for one service."""
    standard: float
    demanding: float


class PerformanceScoringConfig(BaseModel):
    """Constants for the performance criterion."""
    base: float = Field(0.6, description="Score for services without a profile")
    demanding_level: int = Field(4, description="Requirement level treated as demanding")
    default_level: int = Field(3, description="Requirement level when none is given")
    profiles: dict[str, PerformanceProfile] = Field(
        default_factory=lambda: {
            "lambda": PerformanceProfile(standard=0.8, demanding=0.5),
            "ec2": PerformanceProfile(standard=0.7, demanding=0.9),
            "dynamodb": PerformanceProfile(standard=0.8, demanding=0.9),
            "rds": PerformanceProfile(standard=0.7, demanding=0.7),
            "cloudfront": PerformanceProfile(standard=0.9, demanding=0.9),
            "elasticache": PerformanceProfile(standard=0.9, demanding=0.9),
        },
        description="Per-service scores for standard and demanding requirements"
    )
    caching_bonus: float = Field(0.1, description="Bonus for aggressive caching")
    provisioned_bonus: float = Field(0.1, description="Bonus for provisioned capacity")


class MaturityScoringConfig(BaseModel):
    """Constants for the maturity criterion."""
    well_established: list[str] = Field(
        default_factory=lambda: ["s3", "ec2", "rds", "cloudfront", "route53"],
        description="Long-established services"
    )
    well_established_score: float = Field(0.9)
    stable: list[str] = Field(
        default_factory=lambda: ["lambda", "dynamodb", "api-gateway", "ecs"],
        description="Stable but newer services"
    )
    stable_score: float = Field(0.8)
    default_score: float = Field(0.7)
    documentation_bonus: float = Field(0.1, description="Flat bonus for documentation and community")


class TierThresholdsConfig(BaseModel):
    """Overall score thresholds for tiers."""
    recommended: float = Field(0.8)
    suitable: float = Field(0.6)
    acceptable: float = Field(0.4)


class MatchingConfig(BaseModel):
    """Template matching weights and limits."""
    max_templates: int = Field(3, description="Maximum templates considered per analysis")
    min_match_score: float = Field(0.2, description="Templates scoring below this are dropped")
    base_variant_confidence: float = Field(0.9, description="Confidence of a template's unmodified service set")
    app_type_weight: float = Field(0.35)
    framework_weight: float = Field(0.25)
    requirements_weight: float = Field(0.40)
    requirement_weights: dict[str, float] = Field(
        default_factory=lambda: {
            "database": 0.30,
            "auth": 0.20,
            "realtime": 0.20,
            "storage": 0.15,
            "traffic": 0.15,
        },
        description="Weights of the individual requirement checks"
    )


class SuitabilityConfig(BaseModel):
    """How variants are re-ranked against user preferences."""
    match_weight: float = Field(0.7, description="Weight of the template match score")
    preference_weight: float = Field(0.3, description="Weight of the preference fit")
    focus_bonus: float = Field(0.1, description="Bonus when the variant's focus matches a strong preference")
    traffic_bonus: float = Field(0.05, description="Bonus for scalable variants under high traffic")
    budget_bonus: float = Field(0.05, description="Bonus when the monthly cost is within budget")
    strong_preference: int = Field(4, description="Preference value treated as strong")
    low_tolerance: int = Field(2, description="Complexity tolerance treated as low")
    free_tier_limit: float = Field(20.0, description="Monthly cost below which low traffic fits free tiers")


class InsightConfig(BaseModel):
    """Thresholds for insights and suggestions."""
    complex_service: int = Field(4, description="Service complexity flagged under low tolerance")
    scalable_service: int = Field(4, description="Scalability below this is flagged under high traffic")
    high_performance: float = Field(0.8, description="Performance score counted as high")
    low_cost: float = Field(0.8, description="Cost score counted as low cost")
    simple_service: int = Field(2, description="Service complexity counted as simple")
    flexible_categories: list[str] = Field(
        default_factory=lambda: ["compute"],
        description="Service categories counted as flexible"
    )
    expensive_service: float = Field(50.0, description="Monthly cost flagged under high cost priority")
    slow_service: float = Field(0.8, description="Performance below this is flagged under demanding needs")


class RecommenderConfig(BaseModel):
    """Complete configuration for the architecture recommender."""
    neutral_score: float = Field(0.5, description="Criterion score when service data is missing")
    ranking_weights: RankingWeightsConfig = Field(default_factory=RankingWeightsConfig)
    cost: CostScoringConfig = Field(default_factory=CostScoringConfig)
    complexity: ComplexityScoringConfig = Field(default_factory=ComplexityScoringConfig)
    scalability: ScalabilityScoringConfig = Field(default_factory=ScalabilityScoringConfig)
    reliability: ReliabilityScoringConfig = Field(default_factory=ReliabilityScoringConfig)
    performance: PerformanceScoringConfig = Field(default_factory=PerformanceScoringConfig)
    maturity: MaturityScoringConfig = Field(default_factory=MaturityScoringConfig)
    tiers: TierThresholdsConfig = Field(default_factory=TierThresholdsConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    suitability: SuitabilityConfig = Field(default_factory=SuitabilityConfig)
    insights: InsightConfig = Field(default_factory=InsightConfig)


# Global config instance
_config: Optional[RecommenderConfig] = None


def get_config() -> RecommenderConfig:
    """Get the current configuration.

    Returns the global config, initializing with defaults if not yet loaded.
    """
    global _config
    if _config is None:
        _config = RecommenderConfig()
    return _config


def load_config(path: Path) -> RecommenderConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        The loaded RecommenderConfig.
    """
    global _config

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    _config = RecommenderConfig.model_validate(data or {})
    return _config


def reset_config() -> None:
    """Reset configuration to defaults."""
    global _config
    _config = RecommenderConfig()


def find_config_file() -> Optional[Path]:
    """Find a recommender configuration file.

    Looks in (order of priority):
    1. ARCHITECTURE_RECOMMENDER_CONFIG environment variable
    2. ./recommender-config.yaml
    3. ./recommender-config.yml
    4. ~/.config/architecture-recommender/config.yaml
    """
    env_path = os.environ.get("ARCHITECTURE_RECOMMENDER_CONFIG")
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path

    for name in ["recommender-config.yaml", "recommender-config.yml"]:
        path = Path(name)
        if path.exists():
            return path

    user_config = Path.home() / ".config" / "architecture-recommender" / "config.yaml"
    if user_config.exists():
        return user_config

    return None


def save_default_config(path: Path) -> None:
    """Save the default configuration to a YAML file.

    Args:
        path: Path where to save the configuration.
    """
    data = RecommenderConfig().model_dump()

    yaml_content = """# Architecture Recommender Configuration
# ======================================
#
# This file configures service ranking weights, criterion scoring tables,
# tier thresholds, template matching and variant suitability.
#
# Copy this file to one of these locations:
#   - ./recommender-config.yaml (current directory)
#   - ~/.config/architecture-recommender/config.yaml (user config)
#
# Or set the ARCHITECTURE_RECOMMENDER_CONFIG environment variable.

"""
    yaml_content += yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(yaml_content)
