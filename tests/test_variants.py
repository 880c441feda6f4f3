"""Tests for cost estimation, compatibility checks and variant derivation."""

import pytest

from app_analyzer.schema import DatabaseSubtype
from architecture_recommender.catalog import (
    CharacteristicChange,
    CompatibilityRules,
    ServiceConflict,
    Substitution,
    VariantRule,
)
from architecture_recommender.compatibility import ServiceCompatibilityValidator
from architecture_recommender.config import MatchingConfig, RecommenderConfig
from architecture_recommender.cost import CostEstimator
from architecture_recommender.schema import (
    Characteristics,
    OptimizationFocus,
    Preferences,
    Requirements,
    ServiceCandidate,
    TrafficLevel,
)
from architecture_recommender.variants import VariantBuilder


@pytest.fixture
def builder(catalog):
    return VariantBuilder(catalog)


def api_requirements(**kwargs) -> Requirements:
    return Requirements(app_type="api", framework="nodejs", **kwargs)


class TestCostEstimator:
    """Tests for monthly cost estimates."""

    def test_sums_typical_costs(self, catalog):
        services = [catalog.candidate(s) for s in ("s3", "cloudfront")]
        estimate = CostEstimator().estimate(services)
        assert estimate.monthly == 11.0
        assert estimate.annual == 132.0
        assert [line.service_id for line in estimate.breakdown] == ["s3", "cloudfront"]
        assert estimate.free_tier_eligible

    def test_traffic_multiplier(self, catalog):
        estimate = CostEstimator().estimate([catalog.candidate("ec2")], TrafficLevel.HIGH)
        assert estimate.monthly == 60.0
        assert estimate.traffic == TrafficLevel.HIGH
        assert not estimate.free_tier_eligible

    def test_skips_services_without_pricing(self, catalog):
        services = [catalog.candidate("lambda"), ServiceCandidate(service_id="mainframe")]
        estimate = CostEstimator().estimate(services)
        assert estimate.monthly == 5.0
        assert len(estimate.breakdown) == 1

    def test_savings(self, catalog):
        estimator = CostEstimator()
        base = estimator.estimate([catalog.candidate("ec2"), catalog.candidate("alb")])
        variant = estimator.estimate([catalog.candidate("lambda"), catalog.candidate("api-gateway")])
        assert estimator.savings(base, variant) == 25.0
        assert estimator.savings(variant, base) == -25.0


class TestCompatibility:
    """Tests for conflict and companion warnings."""

    def test_conflict(self, catalog):
        warnings = ServiceCompatibilityValidator(catalog.compatibility).validate(["lambda", "ec2", "cloudwatch"])
        assert any("Lambda and EC2" in w for w in warnings)

    def test_missing_companion(self, catalog):
        warnings = ServiceCompatibilityValidator(catalog.compatibility).validate(["rds"])
        assert warnings == ["rds is usually deployed with cloudwatch"]

    def test_clean_set(self, catalog):
        validator = ServiceCompatibilityValidator(catalog.compatibility)
        assert validator.validate(["lambda", "api-gateway", "cloudwatch"]) == []

    def test_custom_rules(self):
        rules = CompatibilityRules(conflicts=[ServiceConflict(services=["a", "b"], message="a vs b")])
        assert ServiceCompatibilityValidator(rules).validate(["a", "b"]) == ["a vs b"]


class TestBaseVariant:
    """Tests for a template's default service set."""

    def test_optional_services_follow_requirements(self, builder, catalog):
        template = catalog.templates["serverless-api"]
        plain = builder.base_variant(template, api_requirements())
        assert plain.service_ids == ["lambda", "api-gateway", "cloudwatch"]
        full = builder.base_variant(template, api_requirements(database=True, auth=True, storage=True))
        assert full.service_ids == ["lambda", "api-gateway", "dynamodb", "cognito", "s3", "cloudwatch"]

    @pytest.mark.parametrize(
        "template_id,subtype,expected",
        [
            ("serverless-api", DatabaseSubtype.SQL, "rds"),
            ("serverless-api", DatabaseSubtype.NOSQL, "dynamodb"),
            ("traditional-stack", DatabaseSubtype.NOSQL, "dynamodb"),
            ("traditional-stack", DatabaseSubtype.SQL, "rds"),
        ],
    )
    def test_database_subtype_override(self, builder, catalog, template_id, subtype, expected):
        variant = builder.base_variant(
            catalog.templates[template_id], api_requirements(database=True, database_subtype=subtype)
        )
        assert expected in variant.service_ids

    def test_base_metadata(self, builder, catalog):
        template = catalog.templates["traditional-stack"]
        variant = builder.base_variant(template, api_requirements())
        assert variant.id == "traditional-stack-base"
        assert variant.focus == OptimizationFocus.BALANCED
        assert variant.confidence == 0.9
        assert variant.characteristics == template.characteristics
        assert variant.services[0].configuration == {"instance_type": "t3.small"}

    def test_builder_is_configured_by_catalog_and_config_alone(self, catalog):
        config = RecommenderConfig(matching=MatchingConfig(base_variant_confidence=0.75))
        builder = VariantBuilder(catalog, config)
        variant = builder.base_variant(catalog.templates["static-spa"], Requirements(app_type="static"))
        assert variant.confidence == 0.75
        assert not hasattr(builder, "estimator")


class TestRuleVariants:
    """Tests for applying variant rules."""

    def test_cost_rule_on_traditional_api(self, builder, catalog):
        template = catalog.templates["traditional-stack"]
        requirements = api_requirements(database=True)
        base = builder.base_variant(template, requirements)
        variant = builder.apply_rule(
            "cost", catalog.variants["cost"], base, template, requirements, TrafficLevel.LOW
        )
        assert variant.service_ids == ["lambda", "api-gateway", "dynamodb", "cloudwatch"]
        assert variant.id == "traditional-stack-cost"
        assert variant.name == "Traditional Server Stack (Cost-Optimized)"
        assert "Replaced Amazon EC2 with AWS Lambda" in variant.changes
        assert variant.characteristics == Characteristics(cost=1, complexity=4, scalability=4, availability=4)
        assert variant.pros[:2] == catalog.variants["cost"].pros

    def test_cost_rule_respects_sql_subtype(self, builder, catalog):
        template = catalog.templates["traditional-stack"]
        requirements = api_requirements(database=True, database_subtype=DatabaseSubtype.SQL)
        base = builder.base_variant(template, requirements)
        variant = builder.apply_rule(
            "cost", catalog.variants["cost"], base, template, requirements, TrafficLevel.LOW
        )
        assert "rds" in variant.service_ids
        rds = next(s for s in variant.services if s.service_id == "rds")
        assert rds.configuration == {"instance_type": "db.t3.micro", "multi_az": False}

    def test_compute_substitution_limited_to_api(self, builder, catalog):
        template = catalog.templates["traditional-stack"]
        requirements = Requirements(app_type="fullstack")
        base = builder.base_variant(template, requirements)
        variant = builder.apply_rule(
            "cost", catalog.variants["cost"], base, template, requirements, TrafficLevel.MEDIUM
        )
        assert variant.service_ids == ["ec2", "alb", "cloudwatch"]
        assert variant.services[0].configuration["instance_type"] == "t3.micro"

    def test_substitution_that_drops_a_capability_is_skipped(self, builder, catalog):
        template = catalog.templates["serverless-api"]
        requirements = api_requirements()
        base = builder.base_variant(template, requirements)
        rule = VariantRule(
            name="Broken",
            focus=OptimizationFocus.COST,
            confidence=0.5,
            substitutions=[Substitution(replace="api-gateway", with_service="cognito")],
        )
        variant = builder.apply_rule("broken", rule, base, template, requirements, TrafficLevel.LOW)
        assert variant.service_ids == base.service_ids
        assert variant.changes == []

    def test_replacement_already_present_removes_old_service(self, builder, catalog):
        template = catalog.templates["serverless-api"]
        requirements = api_requirements()
        base = builder.base_variant(template, requirements)
        base = base.model_copy(update={"services": base.services + [catalog.candidate("alb")]})
        rule = VariantRule(
            name="Dedupe",
            focus=OptimizationFocus.SIMPLICITY,
            confidence=0.8,
            substitutions=[Substitution(replace="alb", with_service="api-gateway")],
        )
        variant = builder.apply_rule("dedupe", rule, base, template, requirements, TrafficLevel.LOW)
        assert variant.service_ids == ["lambda", "api-gateway", "cloudwatch"]

    def test_performance_additions(self, builder, catalog):
        template = catalog.templates["serverless-api"]
        requirements = api_requirements()
        base = builder.base_variant(template, requirements)
        variant = builder.apply_rule(
            "performance", catalog.variants["performance"], base, template, requirements, TrafficLevel.LOW
        )
        assert variant.service_ids == ["lambda", "api-gateway", "cloudwatch", "elasticache", "cloudfront"]
        lambda_fn = variant.services[0]
        assert lambda_fn.configuration == {"provisioned": True, "memory": 1024}
        added = variant.services[-1]
        assert not added.required

    def test_characteristics_clamped(self):
        rule = VariantRule(
            name="Extreme",
            focus=OptimizationFocus.COST,
            confidence=0.5,
            characteristics=CharacteristicChange(set={"scalability": 5}, adjust={"cost": -4, "scalability": 2}),
        )
        result = VariantBuilder._characteristics(Characteristics(cost=2), rule)
        assert result.cost == 1
        assert result.scalability == 5


class TestBuild:
    """Tests for the full variant list of a template."""

    def test_default_preferences(self, builder, catalog):
        variants = builder.build(catalog.templates["traditional-stack"], api_requirements())
        assert [v.id for v in variants] == ["traditional-stack-base", "traditional-stack-scalability"]
        assert variants[1].services[0].configuration["auto_scaling"] is True

    def test_variant_identical_to_base_is_dropped(self, builder, catalog):
        variants = builder.build(catalog.templates["static-spa"], Requirements(app_type="static"))
        assert [v.id for v in variants] == ["static-spa-base"]

    def test_cost_priority_adds_cost_variant(self, builder, catalog):
        variants = builder.build(
            catalog.templates["traditional-stack"], api_requirements(), Preferences(cost_priority=5)
        )
        assert [v.focus for v in variants] == [
            OptimizationFocus.BALANCED, OptimizationFocus.COST, OptimizationFocus.SCALABILITY,
        ]

    def test_scalability_variant_with_database(self, builder, catalog):
        requirements = api_requirements(database=True, database_subtype=DatabaseSubtype.SQL)
        variants = builder.build(catalog.templates["traditional-stack"], requirements)
        assert [v.focus for v in variants] == [OptimizationFocus.BALANCED, OptimizationFocus.SCALABILITY]
        scalable = variants[1]
        assert scalable.characteristics.scalability == 5
        rds = next(s for s in scalable.services if s.service_id == "rds")
        assert rds.configuration["multi_az"] is True

    def test_low_tolerance_and_performance(self, builder, catalog):
        preferences = Preferences(complexity_tolerance=1, performance_requirements=5)
        variants = builder.build(catalog.templates["container-stack"], api_requirements(), preferences)
        focuses = [v.focus for v in variants]
        assert OptimizationFocus.PERFORMANCE in focuses
        assert OptimizationFocus.SIMPLICITY in focuses
        simple = next(v for v in variants if v.focus == OptimizationFocus.SIMPLICITY)
        assert simple.service_ids[0] == "lambda"
        assert all(s.configuration.get("managed_updates") for s in simple.services)
