"""Tests for insights, trade-offs and optimization suggestions."""

import pytest

from architecture_recommender.explainer import RecommendationExplainer
from architecture_recommender.ranker import ServiceRanker
from architecture_recommender.schema import (
    Preferences,
    RankingContext,
    Requirements,
    TrafficLevel,
)


@pytest.fixture
def explainer():
    return RecommendationExplainer()


@pytest.fixture
def rank(catalog):
    """Rank catalog services with the given requirements and preferences."""
    def _rank(service_ids, requirements=None, preferences=None):
        candidates = [catalog.candidate(service_id) for service_id in service_ids]
        return ServiceRanker().rank_services(candidates, requirements, preferences)
    return _rank


HIGH_TRAFFIC = Requirements(traffic=TrafficLevel.HIGH)


class TestExplain:
    """Tests for tier grouping."""

    def test_every_service_lands_in_one_tier(self, explainer, rank):
        ranked = rank(["ec2", "elasticache", "sqs", "rds"], HIGH_TRAFFIC)
        summary = explainer.explain(ranked, HIGH_TRAFFIC)
        grouped = summary.recommended + summary.suitable + summary.acceptable + summary.not_recommended
        assert sorted(s.service_id for s in grouped) == ["ec2", "elasticache", "rds", "sqs"]

    def test_empty_ranking(self, explainer):
        summary = explainer.explain([])
        assert summary.recommended == []
        assert summary.insights == []
        assert summary.tradeoffs == []
        assert summary.optimization_suggestions == []


class TestInsights:
    """Tests for generated insights."""

    def test_cost_range(self, explainer, rank):
        ranked = rank(["s3", "cloudfront"])
        insights = explainer.generate_insights(ranked, Requirements(), Preferences(), RankingContext())
        assert [i.type for i in insights] == ["cost"]
        assert insights[0].message == "Monthly costs range from $3.00 to $8.00, averaging $5.50"

    def test_limited_scalability_under_high_traffic(self, explainer, rank):
        ranked = rank(["ec2", "elasticache", "sqs", "rds"], HIGH_TRAFFIC)
        insights = explainer.generate_insights(ranked, HIGH_TRAFFIC, Preferences(), RankingContext())
        scalability = next(i for i in insights if i.type == "scalability")
        assert scalability.services == ["rds"]
        assert scalability.impact == "high"

    def test_traffic_taken_from_context(self, explainer, rank):
        ranked = rank(["rds"], HIGH_TRAFFIC)
        insights = explainer.generate_insights(
            ranked, Requirements(), Preferences(), RankingContext(traffic=TrafficLevel.HIGH)
        )
        assert "scalability" in [i.type for i in insights]

    def test_complex_services_under_low_tolerance(self, explainer, rank):
        preferences = Preferences(complexity_tolerance=2)
        ranked = rank(["ecs", "lambda"], preferences=preferences)
        insights = explainer.generate_insights(ranked, Requirements(), preferences, RankingContext())
        complexity = next(i for i in insights if i.type == "complexity")
        assert complexity.services == ["ecs"]

    def test_no_complexity_insight_for_experienced_teams(self, explainer, rank):
        ranked = rank(["ecs"])
        insights = explainer.generate_insights(ranked, Requirements(), Preferences(), RankingContext())
        assert "complexity" not in [i.type for i in insights]


class TestTradeoffs:
    """Tests for trade-off detection."""

    def test_cost_vs_performance_and_simplicity_vs_flexibility(self, explainer, rank):
        ranked = rank(["ec2", "elasticache", "sqs", "rds"], HIGH_TRAFFIC)
        tradeoffs = {t.type: t for t in explainer.identify_tradeoffs(ranked)}
        assert tradeoffs["cost-vs-performance"].groups == {
            "high_performance": ["elasticache"],
            "low_cost": ["sqs"],
        }
        assert tradeoffs["simplicity-vs-flexibility"].groups == {"simple": ["sqs"], "flexible": ["ec2"]}

    def test_overlapping_groups_are_not_a_tradeoff(self, explainer, rank):
        # CloudFront is both fast and cheap at low traffic
        ranked = rank(["cloudfront"])
        types = [t.type for t in explainer.identify_tradeoffs(ranked)]
        assert "cost-vs-performance" not in types


class TestSuggestions:
    """Tests for preference-driven suggestions."""

    def test_cost_optimization(self, explainer, rank):
        preferences = Preferences(cost_priority=5)
        ranked = rank(["ecs", "lambda"], Requirements(traffic=TrafficLevel.MEDIUM), preferences)
        suggestions = explainer.generate_suggestions(ranked, preferences)
        cost = next(s for s in suggestions if s.type == "cost-optimization")
        assert cost.services == ["ecs"]

    def test_performance_optimization(self, explainer, rank):
        preferences = Preferences(performance_requirements=4)
        ranked = rank(["lambda", "elasticache"], preferences=preferences)
        suggestions = explainer.generate_suggestions(ranked, preferences)
        performance = next(s for s in suggestions if s.type == "performance-optimization")
        assert performance.services == ["lambda"]

    def test_simplicity_optimization(self, explainer, rank):
        preferences = Preferences(complexity_tolerance=1)
        ranked = rank(["ec2", "ecs", "lambda"], preferences=preferences)
        suggestions = explainer.generate_suggestions(ranked, preferences)
        simplicity = next(s for s in suggestions if s.type == "simplicity-optimization")
        assert sorted(simplicity.services) == ["ec2", "ecs"]

    def test_no_suggestions_for_neutral_preferences(self, explainer, rank):
        ranked = rank(["ec2", "ecs", "lambda"])
        assert explainer.generate_suggestions(ranked, Preferences()) == []
