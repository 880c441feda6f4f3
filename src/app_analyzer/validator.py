"""Analysis result validation.

Checks an AnalysisResult for internal consistency, grades its
confidence and suggests how to get a better analysis.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .config import AnalyzerConfig, get_config
from .schema import AnalysisResult, Capability, InputType


class ConfidenceLevel(str, Enum):
    """Grade of an analysis' overall confidence."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    LOW = "low"


class ValidationReport(BaseModel):
    """Outcome of validating an AnalysisResult."""
    is_valid: bool
    confidence_level: ConfidenceLevel
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class AnalysisValidator:
    """Validates analysis results.

    Issues are invariant violations that make the result unusable;
    warnings flag combinations that are possible but suspicious.
    """

    UI_FRAMEWORKS = {"react", "vue", "angular", "nextjs"}
    SERVER_FRAMEWORKS = {"nodejs", "python"}

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or get_config()

    def validate(self, result: AnalysisResult) -> ValidationReport:
        """Validate an analysis result."""
        issues = self._check_invariants(result)
        warnings = self._check_consistency(result)
        level = self.determine_confidence_level(result.overall_confidence)

        return ValidationReport(
            is_valid=not issues,
            confidence_level=level,
            issues=issues,
            warnings=warnings,
            suggestions=self._generate_suggestions(result, level),
        )

    def determine_confidence_level(self, confidence: float) -> ConfidenceLevel:
        """Grade an overall confidence value."""
        cfg = self.config.validation
        if confidence >= cfg.excellent_confidence:
            return ConfidenceLevel.EXCELLENT
        if confidence >= cfg.good_confidence:
            return ConfidenceLevel.GOOD
        if confidence >= cfg.minimum_confidence:
            return ConfidenceLevel.FAIR
        return ConfidenceLevel.LOW

    def _check_invariants(self, result: AnalysisResult) -> list[str]:
        issues = []
        infra_cfg = self.config.infrastructure

        for name, detection in (("framework", result.framework), ("app type", result.app_type)):
            ids = [detection.primary.id] + [alt.id for alt in detection.alternatives]
            if len(set(ids)) != len(ids):
                issues.append(f"{name} alternatives repeat a detected id")
            scores = [alt.score for alt in detection.alternatives]
            if scores != sorted(scores, reverse=True):
                issues.append(f"{name} alternatives are not sorted by score")
            if detection.is_unknown and detection.primary.confidence != 0:
                issues.append(f"unknown {name} must have zero confidence")

        for capability, requirement in result.infrastructure.capabilities.items():
            if requirement.required and requirement.confidence <= infra_cfg.required_threshold:
                issues.append(
                    f"{capability.value} is required with confidence "
                    f"{requirement.confidence:.2f} not above {infra_cfg.required_threshold}"
                )

        expected = infra_cfg.base_complexity + sum(
            infra_cfg.complexity_weights.get(c.value, 0)
            for c in result.infrastructure.required_capabilities
        )
        expected = max(1, min(expected, infra_cfg.max_complexity))
        if result.infrastructure.complexity != expected:
            issues.append(
                f"complexity {result.infrastructure.complexity} does not match "
                f"required capabilities (expected {expected})"
            )

        return issues

    def _check_consistency(self, result: AnalysisResult) -> list[str]:
        warnings = []
        framework = result.framework.primary.id
        app_type = result.app_type.primary.id
        infrastructure = result.infrastructure

        if framework in self.UI_FRAMEWORKS and app_type == "api":
            warnings.append(
                f"{result.framework.primary.display_name} is a UI framework "
                "but the application was classified as an API"
            )
        if framework in self.SERVER_FRAMEWORKS and app_type == "spa":
            warnings.append(
                f"{result.framework.primary.display_name} is a server framework "
                "but the application was classified as a single-page app"
            )
        if app_type == "static" and infrastructure.requires(Capability.DATABASE):
            warnings.append("Static site detected but a database appears to be required")

        confidences = [
            c for c in (
                result.framework.primary.confidence,
                result.app_type.primary.confidence,
                infrastructure.confidence,
            )
            if c > 0
        ]
        if confidences and max(confidences) - min(confidences) > self.config.validation.max_confidence_spread:
            warnings.append("Detection stages disagree strongly in confidence")

        return warnings

    def _generate_suggestions(self, result: AnalysisResult, level: ConfidenceLevel) -> list[str]:
        suggestions = []

        if result.framework.is_unknown:
            if result.input_summary.input_type == InputType.DESCRIPTION:
                suggestions.append("Upload source files to detect the framework from code")
            elif result.app_type.primary.id != "static":
                suggestions.append("Include a dependency manifest such as package.json or requirements.txt")

        if level == ConfidenceLevel.LOW:
            suggestions.append("Add entry-point files and configuration to improve detection accuracy")

        if result.app_type.primary.id == "api" and not result.infrastructure.requires(Capability.DATABASE):
            suggestions.append("No database detected for this API; confirm whether data needs to be persisted")

        return suggestions
