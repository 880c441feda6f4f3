"""Centralized configuration management for the application analyzer."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class CategoryWeightsConfig(BaseModel):
    """Weights for the four framework indicator categories.

    Used when a framework rule does not declare its own weights. They
    should sum to 1.0.
    """
    dependencies: float = Field(0.4, description="Weight for declared manifest dependencies")
    files: float = Field(0.3, description="Weight for file-name patterns")
    content: float = Field(0.2, description="Weight for content patterns")
    commands: float = Field(0.1, description="Weight for build/run command patterns")


class FrameworkScoringConfig(BaseModel):
    """Constants for framework scoring.

    The boost and penalty values were tuned against a small labeled corpus
    and are meant to be adjusted.
    """
    category_weights: CategoryWeightsConfig = Field(default_factory=CategoryWeightsConfig)
    strong_dependency_bonus: float = Field(
        0.3,
        description="Added to the dependency score per strong dependency matched"
    )
    strong_content_bonus: float = Field(
        0.2,
        description="Added to the content score per strong content pattern matched"
    )
    boost_dependency_threshold: float = Field(
        0.5,
        description="Dependency score must exceed this for the corroboration boost"
    )
    boost_corroboration_threshold: float = Field(
        0.3,
        description="File or content score must exceed this for the corroboration boost"
    )
    boost_factor: float = Field(1.5, description="Multiplier for corroborated matches")
    weak_threshold: float = Field(0.3, description="Scores below this are penalized")
    weak_factor: float = Field(0.5, description="Multiplier for weak matches")
    min_detection_score: float = Field(
        0.1,
        description="Final scores below this do not count as a detected framework"
    )


class AppTypeScoringConfig(BaseModel):
    """Constants for application-type scoring."""
    framework_weight: float = Field(0.6, description="Contribution of a compatible framework")
    no_framework_weight: float = Field(
        0.6,
        description="Contribution for no-framework types when the framework is unknown"
    )
    file_weight: float = Field(0.25, description="Weight for file-name patterns")
    content_weight: float = Field(0.25, description="Weight for content patterns")
    structure_bonus: float = Field(
        0.4,
        description="Added to full-stack when client and server areas both exist"
    )
    structure_missing_factor: float = Field(
        0.5,
        description="Multiplier for full-stack when dual structure is absent"
    )
    dual_structure_penalty: float = Field(
        0.3,
        description="Multiplier for other types when dual structure is present"
    )
    strong_threshold: float = Field(0.7, description="Scores above this are boosted")
    strong_factor: float = Field(1.2, description="Multiplier for strong matches")
    weak_threshold: float = Field(0.3, description="Scores below this are penalized")
    weak_factor: float = Field(0.7, description="Multiplier for weak matches")


class InfrastructureScoringConfig(BaseModel):
    """Constants for infrastructure capability scoring."""
    strong_bonus: float = Field(0.3, description="Added per strong indicator matched")
    noise_floor: float = Field(0.2, description="Scores below this are treated as no evidence")
    report_threshold: float = Field(0.2, description="Scores must exceed this for a capability to be reported")
    required_threshold: float = Field(0.4, description="Scores must exceed this for a capability to be required")
    base_complexity: int = Field(1, description="Complexity with no required capabilities")
    max_complexity: int = Field(5, description="Upper bound for complexity")
    complexity_weights: dict[str, int] = Field(
        default_factory=lambda: {
            "database": 2,
            "auth": 2,
            "storage": 1,
            "realtime": 3,
            "cache": 1,
            "queue": 2,
        },
        description="Complexity added by each required capability"
    )


class OverallConfidenceConfig(BaseModel):
    """Stage weights for the overall analysis confidence.

    Stages with zero confidence are left out of both numerator and total.
    """
    framework: float = Field(0.4, description="Weight for framework detection confidence")
    app_type: float = Field(0.3, description="Weight for application-type confidence")
    infrastructure: float = Field(0.3, description="Weight for infrastructure confidence")


class ValidationConfig(BaseModel):
    """Thresholds used by the analysis validator."""
    minimum_confidence: float = Field(0.3, description="Below this the analysis is low confidence")
    good_confidence: float = Field(0.6, description="Minimum for a good analysis")
    excellent_confidence: float = Field(0.8, description="Minimum for an excellent analysis")
    max_confidence_spread: float = Field(
        0.5,
        description="Warn when stage confidences differ by more than this"
    )


class AnalyzerConfig(BaseModel):
    """Complete configuration for the application analyzer."""
    framework: FrameworkScoringConfig = Field(default_factory=FrameworkScoringConfig)
    app_type: AppTypeScoringConfig = Field(default_factory=AppTypeScoringConfig)
    infrastructure: InfrastructureScoringConfig = Field(default_factory=InfrastructureScoringConfig)
    overall_confidence: OverallConfidenceConfig = Field(default_factory=OverallConfidenceConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)


# Global config instance
_config: Optional[AnalyzerConfig] = None


def get_config() -> AnalyzerConfig:
    """Get the current configuration.

    Returns the global config, initializing with defaults if not yet loaded.
    """
    global _config
    if _config is None:
        _config = AnalyzerConfig()
    return _config


def load_config(path: Path) -> AnalyzerConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        The loaded AnalyzerConfig.
    """
    global _config

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    _config = AnalyzerConfig.model_validate(data or {})
    return _config


def reset_config() -> None:
    """Reset configuration to defaults."""
    global _config
    _config = AnalyzerConfig()


def find_config_file() -> Optional[Path]:
    """Find an analyzer configuration file.

    Looks in (order of priority):
    1. APP_ANALYZER_CONFIG environment variable
    2. ./analyzer-config.yaml
    3. ./analyzer-config.yml
    4. ~/.config/app-analyzer/config.yaml
    """
    env_path = os.environ.get("APP_ANALYZER_CONFIG")
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path

    for name in ["analyzer-config.yaml", "analyzer-config.yml"]:
        path = Path(name)
        if path.exists():
            return path

    user_config = Path.home() / ".config" / "app-analyzer" / "config.yaml"
    if user_config.exists():
        return user_config

    return None


def save_default_config(path: Path) -> None:
    """Save the default configuration to a YAML file.

    Args:
        path: Path where to save the configuration.
    """
    data = AnalyzerConfig().model_dump()

    yaml_content = """# Application Analyzer Configuration
# ==================================
#
# This file configures indicator weights, boost/penalty constants and
# the thresholds used by the framework, application-type and
# infrastructure detectors.
#
# Copy this file to one of these locations:
#   - ./analyzer-config.yaml (current directory)
#   - ~/.config/app-analyzer/config.yaml (user config)
#
# Or set the APP_ANALYZER_CONFIG environment variable.

"""
    yaml_content += yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(yaml_content)
