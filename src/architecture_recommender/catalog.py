"""Architecture catalog loading.

The service catalog, architecture templates, application-type affinity,
variant rules and compatibility rules are YAML files in `data/`. They are
validated into an ArchitectureCatalog and loaded once per process through
a shared MemoizedLoader.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from app_analyzer.loader import MemoizedLoader
from app_analyzer.rules import RuleCatalogError
from app_analyzer.schema import DatabaseSubtype

from .schema import (
    ArchitectureTemplate,
    Characteristics,
    OptimizationFocus,
    Preferences,
    ServiceCandidate,
    ServiceDefinition,
    TrafficLevel,
)

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent / "data"
CATALOG_FILES = ("services.yaml", "architectures.yaml")


# =============================================================================
# Variant and compatibility rules
# =============================================================================

class PreferenceCondition(BaseModel):
    """Gate on one user preference value."""
    preference: str
    at_least: Optional[int] = None
    at_most: Optional[int] = None

    @field_validator("preference")
    @classmethod
    def _known_preference(cls, value: str) -> str:
        if value not in Preferences.model_fields:
            raise ValueError(f"unknown preference '{value}'")
        return value

    def holds(self, value: int) -> bool:
        if self.at_least is not None and value < self.at_least:
            return False
        if self.at_most is not None and value > self.at_most:
            return False
        return True


class Substitution(BaseModel):
    """Replace one service with another under conditions."""
    model_config = ConfigDict(populate_by_name=True)

    replace: str
    with_service: str = Field(alias="with")
    app_types: list[str] = Field(default_factory=list)
    traffic: list[TrafficLevel] = Field(default_factory=list)
    unless_subtype: Optional[DatabaseSubtype] = None


class Addition(BaseModel):
    """Add a service, optionally only when others are present."""
    service: str
    purpose: str = ""
    if_present: list[str] = Field(default_factory=list)


class CharacteristicChange(BaseModel):
    """Absolute and relative changes to template characteristics."""
    set: dict[str, int] = Field(default_factory=dict)
    adjust: dict[str, int] = Field(default_factory=dict)

    @field_validator("set", "adjust")
    @classmethod
    def _known_characteristics(cls, value: dict[str, int]) -> dict[str, int]:
        unknown = set(value) - set(Characteristics.model_fields)
        if unknown:
            raise ValueError(f"unknown characteristics: {sorted(unknown)}")
        return value


class VariantRule(BaseModel):
    """How to derive one optimized variant from a template."""
    name: str
    focus: OptimizationFocus
    confidence: float = Field(ge=0.0, le=1.0)
    enabled_when: Optional[PreferenceCondition] = None
    substitutions: list[Substitution] = Field(default_factory=list)
    additions: list[Addition] = Field(default_factory=list)
    configuration: dict[str, dict[str, Any]] = Field(default_factory=dict)
    characteristics: CharacteristicChange = Field(default_factory=CharacteristicChange)
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)


class ServiceConflict(BaseModel):
    """Services that overlap when used together."""
    services: list[str]
    message: str


class CompatibilityRules(BaseModel):
    """Service conflicts and expected companions."""
    conflicts: list[ServiceConflict] = Field(default_factory=list)
    companions: dict[str, list[str]] = Field(default_factory=dict)


# =============================================================================
# Catalog
# =============================================================================

class ArchitectureCatalog(BaseModel):
    """Services, templates and the rules for combining them."""
    version: str = "1"
    services: dict[str, ServiceDefinition]
    templates: dict[str, ArchitectureTemplate]
    affinity: dict[str, list[str]] = Field(default_factory=dict)
    variants: dict[str, VariantRule] = Field(default_factory=dict)
    compatibility: CompatibilityRules = Field(default_factory=CompatibilityRules)

    @model_validator(mode="after")
    def _check_references(self) -> "ArchitectureCatalog":
        def require_service(service_id: str, where: str) -> None:
            if service_id not in self.services:
                raise ValueError(f"{where} references unknown service '{service_id}'")

        for template in self.templates.values():
            for slot in template.services:
                require_service(slot.service, f"template '{template.id}'")
                for override in slot.subtype_overrides.values():
                    require_service(override, f"template '{template.id}'")

        for app_type, template_ids in self.affinity.items():
            for template_id in template_ids:
                if template_id not in self.templates:
                    raise ValueError(f"affinity '{app_type}' references unknown template '{template_id}'")

        for variant_id, rule in self.variants.items():
            for sub in rule.substitutions:
                require_service(sub.replace, f"variant '{variant_id}'")
                require_service(sub.with_service, f"variant '{variant_id}'")
            for addition in rule.additions:
                require_service(addition.service, f"variant '{variant_id}'")

        return self

    def service(self, service_id: str) -> Optional[ServiceDefinition]:
        return self.services.get(service_id)

    def candidate(
        self,
        service_id: str,
        purpose: str = "",
        required: bool = True,
        configuration: Optional[dict[str, Any]] = None,
    ) -> ServiceCandidate:
        """Build a candidate for a catalog service."""
        return ServiceCandidate(
            service_id=service_id,
            definition=self.services.get(service_id),
            purpose=purpose,
            required=required,
            configuration=dict(configuration or {}),
        )

    def templates_for(self, app_type: str) -> list[ArchitectureTemplate]:
        """Templates for an application type, in affinity order."""
        template_ids = self.affinity.get(app_type) or self.affinity.get("unknown", [])
        return [self.templates[t] for t in template_ids]


def _with_ids(section: Any) -> Any:
    """Copy mapping keys into each entry's `id` field."""
    if not isinstance(section, dict):
        return section
    return {
        key: {"id": key, **value} if isinstance(value, dict) else value
        for key, value in section.items()
    }


def load_architecture_catalog(data_dir: Optional[Path] = None) -> ArchitectureCatalog:
    """Read and validate the architecture catalog.

    Raises:
        RuleCatalogError: If a file is missing, unparsable or invalid.
    """
    data_dir = Path(data_dir) if data_dir else DEFAULT_DATA_DIR

    data: dict = {}
    for filename in CATALOG_FILES:
        path = data_dir / filename
        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise RuleCatalogError(f"Failed to read catalog file {path}: {e}") from e
        if not isinstance(content, dict):
            raise RuleCatalogError(f"Catalog file {path} must contain a mapping")
        data.update(content)

    data["services"] = _with_ids(data.get("services"))
    data["templates"] = _with_ids(data.get("templates"))

    try:
        catalog = ArchitectureCatalog.model_validate(data)
    except ValidationError as e:
        raise RuleCatalogError(f"Invalid architecture catalog in {data_dir}: {e}") from e

    logger.info(
        "Loaded architecture catalog v%s: %d services, %d templates",
        catalog.version, len(catalog.services), len(catalog.templates),
    )
    return catalog


_shared_cache: MemoizedLoader[ArchitectureCatalog] = MemoizedLoader(
    load_architecture_catalog, name="architecture catalog"
)


def shared_catalog_cache() -> MemoizedLoader[ArchitectureCatalog]:
    """Return the process-wide architecture catalog cache handle."""
    return _shared_cache
