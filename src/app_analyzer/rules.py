"""Declarative rule tables for the detectors.

Framework, application-type and capability indicators live in YAML files in
`data/`. They are validated into pydantic models and loaded
through a shared `MemoizedLoader` so the files are read once per process.
"""

import logging
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .config import CategoryWeightsConfig
from .loader import MemoizedLoader
from .schema import Capability, DatabaseSubtype

logger = logging.getLogger(__name__)

DEFAULT_RULES_DIR = Path(__file__).parent / "data"
RULE_FILES = ("frameworks.yaml", "app_types.yaml", "capabilities.yaml")


class RuleCatalogError(Exception):
    """Raised when rule tables cannot be read or are invalid."""
    pass


# =============================================================================
# Rule models
# =============================================================================

class Indicator(BaseModel):
    """A single piece of evidence.

    In YAML an indicator is either a plain string or a mapping with
    `value` and `strong`.
    """
    value: str
    strong: bool = False

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"value": data}
        return data


def _check_patterns(indicators: list[Indicator]) -> list[Indicator]:
    for indicator in indicators:
        try:
            re.compile(indicator.value)
        except re.error as e:
            raise ValueError(f"invalid pattern {indicator.value!r}: {e}") from e
    return indicators


class FrameworkRule(BaseModel):
    """Indicators for one framework."""
    name: str
    dependencies: list[Indicator] = Field(default_factory=list)
    files: list[Indicator] = Field(default_factory=list)
    content: list[Indicator] = Field(default_factory=list)
    commands: list[Indicator] = Field(default_factory=list)
    weights: Optional[CategoryWeightsConfig] = None

    @field_validator("files", "content")
    @classmethod
    def _valid_patterns(cls, v: list[Indicator]) -> list[Indicator]:
        return _check_patterns(v)


class AppTypeRule(BaseModel):
    """Indicators for one application shape."""
    name: str
    frameworks: list[str] = Field(default_factory=list)
    no_framework: bool = False
    full_stack: bool = False
    files: list[Indicator] = Field(default_factory=list)
    content: list[Indicator] = Field(default_factory=list)

    @field_validator("files", "content")
    @classmethod
    def _valid_patterns(cls, v: list[Indicator]) -> list[Indicator]:
        return _check_patterns(v)


class CapabilityRule(BaseModel):
    """Indicators for one infrastructure capability.

    A capability with `subtypes` is scored as a race between the subtype
    indicator sets; otherwise `indicators` is used directly.
    """
    name: str
    indicators: list[Indicator] = Field(default_factory=list)
    subtypes: dict[DatabaseSubtype, list[Indicator]] = Field(default_factory=dict)

    @field_validator("indicators")
    @classmethod
    def _valid_patterns(cls, v: list[Indicator]) -> list[Indicator]:
        return _check_patterns(v)

    @field_validator("subtypes")
    @classmethod
    def _valid_subtype_patterns(
        cls, v: dict[DatabaseSubtype, list[Indicator]]
    ) -> dict[DatabaseSubtype, list[Indicator]]:
        for indicators in v.values():
            _check_patterns(indicators)
        return v


class StructureRule(BaseModel):
    """Path markers for client and server code areas."""
    client_markers: list[str] = Field(default_factory=list)
    server_markers: list[str] = Field(default_factory=list)


class RuleCatalog(BaseModel):
    """All rule tables used by the detectors."""
    version: str = "1"
    frameworks: dict[str, FrameworkRule]
    app_types: dict[str, AppTypeRule]
    capabilities: dict[Capability, CapabilityRule]
    structure: StructureRule = Field(default_factory=StructureRule)

    @model_validator(mode="after")
    def _check_references(self) -> "RuleCatalog":
        for type_id, rule in self.app_types.items():
            unknown = [fw for fw in rule.frameworks if fw not in self.frameworks]
            if unknown:
                raise ValueError(
                    f"app type '{type_id}' references unknown frameworks: {', '.join(unknown)}"
                )
        missing = [c.value for c in Capability if c not in self.capabilities]
        if missing:
            raise ValueError(f"missing capability rules: {', '.join(missing)}")
        return self


# =============================================================================
# Loading
# =============================================================================

def _read_yaml(path: Path) -> dict:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise RuleCatalogError(f"Failed to read rule file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuleCatalogError(f"Rule file {path} must contain a mapping")
    return data


def load_rule_catalog(rules_dir: Optional[Path] = None) -> RuleCatalog:
    """Read and validate the rule tables.

    Args:
        rules_dir: Directory holding the rule YAML files. Defaults to the
            tables shipped with the package.

    Raises:
        RuleCatalogError: If a file is missing, unparsable or invalid.
    """
    rules_dir = Path(rules_dir) if rules_dir else DEFAULT_RULES_DIR

    data: dict = {}
    for filename in RULE_FILES:
        data.update(_read_yaml(rules_dir / filename))

    try:
        catalog = RuleCatalog.model_validate(data)
    except ValidationError as e:
        raise RuleCatalogError(f"Invalid rule tables in {rules_dir}: {e}") from e

    logger.info(
        "Loaded rule tables v%s: %d frameworks, %d app types, %d capabilities",
        catalog.version,
        len(catalog.frameworks),
        len(catalog.app_types),
        len(catalog.capabilities),
    )
    return catalog


_shared_cache: MemoizedLoader[RuleCatalog] = MemoizedLoader(load_rule_catalog, name="rule tables")


def shared_rule_cache() -> MemoizedLoader[RuleCatalog]:
    """Return the process-wide rule table cache handle."""
    return _shared_cache
