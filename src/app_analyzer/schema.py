"""Schema definitions for application analysis.

Defines the input accepted by the analyzer and the immutable result
structures produced by each detection stage.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class Capability(str, Enum):
    """Infrastructure capabilities detected from application content."""
    DATABASE = "database"
    AUTH = "auth"
    STORAGE = "storage"
    REALTIME = "realtime"
    CACHE = "cache"
    QUEUE = "queue"


class DatabaseSubtype(str, Enum):
    """Database family inferred from the winning indicator set."""
    SQL = "sql"
    NOSQL = "nosql"


class InputType(str, Enum):
    """Kind of input an analysis was run on."""
    CODE_UPLOAD = "code_upload"
    DESCRIPTION = "description"
    EMPTY = "empty"


UNKNOWN_ID = "unknown"


# =============================================================================
# Input
# =============================================================================

class InputFile(BaseModel):
    """A named text file supplied for analysis."""
    model_config = ConfigDict(frozen=True)

    name: str
    content: str = ""


class AnalysisInput(BaseModel):
    """Free-text description plus zero or more text files."""
    model_config = ConfigDict(frozen=True)

    description: Optional[str] = None
    files: list[InputFile] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.description and self.description.strip()) and not self.files


class ContentCorpus(BaseModel):
    """Searchable view over one analysis input.

    `text` is the lower-cased concatenation of the description and every
    file's content; `file_names` keeps the original names in input order.
    """
    model_config = ConfigDict(frozen=True)

    text: str = ""
    file_names: list[str] = Field(default_factory=list)
    files: list[InputFile] = Field(default_factory=list)


# =============================================================================
# Detection results
# =============================================================================

class DetectionMatch(BaseModel):
    """A single scored classification."""
    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    score: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)


class DetectionResult(BaseModel):
    """Best match and ranked runners-up from a rule-table detector."""
    model_config = ConfigDict(frozen=True)

    primary: DetectionMatch
    alternatives: list[DetectionMatch] = Field(default_factory=list)

    @classmethod
    def unknown(cls) -> "DetectionResult":
        return cls(
            primary=DetectionMatch(id=UNKNOWN_ID, display_name="Unknown", score=0.0, confidence=0.0)
        )

    @classmethod
    def from_matches(cls, matches: list[DetectionMatch]) -> "DetectionResult":
        """Pick the highest-scoring match; other non-zero matches become alternatives.

        The sort is stable, so equal scores keep rule-table order.
        """
        ranked = sorted((m for m in matches if m.score > 0), key=lambda m: m.score, reverse=True)
        if not ranked:
            return cls.unknown()
        return cls(primary=ranked[0], alternatives=ranked[1:])

    @property
    def is_unknown(self) -> bool:
        return self.primary.id == UNKNOWN_ID


class CapabilityRequirement(BaseModel):
    """Detected need for one infrastructure capability."""
    model_config = ConfigDict(frozen=True)

    required: bool = False
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    subtype: Optional[DatabaseSubtype] = None
    evidence: list[str] = Field(default_factory=list)


class InfrastructureResult(BaseModel):
    """Per-capability requirements plus aggregate complexity."""
    model_config = ConfigDict(frozen=True)

    capabilities: dict[Capability, CapabilityRequirement] = Field(default_factory=dict)
    complexity: int = Field(1, ge=1, le=5)
    confidence: float = Field(0.0, ge=0.0, le=1.0)

    def get(self, capability: Capability) -> CapabilityRequirement:
        return self.capabilities.get(capability, CapabilityRequirement())

    def requires(self, capability: Capability) -> bool:
        return self.get(capability).required

    @property
    def required_capabilities(self) -> list[Capability]:
        return [name for name, req in self.capabilities.items() if req.required]


class InputSummary(BaseModel):
    """What the analysis was run on."""
    model_config = ConfigDict(frozen=True)

    input_type: InputType
    file_count: int = 0
    has_description: bool = False


class AnalysisResult(BaseModel):
    """Complete, read-only output of the pattern analyzer."""
    model_config = ConfigDict(frozen=True)

    framework: DetectionResult
    app_type: DetectionResult
    infrastructure: InfrastructureResult
    overall_confidence: float = Field(ge=0.0, le=1.0)
    input_summary: InputSummary
    timestamp: datetime
