"""Pydantic models for scan findings and results.

Python attributes are snake_case; serialized output (``model_dump(by_alias=True)``)
uses camelCase keys such as ``businessImpact`` and ``aiGenerated``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .constants import SEVERITY_WEIGHTS


class Severity(str, Enum):
    """Severity levels for findings."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return SEVERITY_WEIGHTS[self.value]

    def at_least(self, other: Severity) -> bool:
        """True when this severity is as severe as ``other`` or more."""
        return self.weight >= other.weight


class Confidence(str, Enum):
    """How trustworthy a detection is."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    AI_GENERATED = "ai-generated"


class RiskLevel(str, Enum):
    """Overall risk level derived from the risk score."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ScanMode(str, Enum):
    LIVE = "live"
    DEMO = "demo"


class CamelModel(BaseModel):
    """Base model serializing to camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class AIInsights(CamelModel):
    """Priority metadata attached by the correlation engine."""

    model_config = ConfigDict(frozen=True)

    priority_score: int
    business_context: str


class Finding(CamelModel):
    """A single detected issue.

    Attributes:
        id: Unique within a scan. Analyzer ids look like ``SQL-1a2b3c4d5e``,
            correlation ids like ``CORR-001``.
        severity: How severe the issue is.
        category: Free-form classification, e.g. "Injection" or "Attack Chain".
        title: Short human-readable summary.
        description: Detailed explanation.
        file: Artifact path relative to the scan root. Absent only on
            findings synthesized by the correlation engine.
        line: 1-based line number, when known.
        recommendation: Remediation action.
        business_impact: Plain-language consequence statement.
        confidence: Trustworthiness of the detection.
        ai_generated: True only for findings synthesized by correlation.
        ai_insights: Priority metadata attached by correlation.
        related_findings: Ids an attack-chain finding combines.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    severity: Severity
    category: str
    title: str
    description: str
    file: str | None = None
    line: int | None = None
    recommendation: str
    business_impact: str | None = None
    confidence: Confidence = Confidence.MEDIUM
    ai_generated: bool = False
    ai_insights: AIInsights | None = None
    related_findings: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_provenance(self) -> Finding:
        if self.ai_generated != (self.confidence == Confidence.AI_GENERATED):
            raise ValueError(
                "ai_generated findings must have confidence 'ai-generated' and vice versa"
            )
        if not self.ai_generated and not self.file:
            raise ValueError(f"finding {self.id} must reference a file")
        return self


class CategoryCount(CamelModel):
    category: str
    count: int


class SummaryRecommendation(CamelModel):
    priority: str
    action: str
    impact: str


class ScanSummary(CamelModel):
    """Derived view over a finding list; never persisted on its own."""

    total_findings: int
    severity_breakdown: dict[str, int] = Field(default_factory=dict)
    risk_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    top_categories: list[CategoryCount] = Field(default_factory=list)
    recommendations: list[SummaryRecommendation] = Field(default_factory=list)


class PrioritizedRecommendation(CamelModel):
    """A remediation step ranked by the reasoning service."""

    priority: int | str
    action: str
    impact: str = ""
    effort: str | None = None


class ScanMetadata(CamelModel):
    scan_time: float
    timestamp: str
    version: str
    mode: ScanMode
    correlation: str = "heuristic"


class ScanResult(CamelModel):
    """Everything one scan produced, handed to the reporting collaborator."""

    model_config = ConfigDict(frozen=True)

    findings: list[Finding]
    summary: ScanSummary
    metadata: ScanMetadata
    prioritized_recommendations: list[PrioritizedRecommendation] = Field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to the camelCase dictionary representation."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
