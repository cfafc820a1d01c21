"""Group analysis filter and result models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, field_validator

SCORE_FIELDS: tuple[str, ...] = (
    "activity_score",
    "engagement_score",
    "loyalty_score",
    "viral_potential",
    "influence_score",
)


class ScoreRange(BaseModel):
    """Inclusive score bounds. None leaves a side open."""

    min: int | None = None
    max: int | None = None


class DateRanges(BaseModel):
    created_after: datetime | None = None
    created_before: datetime | None = None
    last_analyzed_after: datetime | None = None

    @field_validator("created_after", "created_before", "last_analyzed_after")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class GroupAnalysisFilter(BaseModel):
    """Declarative cohort criteria.

    Dimensions combine with AND; values inside one list combine with OR.
    Empty or missing dimensions do not filter. List values match without
    regard to case.
    """

    risk_levels: list[str] = []
    marketing_segments: list[str] = []
    source_platforms: list[str] = []
    portfolio_sizes: list[str] = []
    trading_frequencies: list[str] = []
    scoring_ranges: dict[str, ScoreRange] = {}
    date_ranges: DateRanges | None = None

    @field_validator("scoring_ranges")
    @classmethod
    def _known_score_fields(cls, value: dict[str, ScoreRange]) -> dict[str, ScoreRange]:
        unknown = set(value) - set(SCORE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown score fields: {sorted(unknown)}")
        return value

    @field_validator(
        "risk_levels",
        "marketing_segments",
        "source_platforms",
        "portfolio_sizes",
        "trading_frequencies",
    )
    @classmethod
    def _lowercase_values(cls, value: list[str]) -> list[str]:
        return [v.lower() for v in value]


@dataclass
class Narrative:
    """Written interpretation of a cohort, from the LLM or the template fallback."""

    summary: str
    key_findings: list[str] = field(default_factory=list)
    actionable_insights: list[str] = field(default_factory=list)
    risk_assessment: str = ""
    marketing_strategy: str = ""
    source: str = "fallback"

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "key_findings": list(self.key_findings),
            "actionable_insights": list(self.actionable_insights),
            "risk_assessment": self.risk_assessment,
            "marketing_strategy": self.marketing_strategy,
            "source": self.source,
        }


@dataclass
class GroupAnalysisResult:
    """Outcome of one cohort analysis. Not persisted."""

    id: str
    analysis_name: str
    wallet_count: int
    filter_criteria: GroupAnalysisFilter
    insights: dict[str, Any]
    ai_analysis: Narrative
    confidence: float
    generated_at: datetime
    requested_by: str = "admin"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "analysis_name": self.analysis_name,
            "wallet_count": self.wallet_count,
            "filter_criteria": self.filter_criteria.model_dump(mode="json"),
            "insights": self.insights,
            "ai_analysis": self.ai_analysis.to_dict(),
            "confidence": self.confidence,
            "generated_at": self.generated_at.isoformat(),
            "requested_by": self.requested_by,
        }
