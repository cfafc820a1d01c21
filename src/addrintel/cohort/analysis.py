"""Cohort (group) analysis over filtered profile snapshots.

Profiles are loaded into a polars DataFrame once per request; filtering and
every aggregate run as polars expressions over that frame.
"""

import logging
import uuid
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any

import polars as pl

from addrintel.cohort.models import SCORE_FIELDS, GroupAnalysisFilter, GroupAnalysisResult, Narrative
from addrintel.cohort.narrative import generate_narrative
from addrintel.cohort.templates import FilterTemplate, filter_templates, find_template
from addrintel.errors import EmptyCohortError, UnknownTemplateError
from addrintel.models import AddressProfile, utcnow
from addrintel.profiles.store import ProfileStore
from addrintel.scoring.engine import round_half_up
from addrintel.services.llm import LLMService, UnavailableLLMService

logger = logging.getLogger(__name__)

FRAME_SCHEMA: dict[str, pl.DataType] = {
    "address": pl.Utf8,
    "first_seen": pl.Datetime("us", "UTC"),
    "last_analyzed": pl.Datetime("us", "UTC"),
    **{name: pl.Int64 for name in SCORE_FIELDS},
    "risk_assessment": pl.Utf8,
    "customer_segment": pl.Utf8,
    "data_source": pl.Utf8,
    "portfolio_size": pl.Utf8,
    "trading_frequency": pl.Utf8,
    "risk_tolerance": pl.Utf8,
}

# Lower bounds on the 0-1000 wallet activity scale
ACTIVITY_LEVELS: tuple[tuple[int, str], ...] = ((750, "high"), (500, "medium"), (250, "low"))
ACTIVITY_SCALE = 10

PORTFOLIO_SIZES = {"whales": "whale", "large": "large", "medium": "medium", "small": "small"}

SAMPLE_SIZE = 5


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def profiles_frame(profiles: Sequence[AddressProfile]) -> pl.DataFrame:
    """Flatten profile snapshots into one row each."""
    rows = [
        {
            "address": p.address,
            "first_seen": _utc(p.first_seen),
            "last_analyzed": _utc(p.last_analyzed),
            **{name: getattr(p, name) for name in SCORE_FIELDS},
            "risk_assessment": p.risk_assessment.value,
            "customer_segment": p.customer_segment,
            "data_source": p.data_source.value,
            "portfolio_size": p.portfolio_size,
            "trading_frequency": p.trading_frequency,
            "risk_tolerance": p.risk_tolerance,
        }
        for p in profiles
    ]
    return pl.DataFrame(rows, schema=FRAME_SCHEMA)


def filter_expression(criteria: GroupAnalysisFilter) -> pl.Expr:
    """AND across dimensions, OR within each list dimension."""
    conditions: list[pl.Expr] = []

    for column, values in (
        ("risk_assessment", criteria.risk_levels),
        ("customer_segment", criteria.marketing_segments),
        ("data_source", criteria.source_platforms),
        ("portfolio_size", criteria.portfolio_sizes),
        ("trading_frequency", criteria.trading_frequencies),
    ):
        if values:
            conditions.append(pl.col(column).str.to_lowercase().is_in(values))

    for column, bounds in criteria.scoring_ranges.items():
        if bounds.min is not None:
            conditions.append(pl.col(column) >= bounds.min)
        if bounds.max is not None:
            conditions.append(pl.col(column) <= bounds.max)

    dates = criteria.date_ranges
    if dates is not None:
        if dates.created_after is not None:
            conditions.append(pl.col("first_seen") >= dates.created_after)
        if dates.created_before is not None:
            conditions.append(pl.col("first_seen") <= dates.created_before)
        if dates.last_analyzed_after is not None:
            conditions.append(pl.col("last_analyzed") >= dates.last_analyzed_after)

    if not conditions:
        return pl.lit(True)
    # Null attributes never match a list dimension
    return pl.all_horizontal(conditions).fill_null(False)


def distribution(df: pl.DataFrame, column: str | pl.Expr, default: str = "unknown") -> dict[str, int]:
    """Value counts, most common first, nulls counted under ``default``."""
    expr = pl.col(column) if isinstance(column, str) else column
    counts = (
        df.select(expr.fill_null(default).alias("value"))
        .group_by("value")
        .agg(pl.len().alias("count"))
        .sort(["count", "value"], descending=[True, False])
    )
    return dict(zip(counts["value"].to_list(), counts["count"].to_list()))


def average_scores(df: pl.DataFrame) -> dict[str, int]:
    means = df.select([pl.col(name).mean() for name in SCORE_FIELDS]).row(0, named=True)
    return {name: round_half_up(means[name] or 0.0) for name in SCORE_FIELDS}


def _activity_level() -> pl.Expr:
    scaled = pl.col("activity_score") * ACTIVITY_SCALE
    (high, high_label), (medium, medium_label), (low, low_label) = ACTIVITY_LEVELS
    return (
        pl.when(scaled > high)
        .then(pl.lit(high_label))
        .when(scaled > medium)
        .then(pl.lit(medium_label))
        .when(scaled > low)
        .then(pl.lit(low_label))
        .otherwise(pl.lit("inactive"))
    )


def calculate_demographics(df: pl.DataFrame) -> dict[str, Any]:
    risk_levels = distribution(df, "risk_assessment")
    segments = distribution(df, "customer_segment")

    high_share = (risk_levels.get("high", 0) + risk_levels.get("critical", 0)) / df.height
    if high_share > 0.3:
        risk_profile = "high_risk_group"
    elif high_share > 0.1:
        risk_profile = "moderate_risk_group"
    else:
        risk_profile = "low_risk_group"

    return {
        "average_scores": average_scores(df),
        "distribution_patterns": {
            "risk_levels": risk_levels,
            "marketing_segments": segments,
            "source_platforms": distribution(df, "data_source"),
            "portfolio_sizes": distribution(df, "portfolio_size"),
        },
        "risk_profile": risk_profile,
        "marketing_segmentation": segments,
    }


def analyze_behavioral_patterns(df: pl.DataFrame) -> dict[str, Any]:
    total = df.height
    frequencies = distribution(df, "trading_frequency")
    tolerance = distribution(df, "risk_tolerance", default="moderate")
    activity_levels = distribution(df, _activity_level())

    trading_patterns = []
    if frequencies.get("high", 0) / total > 0.4:
        trading_patterns.append("High frequency trading dominant")
    if tolerance.get("aggressive", 0) / total > 0.3:
        trading_patterns.append("Aggressive risk-taking behavior")
    if activity_levels.get("high", 0) / total > 0.5:
        trading_patterns.append("Highly active user base")

    sizes = distribution(df, "portfolio_size")
    composition = {
        label: round(sizes.get(size, 0) / total * 100, 1) for label, size in PORTFOLIO_SIZES.items()
    }

    return {
        "trading_frequency": frequencies,
        "trading_patterns": trading_patterns,
        "risk_tolerance": tolerance,
        "activity_levels": activity_levels,
        "portfolio_composition": composition,
    }


def generate_strategic_recommendations(
    demographics: dict[str, Any],
    behavioral: dict[str, Any],
) -> dict[str, Any]:
    recommendations = []
    targeting = []
    risk_mitigation = []
    opportunities = []

    segments = demographics["marketing_segmentation"]
    top_segment = next(iter(segments), None)
    if top_segment == "whale":
        recommendations.append("VIP treatment and exclusive access programs")
        targeting.append("High-touch, personalized outreach")
    elif top_segment == "retail":
        recommendations.append("Educational content and beginner-friendly features")
        targeting.append("Broad-based marketing with simple messaging")
    elif top_segment == "new":
        recommendations.append("Onboarding sequences for first-time users")
        targeting.append("Welcome-series messaging")

    if demographics["risk_profile"] == "high_risk_group":
        risk_mitigation.append("Enhanced KYC and monitoring protocols")
        risk_mitigation.append("Automated risk alerts and intervention systems")

    levels = behavioral["activity_levels"]
    total = sum(levels.values())
    if total and levels.get("high", 0) / total > 0.3:
        opportunities.append("Gamification and rewards programs")
        opportunities.append("Advanced trading features and tools")

    return {
        "marketing_recommendations": recommendations,
        "targeting_strategy": ", ".join(targeting) or "Balanced approach across segments",
        "risk_mitigation": risk_mitigation,
        "opportunities": opportunities,
    }


def _percent_difference(group: int, platform: int) -> float:
    if platform == 0:
        return 0.0 if group == 0 else 100.0
    return (group - platform) / platform * 100


def generate_comparative_analysis(
    group_scores: dict[str, int],
    population: pl.DataFrame,
) -> dict[str, Any]:
    """Compare cohort averages with the whole known population."""
    platform_scores = average_scores(population)

    vs_average = {}
    for name in SCORE_FIELDS:
        diff = _percent_difference(group_scores[name], platform_scores[name])
        label = "above" if diff > 0 else "below" if diff < 0 else "at"
        vs_average[name] = f"{diff:.1f}% {label} platform average"

    if group_scores["engagement_score"] > platform_scores["engagement_score"]:
        market_position = "Above average market position"
    else:
        market_position = "Below average market position"

    advantages = []
    if group_scores["activity_score"] > platform_scores["activity_score"]:
        advantages.append("Superior trading activity patterns")
    if group_scores["engagement_score"] > platform_scores["engagement_score"]:
        advantages.append("Higher engagement levels")
    if group_scores["viral_potential"] > platform_scores["viral_potential"]:
        advantages.append("Stronger network reach")

    return {
        "vs_average_user": vs_average,
        "platform_averages": platform_scores,
        "market_position": market_position,
        "competitive_advantages": advantages,
    }


def calculate_confidence(wallet_count: int, narrative: Narrative) -> float:
    confidence = 0.5
    if wallet_count > 100:
        confidence += 0.3
    elif wallet_count > 50:
        confidence += 0.2
    elif wallet_count > 20:
        confidence += 0.1

    if len(narrative.key_findings) >= 3:
        confidence += 0.1
    if len(narrative.actionable_insights) >= 3:
        confidence += 0.1

    return min(round(confidence, 2), 1.0)


class CohortAnalyzer:
    """Runs group analyses over snapshots read from the profile store."""

    def __init__(
        self,
        store: ProfileStore,
        llm: LLMService | None = None,
        llm_timeout: float = 30.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize cohort analyzer.

        Args:
            store: Profile store to read snapshots from
            llm: Narrative model (fallback narrative only if None)
            llm_timeout: Seconds before the narrative call is abandoned
            clock: Source of "now" for result stamps and template windows
        """
        self.store = store
        self.llm = llm or UnavailableLLMService()
        self.llm_timeout = llm_timeout
        self._clock = clock

    async def _frames(self, criteria: GroupAnalysisFilter) -> tuple[pl.DataFrame, pl.DataFrame]:
        population = profiles_frame(await self.store.all_profiles())
        return population, population.filter(filter_expression(criteria))

    async def analyze(
        self,
        criteria: GroupAnalysisFilter,
        analysis_name: str,
        requested_by: str = "admin",
    ) -> GroupAnalysisResult:
        """Analyze every profile matching ``criteria``.

        Raises:
            EmptyCohortError: If no profile matches
        """
        population, cohort = await self._frames(criteria)
        if cohort.is_empty():
            raise EmptyCohortError()

        logger.info("Analyzing group of %d wallets: %s", cohort.height, analysis_name)

        demographics = calculate_demographics(cohort)
        behavioral = analyze_behavioral_patterns(cohort)
        narrative = await generate_narrative(
            self.llm,
            cohort.height,
            demographics,
            behavioral,
            timeout=self.llm_timeout,
        )

        result = GroupAnalysisResult(
            id=f"group_analysis_{uuid.uuid4().hex}",
            analysis_name=analysis_name,
            wallet_count=cohort.height,
            filter_criteria=criteria,
            insights={
                "demographics": demographics,
                "behavioral": behavioral,
                "strategic": generate_strategic_recommendations(demographics, behavioral),
                "comparative": generate_comparative_analysis(
                    demographics["average_scores"], population
                ),
            },
            ai_analysis=narrative,
            confidence=calculate_confidence(cohort.height, narrative),
            generated_at=self._clock(),
            requested_by=requested_by,
        )
        logger.info("Group analysis complete: %s", result.id)
        return result

    async def preview(self, criteria: GroupAnalysisFilter) -> dict[str, Any]:
        """Cheap cohort summary without the narrative step."""
        _, cohort = await self._frames(criteria)

        stats: dict[str, Any] = {
            "risk_levels": distribution(cohort, "risk_assessment"),
            "marketing_segments": distribution(cohort, "customer_segment"),
            "source_platforms": distribution(cohort, "data_source"),
            "average_scores": average_scores(cohort) if cohort.height else {},
        }
        samples = cohort.head(SAMPLE_SIZE).select(
            "address", "risk_assessment", "customer_segment", "data_source", "engagement_score"
        )
        return {
            "wallet_count": cohort.height,
            "stats": stats,
            "sample_wallets": samples.to_dicts(),
        }

    def templates(self) -> list[FilterTemplate]:
        return filter_templates(self._clock())

    async def analyze_template(
        self,
        slug: str,
        analysis_name: str | None = None,
        requested_by: str = "admin",
    ) -> tuple[FilterTemplate, GroupAnalysisResult]:
        template = find_template(slug, self._clock())
        if template is None:
            raise UnknownTemplateError(slug)
        result = await self.analyze(template.filter, analysis_name or template.name, requested_by)
        return template, result
