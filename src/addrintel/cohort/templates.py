"""Predefined cohort filters."""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from addrintel.cohort.models import DateRanges, GroupAnalysisFilter, ScoreRange
from addrintel.models import utcnow


@dataclass(frozen=True)
class FilterTemplate:
    name: str
    description: str
    filter: GroupAnalysisFilter

    @property
    def slug(self) -> str:
        return slugify(self.name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "filter": self.filter.model_dump(mode="json", exclude_defaults=True),
        }


def slugify(name: str) -> str:
    """Lowercase a template name and join its words with underscores."""
    return re.sub(r"\s+", "_", name.strip().lower())


def filter_templates(now: datetime | None = None) -> list[FilterTemplate]:
    """Built-in templates. Relative date windows are anchored at ``now``."""
    now = now or utcnow()
    return [
        FilterTemplate(
            name="High Risk Wallets",
            description="Analyze wallets with high or critical risk levels",
            filter=GroupAnalysisFilter(risk_levels=["high", "critical"]),
        ),
        FilterTemplate(
            name="Whale Investors",
            description="Analyze large portfolio holders and whales",
            filter=GroupAnalysisFilter(portfolio_sizes=["whale", "large"]),
        ),
        FilterTemplate(
            name="Active Traders",
            description="Analyze highly active trading wallets",
            filter=GroupAnalysisFilter(
                trading_frequencies=["high", "very_high"],
                scoring_ranges={"activity_score": ScoreRange(min=50)},
            ),
        ),
        FilterTemplate(
            name="FlutterBye Users",
            description="Analyze wallets collected from FlutterBye platform",
            filter=GroupAnalysisFilter(source_platforms=["flutterbye"]),
        ),
        FilterTemplate(
            name="PerpeTrader Users",
            description="Analyze wallets collected from PerpeTrader platform",
            filter=GroupAnalysisFilter(source_platforms=["perpetrader"]),
        ),
        FilterTemplate(
            name="New Wallets (Last 30 Days)",
            description="Analyze recently collected wallets",
            filter=GroupAnalysisFilter(
                date_ranges=DateRanges(created_after=now - timedelta(days=30)),
            ),
        ),
        FilterTemplate(
            name="High Score Wallets",
            description="Analyze wallets with high engagement and activity scores",
            filter=GroupAnalysisFilter(
                scoring_ranges={
                    "engagement_score": ScoreRange(min=70),
                    "activity_score": ScoreRange(min=70),
                },
            ),
        ),
    ]


def find_template(slug: str, now: datetime | None = None) -> FilterTemplate | None:
    wanted = slug.strip().lower()
    for template in filter_templates(now):
        if template.slug == wanted:
            return template
    return None
