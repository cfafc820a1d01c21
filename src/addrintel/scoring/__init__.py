"""Profile scoring algorithms."""

from addrintel.scoring.engine import (
    ScoringEngine,
    activity_score,
    assess_risk,
    engagement_score,
    optimal_contact_times,
    preferred_channels,
    risk_level_for,
    round_half_up,
    value_tier,
    viral_potential,
)

__all__ = [
    "ScoringEngine",
    "activity_score",
    "assess_risk",
    "engagement_score",
    "optimal_contact_times",
    "preferred_channels",
    "risk_level_for",
    "round_half_up",
    "value_tier",
    "viral_potential",
]
