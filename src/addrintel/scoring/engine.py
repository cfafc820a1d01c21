"""Deterministic scoring of address profiles.

Every function here is pure: the same history always yields the same score.
ScoringEngine.rescore applies all of them to a profile as one unit.
"""

import math
from collections import Counter
from collections.abc import Sequence

from addrintel.models import (
    AddressProfile,
    CommunicationEvent,
    Engagement,
    Frequency,
    RiskLevel,
    TransactionPattern,
    ValueTier,
)

FREQUENCY_WEIGHTS: dict[Frequency, int] = {
    Frequency.DAILY: 100,
    Frequency.WEEKLY: 75,
    Frequency.MONTHLY: 50,
    Frequency.IRREGULAR: 25,
}

# Lower bounds, checked highest first
TIER_THRESHOLDS: tuple[tuple[int, ValueTier], ...] = (
    (90, ValueTier.DIAMOND),
    (75, ValueTier.GOLD),
    (50, ValueTier.SILVER),
)

CHURN_RISK_THRESHOLD = 0.7
LOW_ENGAGEMENT_THRESHOLD = 30
LOW_ACTIVITY_THRESHOLD = 20
SHORT_HISTORY_THRESHOLD = 3


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    """Clamp a score into [0, 100]."""
    return max(0, min(100, int(value)))


def engagement_score(history: Sequence[CommunicationEvent]) -> int:
    """Score how responsive an address is to communication.

    responseRate is the share of events with any engagement. The average
    response time is taken over the whole history, so events without a
    response time count as zero seconds.
    """
    if not history:
        return 0

    engaged = sum(1 for e in history if e.engagement != Engagement.NONE)
    response_rate = engaged / len(history)

    total_response_time = sum(e.response_time or 0.0 for e in history)
    average_response_time = total_response_time / len(history)

    time_score = max(0.0, 100.0 - average_response_time / 3600)  # Penalize slow responses
    return clamp_score(round_half_up(response_rate * 70 + time_score * 0.3))


def activity_score(patterns: Sequence[TransactionPattern]) -> int:
    """Score transaction frequency and volume."""
    if not patterns:
        return 0

    frequency_weight = sum(FREQUENCY_WEIGHTS[p.frequency] for p in patterns) / len(patterns)
    value_weight = min(100.0, sum(p.average_value for p in patterns) / 1000)

    return clamp_score(round_half_up(frequency_weight * 0.6 + value_weight * 0.4))


def risk_factor_count(
    churn_risk: float,
    engagement: int,
    activity: int,
    history_length: int,
) -> int:
    factors = (
        churn_risk > CHURN_RISK_THRESHOLD,
        engagement < LOW_ENGAGEMENT_THRESHOLD,
        activity < LOW_ACTIVITY_THRESHOLD,
        history_length < SHORT_HISTORY_THRESHOLD,
    )
    return sum(factors)


def risk_level_for(factor_count: int) -> RiskLevel:
    if factor_count >= 3:
        return RiskLevel.HIGH
    if factor_count >= 2:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def assess_risk(
    churn_risk: float,
    engagement: int,
    activity: int,
    history_length: int,
) -> RiskLevel:
    """Bucket churn and disengagement signals into a risk level."""
    return risk_level_for(risk_factor_count(churn_risk, engagement, activity, history_length))


def value_tier(activity: int, engagement: int, loyalty: int) -> ValueTier:
    """Classify an address by the rounded mean of its core scores."""
    average = round_half_up((activity + engagement + loyalty) / 3)
    for threshold, tier in TIER_THRESHOLDS:
        if average >= threshold:
            return tier
    return ValueTier.BRONZE


def viral_potential(
    network_size: int,
    engagement: int,
    influence: int,
    network_cap: int = 100,
) -> int:
    """Estimate how far an address could spread a message.

    The network term is capped at ``network_cap`` connections so that the
    result stays within [0, 100] for large networks.
    """
    network_term = min(network_size, network_cap)
    return clamp_score(round_half_up(network_term * 0.4 + engagement * 0.4 + influence * 0.2))


def preferred_channels(history: Sequence[CommunicationEvent]) -> list[str]:
    """Channels ordered by number of engaged events, most first."""
    counts = Counter(e.channel.value for e in history if e.engagement != Engagement.NONE)
    return [channel for channel, _ in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))]


def optimal_contact_times(history: Sequence[CommunicationEvent], limit: int = 3) -> list[str]:
    """Hours of day (UTC) with the most engaged events, as "HH:00"."""
    counts = Counter(e.timestamp.hour for e in history if e.engagement != Engagement.NONE)
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [f"{hour:02d}:00" for hour, _ in ranked[:limit]]


class ScoringEngine:
    """Applies every scoring algorithm to a profile as one unit."""

    def __init__(self, viral_network_cap: int = 100) -> None:
        """Initialize scoring engine.

        Args:
            viral_network_cap: Maximum connections counted toward viral potential
        """
        self.viral_network_cap = viral_network_cap

    def rescore(self, profile: AddressProfile) -> AddressProfile:
        """Recompute all derived scores in place.

        Order matters: risk and tier read the fresh engagement and activity
        scores, viral potential reads the fresh engagement score.
        """
        history = profile.communication_history

        profile.engagement_score = engagement_score(history)
        profile.activity_score = activity_score(profile.transaction_patterns)
        profile.loyalty_score = clamp_score(profile.loyalty_score)
        profile.influence_score = clamp_score(profile.influence_score)

        profile.risk_assessment = assess_risk(
            churn_risk=profile.churn_risk,
            engagement=profile.engagement_score,
            activity=profile.activity_score,
            history_length=len(history),
        )
        profile.value_tier = value_tier(
            profile.activity_score,
            profile.engagement_score,
            profile.loyalty_score,
        )
        profile.viral_potential = viral_potential(
            network_size=len(profile.network_connections),
            engagement=profile.engagement_score,
            influence=profile.influence_score,
            network_cap=self.viral_network_cap,
        )

        profile.preferred_channels = preferred_channels(history)
        profile.optimal_contact_times = optimal_contact_times(history)
        return profile
