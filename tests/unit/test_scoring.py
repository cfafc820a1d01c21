"""Tests for the scoring engine."""

from datetime import timedelta

import pytest

from addrintel.models import (
    AddressProfile,
    Channel,
    CommunicationEvent,
    Direction,
    Engagement,
    Frequency,
    RiskLevel,
    TransactionPattern,
    ValueTier,
)
from addrintel.scoring import (
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

from tests.conftest import ETH_ADDRESS, START


def make_event(
    engagement: Engagement,
    response_time: float | None = None,
    channel: Channel = Channel.SMS,
    hour: int = 12,
) -> CommunicationEvent:
    return CommunicationEvent(
        timestamp=START.replace(hour=hour),
        channel=channel,
        direction=Direction.OUTBOUND,
        message_type="general",
        engagement=engagement,
        response_time=response_time,
    )


def test_engagement_empty_history() -> None:
    """Test that no history scores zero."""
    assert engagement_score([]) == 0


def test_engagement_five_sms_four_responded() -> None:
    """Test 4 of 5 responded at 60s scores 86."""
    history = [make_event(Engagement.RESPONDED, 60)] * 4 + [make_event(Engagement.NONE)]
    assert engagement_score(history) == 86


def test_engagement_stays_in_range_for_fast_responses() -> None:
    """Test instant responses cap at 100."""
    history = [make_event(Engagement.RESPONDED, 0)] * 3
    assert engagement_score(history) == 100


def test_engagement_slow_responses_floor_time_score() -> None:
    """Test very slow responses contribute nothing from time."""
    history = [make_event(Engagement.RESPONDED, 3600 * 500)]
    assert engagement_score(history) == 70


def test_engagement_monotonic_on_fast_responded_event() -> None:
    """Test appending a fast responded event never lowers engagement."""
    history = [
        make_event(Engagement.NONE),
        make_event(Engagement.VIEWED, 7200),
        make_event(Engagement.NONE),
    ]
    before = engagement_score(history)
    after = engagement_score([*history, make_event(Engagement.RESPONDED, 30)])
    assert after >= before


def test_activity_score() -> None:
    """Test activity weights frequency and value."""
    assert activity_score([]) == 0

    daily = TransactionPattern(frequency=Frequency.DAILY, average_value=1000)
    assert activity_score([daily]) == 60

    monthly = TransactionPattern(frequency=Frequency.MONTHLY, average_value=500_000)
    # Frequency (100 + 50) / 2 = 75; value capped at 100
    assert activity_score([daily, monthly]) == 85


def test_value_tier_thresholds() -> None:
    """Test tier boundaries on the mean score."""
    assert value_tier(92, 92, 92) == ValueTier.DIAMOND
    assert value_tier(80, 80, 80) == ValueTier.GOLD
    assert value_tier(60, 60, 60) == ValueTier.SILVER
    assert value_tier(10, 10, 10) == ValueTier.BRONZE


def test_value_tier_uses_rounded_mean() -> None:
    """Test a mean of 89.67 rounds up into diamond."""
    assert value_tier(90, 90, 89) == ValueTier.DIAMOND
    assert value_tier(89, 89, 88) == ValueTier.GOLD


def test_risk_level_monotonic_in_factor_count() -> None:
    """Test more risk factors never lower the risk level."""
    order = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH]
    levels = [order.index(risk_level_for(n)) for n in range(5)]
    assert levels == sorted(levels)
    assert risk_level_for(0) == RiskLevel.LOW
    assert risk_level_for(1) == RiskLevel.LOW
    assert risk_level_for(2) == RiskLevel.MEDIUM
    assert risk_level_for(3) == RiskLevel.HIGH
    assert risk_level_for(4) == RiskLevel.HIGH


def test_assess_risk() -> None:
    """Test each factor counts toward risk."""
    assert assess_risk(0.9, 10, 10, 1) == RiskLevel.HIGH
    assert assess_risk(0.5, 10, 10, 5) == RiskLevel.MEDIUM
    assert assess_risk(0.5, 50, 50, 5) == RiskLevel.LOW


def test_viral_potential_caps_network_term() -> None:
    """Test very large networks stay within 0-100."""
    assert viral_potential(10_000, 100, 100) == 100
    assert viral_potential(50, 50, 50) == 50
    assert viral_potential(50, 50, 50, network_cap=10) == round_half_up(10 * 0.4 + 20 + 10)


def test_round_half_up() -> None:
    """Test halves round up."""
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_preferred_channels_and_contact_times() -> None:
    """Test derived fields come from engaged events only."""
    history = [
        make_event(Engagement.CLICKED, channel=Channel.EMAIL, hour=9),
        make_event(Engagement.RESPONDED, channel=Channel.EMAIL, hour=9),
        make_event(Engagement.VIEWED, channel=Channel.SMS, hour=18),
        make_event(Engagement.NONE, channel=Channel.APP, hour=3),
    ]
    assert preferred_channels(history) == ["email", "sms"]
    assert optimal_contact_times(history) == ["09:00", "18:00"]


def test_rescore_is_idempotent() -> None:
    """Test rescoring twice yields the same profile."""
    profile = AddressProfile.new(ETH_ADDRESS, START)
    profile.communication_history = [
        make_event(Engagement.RESPONDED, 120),
        make_event(Engagement.NONE),
    ]
    profile.transaction_patterns = [TransactionPattern(Frequency.WEEKLY, 2500)]
    profile.loyalty_score = 40
    profile.network_connections = {"a", "b"}

    engine = ScoringEngine()
    once = engine.rescore(profile.snapshot())
    twice = engine.rescore(once.snapshot())
    assert once.to_dict() == twice.to_dict()


def test_rescore_clamps_external_scores() -> None:
    """Test out-of-range loyalty and influence are clamped."""
    profile = AddressProfile.new(ETH_ADDRESS, START)
    profile.loyalty_score = 250
    profile.influence_score = -5

    ScoringEngine().rescore(profile)
    assert profile.loyalty_score == 100
    assert profile.influence_score == 0


@pytest.mark.parametrize("cap", [1, 100])
def test_rescore_uses_configured_cap(cap: int) -> None:
    """Test the engine passes its cap to viral potential."""
    profile = AddressProfile.new(ETH_ADDRESS, START)
    profile.network_connections = {f"peer{i}" for i in range(50)}
    ScoringEngine(viral_network_cap=cap).rescore(profile)
    assert profile.viral_potential == round_half_up(min(50, cap) * 0.4)


def test_rescore_derives_risk_and_tier_from_fresh_scores() -> None:
    """Test a new profile with one ignored message is high risk bronze."""
    profile = AddressProfile.new(ETH_ADDRESS, START)
    profile.churn_risk = 0.9
    profile.communication_history = [make_event(Engagement.NONE)]
    profile.last_seen = START + timedelta(days=1)

    ScoringEngine().rescore(profile)
    assert profile.engagement_score == 30
    assert profile.risk_assessment == RiskLevel.HIGH
    assert profile.value_tier == ValueTier.BRONZE
