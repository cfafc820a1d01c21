"""Tests for response and filter templates."""

from datetime import timedelta

import pytest

from addrintel.cohort import filter_templates, find_template
from addrintel.config.response_templates import (
    RESPONSE_TEMPLATES,
    MessageType,
    template_for,
    validate_templates,
)
from addrintel.errors import ConfigurationError
from addrintel.models import ValueTier

from tests.conftest import START


def test_every_message_type_and_tier_has_a_template() -> None:
    """Test the response table is exhaustive."""
    for message_type in MessageType:
        for tier in ValueTier:
            assert template_for(message_type, tier)


def test_incomplete_table_is_rejected() -> None:
    """Test a missing pair fails validation."""
    broken = {k: dict(v) for k, v in RESPONSE_TEMPLATES.items()}
    del broken[MessageType.VIP][ValueTier.GOLD]

    with pytest.raises(ConfigurationError, match="vip/gold"):
        validate_templates(broken)


def test_filter_templates() -> None:
    """Test the built-in cohort templates."""
    templates = filter_templates(START)
    names = [t.name for t in templates]

    assert names == [
        "High Risk Wallets",
        "Whale Investors",
        "Active Traders",
        "FlutterBye Users",
        "PerpeTrader Users",
        "New Wallets (Last 30 Days)",
        "High Score Wallets",
    ]

    new_wallets = templates[5]
    assert new_wallets.filter.date_ranges is not None
    assert new_wallets.filter.date_ranges.created_after == START - timedelta(days=30)


def test_find_template_by_slug() -> None:
    """Test lookup by slugified name."""
    template = find_template("high_risk_wallets")
    assert template is not None
    assert template.filter.risk_levels == ["high", "critical"]

    assert find_template("FLUTTERBYE_USERS") is not None
    assert find_template("no_such_template") is None


def test_template_to_dict_omits_defaults() -> None:
    """Test serialized filters only carry the criteria that are set."""
    template = find_template("whale_investors")
    assert template is not None
    assert template.to_dict()["filter"] == {"portfolio_sizes": ["whale", "large"]}
