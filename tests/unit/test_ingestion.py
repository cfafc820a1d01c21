"""Tests for event ingestion."""

import json
import logging
from datetime import timedelta

import pytest

from addrintel.ingestion import (
    EventIngestor,
    analyze_sentiment,
    analyze_transactions,
    normalize_event,
)
from addrintel.models import (
    Channel,
    Direction,
    Engagement,
    Frequency,
    Sentiment,
)
from addrintel.profiles import ProfileStore
from addrintel.services import MemoryActivityLogger

from tests.conftest import ETH_ADDRESS, SOL_ADDRESS, START


def transactions(gap: timedelta, values: list[float], kind: str = "swap") -> list[dict]:
    return [
        {"timestamp": (START + gap * i).isoformat(), "value": v, "type": kind}
        for i, v in enumerate(values)
    ]


def test_analyze_sentiment() -> None:
    """Test keyword sentiment."""
    assert analyze_sentiment("This is great, I love it") == Sentiment.POSITIVE
    assert analyze_sentiment("Terrible. The worst.") == Sentiment.NEGATIVE
    assert analyze_sentiment("great but awful") == Sentiment.NEUTRAL
    assert analyze_sentiment("") == Sentiment.NEUTRAL
    assert analyze_sentiment(None) == Sentiment.NEUTRAL


def test_normalize_event_full() -> None:
    """Test a fully specified raw event."""
    result = normalize_event(
        {
            "timestamp": "2025-01-01T09:30:00+00:00",
            "channel": "email",
            "direction": "inbound",
            "message_type": "promotion",
            "engagement": "clicked",
            "sentiment": "negative",
            "response_time": "120",
        }
    )

    assert result.timestamp.hour == 9
    assert result.channel == Channel.EMAIL
    assert result.direction == Direction.INBOUND
    assert result.message_type == "promotion"
    assert result.engagement == Engagement.CLICKED
    assert result.sentiment == Sentiment.NEGATIVE
    assert result.response_time == 120.0


def test_normalize_event_unknown_values_use_defaults() -> None:
    """Test unknown enum values fall back instead of failing."""
    result = normalize_event(
        {"channel": "pigeon", "engagement": "ecstatic", "sentiment": "meh"},
        now=START,
    )

    assert result.timestamp == START
    assert result.channel == Channel.APP
    assert result.engagement == Engagement.NONE
    assert result.sentiment == Sentiment.NEUTRAL
    assert result.message_type == "general"


def test_normalize_event_derives_sentiment_from_content() -> None:
    """Test missing sentiment comes from the content."""
    result = normalize_event({"content": "Amazing drop!"}, now=START)
    assert result.sentiment == Sentiment.POSITIVE


def test_normalize_event_naive_timestamp_is_utc() -> None:
    """Test naive timestamps are read as UTC."""
    result = normalize_event({"timestamp": "2025-01-01T10:00:00"})
    assert result.timestamp.utcoffset() == timedelta(0)


def test_analyze_transactions_empty() -> None:
    """Test no transactions gives no pattern."""
    assert analyze_transactions([]) == []


def test_analyze_transactions_single_is_irregular() -> None:
    """Test a single transaction cannot establish a frequency."""
    [pattern] = analyze_transactions(transactions(timedelta(days=1), [500.0]))
    assert pattern.frequency == Frequency.IRREGULAR
    assert pattern.average_value == 500.0
    assert pattern.volatility == 0.0


@pytest.mark.parametrize(
    "gap,expected",
    [
        (timedelta(hours=12), Frequency.DAILY),
        (timedelta(days=1, hours=12), Frequency.DAILY),
        (timedelta(days=7), Frequency.WEEKLY),
        (timedelta(days=30), Frequency.MONTHLY),
        (timedelta(days=90), Frequency.IRREGULAR),
    ],
)
def test_analyze_transactions_frequency(gap: timedelta, expected: Frequency) -> None:
    """Test frequency buckets on the mean gap."""
    [pattern] = analyze_transactions(transactions(gap, [100.0, 100.0, 100.0]))
    assert pattern.frequency == expected


def test_analyze_transactions_statistics() -> None:
    """Test average, volatility, hours and types."""
    raw = transactions(timedelta(days=1), [100.0, 300.0])
    raw.append({"timestamp": (START + timedelta(days=2)).isoformat(), "value": 200.0, "type": "mint"})

    [pattern] = analyze_transactions(raw)
    assert pattern.average_value == pytest.approx(200.0)
    # Population std of (100, 300, 200) is 81.65
    assert pattern.volatility == pytest.approx(0.4082, abs=1e-4)
    assert pattern.preferred_times == ("12:00",)
    assert pattern.transaction_types == ("swap", "mint")


def test_analyze_transactions_unsorted_input() -> None:
    """Test input order does not affect the gap calculation."""
    raw = list(reversed(transactions(timedelta(days=7), [10.0, 20.0, 30.0])))
    [pattern] = analyze_transactions(raw)
    assert pattern.frequency == Frequency.WEEKLY


@pytest.mark.asyncio
async def test_ingest_creates_and_scores_profile(
    store: ProfileStore, activity_logger: MemoryActivityLogger
) -> None:
    """Test ingesting a raw event updates the profile and audit log."""
    ingestor = EventIngestor(store, activity_logger)
    profile = await ingestor.ingest(
        ETH_ADDRESS,
        {"channel": "sms", "engagement": "responded", "response_time": 0},
    )

    assert profile is not None
    assert profile.engagement_score == 100
    assert len(profile.communication_history) == 1
    assert activity_logger.actions() == ["address_intelligence_update"]

    record = activity_logger.records[0]
    assert record.user_id == 0
    details = json.loads(record.details)
    assert details["address"] == ETH_ADDRESS
    assert details["scores"]["engagement"] == 100
    assert details["tier"] == "bronze"


@pytest.mark.asyncio
async def test_ingest_malformed_address_is_skipped(
    store: ProfileStore, caplog: pytest.LogCaptureFixture
) -> None:
    """Test malformed addresses are logged and skipped, not raised."""
    ingestor = EventIngestor(store)
    with caplog.at_level(logging.WARNING):
        result = await ingestor.ingest("not-an-address", {"engagement": "viewed"})

    assert result is None
    assert await store.count() == 0
    assert "Malformed address" in caplog.text


@pytest.mark.asyncio
async def test_ingest_survives_failing_activity_logger(store: ProfileStore) -> None:
    """Test audit failures never fail ingestion."""

    class BrokenLogger(MemoryActivityLogger):
        async def log(self, record) -> None:
            raise RuntimeError("audit sink down")

    ingestor = EventIngestor(store, BrokenLogger())
    profile = await ingestor.ingest(SOL_ADDRESS, {"engagement": "viewed"})
    assert profile is not None


@pytest.mark.asyncio
async def test_ingest_transactions_sets_activity(store: ProfileStore) -> None:
    """Test transaction ingestion replaces patterns and rescores."""
    ingestor = EventIngestor(store)
    profile = await ingestor.ingest_transactions(
        ETH_ADDRESS, transactions(timedelta(hours=6), [1000.0, 1000.0])
    )

    assert profile is not None
    assert len(profile.transaction_patterns) == 1
    assert profile.transaction_patterns[0].frequency == Frequency.DAILY
    # 100 * 0.6 + 1 * 0.4
    assert profile.activity_score == 60

    profile = await ingestor.ingest_transactions(ETH_ADDRESS, [])
    assert profile is not None
    assert profile.transaction_patterns == []
    assert profile.activity_score == 0


@pytest.mark.asyncio
async def test_ingest_transactions_malformed_address(store: ProfileStore) -> None:
    """Test malformed addresses are skipped for transactions too."""
    ingestor = EventIngestor(store)
    assert await ingestor.ingest_transactions("0x123", []) is None


@pytest.mark.parametrize("response_time", [{}, [60], "soon"])
def test_normalize_event_rejects_non_numeric_response_time(response_time: object) -> None:
    """Test bad response times raise ValueError rather than TypeError."""
    with pytest.raises(ValueError, match="response_time"):
        normalize_event({"response_time": response_time}, now=START)


@pytest.mark.parametrize(
    "transaction",
    [
        {"timestamp": START.isoformat(), "value": None},
        {"timestamp": START.isoformat(), "value": {}},
        {"value": 10.0},
    ],
)
def test_analyze_transactions_rejects_bad_records(transaction: dict) -> None:
    """Test unparseable transactions raise ValueError."""
    with pytest.raises(ValueError):
        analyze_transactions([transaction])
