"""Event ingestion: normalize raw events and append them to address profiles."""

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

import polars as pl

from addrintel.errors import MalformedAddressError
from addrintel.extraction.patterns import validate_address
from addrintel.models import (
    AddressProfile,
    Channel,
    CommunicationEvent,
    DataSource,
    Direction,
    Engagement,
    Frequency,
    Sentiment,
    TransactionPattern,
    utcnow,
)
from addrintel.profiles.store import ProfileStore
from addrintel.services.activity_log import ActivityLogger, ActivityRecord, safe_log

logger = logging.getLogger(__name__)

POSITIVE_WORDS = ("great", "excellent", "love", "amazing", "perfect")
NEGATIVE_WORDS = ("bad", "terrible", "hate", "awful", "worst")

# Upper bounds on mean days between transactions
FREQUENCY_GAP_DAYS: tuple[tuple[float, Frequency], ...] = (
    (1.5, Frequency.DAILY),
    (10.0, Frequency.WEEKLY),
    (45.0, Frequency.MONTHLY),
)

E = TypeVar("E", bound=Enum)


def analyze_sentiment(text: str | None) -> Sentiment:
    """Keyword sentiment of a message body."""
    if not text:
        return Sentiment.NEUTRAL

    content = text.lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in content)
    negative = sum(1 for word in NEGATIVE_WORDS if word in content)

    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def _enum_or_default(enum_cls: type[E], value: Any, default: E) -> E:
    if value is None:
        return default
    try:
        return enum_cls(value.lower() if isinstance(value, str) else value)
    except ValueError:
        logger.debug("Unknown %s value %r, using %s", enum_cls.__name__, value, default.value)
        return default


def _as_float(value: Any, field: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid {field}: {value!r}") from e


def _as_utc(value: Any) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_event(raw: Mapping[str, Any], now: datetime | None = None) -> CommunicationEvent:
    """Build a CommunicationEvent from a loosely typed mapping.

    Unknown enum values fall back to defaults instead of failing. When no
    sentiment is given it is derived from ``content``.
    """
    timestamp = raw.get("timestamp")
    response_time = raw.get("response_time")

    sentiment = raw.get("sentiment")
    if sentiment is None:
        resolved_sentiment = analyze_sentiment(raw.get("content"))
    else:
        resolved_sentiment = _enum_or_default(Sentiment, sentiment, Sentiment.NEUTRAL)

    return CommunicationEvent(
        timestamp=_as_utc(timestamp) if timestamp is not None else (now or utcnow()),
        channel=_enum_or_default(Channel, raw.get("channel"), Channel.APP),
        direction=_enum_or_default(Direction, raw.get("direction"), Direction.OUTBOUND),
        message_type=str(raw.get("message_type") or "general"),
        engagement=_enum_or_default(Engagement, raw.get("engagement"), Engagement.NONE),
        sentiment=resolved_sentiment,
        response_time=(
            _as_float(response_time, "response_time") if response_time is not None else None
        ),
    )


def _frequency_for_gap(mean_gap_days: float | None) -> Frequency:
    if mean_gap_days is None:
        return Frequency.IRREGULAR
    for bound, frequency in FREQUENCY_GAP_DAYS:
        if mean_gap_days <= bound:
            return frequency
    return Frequency.IRREGULAR


def analyze_transactions(transactions: Sequence[Mapping[str, Any]]) -> list[TransactionPattern]:
    """Summarize raw transactions into a transaction pattern.

    Each transaction needs ``timestamp`` and ``value``; ``type`` is optional.

    Args:
        transactions: Raw transaction records

    Returns:
        A single-element list with the pattern, or an empty list

    Raises:
        ValueError: If a timestamp or value cannot be parsed
    """
    if not transactions:
        return []

    df = pl.DataFrame(
        {
            "timestamp": [_as_utc(t.get("timestamp")) for t in transactions],
            "value": [_as_float(t.get("value", 0.0), "value") for t in transactions],
            "type": [None if t.get("type") is None else str(t["type"]) for t in transactions],
        },
        schema={
            "timestamp": pl.Datetime("us", "UTC"),
            "value": pl.Float64,
            "type": pl.Utf8,
        },
    ).sort("timestamp")

    mean_gap_days = None
    if df.height >= 2:
        gaps = df["timestamp"].diff().drop_nulls().dt.total_seconds() / 86400
        mean_gap_days = gaps.mean()

    average_value = df["value"].mean() or 0.0
    std_value = df["value"].std(ddof=0) or 0.0
    volatility = std_value / average_value if average_value else 0.0

    hours = (
        df.with_columns(pl.col("timestamp").dt.hour().alias("hour"))
        .group_by("hour")
        .agg(pl.len().alias("count"))
        .sort(["count", "hour"], descending=[True, False])
        .head(3)
    )
    preferred_times = tuple(f"{hour:02d}:00" for hour in hours["hour"].to_list())
    transaction_types = tuple(df["type"].drop_nulls().unique(maintain_order=True).to_list())

    return [
        TransactionPattern(
            frequency=_frequency_for_gap(mean_gap_days),
            average_value=float(average_value),
            preferred_times=preferred_times,
            transaction_types=transaction_types,
            volatility=round(float(volatility), 4),
        )
    ]


class EventIngestor:
    """Validates addresses and feeds events into the profile store."""

    def __init__(
        self,
        store: ProfileStore,
        activity_logger: ActivityLogger | None = None,
    ) -> None:
        """Initialize event ingestor.

        Args:
            store: Profile store that owns all profiles
            activity_logger: Audit sink for profile updates
        """
        self.store = store
        self.activity_logger = activity_logger

    async def ingest(
        self,
        address: str,
        event: CommunicationEvent | Mapping[str, Any],
        data_source: DataSource | None = None,
    ) -> AddressProfile | None:
        """Append one communication event to an address profile.

        Returns:
            The refreshed profile snapshot, or None if the address is malformed
        """
        try:
            address = validate_address(address)
        except MalformedAddressError as e:
            logger.warning("Skipping event: %s", e.message)
            return None

        if not isinstance(event, CommunicationEvent):
            event = normalize_event(event)

        profile = await self.store.append_event(address, event, data_source)
        await self._log_update(profile)
        return profile

    async def ingest_transactions(
        self,
        address: str,
        transactions: Sequence[Mapping[str, Any]],
    ) -> AddressProfile | None:
        """Replace an address's transaction patterns from raw transactions."""
        try:
            address = validate_address(address)
        except MalformedAddressError as e:
            logger.warning("Skipping transactions: %s", e.message)
            return None

        patterns = analyze_transactions(transactions)
        profile = await self.store.upsert(address, {"transaction_patterns": patterns})
        await self._log_update(profile)
        return profile

    async def _log_update(self, profile: AddressProfile) -> None:
        record = ActivityRecord.system(
            action="address_intelligence_update",
            details={
                "address": profile.address,
                "scores": {
                    "activity": profile.activity_score,
                    "engagement": profile.engagement_score,
                    "viral": profile.viral_potential,
                },
                "tier": profile.value_tier.value,
                "risk": profile.risk_assessment.value,
            },
            session_id=f"address_intel_{int(profile.last_analyzed.timestamp() * 1000)}",
        )
        await safe_log(self.activity_logger, record)
