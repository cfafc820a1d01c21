"""Address profile models and data structures."""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Channel(str, Enum):
    """Communication channel an event arrived on."""

    SMS = "sms"
    EMAIL = "email"
    BLOCKCHAIN = "blockchain"
    APP = "app"


class Direction(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class Engagement(str, Enum):
    """How far the recipient engaged with a message (ordered weakest first)."""

    NONE = "none"
    VIEWED = "viewed"
    CLICKED = "clicked"
    RESPONDED = "responded"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ValueTier(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    DIAMOND = "diamond"


class DataSource(str, Enum):
    """Platform an address was first collected from."""

    FLUTTERBYE = "flutterbye"
    POOL_PAL = "pool_pal"
    DIRECT = "direct"
    SOCIAL = "social"


class Frequency(str, Enum):
    """Transaction frequency bucket."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    IRREGULAR = "irregular"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_dt(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class CommunicationEvent:
    """Single communication touchpoint with an address."""

    timestamp: datetime
    channel: Channel
    direction: Direction
    message_type: str
    engagement: Engagement
    sentiment: Sentiment = Sentiment.NEUTRAL
    response_time: float | None = None  # Seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "channel": self.channel.value,
            "direction": self.direction.value,
            "message_type": self.message_type,
            "engagement": self.engagement.value,
            "sentiment": self.sentiment.value,
            "response_time": self.response_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommunicationEvent":
        return cls(
            timestamp=_parse_dt(data["timestamp"]),
            channel=Channel(data["channel"]),
            direction=Direction(data["direction"]),
            message_type=data["message_type"],
            engagement=Engagement(data["engagement"]),
            sentiment=Sentiment(data.get("sentiment", "neutral")),
            response_time=data.get("response_time"),
        )


@dataclass(frozen=True)
class TransactionPattern:
    """Summary of an address's raw transaction activity."""

    frequency: Frequency
    average_value: float
    preferred_times: tuple[str, ...] = ()
    transaction_types: tuple[str, ...] = ()
    volatility: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "frequency": self.frequency.value,
            "average_value": self.average_value,
            "preferred_times": list(self.preferred_times),
            "transaction_types": list(self.transaction_types),
            "volatility": self.volatility,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransactionPattern":
        return cls(
            frequency=Frequency(data["frequency"]),
            average_value=float(data["average_value"]),
            preferred_times=tuple(data.get("preferred_times", ())),
            transaction_types=tuple(data.get("transaction_types", ())),
            volatility=float(data.get("volatility", 0.0)),
        )


@dataclass
class AddressProfile:
    """Accumulated intelligence for one blockchain address."""

    address: str
    first_seen: datetime
    last_seen: datetime

    # Scores, 0-100
    activity_score: int = 0
    engagement_score: int = 0
    loyalty_score: int = 0
    viral_potential: int = 0
    influence_score: int = 0

    risk_assessment: RiskLevel = RiskLevel.MEDIUM
    value_tier: ValueTier = ValueTier.BRONZE
    churn_risk: float = 0.5

    communication_history: list[CommunicationEvent] = field(default_factory=list)
    transaction_patterns: list[TransactionPattern] = field(default_factory=list)
    network_connections: set[str] = field(default_factory=set)

    # Derived from communication history during scoring
    preferred_channels: list[str] = field(default_factory=list)
    optimal_contact_times: list[str] = field(default_factory=list)

    customer_segment: str = "new"
    data_source: DataSource = DataSource.FLUTTERBYE
    confidence_level: float = 0.1
    last_analyzed: datetime = field(default_factory=utcnow)

    # Cohort attributes supplied by the host application
    portfolio_size: str | None = None
    trading_frequency: str | None = None
    risk_tolerance: str | None = None

    @classmethod
    def new(cls, address: str, now: datetime | None = None) -> "AddressProfile":
        """Create a first-sight profile with default scores."""
        now = now or utcnow()
        return cls(address=address, first_seen=now, last_seen=now, last_analyzed=now)

    def snapshot(self) -> "AddressProfile":
        """Return an independent copy safe to hand to readers."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert profile to a JSON-compatible dictionary."""
        return {
            "address": self.address,
            "first_seen": self.first_seen.isoformat(),
            "last_seen": self.last_seen.isoformat(),
            "activity_score": self.activity_score,
            "engagement_score": self.engagement_score,
            "loyalty_score": self.loyalty_score,
            "viral_potential": self.viral_potential,
            "influence_score": self.influence_score,
            "risk_assessment": self.risk_assessment.value,
            "value_tier": self.value_tier.value,
            "churn_risk": self.churn_risk,
            "communication_history": [e.to_dict() for e in self.communication_history],
            "transaction_patterns": [p.to_dict() for p in self.transaction_patterns],
            "network_connections": sorted(self.network_connections),
            "preferred_channels": list(self.preferred_channels),
            "optimal_contact_times": list(self.optimal_contact_times),
            "customer_segment": self.customer_segment,
            "data_source": self.data_source.value,
            "confidence_level": self.confidence_level,
            "last_analyzed": self.last_analyzed.isoformat(),
            "portfolio_size": self.portfolio_size,
            "trading_frequency": self.trading_frequency,
            "risk_tolerance": self.risk_tolerance,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AddressProfile":
        """Create profile from dictionary."""
        return cls(
            address=data["address"],
            first_seen=_parse_dt(data["first_seen"]),
            last_seen=_parse_dt(data["last_seen"]),
            activity_score=data.get("activity_score", 0),
            engagement_score=data.get("engagement_score", 0),
            loyalty_score=data.get("loyalty_score", 0),
            viral_potential=data.get("viral_potential", 0),
            influence_score=data.get("influence_score", 0),
            risk_assessment=RiskLevel(data.get("risk_assessment", "medium")),
            value_tier=ValueTier(data.get("value_tier", "bronze")),
            churn_risk=data.get("churn_risk", 0.5),
            communication_history=[
                CommunicationEvent.from_dict(e) for e in data.get("communication_history", [])
            ],
            transaction_patterns=[
                TransactionPattern.from_dict(p) for p in data.get("transaction_patterns", [])
            ],
            network_connections=set(data.get("network_connections", [])),
            preferred_channels=list(data.get("preferred_channels", [])),
            optimal_contact_times=list(data.get("optimal_contact_times", [])),
            customer_segment=data.get("customer_segment", "new"),
            data_source=DataSource(data.get("data_source", "flutterbye")),
            confidence_level=data.get("confidence_level", 0.1),
            last_analyzed=_parse_dt(data["last_analyzed"]) if data.get("last_analyzed") else utcnow(),
            portfolio_size=data.get("portfolio_size"),
            trading_frequency=data.get("trading_frequency"),
            risk_tolerance=data.get("risk_tolerance"),
        )
