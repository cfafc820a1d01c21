"""Address profiles: models, repositories and the profile store."""

from addrintel.models import (
    AddressProfile,
    Channel,
    CommunicationEvent,
    DataSource,
    Direction,
    Engagement,
    Frequency,
    RiskLevel,
    Sentiment,
    TransactionPattern,
    ValueTier,
)
from addrintel.profiles.base import ProfileRepository
from addrintel.profiles.memory_store import InMemoryProfileRepository
from addrintel.profiles.pg_store import PgProfileRepository
from addrintel.profiles.store import ProfileStore

__all__ = [
    "AddressProfile",
    "Channel",
    "CommunicationEvent",
    "DataSource",
    "Direction",
    "Engagement",
    "Frequency",
    "InMemoryProfileRepository",
    "PgProfileRepository",
    "ProfileRepository",
    "ProfileStore",
    "RiskLevel",
    "Sentiment",
    "TransactionPattern",
    "ValueTier",
]
