"""Event ingestion."""

from addrintel.ingestion.events import (
    EventIngestor,
    analyze_sentiment,
    analyze_transactions,
    normalize_event,
)

__all__ = [
    "EventIngestor",
    "analyze_sentiment",
    "analyze_transactions",
    "normalize_event",
]
