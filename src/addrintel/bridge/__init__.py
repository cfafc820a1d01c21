"""Messaging bridge and automated response hooks."""

from addrintel.bridge.hooks import ResponseHooks
from addrintel.bridge.orchestrator import (
    InboundMessage,
    IntelligenceBridge,
    MessageStatus,
    generate_recommendations,
)

__all__ = [
    "InboundMessage",
    "IntelligenceBridge",
    "MessageStatus",
    "ResponseHooks",
    "generate_recommendations",
]
