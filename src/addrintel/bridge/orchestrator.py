"""Messaging-to-intelligence bridge.

Every inbound message runs through the same pipeline: extract addresses,
update each address profile, link co-occurring addresses, log the activity
and fire any response hooks the refreshed profiles trigger.
"""

import asyncio
import logging
from collections import Counter
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from addrintel.bridge.hooks import ResponseHooks
from addrintel.config.response_templates import DEFAULT_MESSAGE, MessageType, template_for
from addrintel.extraction.extractor import AddressExtractor, ExtractionResult
from addrintel.ingestion.events import EventIngestor, analyze_sentiment
from addrintel.models import (
    AddressProfile,
    Channel,
    CommunicationEvent,
    DataSource,
    Direction,
    Engagement,
    RiskLevel,
    ValueTier,
    utcnow,
)
from addrintel.profiles.store import ProfileStore
from addrintel.services.activity_log import ActivityLogger, ActivityRecord, safe_log

logger = logging.getLogger(__name__)

UNKNOWN_TYPE_MESSAGE = "We have something special for you!"
DEFAULT_CONTACT_TIME = "10:00"
DEFAULT_EXPECTED_ENGAGEMENT = 10
DEFAULT_CHANNEL = "sms"

VIP_ENGAGEMENT_THRESHOLD = 80
RETENTION_CHURN_THRESHOLD = 0.7
INFLUENCER_VIRAL_THRESHOLD = 85
HIGH_VIRAL_THRESHOLD = 80


class MessageStatus(str, Enum):
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    RESPONDED = "responded"


STATUS_ENGAGEMENT: dict[MessageStatus, Engagement] = {
    MessageStatus.SENT: Engagement.NONE,
    MessageStatus.DELIVERED: Engagement.VIEWED,
    MessageStatus.READ: Engagement.CLICKED,
    MessageStatus.RESPONDED: Engagement.RESPONDED,
}


@dataclass
class InboundMessage:
    """A message observed by the host messaging system."""

    id: str
    recipient: str  # Phone, email or wallet address
    content: str
    channel: Channel
    status: MessageStatus
    timestamp: datetime = field(default_factory=utcnow)
    campaign: str | None = None
    response_time: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InboundMessage":
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        return cls(
            id=str(data["id"]),
            recipient=data["recipient"],
            content=data.get("content", ""),
            channel=Channel(data.get("channel", "app")),
            status=MessageStatus(data.get("status", "sent")),
            timestamp=timestamp or utcnow(),
            campaign=data.get("campaign"),
            response_time=data.get("response_time"),
            metadata=dict(data.get("metadata") or {}),
        )

    def to_event(self) -> CommunicationEvent:
        return CommunicationEvent(
            timestamp=self.timestamp,
            channel=self.channel,
            direction=Direction.OUTBOUND,
            message_type=self.campaign or "general",
            engagement=STATUS_ENGAGEMENT[self.status],
            sentiment=analyze_sentiment(self.content),
            response_time=self.response_time,
        )


def _coerce_message_type(message_type: MessageType | str) -> MessageType | None:
    try:
        return MessageType(message_type)
    except ValueError:
        return None


def generate_recommendations(profile: AddressProfile | None) -> list[str]:
    """Marketing recommendations for a single profile."""
    if profile is None:
        return ["No data available - start collecting intelligence"]

    recommendations = []
    if profile.engagement_score < 30:
        recommendations.append("Low engagement - try different communication channels")
    if profile.value_tier == ValueTier.DIAMOND:
        recommendations.append("VIP treatment recommended - personalized premium content")
    if profile.risk_assessment == RiskLevel.HIGH:
        recommendations.append("High churn risk - immediate retention campaign needed")
    if profile.viral_potential > HIGH_VIRAL_THRESHOLD:
        recommendations.append("High viral potential - consider influencer partnership")
    return recommendations


class IntelligenceBridge:
    """Runs inbound messages through extraction, profiling and response hooks."""

    def __init__(
        self,
        store: ProfileStore,
        ingestor: EventIngestor,
        extractor: AddressExtractor,
        hooks: ResponseHooks | None = None,
        activity_logger: ActivityLogger | None = None,
    ) -> None:
        """Initialize the bridge.

        Args:
            store: Profile store
            ingestor: Event ingestor writing into ``store``
            extractor: Address extractor
            hooks: Response hooks (default hooks share ``activity_logger``)
            activity_logger: Audit sink
        """
        self.store = store
        self.ingestor = ingestor
        self.extractor = extractor
        self.activity_logger = activity_logger
        self.hooks = hooks or ResponseHooks(activity_logger)

    async def handle_message(self, message: InboundMessage) -> ExtractionResult:
        """Process one inbound message. Failures are logged, never raised."""
        result = ExtractionResult.empty(f"flutterbye_{message.channel.value}")
        try:
            result = await self.extractor.extract(
                message.recipient, message.content, message.channel.value
            )

            event = message.to_event()
            updated = await asyncio.gather(
                *(
                    self.ingestor.ingest(address, event, DataSource.FLUTTERBYE)
                    for address in result.addresses
                )
            )
            profiles = [p for p in updated if p is not None]

            profiles = await self._link_network(profiles)
            await self._log_bridge_activity(message, result)
            await self._trigger_responses(profiles, message)
        except Exception:
            logger.exception("Error processing message %s", message.id)
        return result

    async def _link_network(self, profiles: list[AddressProfile]) -> list[AddressProfile]:
        if len(profiles) < 2:
            return profiles

        addresses = [p.address for p in profiles]
        return list(
            await asyncio.gather(
                *(
                    self.store.upsert(
                        address,
                        {"network_connections": [a for a in addresses if a != address]},
                    )
                    for address in addresses
                )
            )
        )

    async def _log_bridge_activity(self, message: InboundMessage, result: ExtractionResult) -> None:
        record = ActivityRecord.system(
            action="flutterbye_flutterAI_bridge",
            details={
                "message_id": message.id,
                "channel": message.channel.value,
                "addresses_found": len(result.addresses),
                "extraction_method": result.method.value,
                "confidence": result.confidence,
                "timestamp": utcnow().isoformat(),
            },
            session_id=f"bridge_{message.id}",
        )
        await safe_log(self.activity_logger, record)

    async def _trigger_responses(
        self,
        profiles: Sequence[AddressProfile],
        message: InboundMessage,
    ) -> None:
        pending: list[Awaitable[str]] = []
        for profile in profiles:
            if (
                profile.value_tier == ValueTier.DIAMOND
                and profile.engagement_score > VIP_ENGAGEMENT_THRESHOLD
            ):
                pending.append(self.hooks.send_vip_response(profile, message.id))
            if (
                profile.risk_assessment == RiskLevel.HIGH
                and profile.churn_risk > RETENTION_CHURN_THRESHOLD
            ):
                pending.append(self.hooks.send_retention_message(profile, message.id))
            if profile.viral_potential > INFLUENCER_VIRAL_THRESHOLD:
                pending.append(self.hooks.send_influencer_outreach(profile, message.id))

        for outcome in await asyncio.gather(*pending, return_exceptions=True):
            if isinstance(outcome, Exception):
                logger.warning("Response hook failed for message %s: %s", message.id, outcome)

    async def generate_personalized_message(
        self,
        address: str,
        message_type: MessageType | str,
    ) -> str:
        """Pick a message template for the address's value tier.

        Args:
            address: Wallet address
            message_type: One of welcome, promotion, retention or reactivation

        Returns:
            Template text. Unknown addresses get the default message and
            unknown types the unknown-type message.
        """
        profile = await self.store.get(address)
        if profile is None:
            return DEFAULT_MESSAGE

        resolved = _coerce_message_type(message_type)
        if resolved is None:
            return UNKNOWN_TYPE_MESSAGE
        return template_for(resolved, profile.value_tier)

    async def predict_optimal_contact_time(self, address: str) -> str:
        profile = await self.store.get(address)
        if profile is None or not profile.optimal_contact_times:
            return DEFAULT_CONTACT_TIME
        return profile.optimal_contact_times[0]

    async def optimize_campaign(
        self,
        addresses: Sequence[str],
        message_type: MessageType | str = MessageType.PROMOTION,
    ) -> dict[str, Any]:
        """Personalize a campaign for each target address.

        Messages are ordered by expected engagement, highest first.
        """
        messages = []
        high_value = 0
        at_risk = 0

        for address in addresses:
            profile = await self.store.get(address)
            messages.append(
                {
                    "address": address,
                    "personalized_content": await self.generate_personalized_message(
                        address, message_type
                    ),
                    "optimal_send_time": await self.predict_optimal_contact_time(address),
                    "expected_engagement": (
                        profile.engagement_score
                        if profile and profile.engagement_score
                        else DEFAULT_EXPECTED_ENGAGEMENT
                    ),
                    "recommended_channel": (
                        profile.preferred_channels[0]
                        if profile and profile.preferred_channels
                        else DEFAULT_CHANNEL
                    ),
                }
            )
            if profile and profile.value_tier in (ValueTier.GOLD, ValueTier.DIAMOND):
                high_value += 1
            if profile and profile.risk_assessment == RiskLevel.HIGH:
                at_risk += 1

        messages.sort(key=lambda m: m["expected_engagement"], reverse=True)
        total_expected = sum(m["expected_engagement"] for m in messages)

        return {
            "optimized_messages": messages,
            "campaign_insights": {
                "total_reach": len(addresses),
                "expected_response": round(total_expected / len(addresses)) if addresses else 0,
                "high_value_targets": high_value,
                "risk_addresses": at_risk,
            },
        }

    async def bulk_analysis(self, addresses: Sequence[str]) -> list[dict[str, Any]]:
        """Profile and recommendations for each address, in input order.

        Unknown addresses yield a None profile and a start-collecting
        recommendation rather than an error.
        """
        results = []
        for address in addresses:
            profile = await self.store.get(address)
            results.append(
                {
                    "address": address,
                    "intelligence": profile.to_dict() if profile else None,
                    "recommendations": generate_recommendations(profile),
                }
            )
        return results

    async def intelligence_report(self, top_limit: int = 10) -> dict[str, Any]:
        """Population-wide summary of every known address."""
        profiles = await self.store.all_profiles()
        top = await self.store.top_by_value(top_limit)

        tiers = Counter(p.value_tier.value for p in profiles)
        risks = Counter(p.risk_assessment.value for p in profiles)
        average_engagement = (
            sum(p.engagement_score for p in profiles) / len(profiles) if profiles else 0.0
        )
        high_viral = sum(1 for p in profiles if p.viral_potential > HIGH_VIRAL_THRESHOLD)

        return {
            "total_addresses": len(profiles),
            "average_engagement": average_engagement,
            "tier_distribution": dict(tiers),
            "risk_distribution": dict(risks),
            "risk_analysis": {
                "high_risk": risks.get("high", 0),
                "medium_risk": risks.get("medium", 0),
                "low_risk": risks.get("low", 0),
            },
            "top_performers": [p.to_dict() for p in top],
            "insights": [
                f"{tiers.get('diamond', 0)} diamond tier addresses generate highest value",
                f"Average engagement score: {round(average_engagement)}%",
                f"{risks.get('high', 0)} addresses at high churn risk need attention",
                f"{high_viral} addresses have high viral potential",
            ],
            "marketing_opportunities": [
                f"{tiers.get('diamond', 0)} diamond tier addresses ready for premium campaigns",
                f"{sum(1 for p in top if p.viral_potential > HIGH_VIRAL_THRESHOLD)} "
                "top performers have high viral potential",
                f"Average engagement {round(average_engagement)}% suggests optimization "
                "opportunities",
                f"{risks.get('high', 0)} high-risk addresses need immediate retention campaigns",
            ],
        }
