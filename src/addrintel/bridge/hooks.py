"""Automated responses fired by profile trigger rules."""

import logging

from addrintel.config.response_templates import MessageType, template_for
from addrintel.models import AddressProfile
from addrintel.services.activity_log import ActivityLogger, ActivityRecord, safe_log

logger = logging.getLogger(__name__)


class ResponseHooks:
    """Selects a personalized message for a triggered profile and records it.

    Delivery belongs to the host messaging system; hooks only decide what
    would be sent and log it.
    """

    def __init__(self, activity_logger: ActivityLogger | None = None) -> None:
        self.activity_logger = activity_logger

    async def send_vip_response(self, profile: AddressProfile, message_id: str) -> str:
        logger.info("Sending VIP response to high-value address: %s", profile.address)
        return await self._dispatch(profile, MessageType.VIP, message_id)

    async def send_retention_message(self, profile: AddressProfile, message_id: str) -> str:
        logger.info("Sending retention message to at-risk address: %s", profile.address)
        return await self._dispatch(profile, MessageType.RETENTION, message_id)

    async def send_influencer_outreach(self, profile: AddressProfile, message_id: str) -> str:
        logger.info("Sending influencer outreach to viral address: %s", profile.address)
        return await self._dispatch(profile, MessageType.INFLUENCER, message_id)

    async def _dispatch(
        self,
        profile: AddressProfile,
        message_type: MessageType,
        message_id: str,
    ) -> str:
        text = template_for(message_type, profile.value_tier)
        record = ActivityRecord.system(
            action=f"{message_type.value}_response",
            details={
                "address": profile.address,
                "tier": profile.value_tier.value,
                "trigger_message_id": message_id,
                "content": text,
            },
            session_id=f"bridge_{message_id}",
        )
        await safe_log(self.activity_logger, record)
        return text
