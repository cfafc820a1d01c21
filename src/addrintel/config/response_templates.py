"""Personalized message templates by message type and value tier.

The table must cover every MessageType x ValueTier pair; this is checked
when the module is imported.
"""

from enum import Enum

from addrintel.errors import ConfigurationError
from addrintel.models import ValueTier


class MessageType(str, Enum):
    """Kinds of outbound message the bridge can personalize."""

    WELCOME = "welcome"
    PROMOTION = "promotion"
    VIP = "vip"
    RETENTION = "retention"
    INFLUENCER = "influencer"


DEFAULT_MESSAGE = "Hello! We have an exciting update for you."

RESPONSE_TEMPLATES: dict[MessageType, dict[ValueTier, str]] = {
    MessageType.WELCOME: {
        ValueTier.DIAMOND: (
            "Welcome to our exclusive diamond tier! You're among our most valued community members."
        ),
        ValueTier.GOLD: "Welcome to our gold tier! We're excited to have such an engaged member join us.",
        ValueTier.SILVER: "Welcome! We appreciate active community members like you.",
        ValueTier.BRONZE: "Welcome to our community! We're glad you're here.",
    },
    MessageType.PROMOTION: {
        ValueTier.DIAMOND: "Exclusive offer for our diamond members - this won't last long!",
        ValueTier.GOLD: "Special promotion for our gold tier members.",
        ValueTier.SILVER: "We think you'll love this new opportunity.",
        ValueTier.BRONZE: "Check out this exciting new feature!",
    },
    MessageType.VIP: {
        ValueTier.DIAMOND: "As one of our top diamond members, you get first access to what's next.",
        ValueTier.GOLD: "Thanks for being a gold member - here's a VIP preview just for you.",
        ValueTier.SILVER: "You're close to VIP status - here's a head start.",
        ValueTier.BRONZE: "Discover the perks waiting for you as you grow with us.",
    },
    MessageType.RETENTION: {
        ValueTier.DIAMOND: "We miss you! Your diamond benefits are waiting - let us know how we can help.",
        ValueTier.GOLD: "It's been a while. Here's something special to welcome you back.",
        ValueTier.SILVER: "We'd love to see you again - check out what's new.",
        ValueTier.BRONZE: "Come back and see what you've been missing!",
    },
    MessageType.INFLUENCER: {
        ValueTier.DIAMOND: "Your network trusts you. Let's build something together as partners.",
        ValueTier.GOLD: "You've got reach - join our ambassador program.",
        ValueTier.SILVER: "Share with your friends and earn rewards together.",
        ValueTier.BRONZE: "Invite friends and unlock bonuses for both of you.",
    },
}


def validate_templates(templates: dict[MessageType, dict[ValueTier, str]]) -> None:
    """Raise ConfigurationError unless every type and tier has a template."""
    missing = [
        f"{message_type.value}/{tier.value}"
        for message_type in MessageType
        for tier in ValueTier
        if not templates.get(message_type, {}).get(tier)
    ]
    if missing:
        raise ConfigurationError(f"Missing response templates: {', '.join(missing)}")


def template_for(message_type: MessageType, tier: ValueTier) -> str:
    return RESPONSE_TEMPLATES[message_type][tier]


validate_templates(RESPONSE_TEMPLATES)
