"""Discover wallet addresses behind an inbound message."""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from addrintel.extraction.patterns import canonical_address, find_addresses, is_wallet_address
from addrintel.services.directory import ContactDirectory

logger = logging.getLogger(__name__)


class ExtractionMethod(str, Enum):
    DIRECT = "direct"
    LOOKUP = "lookup"
    INFERRED = "inferred"


DIRECT_CONFIDENCE = 1.0
LOOKUP_CONFIDENCE = 0.8
INFERRED_CONFIDENCE = 0.6


@dataclass
class ExtractionResult:
    """Addresses found for one message and how they were found."""

    addresses: list[str] = field(default_factory=list)
    confidence: float = 0.0
    method: ExtractionMethod = ExtractionMethod.INFERRED
    source: str = ""

    @classmethod
    def empty(cls, source: str = "") -> "ExtractionResult":
        return cls(source=source)

    def to_dict(self) -> dict[str, Any]:
        return {
            "addresses": list(self.addresses),
            "confidence": self.confidence,
            "method": self.method.value,
            "source": self.source,
        }


def _extend_unique(target: list[str], values: list[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


class AddressExtractor:
    """Runs the extraction steps in order of decreasing certainty.

    1. Recipient is itself an address: direct.
    2. Addresses in the message body.
    3. Recipient is a contact: directory lookup.
    4. Addresses previously seen with this recipient: inferred.

    Recipient history is an LRU bounded by history_size.
    """

    def __init__(
        self,
        directory: ContactDirectory | None = None,
        lookup_timeout: float = 5.0,
        history_size: int = 10_000,
    ) -> None:
        """Initialize address extractor.

        Args:
            directory: Contact directory for phone/email recipients
            lookup_timeout: Seconds before a directory lookup is abandoned
            history_size: Most recipients remembered for inference
        """
        self.directory = directory
        self.lookup_timeout = lookup_timeout
        self.history_size = max(1, history_size)
        self._history: OrderedDict[str, list[str]] = OrderedDict()

    async def extract(
        self,
        recipient: str,
        content: str = "",
        channel: str = "app",
    ) -> ExtractionResult:
        """Extract addresses for one message. Never raises."""
        source = f"flutterbye_{channel}"
        try:
            return await self._extract(recipient or "", content or "", source)
        except Exception:
            logger.exception("Address extraction failed for recipient %r", recipient)
            return ExtractionResult.empty(source)

    async def _extract(self, recipient: str, content: str, source: str) -> ExtractionResult:
        addresses: list[str] = []
        method: ExtractionMethod | None = None
        confidence = 0.0

        recipient = recipient.strip()
        recipient_is_address = is_wallet_address(recipient)

        if recipient_is_address:
            addresses.append(canonical_address(recipient))
            method = ExtractionMethod.DIRECT
            confidence = DIRECT_CONFIDENCE

        body_addresses = find_addresses(content)
        _extend_unique(addresses, body_addresses)

        looked_up: list[str] = []
        if not recipient_is_address and recipient:
            looked_up = await self._lookup(recipient)
            _extend_unique(addresses, looked_up)
            if looked_up:
                method = ExtractionMethod.LOOKUP
                confidence = LOOKUP_CONFIDENCE

        if not recipient_is_address and not looked_up:
            _extend_unique(addresses, self._recall(recipient))

        if method is None and addresses:
            method = ExtractionMethod.INFERRED
            confidence = INFERRED_CONFIDENCE

        if recipient and not recipient_is_address and addresses:
            self.remember(recipient, *addresses)

        return ExtractionResult(
            addresses=addresses,
            confidence=confidence,
            method=method or ExtractionMethod.INFERRED,
            source=source,
        )

    async def _lookup(self, contact: str) -> list[str]:
        if self.directory is None:
            return []
        try:
            wallets = await asyncio.wait_for(
                self.directory.lookup_wallets_by_contact(contact),
                timeout=self.lookup_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Contact lookup timed out for %r", contact)
            return []
        except Exception as e:
            logger.warning("Contact lookup failed for %r: %s", contact, e)
            return []
        return [canonical_address(w) for w in wallets if is_wallet_address(w)]

    def remember(self, recipient: str, *addresses: str) -> None:
        """Associate addresses with a recipient for later inference."""
        key = recipient.strip().lower()
        known = self._history.setdefault(key, [])
        _extend_unique(known, [canonical_address(a) for a in addresses])
        self._history.move_to_end(key)
        while len(self._history) > self.history_size:
            self._history.popitem(last=False)

    def _recall(self, recipient: str) -> list[str]:
        key = recipient.lower()
        if key not in self._history:
            return []
        self._history.move_to_end(key)
        return list(self._history[key])
