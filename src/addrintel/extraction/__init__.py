"""Address extraction from inbound messages."""

from addrintel.extraction.extractor import (
    AddressExtractor,
    ExtractionMethod,
    ExtractionResult,
)
from addrintel.extraction.patterns import (
    canonical_address,
    find_addresses,
    is_wallet_address,
    validate_address,
)

__all__ = [
    "AddressExtractor",
    "ExtractionMethod",
    "ExtractionResult",
    "canonical_address",
    "find_addresses",
    "is_wallet_address",
    "validate_address",
]
