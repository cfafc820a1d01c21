"""Blockchain address patterns.

Ethereum: 0x + 40 hex. Bitcoin: legacy/P2SH base58 starting with 1 or 3.
Solana: 32-44 base58 characters.

Ethereum hex is case-insensitive (mixed case is only a checksum), so
Ethereum addresses are canonicalized to lowercase. Base58 is case-sensitive
and left as is.
"""

import re

from addrintel.errors import MalformedAddressError

_BASE58 = "1-9A-HJ-NP-Za-km-z"

ETHEREUM_PATTERN = re.compile(r"0x[a-fA-F0-9]{40}")
BITCOIN_PATTERN = re.compile(rf"[13][{_BASE58}]{{25,34}}")
SOLANA_PATTERN = re.compile(rf"[{_BASE58}]{{32,44}}")

ADDRESS_PATTERNS: tuple[re.Pattern[str], ...] = (
    ETHEREUM_PATTERN,
    BITCOIN_PATTERN,
    SOLANA_PATTERN,
)

# Word boundaries keep body scans from matching inside longer tokens
_CONTENT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(rf"\b{p.pattern}\b") for p in ADDRESS_PATTERNS
)


def is_wallet_address(candidate: str) -> bool:
    """Check whether a whole string is a recognizable address."""
    candidate = candidate.strip()
    return any(p.fullmatch(candidate) for p in ADDRESS_PATTERNS)


def canonical_address(address: str) -> str:
    """Stripped address with Ethereum hex lowercased."""
    address = address.strip()
    if ETHEREUM_PATTERN.fullmatch(address):
        return address.lower()
    return address


def validate_address(candidate: str) -> str:
    """Return the canonical address or raise MalformedAddressError."""
    if not isinstance(candidate, str) or not is_wallet_address(candidate):
        raise MalformedAddressError(str(candidate))
    return canonical_address(candidate)


def find_addresses(text: str) -> list[str]:
    """Scan free text for addresses, deduplicated in order of discovery."""
    found: list[str] = []
    for pattern in _CONTENT_PATTERNS:
        for match in pattern.findall(text or ""):
            address = canonical_address(match)
            if address not in found:
                found.append(address)
    return found
