"""Profile store: creation on first sight, patch semantics and per-address locking."""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import fields
from datetime import datetime
from typing import Any

from addrintel.extraction.patterns import canonical_address
from addrintel.models import (
    AddressProfile,
    CommunicationEvent,
    DataSource,
    TransactionPattern,
    utcnow,
)
from addrintel.profiles.base import ProfileRepository
from addrintel.profiles.memory_store import InMemoryProfileRepository
from addrintel.scoring.engine import ScoringEngine

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = frozenset(f.name for f in fields(AddressProfile)) - {"address"}


def _coerce_event(value: CommunicationEvent | Mapping[str, Any]) -> CommunicationEvent:
    if isinstance(value, CommunicationEvent):
        return value
    return CommunicationEvent.from_dict(dict(value))


def _coerce_pattern(value: TransactionPattern | Mapping[str, Any]) -> TransactionPattern:
    if isinstance(value, TransactionPattern):
        return value
    return TransactionPattern.from_dict(dict(value))


def apply_patch(profile: AddressProfile, patch: Mapping[str, Any]) -> None:
    """Apply a field patch to a profile in place.

    History entries are appended and network connections are unioned, so
    concurrent writers never lose each other's data. All other fields are
    overwritten.

    Raises:
        ValueError: If the patch names a field the profile does not have
    """
    unknown = set(patch) - PATCHABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown profile fields: {sorted(unknown)}")

    for key, value in patch.items():
        if key == "communication_history":
            profile.communication_history.extend(_coerce_event(e) for e in value)
        elif key == "transaction_patterns":
            profile.transaction_patterns = [_coerce_pattern(p) for p in value]
        elif key == "network_connections":
            connections = (canonical_address(a) for a in value)
            profile.network_connections.update(a for a in connections if a != profile.address)
        elif key == "data_source":
            profile.data_source = DataSource(value)
        else:
            setattr(profile, key, value)


class ProfileStore:
    """Owns every AddressProfile; readers only ever receive snapshots."""

    def __init__(
        self,
        repository: ProfileRepository | None = None,
        scoring: ScoringEngine | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize profile store.

        Args:
            repository: Persistence backend (in-memory if None)
            scoring: Scoring engine run after every mutation
            clock: Source of "now" for first/last seen stamps
        """
        self.repository = repository or InMemoryProfileRepository()
        self.scoring = scoring or ScoringEngine()
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    async def get(self, address: str) -> AddressProfile | None:
        """Get a profile snapshot.

        Args:
            address: Wallet address, in any Ethereum hex case

        Returns:
            Profile or None if the address has never been seen
        """
        return await self.repository.get(canonical_address(address))

    async def upsert(
        self,
        address: str,
        patch: Mapping[str, Any] | None = None,
    ) -> AddressProfile:
        """Create or update a profile and rescore it."""
        patch = patch or {}
        return await self._mutate(address, lambda profile: apply_patch(profile, patch))

    async def append_event(
        self,
        address: str,
        event: CommunicationEvent,
        data_source: DataSource | None = None,
    ) -> AddressProfile:
        """Append a communication event to the address history and rescore."""

        def _append(profile: AddressProfile) -> None:
            profile.communication_history.append(event)
            if data_source is not None:
                profile.data_source = data_source

        return await self._mutate(address, _append)

    async def _mutate(
        self,
        address: str,
        apply: Callable[[AddressProfile], None],
    ) -> AddressProfile:
        address = canonical_address(address)
        # Same-address mutations serialize here; other addresses proceed freely
        lock = self._locks.setdefault(address, asyncio.Lock())
        self._lock_users[address] = self._lock_users.get(address, 0) + 1
        try:
            async with lock:
                now = self._clock()
                profile = await self.repository.get(address)
                if profile is None:
                    profile = AddressProfile.new(address, now)
                    logger.debug("Created profile for %s", address)

                apply(profile)

                profile.last_seen = max(now, profile.first_seen)
                profile.last_analyzed = now
                self.scoring.rescore(profile)

                await self.repository.save(profile)
                return profile.snapshot()
        finally:
            self._lock_users[address] -= 1
            if not self._lock_users[address]:
                del self._lock_users[address]
                del self._locks[address]

    async def all_profiles(self) -> list[AddressProfile]:
        """All profile snapshots, in no particular order."""
        return await self.repository.list_all()

    async def top_by_value(self, limit: int = 100) -> list[AddressProfile]:
        """Profiles ranked by activity + engagement, ties to the most recently seen."""
        profiles = await self.repository.list_all()
        profiles.sort(
            key=lambda p: (p.activity_score + p.engagement_score, p.last_seen),
            reverse=True,
        )
        return profiles[:limit]

    async def by_segment(self, segment: str) -> list[AddressProfile]:
        """Profiles whose customer segment equals segment."""
        profiles = await self.repository.list_all()
        return [p for p in profiles if p.customer_segment == segment]

    async def count(self) -> int:
        """Number of known addresses."""
        return await self.repository.count()
