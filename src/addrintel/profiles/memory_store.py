"""In-memory profile repository."""

from addrintel.models import AddressProfile
from addrintel.profiles.base import ProfileRepository


class InMemoryProfileRepository(ProfileRepository):
    """Dict-backed repository for tests and single-process deployments.

    Profiles are copied on the way in and on the way out, so callers can
    never mutate stored state through a returned object.
    """

    def __init__(self) -> None:
        self._profiles: dict[str, AddressProfile] = {}

    async def get(self, address: str) -> AddressProfile | None:
        """Get a stored profile.

        Args:
            address: Canonical wallet address

        Returns:
            Snapshot of the profile or None if not stored
        """
        profile = self._profiles.get(address)
        return profile.snapshot() if profile else None

    async def save(self, profile: AddressProfile) -> None:
        """Store a snapshot of the profile, replacing any previous one."""
        self._profiles[profile.address] = profile.snapshot()

    async def list_all(self) -> list[AddressProfile]:
        """Snapshots of every stored profile."""
        return [p.snapshot() for p in self._profiles.values()]

    async def count(self) -> int:
        """Number of stored profiles."""
        return len(self._profiles)

    async def health_check(self) -> bool:
        """Always healthy."""
        return True
