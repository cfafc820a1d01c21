"""Abstract base class for profile repositories."""

from abc import ABC, abstractmethod

from addrintel.models import AddressProfile


class ProfileRepository(ABC):
    """Abstract interface for address profile persistence.

    Repositories store whole profiles and know nothing about scoring or
    locking. ProfileStore layers both on top.
    """

    @abstractmethod
    async def get(self, address: str) -> AddressProfile | None:
        """Load a profile.

        Args:
            address: Address identity key

        Returns:
            Stored profile, or None if the address was never seen
        """
        pass

    @abstractmethod
    async def save(self, profile: AddressProfile) -> None:
        """Insert or replace a profile keyed by its address."""
        pass

    @abstractmethod
    async def list_all(self) -> list[AddressProfile]:
        """Return every stored profile."""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored profiles."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the repository is healthy."""
        pass
