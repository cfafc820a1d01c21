"""Contact directory: resolves a phone number or email to linked wallet addresses."""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

import asyncpg

from addrintel.config.settings import IntelConfig


class ContactDirectory(ABC):
    """Abstract base class for contact-to-wallet lookups."""

    @abstractmethod
    async def lookup_wallets_by_contact(self, contact: str) -> list[str]:
        """Find wallet addresses linked to a contact.

        Args:
            contact: Phone number or email address

        Returns:
            Linked wallet addresses (empty if unknown)
        """
        pass


class InMemoryContactDirectory(ContactDirectory):
    """Dictionary-backed directory."""

    def __init__(self, links: Mapping[str, Iterable[str]] | None = None) -> None:
        self._links: dict[str, list[str]] = {}
        for contact, wallets in (links or {}).items():
            self.link(contact, *wallets)

    @staticmethod
    def _key(contact: str) -> str:
        return contact.strip().lower()

    def link(self, contact: str, *wallets: str) -> None:
        known = self._links.setdefault(self._key(contact), [])
        for wallet in wallets:
            if wallet not in known:
                known.append(wallet)

    async def lookup_wallets_by_contact(self, contact: str) -> list[str]:
        return list(self._links.get(self._key(contact), []))


class PgContactDirectory(ContactDirectory):
    """Looks contacts up in the ``contact_wallets`` table."""

    def __init__(self, config: IntelConfig | None = None) -> None:
        """Initialize PostgreSQL directory.

        Args:
            config: Service configuration with database URL
        """
        self.config = config or IntelConfig()
        self.pool: asyncpg.Pool | None = None

    async def __aenter__(self) -> "PgContactDirectory":
        """Async context manager entry."""
        self.pool = await asyncpg.create_pool(
            self.config.database_url,
            min_size=1,
            max_size=5,
            command_timeout=60,
        )
        await self.create_schema()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        if self.pool:
            await self.pool.close()

    def _require_pool(self) -> asyncpg.Pool:
        if not self.pool:
            raise RuntimeError("Connection pool not initialized")
        return self.pool

    async def create_schema(self) -> None:
        async with self._require_pool().acquire() as conn:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS contact_wallets (
                    contact TEXT NOT NULL,
                    wallet_address TEXT NOT NULL,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (contact, wallet_address)
                )
                """
            )

    async def link(self, contact: str, *wallets: str) -> None:
        async with self._require_pool().acquire() as conn:
            await conn.executemany(
                """
                INSERT INTO contact_wallets (contact, wallet_address)
                VALUES ($1, $2)
                ON CONFLICT DO NOTHING
                """,
                [(contact.strip().lower(), w) for w in wallets],
            )

    async def lookup_wallets_by_contact(self, contact: str) -> list[str]:
        async with self._require_pool().acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT wallet_address FROM contact_wallets
                WHERE contact = $1
                ORDER BY created_at, wallet_address
                """,
                contact.strip().lower(),
            )

        return [row["wallet_address"] for row in rows]
