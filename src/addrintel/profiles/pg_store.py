"""PostgreSQL-backed profile repository."""

import json
from typing import Any

import asyncpg

from addrintel.config.settings import IntelConfig
from addrintel.models import AddressProfile
from addrintel.profiles.base import ProfileRepository


class PgProfileRepository(ProfileRepository):
    """Stores each profile as a JSONB document keyed by address."""

    def __init__(self, config: IntelConfig | None = None) -> None:
        """Initialize PostgreSQL repository.

        Args:
            config: Service configuration with database URL
        """
        self.config = config or IntelConfig()
        self.pool: asyncpg.Pool | None = None

    async def __aenter__(self) -> "PgProfileRepository":
        """Async context manager entry."""
        self.pool = await asyncpg.create_pool(
            self.config.database_url,
            min_size=2,
            max_size=10,
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
        """Create the profiles table if it does not exist."""
        async with self._require_pool().acquire() as conn:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS address_profiles (
                    address TEXT PRIMARY KEY,
                    customer_segment TEXT NOT NULL,
                    data JSONB NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            await conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_address_profiles_segment
                ON address_profiles (customer_segment)
                """
            )

    async def get(self, address: str) -> AddressProfile | None:
        async with self._require_pool().acquire() as conn:
            row = await conn.fetchrow(
                "SELECT data::text AS data FROM address_profiles WHERE address = $1",
                address,
            )

        if not row:
            return None
        return AddressProfile.from_dict(json.loads(row["data"]))

    async def save(self, profile: AddressProfile) -> None:
        async with self._require_pool().acquire() as conn:
            await conn.execute(
                """
                INSERT INTO address_profiles (address, customer_segment, data)
                VALUES ($1, $2, $3::jsonb)
                ON CONFLICT (address) DO UPDATE
                SET customer_segment = $2, data = $3::jsonb, updated_at = CURRENT_TIMESTAMP
                """,
                profile.address,
                profile.customer_segment,
                json.dumps(profile.to_dict()),
            )

    async def list_all(self) -> list[AddressProfile]:
        async with self._require_pool().acquire() as conn:
            rows = await conn.fetch(
                "SELECT data::text AS data FROM address_profiles ORDER BY address"
            )

        return [AddressProfile.from_dict(json.loads(row["data"])) for row in rows]

    async def count(self) -> int:
        async with self._require_pool().acquire() as conn:
            return await conn.fetchval("SELECT COUNT(*) FROM address_profiles")

    async def health_check(self) -> bool:
        """Check if PostgreSQL is reachable."""
        if not self.pool:
            return False

        try:
            async with self.pool.acquire() as conn:
                result = await conn.fetchval("SELECT 1")
                return result == 1
        except Exception:
            return False

    async def clear(self) -> None:
        """Delete all profiles (use with caution!)."""
        async with self._require_pool().acquire() as conn:
            await conn.execute("TRUNCATE address_profiles")
