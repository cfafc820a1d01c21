"""Integration tests for the PostgreSQL profile repository and contact directory.

These need a reachable database at DATABASE_URL and are skipped
otherwise.
"""

from collections.abc import AsyncIterator

import asyncpg
import pytest

from addrintel.config import IntelConfig
from addrintel.extraction import AddressExtractor, ExtractionMethod
from addrintel.models import Channel, CommunicationEvent, Direction, Engagement
from addrintel.profiles import PgProfileRepository, ProfileStore
from addrintel.services import PgContactDirectory

from tests.conftest import ETH_ADDRESS, ETH_ADDRESS_2, SOL_ADDRESS, START, TickClock

pytestmark = pytest.mark.postgres

UNREACHABLE = (OSError, TimeoutError, asyncpg.PostgresError)


@pytest.fixture
async def repository() -> AsyncIterator[PgProfileRepository]:
    repo = PgProfileRepository(IntelConfig())
    try:
        await repo.__aenter__()
    except UNREACHABLE as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    await repo.clear()
    yield repo
    await repo.clear()
    await repo.__aexit__(None, None, None)


@pytest.fixture
async def directory() -> AsyncIterator[PgContactDirectory]:
    contacts = PgContactDirectory(IntelConfig())
    try:
        await contacts.__aenter__()
    except UNREACHABLE as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    async with contacts._require_pool().acquire() as conn:
        await conn.execute("TRUNCATE contact_wallets")
    yield contacts
    await contacts.__aexit__(None, None, None)


@pytest.mark.asyncio
async def test_pg_health_check(repository: PgProfileRepository) -> None:
    """Test PostgreSQL health check."""
    assert await repository.health_check() is True


@pytest.mark.asyncio
async def test_pg_profile_roundtrip(repository: PgProfileRepository) -> None:
    """Test profiles survive a save and reload through the store."""
    store = ProfileStore(repository, clock=TickClock())
    event = CommunicationEvent(
        timestamp=START,
        channel=Channel.EMAIL,
        direction=Direction.OUTBOUND,
        message_type="general",
        engagement=Engagement.RESPONDED,
        response_time=0,
    )

    await store.append_event(ETH_ADDRESS, event)
    await store.upsert(
        ETH_ADDRESS,
        {"network_connections": [SOL_ADDRESS], "customer_segment": "whale"},
    )

    loaded = await store.get(ETH_ADDRESS)
    assert loaded is not None
    assert loaded.engagement_score == 100
    assert loaded.communication_history == [event]
    assert loaded.network_connections == {SOL_ADDRESS}
    assert loaded.preferred_channels == ["email"]

    assert await store.count() == 1
    assert [p.address for p in await store.by_segment("whale")] == [ETH_ADDRESS]


@pytest.mark.asyncio
async def test_pg_missing_profile(repository: PgProfileRepository) -> None:
    """Test unknown addresses read as None."""
    assert await repository.get(ETH_ADDRESS_2) is None


@pytest.mark.asyncio
async def test_pg_contact_lookup(directory: PgContactDirectory) -> None:
    """Test contact links drive lookup extraction."""
    await directory.link("Fan@Example.com", ETH_ADDRESS, ETH_ADDRESS_2)

    assert await directory.lookup_wallets_by_contact("fan@example.com") == [
        ETH_ADDRESS,
        ETH_ADDRESS_2,
    ]

    result = await AddressExtractor(directory).extract("FAN@example.com", "")
    assert result.method == ExtractionMethod.LOOKUP
    assert set(result.addresses) == {ETH_ADDRESS, ETH_ADDRESS_2}
