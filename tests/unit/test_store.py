"""Tests for the profile store."""

import asyncio

import pytest

from addrintel.models import (
    Channel,
    CommunicationEvent,
    DataSource,
    Direction,
    Engagement,
    RiskLevel,
    ValueTier,
)
from addrintel.profiles import ProfileStore

from tests.conftest import ETH_ADDRESS, ETH_ADDRESS_2, ETH_CHECKSUM_ADDRESS, START, eth_address


def event(engagement: Engagement = Engagement.RESPONDED, response_time: float = 60) -> CommunicationEvent:
    return CommunicationEvent(
        timestamp=START,
        channel=Channel.SMS,
        direction=Direction.OUTBOUND,
        message_type="general",
        engagement=engagement,
        response_time=response_time,
    )


@pytest.mark.asyncio
async def test_get_unknown_address(store: ProfileStore) -> None:
    """Test unknown addresses have no profile."""
    assert await store.get(ETH_ADDRESS) is None


@pytest.mark.asyncio
async def test_upsert_creates_profile_with_defaults(store: ProfileStore) -> None:
    """Test first sight creates a default profile."""
    profile = await store.upsert(ETH_ADDRESS)

    assert profile.address == ETH_ADDRESS
    assert profile.activity_score == 0
    assert profile.engagement_score == 0
    assert profile.value_tier == ValueTier.BRONZE
    assert profile.confidence_level == 0.1
    assert profile.customer_segment == "new"
    assert profile.data_source == DataSource.FLUTTERBYE
    assert profile.last_seen >= profile.first_seen


@pytest.mark.asyncio
async def test_upsert_rejects_unknown_fields(store: ProfileStore) -> None:
    """Test unknown patch keys raise ValueError."""
    with pytest.raises(ValueError, match="Unknown profile fields"):
        await store.upsert(ETH_ADDRESS, {"favourite_colour": "blue"})

    with pytest.raises(ValueError):
        await store.upsert(ETH_ADDRESS, {"address": ETH_ADDRESS_2})


@pytest.mark.asyncio
async def test_upsert_appends_history_and_unions_network(store: ProfileStore) -> None:
    """Test history is appended and connections merged, never replaced."""
    await store.upsert(
        ETH_ADDRESS,
        {"communication_history": [event()], "network_connections": [ETH_ADDRESS_2]},
    )
    profile = await store.upsert(
        ETH_ADDRESS,
        {
            "communication_history": [event(Engagement.NONE).to_dict()],
            "network_connections": [eth_address(1), ETH_ADDRESS],
        },
    )

    assert len(profile.communication_history) == 2
    assert profile.network_connections == {ETH_ADDRESS_2, eth_address(1)}


@pytest.mark.asyncio
async def test_upsert_overwrites_plain_fields_and_rescores(store: ProfileStore) -> None:
    """Test plain fields overwrite and derived scores follow."""
    await store.upsert(ETH_ADDRESS, {"communication_history": [event(response_time=0)] * 3})
    profile = await store.upsert(
        ETH_ADDRESS,
        {"loyalty_score": 100, "customer_segment": "whale", "data_source": "pool_pal"},
    )

    assert profile.engagement_score == 100
    assert profile.customer_segment == "whale"
    assert profile.data_source == DataSource.POOL_PAL
    # (0 + 100 + 100) / 3 = 66.7
    assert profile.value_tier == ValueTier.SILVER


@pytest.mark.asyncio
async def test_readers_get_snapshots(store: ProfileStore) -> None:
    """Test mutating a returned profile does not touch the stored one."""
    profile = await store.upsert(ETH_ADDRESS)
    profile.communication_history.append(event())
    profile.customer_segment = "tampered"

    stored = await store.get(ETH_ADDRESS)
    assert stored is not None
    assert stored.communication_history == []
    assert stored.customer_segment == "new"


@pytest.mark.asyncio
async def test_concurrent_appends_accumulate(store: ProfileStore) -> None:
    """Test concurrent same-address appends all land."""
    await asyncio.gather(*(store.append_event(ETH_ADDRESS, event()) for _ in range(50)))

    profile = await store.get(ETH_ADDRESS)
    assert profile is not None
    assert len(profile.communication_history) == 50


@pytest.mark.asyncio
async def test_concurrent_appends_across_addresses(store: ProfileStore) -> None:
    """Test different addresses are updated independently."""
    addresses = [eth_address(i) for i in range(10)]
    await asyncio.gather(
        *(store.append_event(a, event()) for a in addresses for _ in range(3))
    )

    for address in addresses:
        profile = await store.get(address)
        assert profile is not None
        assert len(profile.communication_history) == 3
    assert await store.count() == 10


@pytest.mark.asyncio
async def test_append_event_sets_data_source(store: ProfileStore) -> None:
    """Test append_event records the data source when given."""
    profile = await store.append_event(ETH_ADDRESS, event(), DataSource.SOCIAL)
    assert profile.data_source == DataSource.SOCIAL


@pytest.mark.asyncio
async def test_last_seen_advances(store: ProfileStore) -> None:
    """Test every mutation stamps last_seen and last_analyzed."""
    first = await store.upsert(ETH_ADDRESS)
    second = await store.append_event(ETH_ADDRESS, event())

    assert second.first_seen == first.first_seen
    assert second.last_seen > first.last_seen
    assert second.last_analyzed == second.last_seen


@pytest.mark.asyncio
async def test_top_by_value_orders_and_breaks_ties(store: ProfileStore) -> None:
    """Test ranking by activity + engagement, ties to the most recent."""
    await store.append_event(eth_address(1), event(Engagement.NONE, 0))
    await store.append_event(eth_address(2), event(Engagement.RESPONDED, 0))
    await store.append_event(eth_address(3), event(Engagement.NONE, 0))

    top = await store.top_by_value(limit=2)
    assert [p.address for p in top] == [eth_address(2), eth_address(3)]

    everything = await store.top_by_value()
    assert [p.address for p in everything] == [eth_address(2), eth_address(3), eth_address(1)]


@pytest.mark.asyncio
async def test_by_segment(store: ProfileStore) -> None:
    """Test segment queries."""
    await store.upsert(eth_address(1), {"customer_segment": "whale"})
    await store.upsert(eth_address(2), {"customer_segment": "retail"})
    await store.upsert(eth_address(3), {"customer_segment": "whale"})

    whales = await store.by_segment("whale")
    assert sorted(p.address for p in whales) == [eth_address(1), eth_address(3)]
    assert await store.by_segment("nobody") == []


@pytest.mark.asyncio
async def test_risk_recomputed_after_patch(store: ProfileStore) -> None:
    """Test churn risk patches feed the risk assessment."""
    profile = await store.upsert(ETH_ADDRESS, {"churn_risk": 0.95})
    assert profile.risk_assessment == RiskLevel.HIGH

    profile = await store.upsert(
        ETH_ADDRESS,
        {"churn_risk": 0.1, "communication_history": [event(response_time=0)] * 3},
    )
    assert profile.risk_assessment == RiskLevel.LOW


@pytest.mark.asyncio
async def test_checksum_case_addresses_share_one_profile(store: ProfileStore) -> None:
    """Test Ethereum hex case does not split a wallet into two profiles."""
    await store.append_event(ETH_CHECKSUM_ADDRESS, event())
    await store.append_event(ETH_ADDRESS, event())
    await store.upsert(ETH_ADDRESS_2, {"network_connections": [ETH_CHECKSUM_ADDRESS]})

    assert await store.count() == 2
    profile = await store.get(ETH_CHECKSUM_ADDRESS)
    assert profile is not None
    assert profile.address == ETH_ADDRESS
    assert len(profile.communication_history) == 2

    linked = await store.get(ETH_ADDRESS_2)
    assert linked is not None
    assert linked.network_connections == {ETH_ADDRESS}


@pytest.mark.asyncio
async def test_address_locks_are_released(store: ProfileStore) -> None:
    """Test per-address locks do not outlive their writers."""
    for i in range(100):
        await store.upsert(eth_address(i))
    await asyncio.gather(
        *(store.append_event(eth_address(i % 5), event()) for i in range(50))
    )

    assert store._locks == {}
    assert store._lock_users == {}
    profile = await store.get(eth_address(0))
    assert profile is not None
    assert len(profile.communication_history) == 10


@pytest.mark.asyncio
async def test_address_locks_released_after_failed_patch(store: ProfileStore) -> None:
    """Test a rejected patch still releases the address lock."""
    with pytest.raises(ValueError):
        await store.upsert(ETH_ADDRESS, {"not_a_field": 1})

    assert store._locks == {}
