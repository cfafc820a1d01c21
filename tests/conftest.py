"""Shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from addrintel.config import IntelConfig
from addrintel.profiles import InMemoryProfileRepository, ProfileStore
from addrintel.services import (
    InMemoryContactDirectory,
    MemoryActivityLogger,
    UnavailableLLMService,
)
from addrintel.services.container import IntelligenceServices

# Ethereum addresses are keyed in lowercase; the checksum form is the same wallet
ETH_CHECKSUM_ADDRESS = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"
ETH_ADDRESS = ETH_CHECKSUM_ADDRESS.lower()
ETH_ADDRESS_2 = "0x8ba1f109551bd432803012645ac136ddd64dba72"
BTC_ADDRESS = "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa"
SOL_ADDRESS = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"

START = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def eth_address(i: int) -> str:
    """Deterministic valid Ethereum address for index ``i``."""
    return f"0x{i:040x}"


class TickClock:
    """Clock that advances one second on every call."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock() -> TickClock:
    return TickClock()


@pytest.fixture
def store(clock: TickClock) -> ProfileStore:
    return ProfileStore(InMemoryProfileRepository(), clock=clock)


@pytest.fixture
def activity_logger() -> MemoryActivityLogger:
    return MemoryActivityLogger()


@pytest.fixture
def services(activity_logger: MemoryActivityLogger) -> IntelligenceServices:
    """In-memory service container with no language model."""
    return IntelligenceServices(
        config=IntelConfig(storage_backend="memory", openai_api_key=None),
        directory=InMemoryContactDirectory({"+15551234567": [ETH_ADDRESS]}),
        llm=UnavailableLLMService(),
        activity_logger=activity_logger,
    )
