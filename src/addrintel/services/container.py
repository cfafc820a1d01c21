"""Service container: wires every component from one IntelConfig."""

from typing import Any

from addrintel.bridge.hooks import ResponseHooks
from addrintel.bridge.orchestrator import IntelligenceBridge
from addrintel.cohort.analysis import CohortAnalyzer
from addrintel.config.settings import IntelConfig
from addrintel.extraction.extractor import AddressExtractor
from addrintel.ingestion.events import EventIngestor
from addrintel.profiles.base import ProfileRepository
from addrintel.profiles.memory_store import InMemoryProfileRepository
from addrintel.profiles.pg_store import PgProfileRepository
from addrintel.profiles.store import ProfileStore
from addrintel.scoring.engine import ScoringEngine
from addrintel.services.activity_log import ActivityLogger, LoggingActivityLogger
from addrintel.services.directory import (
    ContactDirectory,
    InMemoryContactDirectory,
    PgContactDirectory,
)
from addrintel.services.llm import LLMService, OpenAIChatService, UnavailableLLMService


def default_llm(config: IntelConfig) -> LLMService:
    if config.openai_api_key:
        return OpenAIChatService(config)
    return UnavailableLLMService()


class IntelligenceServices:
    """Every component of the pipeline, built once and shared.

    Collaborators not passed in are created from ``config``. PostgreSQL
    backends created here are opened and closed by the async context manager.
    """

    def __init__(
        self,
        config: IntelConfig | None = None,
        repository: ProfileRepository | None = None,
        directory: ContactDirectory | None = None,
        llm: LLMService | None = None,
        activity_logger: ActivityLogger | None = None,
    ) -> None:
        self.config = config or IntelConfig()
        self._owned: list[Any] = []

        postgres = self.config.storage_backend == "postgres"
        if repository is None:
            if postgres:
                repository = PgProfileRepository(self.config)
                self._owned.append(repository)
            else:
                repository = InMemoryProfileRepository()
        if directory is None:
            if postgres:
                directory = PgContactDirectory(self.config)
                self._owned.append(directory)
            else:
                directory = InMemoryContactDirectory()

        self.repository = repository
        self.directory = directory
        self.llm = llm or default_llm(self.config)
        self.activity_logger = activity_logger or LoggingActivityLogger()

        self.store = ProfileStore(
            repository=self.repository,
            scoring=ScoringEngine(viral_network_cap=self.config.viral_network_cap),
        )
        self.ingestor = EventIngestor(self.store, self.activity_logger)
        self.extractor = AddressExtractor(
            self.directory,
            lookup_timeout=self.config.directory_timeout_seconds,
            history_size=self.config.extraction_history_size,
        )
        self.bridge = IntelligenceBridge(
            store=self.store,
            ingestor=self.ingestor,
            extractor=self.extractor,
            hooks=ResponseHooks(self.activity_logger),
            activity_logger=self.activity_logger,
        )
        self.cohort = CohortAnalyzer(
            self.store,
            llm=self.llm,
            llm_timeout=self.config.llm_timeout_seconds,
        )

    async def __aenter__(self) -> "IntelligenceServices":
        """Open owned database pools."""
        for resource in self._owned:
            await resource.__aenter__()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Close owned database pools."""
        for resource in reversed(self._owned):
            await resource.__aexit__(*args)

    async def health_check(self) -> dict[str, bool]:
        return {
            "profiles": await self.repository.health_check(),
            "llm": not isinstance(self.llm, UnavailableLLMService),
        }
