"""External collaborators: contact directory, language model, activity log."""

from addrintel.services.activity_log import (
    ActivityLogger,
    ActivityRecord,
    LoggingActivityLogger,
    MemoryActivityLogger,
)
from addrintel.services.directory import (
    ContactDirectory,
    InMemoryContactDirectory,
    PgContactDirectory,
)
from addrintel.services.llm import (
    LLMService,
    OpenAIChatService,
    StaticLLMService,
    UnavailableLLMService,
)

__all__ = [
    "ActivityLogger",
    "ActivityRecord",
    "ContactDirectory",
    "InMemoryContactDirectory",
    "LLMService",
    "LoggingActivityLogger",
    "MemoryActivityLogger",
    "OpenAIChatService",
    "PgContactDirectory",
    "StaticLLMService",
    "UnavailableLLMService",
]
