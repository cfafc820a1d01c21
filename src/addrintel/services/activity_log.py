"""Audit sink for intelligence activity."""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any

logger = logging.getLogger(__name__)

SYSTEM_USER_ID = 0


@dataclass(frozen=True)
class ActivityRecord:
    """One audit entry. ``details`` is a JSON string."""

    user_id: int
    action: str
    details: str
    session_id: str

    @classmethod
    def system(cls, action: str, details: dict[str, Any], session_id: str) -> "ActivityRecord":
        return cls(
            user_id=SYSTEM_USER_ID,
            action=action,
            details=json.dumps(details, default=str),
            session_id=session_id,
        )


class ActivityLogger(ABC):
    """Fire-and-forget audit sink."""

    @abstractmethod
    async def log(self, record: ActivityRecord) -> None:
        pass


class LoggingActivityLogger(ActivityLogger):
    """Writes audit records to the ``addrintel.audit`` logger."""

    def __init__(self, logger_name: str = "addrintel.audit") -> None:
        self._logger = logging.getLogger(logger_name)

    async def log(self, record: ActivityRecord) -> None:
        self._logger.info("%s", json.dumps(asdict(record)))


class MemoryActivityLogger(ActivityLogger):
    """Keeps records in a list."""

    def __init__(self) -> None:
        self.records: list[ActivityRecord] = []

    async def log(self, record: ActivityRecord) -> None:
        self.records.append(record)

    def actions(self) -> list[str]:
        return [r.action for r in self.records]


async def safe_log(activity_logger: ActivityLogger | None, record: ActivityRecord) -> None:
    """Log a record without letting audit failures reach the caller."""
    if activity_logger is None:
        return
    try:
        await activity_logger.log(record)
    except Exception as exc:
        logger.warning("Activity logging failed for %s: %s", record.action, exc)
