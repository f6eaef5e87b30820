"""Entry store: durable log entries scoped per user."""

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol

from nutrition_log.domain.entries import (
    DEFAULT_PORTION,
    BatchFailure,
    BatchResult,
    DuplicateEntryError,
    LogEntry,
)
from nutrition_log.errors import PersistenceError
from nutrition_log.services.ids import IdGenerator, UuidIdGenerator
from nutrition_log.services.notifications import NotificationBus

_logger = logging.getLogger(__name__)


class EntryRepository(Protocol):
    """Persistence interface for log entries."""

    def list_entries(self, user_id: str) -> list[LogEntry]:
        """Return a user's entries in insertion order."""

    def insert_entry(self, user_id: str, entry: LogEntry) -> None:
        """Append an entry to a user's collection."""

    def delete_entry(self, user_id: str, entry_id: str) -> None:
        """Delete an entry if present."""

    def clear(self) -> None:
        """Delete every entry for every user."""


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class EntryStore:
    """Application service owning writes to the entry collections."""

    repository: EntryRepository
    notification_bus: NotificationBus
    id_generator: IdGenerator = field(default_factory=UuidIdGenerator)
    clock: Callable[[], int] = _now_ms

    def new_entry(  # noqa: PLR0913
        self,
        name: str,
        calories: float,
        protein: float,
        carbs: float,
        fat: float,
        portion: str | None = None,
        timestamp: int | None = None,
    ) -> LogEntry:
        """Build an entry with a fresh id, stamped with the current time."""
        return LogEntry(
            id=self.id_generator.new_id(),
            name=name,
            portion=portion or DEFAULT_PORTION,
            calories=calories,
            protein=protein,
            carbs=carbs,
            fat=fat,
            timestamp=self.clock() if timestamp is None else timestamp,
        )

    def list_entries(self, user_id: str) -> list[LogEntry]:
        """Return the canonical snapshot for a user."""
        return self.repository.list_entries(user_id)

    async def add(self, user_id: str, entry: LogEntry) -> LogEntry:
        """Persist an entry and notify subscribers.

        Raises PersistenceError when the write fails and DuplicateEntryError
        when the id is already taken for this user. Once the write succeeds the
        add stands, even if the follow-up snapshot read fails.
        """
        async with self.notification_bus.mutation(user_id):
            existing = self.repository.list_entries(user_id)
            if any(item.id == entry.id for item in existing):
                raise DuplicateEntryError(
                    f"Entry {entry.id} already exists for user {user_id}"
                )
            self.repository.insert_entry(user_id, entry)
        _logger.info("Entry added: user_id=%s entry_id=%s", user_id, entry.id)
        return entry

    async def add_many(self, user_id: str, entries: Iterable[LogEntry]) -> BatchResult:
        """Add entries one by one, keeping whatever succeeded."""
        added: list[LogEntry] = []
        failed: list[BatchFailure] = []
        for index, entry in enumerate(entries):
            try:
                await self.add(user_id, entry)
            except (PersistenceError, DuplicateEntryError) as exc:
                _logger.warning(
                    "Batch item failed: user_id=%s index=%s entry_id=%s error=%s",
                    user_id,
                    index,
                    entry.id,
                    exc,
                )
                failed.append(BatchFailure(index=index, entry=entry, error=str(exc)))
                continue
            added.append(entry)
        return BatchResult(added=added, failed=failed)

    async def remove(self, user_id: str, entry_id: str) -> None:
        """Delete an entry; unknown ids are ignored."""
        async with self.notification_bus.mutation(user_id):
            self.repository.delete_entry(user_id, entry_id)
        _logger.info("Entry removed: user_id=%s entry_id=%s", user_id, entry_id)

    async def clear_all(self) -> None:
        """Erase every user's entries and push empty snapshots."""
        self.repository.clear()
        await self.notification_bus.refresh_all()
